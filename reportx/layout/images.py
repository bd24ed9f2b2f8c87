from __future__ import annotations

import base64
import binascii
import logging
import os
import tempfile
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import Iterator

from markupsafe import Markup

from ..types import Alignment


logger = logging.getLogger(__name__)

DATA_URI_PREFIX = 'data:image/'
FILE_URI_PREFIX = 'file://'

MIME_TYPE_BY_EXTENSION: dict[str, str] = {
    '.png': 'image/png',
    '.jpg': 'image/jpeg',
    '.jpeg': 'image/jpeg',
    '.svg': 'image/svg+xml',
    '.gif': 'image/gif',
}

_EXTENSION_BY_MIME_TYPE: dict[str, str] = {
    'image/png': '.png',
    'image/jpeg': '.jpg',
    'image/svg+xml': '.svg',
    'image/gif': '.gif',
}


class ImageSourceKind(str, Enum):
    data_uri = 'data_uri'
    file = 'file'
    unsupported = 'unsupported'


def classify_image_source(src: str) -> ImageSourceKind:
    value = str(src or '').strip()
    if value.startswith(FILE_URI_PREFIX):
        return ImageSourceKind.file
    if value.startswith(DATA_URI_PREFIX):
        return ImageSourceKind.data_uri
    return ImageSourceKind.unsupported


def decode_data_uri(data_uri: str) -> tuple[bytes, str]:
    """Return ``(payload, file_suffix)`` for a base64 ``data:image/...`` URI."""
    prefix, separator, encoded = str(data_uri or '').partition(',')
    if not separator:
        raise ValueError('invalid data URI: missing payload separator')

    mime_type = prefix[len('data:'):].split(';', 1)[0].strip().lower()
    suffix = _EXTENSION_BY_MIME_TYPE.get(mime_type, '.img')

    try:
        payload = base64.b64decode(encoded.strip(), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError(f'invalid base64 image payload: {exc}') from exc
    return payload, suffix


@contextmanager
def decoded_image_file(data_uri: str) -> Iterator[Path]:
    """Decode a data URI into a temp file that is removed when the block exits."""
    payload, suffix = decode_data_uri(data_uri)
    fd, name = tempfile.mkstemp(prefix='img_', suffix=suffix)
    path = Path(name)
    try:
        with os.fdopen(fd, 'wb') as handle:
            handle.write(payload)
        yield path
    finally:
        path.unlink(missing_ok=True)


@contextmanager
def resolved_image_path(src: str) -> Iterator[Path | None]:
    kind = classify_image_source(src)
    if kind is ImageSourceKind.file:
        yield Path(str(src).strip()[len(FILE_URI_PREFIX):])
        return
    if kind is ImageSourceKind.data_uri:
        with decoded_image_file(src) as path:
            yield path
        return
    yield None


def load_image_base64(path: Path) -> str:
    """Read an image file and encode it as a ``data:`` URI."""
    mime_type = MIME_TYPE_BY_EXTENSION.get(path.suffix.lower())
    if mime_type is None:
        raise ValueError(f'unsupported image type: {path.suffix or path.name}')
    encoded = base64.b64encode(path.read_bytes()).decode('ascii')
    return f'data:{mime_type};base64,{encoded}'


def wrap_logo_as_html(image_src: str, align: Alignment | str = Alignment.left) -> Markup:
    if not image_src:
        return Markup('')
    return Markup('<div style="text-align: {};"><img src="{}" style="max-height: 60px;" /></div>').format(
        Alignment(align).value,
        image_src,
    )


def wrap_chart_as_html(image_src: str, align: Alignment | str = Alignment.left) -> Markup:
    if not image_src:
        return Markup('')
    return Markup('<div style="text-align: {};"><img src="{}" style="max-height: 300px;" /></div>').format(
        Alignment(align).value,
        image_src,
    )


def wrap_chart_as_html_with_meta(
    image_src: str,
    align: Alignment | str,
    title: str,
    description: str,
) -> Markup:
    align_value = Alignment(align).value
    html = Markup('')
    if title:
        html += Markup('<h2 style="text-align: {};">{}</h2>').format(align_value, title)
    if description:
        html += Markup('<p style="text-align: {};">{}</p>').format(align_value, description)
    html += wrap_chart_as_html(image_src, align_value)
    return html
