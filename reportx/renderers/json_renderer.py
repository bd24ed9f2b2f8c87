from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import Any

from ..storage import write_bytes_atomic
from ..timestamps import DEFAULT_TIMESTAMP_FORMAT, format_timestamp
from ..types import Report, report_payload


logger = logging.getLogger(__name__)

GENERATED_AT_SEPARATOR = ' | Generated at: '


def inject_timestamp(payload: dict[str, Any], stamp: str) -> dict[str, Any]:
    """Return a copy of ``payload`` with ``stamp`` appended to ``Footer.Note``.

    A payload whose ``Footer`` is missing or not a mapping is returned unchanged.
    """
    result = copy.deepcopy(payload)
    footer = result.get('Footer')
    if not isinstance(footer, dict):
        logger.debug('Footer is not a mapping; timestamp not injected')
        return result
    note = footer.get('Note')
    if not isinstance(note, str):
        note = ''
    footer['Note'] = f'{note}{GENERATED_AT_SEPARATOR}{stamp}'
    return result


class JsonRenderer:
    def __init__(
        self,
        report: Report | dict[str, Any],
        *,
        include_timestamp: bool = False,
        timestamp_format: str = DEFAULT_TIMESTAMP_FORMAT,
    ) -> None:
        self.report = report
        self.include_timestamp = include_timestamp
        self.timestamp_format = timestamp_format

    def payload(self) -> dict[str, Any]:
        payload = report_payload(self.report)
        if self.include_timestamp:
            payload = inject_timestamp(payload, format_timestamp(self.timestamp_format))
        return payload

    def render(self, output_path: Path | None = None) -> bytes:
        data = json.dumps(self.payload(), ensure_ascii=False, indent=2).encode('utf-8')
        if output_path is not None:
            write_bytes_atomic(output_path, data)
        return data
