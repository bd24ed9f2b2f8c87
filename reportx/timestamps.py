from __future__ import annotations

from datetime import datetime


DEFAULT_TIMESTAMP_FORMAT = '%Y-%m-%d %H:%M:%S'

# Go reference-time layout tokens, longest first so '2006' wins over '06'.
_GO_LAYOUT_TOKENS: tuple[tuple[str, str], ...] = (
    ('January', '%B'),
    ('Monday', '%A'),
    ('-0700', '%z'),
    ('2006', '%Y'),
    ('Jan', '%b'),
    ('Mon', '%a'),
    ('MST', '%Z'),
    ('15', '%H'),
    ('06', '%y'),
    ('01', '%m'),
    ('02', '%d'),
    ('03', '%I'),
    ('04', '%M'),
    ('05', '%S'),
    ('PM', '%p'),
)


def is_go_layout(fmt: str) -> bool:
    if '%' in fmt:
        return False
    return any(token in fmt for token, _ in _GO_LAYOUT_TOKENS)


def go_layout_to_strftime(layout: str) -> str:
    parts: list[str] = []
    cursor = 0
    while cursor < len(layout):
        for token, directive in _GO_LAYOUT_TOKENS:
            if layout.startswith(token, cursor):
                parts.append(directive)
                cursor += len(token)
                break
        else:
            parts.append(layout[cursor])
            cursor += 1
    return ''.join(parts)


def normalize_timestamp_format(fmt: str | None) -> str:
    """Return a strftime pattern; Go reference layouts such as ``2006-01-02`` are translated."""
    value = str(fmt or '').strip()
    if not value:
        return DEFAULT_TIMESTAMP_FORMAT
    if is_go_layout(value):
        return go_layout_to_strftime(value)
    return value


def format_timestamp(fmt: str | None = None, *, now: datetime | None = None) -> str:
    moment = now or datetime.now()
    return moment.strftime(normalize_timestamp_format(fmt))
