from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

from .nodes import NodeKind, ParsedNode


ITALIC_TAGS = frozenset({'em', 'i'})
BOLD_TAGS = frozenset({'strong', 'b'})


@dataclass(frozen=True)
class StyledTextChunk:
    text: str
    bold: bool = False
    italic: bool = False

    @property
    def style(self) -> tuple[bool, bool]:
        return self.bold, self.italic


def iter_styled_chunks(
    node: ParsedNode,
    *,
    bold: bool = False,
    italic: bool = False,
) -> Iterator[StyledTextChunk]:
    """Yield every non-blank text run below ``node`` in document order.

    Bold/italic only switch on while descending (``strong``/``b`` and ``em``/``i``).
    Each text node is trimmed on its own and adjacent runs are never merged, so
    ``<b>foo</b> <b>bar</b>`` yields two chunks.
    """
    if node.kind is NodeKind.text:
        text = node.text.strip()
        if text:
            yield StyledTextChunk(text=text, bold=bold, italic=italic)
        return

    if node.kind is NodeKind.element:
        italic = italic or node.tag in ITALIC_TAGS
        bold = bold or node.tag in BOLD_TAGS

    for child in node.children:
        yield from iter_styled_chunks(child, bold=bold, italic=italic)
