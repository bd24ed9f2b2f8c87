from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterator

from .nodes import ParsedNode, get_text_content
from .pagination import LayoutCursor, PageGeometry, PaginationController
from .surface import DocumentSurface


CELL_LINE_HEIGHT = 14.0
CELL_PADDING = 4.0
CELL_TEXT_TOP_OFFSET = 2.0
TABLE_SPACING_AFTER = 10.0

ROW_TAG = 'tr'
HEADER_CELL_TAG = 'th'
CELL_TAGS = ('td', 'th')


def wrap_text(text: str, max_width: float, measure: Callable[[str], float]) -> list[str]:
    """Greedy word wrap: keep appending words while the line still fits."""
    lines: list[str] = []
    current = ''
    for word in text.split():
        candidate = f'{current} {word}'.strip()
        if current and measure(candidate) > max_width:
            lines.append(current)
            current = word
            continue
        current = candidate
    if current:
        lines.append(current)
    return lines


def iter_table_rows(node: ParsedNode) -> Iterator[ParsedNode]:
    # rows may sit under thead/tbody/tfoot or any other wrapper
    for child in node.children:
        if not child.is_element():
            continue
        if child.tag == ROW_TAG:
            yield child
        else:
            yield from iter_table_rows(child)


def row_cells(row: ParsedNode) -> list[ParsedNode]:
    return [child for child in row.children if child.is_element(*CELL_TAGS)]


@dataclass(frozen=True)
class RowLayout:
    cell_lines: list[list[str]]
    column_width: float
    height: float
    is_header: bool

    @property
    def column_count(self) -> int:
        return len(self.cell_lines)


def layout_row(
    row: ParsedNode,
    *,
    content_width: float,
    measure: Callable[[str, bool], float],
) -> RowLayout | None:
    """Wrap every cell of ``row``; ``None`` for rows without cells.

    ``measure(text, bold)`` returns the rendered width of ``text``.
    """
    cells = row_cells(row)
    if not cells:
        return None

    is_header = cells[0].tag == HEADER_CELL_TAG
    column_width = content_width / len(cells)
    wrap_width = column_width - 2 * CELL_PADDING

    cell_lines = [
        wrap_text(get_text_content(cell), wrap_width, lambda text: measure(text, is_header))
        for cell in cells
    ]
    max_lines = max(1, max(len(lines) for lines in cell_lines))
    return RowLayout(
        cell_lines=cell_lines,
        column_width=column_width,
        height=max_lines * CELL_LINE_HEIGHT,
        is_header=is_header,
    )


class TableLayout:
    def __init__(
        self,
        surface: DocumentSurface,
        cursor: LayoutCursor,
        pagination: PaginationController,
        geometry: PageGeometry,
        *,
        font_size: float,
    ) -> None:
        self.surface = surface
        self.cursor = cursor
        self.pagination = pagination
        self.geometry = geometry
        self.font_size = font_size

    def render(self, table: ParsedNode) -> None:
        for row in iter_table_rows(table):
            self.render_row(row)
        self.cursor.y += TABLE_SPACING_AFTER

    def render_row(self, row: ParsedNode) -> RowLayout | None:
        layout = layout_row(
            row,
            content_width=self.geometry.content_width,
            measure=lambda text, bold: self.surface.measure(text, size=self.font_size, bold=bold),
        )
        if layout is None:
            return None

        self.pagination.check_page_break(layout.height)
        self.surface.set_font(self.font_size, bold=layout.is_header)

        x = self.geometry.margin
        start_y = self.cursor.y
        for lines in layout.cell_lines:
            self.surface.draw_rect(x, start_y, layout.column_width, layout.height)
            for index, line in enumerate(lines):
                self.surface.draw_text(
                    x + CELL_PADDING,
                    start_y + index * CELL_LINE_HEIGHT + CELL_TEXT_TOP_OFFSET,
                    line,
                )
            x += layout.column_width

        self.cursor.y += layout.height
        return layout
