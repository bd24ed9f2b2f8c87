from __future__ import annotations

import logging
from contextlib import ExitStack
from dataclasses import dataclass
from enum import Enum

from ..timestamps import format_timestamp
from ..types import Alignment, RenderConfig
from .chunks import iter_styled_chunks
from .images import ImageSourceKind, classify_image_source, resolved_image_path
from .nodes import NodeKind, ParsedNode, find_footer_text, get_text_content, parent_alignment, parse_markup
from .pagination import LayoutCursor, PageGeometry, PaginationController, RepeatingAssets
from .surface import DocumentSurface, DrawCommand, resolve_report_fonts
from .tables import TableLayout


logger = logging.getLogger(__name__)

PARAGRAPH_LINE_HEIGHT = 16.0
PARAGRAPH_SPACING_AFTER = 4.0
LINE_BREAK_ADVANCE = 10.0

IMAGE_WIDTH = 100.0
IMAGE_HEIGHT = 60.0
IMAGE_SPACING_AFTER = 10.0
IMAGE_TRAILING_BREAK = 30.0


class BlockKind(str, Enum):
    h1 = 'h1'
    h2 = 'h2'
    h3 = 'h3'
    p = 'p'
    table = 'table'
    br = 'br'
    img = 'img'
    container = 'container'

    @classmethod
    def for_node(cls, node: ParsedNode) -> BlockKind:
        if node.kind is not NodeKind.element:
            return cls.container
        try:
            return cls(node.tag)
        except ValueError:
            return cls.container


@dataclass(frozen=True)
class HeadingRule:
    break_height: float
    advance: float
    centered: bool = False


INLINE_BLOCKS = frozenset({BlockKind.br, BlockKind.img})


HEADING_RULES: dict[BlockKind, HeadingRule] = {
    BlockKind.h1: HeadingRule(break_height=30.0, advance=30.0, centered=True),
    BlockKind.h2: HeadingRule(break_height=30.0, advance=25.0),
    BlockKind.h3: HeadingRule(break_height=14.0, advance=20.0),
}


@dataclass(frozen=True)
class RenderResult:
    pdf_bytes: bytes
    page_count: int
    commands: tuple[DrawCommand, ...]

    def texts_on_page(self, page: int) -> list[str]:
        return [command.text for command in self.commands if command.op == 'text' and command.page == page]


@dataclass
class LayoutSession:
    """Mutable state of one render call: surface, cursor and the helpers sharing them."""

    surface: DocumentSurface
    cursor: LayoutCursor
    pagination: PaginationController
    tables: TableLayout


class PageLayoutEngine:
    """Walks a parsed markup tree and lays it out onto paginated PDF pages.

    The engine itself holds only immutable configuration; every call to
    :meth:`render` builds its own :class:`LayoutSession`, so one engine can
    serve many renders.
    """

    def __init__(
        self,
        config: RenderConfig | None = None,
        *,
        geometry: PageGeometry | None = None,
        title: str = 'Report',
    ) -> None:
        self.config = config or RenderConfig()
        self.geometry = geometry or PageGeometry()
        self.title = title
        self.fonts = resolve_report_fonts(self.config.font_paths)

    def render(self, root: ParsedNode, *, timestamp: str | None = None) -> RenderResult:
        if timestamp is None and self.config.include_timestamp:
            timestamp = format_timestamp(self.config.timestamp_format)

        with ExitStack() as stack:
            session = self._open_session(stack, root, timestamp)
            session.pagination.begin_page()
            self._walk(session, root)
            session.pagination.finish()
            pdf_bytes = session.surface.serialize()

        logger.info(
            'Rendered PDF: pages=%d bytes=%d commands=%d',
            session.surface.page_number,
            len(pdf_bytes),
            len(session.surface.commands),
        )
        return RenderResult(
            pdf_bytes=pdf_bytes,
            page_count=session.surface.page_number,
            commands=session.surface.commands,
        )

    def _open_session(self, stack: ExitStack, root: ParsedNode, timestamp: str | None) -> LayoutSession:
        surface = DocumentSurface(
            fonts=self.fonts,
            page_size=(self.geometry.width, self.geometry.height),
            title=self.title,
        )
        cursor = LayoutCursor(
            y=self.geometry.margin,
            footer_text=find_footer_text(root),
            timestamp=timestamp or None,
        )
        pagination = PaginationController(
            surface,
            cursor,
            self.geometry,
            font_sizes=self.config.font_sizes,
            show_page_number=self.config.show_page_number,
            assets=RepeatingAssets.open(stack, self.config),
        )
        tables = TableLayout(
            surface,
            cursor,
            pagination,
            self.geometry,
            font_size=self.config.font_sizes.p,
        )
        return LayoutSession(surface=surface, cursor=cursor, pagination=pagination, tables=tables)

    def _walk(self, session: LayoutSession, node: ParsedNode) -> None:
        kind = BlockKind.for_node(node)
        if kind in HEADING_RULES:
            self._render_heading(session, node, kind)
        elif kind is BlockKind.p:
            self._render_paragraph(session, node)
        elif kind is BlockKind.table:
            session.tables.render(node)
        elif kind is BlockKind.br:
            session.cursor.y += LINE_BREAK_ADVANCE
        elif kind is BlockKind.img:
            self._render_image(session, node)
        else:
            for child in node.children:
                self._walk(session, child)
            return
        if kind not in INLINE_BLOCKS:
            self._walk_embedded(session, node)

    def _walk_embedded(self, session: LayoutSession, node: ParsedNode) -> None:
        # Text of a block is already drawn; only images and breaks inside it still need layout.
        for child in node.children:
            kind = BlockKind.for_node(child)
            if kind is BlockKind.img:
                self._render_image(session, child)
            elif kind is BlockKind.br:
                session.cursor.y += LINE_BREAK_ADVANCE
            else:
                self._walk_embedded(session, child)

    def _render_heading(self, session: LayoutSession, node: ParsedNode, kind: BlockKind) -> None:
        rule = HEADING_RULES[kind]
        text = get_text_content(node)
        session.pagination.check_page_break(rule.break_height)
        session.surface.set_font(getattr(self.config.font_sizes, kind.value))
        x = self.geometry.margin
        if rule.centered:
            x = (self.geometry.width - session.surface.measure_text_width(text)) / 2
        session.surface.draw_text(x, session.cursor.y, text)
        session.cursor.y += rule.advance

    def _render_paragraph(self, session: LayoutSession, node: ParsedNode) -> None:
        surface = session.surface
        font_size = self.config.font_sizes.p
        max_width = self.geometry.content_width

        current_line = ''
        current_style = (False, False)

        def flush() -> None:
            if not current_line:
                return
            session.pagination.check_page_break(PARAGRAPH_LINE_HEIGHT)
            bold, italic = current_style
            surface.set_font(font_size, bold=bold, italic=italic)
            surface.draw_text(self.geometry.margin, session.cursor.y, current_line)
            session.cursor.y += PARAGRAPH_LINE_HEIGHT

        for chunk in iter_styled_chunks(node):
            for word in chunk.text.split():
                candidate = f'{current_line} {word}'.strip()
                width = surface.measure(candidate, size=font_size, bold=chunk.bold, italic=chunk.italic)
                if current_line and (width > max_width or chunk.style != current_style):
                    flush()
                    current_line = word
                else:
                    current_line = candidate
                current_style = chunk.style

        flush()
        session.cursor.y += PARAGRAPH_SPACING_AFTER

    def _render_image(self, session: LayoutSession, node: ParsedNode) -> None:
        src = node.attr('src')
        if classify_image_source(src) is ImageSourceKind.unsupported:
            logger.debug('Skipping image with unsupported source: %.40s', src)
            return

        x = self._image_x(parent_alignment(node))
        session.pagination.check_page_break(IMAGE_HEIGHT + IMAGE_SPACING_AFTER)
        try:
            with resolved_image_path(src) as path:
                if path is not None:
                    session.surface.draw_image(path, x, session.cursor.y, IMAGE_WIDTH, IMAGE_HEIGHT)
        except Exception as exc:
            logger.warning('Image render failed on page %d: %s', session.cursor.page_number, exc)
        session.cursor.y += IMAGE_HEIGHT + IMAGE_SPACING_AFTER
        session.pagination.check_page_break(IMAGE_TRAILING_BREAK)

    def _image_x(self, align: Alignment) -> float:
        if align is Alignment.center:
            return (self.geometry.width - IMAGE_WIDTH) / 2
        if align is Alignment.right:
            return self.geometry.width - IMAGE_WIDTH - self.geometry.margin
        return self.geometry.margin


def render_markup(
    markup: str,
    config: RenderConfig | None = None,
    *,
    geometry: PageGeometry | None = None,
    timestamp: str | None = None,
) -> RenderResult:
    return PageLayoutEngine(config, geometry=geometry).render(parse_markup(markup), timestamp=timestamp)
