from __future__ import annotations

import logging
from contextlib import ExitStack
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from ..types import FontSizes, RenderConfig
from .images import decoded_image_file
from .surface import PAGE_HEIGHT, PAGE_WIDTH, DocumentSurface


logger = logging.getLogger(__name__)

# Fixed positions (top-left coordinates, points) shared by every page.
FOOTER_TEXT_OFFSET = 22.0
PAGE_NUMBER_X = 500.0
TIMESTAMP_X = 490.0
TIMESTAMP_Y = 30.0
HEADER_IMAGE_BOX = (50.0, 20.0, 495.0, 40.0)
HEADER_IMAGE_ADVANCE = 50.0
FOOTER_IMAGE_BOX = (50.0, 800.0, 495.0, 30.0)


class PageState(str, Enum):
    active = 'active'
    flushing = 'flushing'


@dataclass(frozen=True)
class PageGeometry:
    width: float = PAGE_WIDTH
    height: float = PAGE_HEIGHT
    margin: float = 50.0
    footer_height: float = 30.0

    @property
    def content_limit(self) -> float:
        return self.height - self.margin - self.footer_height

    @property
    def content_width(self) -> float:
        return self.width - 2 * self.margin

    @property
    def footer_y(self) -> float:
        return self.height - FOOTER_TEXT_OFFSET


@dataclass
class LayoutCursor:
    y: float
    page_number: int = 1
    footer_text: str = ''
    timestamp: str | None = None


@dataclass(frozen=True)
class RepeatingAssets:
    background: Path | None = None
    header: Path | None = None
    footer: Path | None = None

    @classmethod
    def open(cls, stack: ExitStack, config: RenderConfig) -> RepeatingAssets:
        """Decode configured page images into temp files owned by ``stack``."""

        def _decode(label: str, data_uri: str) -> Path | None:
            if not data_uri:
                return None
            try:
                return stack.enter_context(decoded_image_file(data_uri))
            except ValueError as exc:
                logger.warning('Failed to decode %s image: %s', label, exc)
                return None

        return cls(
            background=_decode('background', config.background_image),
            header=_decode('header', config.header_image),
            footer=_decode('footer', config.footer_image),
        )


class PaginationController:
    """Owns page flushing: footer and page number, new page, repeated assets."""

    def __init__(
        self,
        surface: DocumentSurface,
        cursor: LayoutCursor,
        geometry: PageGeometry,
        *,
        font_sizes: FontSizes,
        show_page_number: bool,
        assets: RepeatingAssets | None = None,
    ) -> None:
        self.surface = surface
        self.cursor = cursor
        self.geometry = geometry
        self.font_sizes = font_sizes
        self.show_page_number = show_page_number
        self.assets = assets or RepeatingAssets()
        self.state = PageState.active
        self.page_top = geometry.margin

    def begin_page(self) -> None:
        self.cursor.y = self.geometry.margin
        if self.assets.background is not None:
            full_page = (0.0, 0.0, self.geometry.width, self.geometry.height)
            self._draw_asset('background', self.assets.background, full_page)
        if self.assets.header is not None:
            self._draw_asset('header', self.assets.header, HEADER_IMAGE_BOX)
            self.cursor.y += HEADER_IMAGE_ADVANCE
        if self.assets.footer is not None:
            self._draw_asset('footer', self.assets.footer, FOOTER_IMAGE_BOX)
        self.page_top = self.cursor.y
        self.draw_timestamp()

    def check_page_break(self, next_block_height: float) -> bool:
        if self.cursor.y + next_block_height <= self.geometry.content_limit:
            return False
        if self.cursor.y <= self.page_top:
            # Nothing drawn on this page yet.
            logger.debug(
                'Block of %.1f exceeds the page body on page %d; drawing it in place',
                next_block_height,
                self.cursor.page_number,
            )
            return False
        logger.debug(
            'Page break triggered on page %d at y=%.1f (next block %.1f)',
            self.cursor.page_number,
            self.cursor.y,
            next_block_height,
        )
        self.flush_page()
        return True

    def flush_page(self) -> None:
        if self.state is PageState.flushing:
            raise RuntimeError(f'page flush re-entered on page {self.cursor.page_number}')
        self.state = PageState.flushing
        try:
            self.draw_footer()
            self.surface.new_page()
            self.cursor.page_number += 1
            self.begin_page()
        finally:
            self.state = PageState.active

    def finish(self) -> None:
        self.draw_footer()

    def draw_footer(self) -> None:
        footer_y = self.geometry.footer_y
        if self.cursor.footer_text:
            self.surface.set_font(self.font_sizes.footer)
            self.surface.draw_text(self.geometry.margin, footer_y, self.cursor.footer_text)
        if self.show_page_number:
            self.surface.set_font(self.font_sizes.footer)
            self.surface.draw_text(PAGE_NUMBER_X, footer_y, f'Page {self.cursor.page_number}')

    def draw_timestamp(self) -> None:
        if not self.cursor.timestamp:
            return
        self.surface.set_font(self.font_sizes.footer)
        self.surface.draw_text(TIMESTAMP_X, TIMESTAMP_Y, self.cursor.timestamp)

    def _draw_asset(self, label: str, path: Path, box: tuple[float, float, float, float]) -> None:
        x, y, width, height = box
        try:
            self.surface.draw_image(path, x, y, width, height)
        except Exception as exc:
            logger.warning('Failed to draw %s image on page %d: %s', label, self.cursor.page_number, exc)
