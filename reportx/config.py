from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import SurfaceInitError
from .layout.images import load_image_base64
from .timestamps import DEFAULT_TIMESTAMP_FORMAT
from .types import FontPaths, FontSizes, RenderConfig


FONT_REGULAR_FILE = 'LiberationSans-Regular.ttf'
FONT_BOLD_FILE = 'LiberationSans-Bold.ttf'
FONT_ITALIC_FILE = 'LiberationSans-Italic.ttf'
FONT_BOLD_ITALIC_FILE = 'LiberationSans-BoldItalic.ttf'

FONT_DIR_RELATIVE_CANDIDATES = (
    Path('assets/fonts'),
    Path('assets'),
)
FONT_DIR_SYSTEM_CANDIDATES = (
    Path('/usr/share/fonts/truetype/liberation'),
    Path('/usr/share/fonts/truetype/liberation2'),
    Path('/usr/share/fonts/liberation-sans'),
    Path('/usr/share/fonts/liberation'),
)


def _repo_root() -> Path:
    return Path(__file__).resolve().parents[1]


def _font_paths_in(directory: Path) -> FontPaths | None:
    regular = directory / FONT_REGULAR_FILE
    bold = directory / FONT_BOLD_FILE
    italic = directory / FONT_ITALIC_FILE
    if not (regular.is_file() and bold.is_file() and italic.is_file()):
        return None
    bold_italic = directory / FONT_BOLD_ITALIC_FILE
    return FontPaths(
        regular=str(regular),
        bold=str(bold),
        italic=str(italic),
        bold_italic=str(bold_italic) if bold_italic.is_file() else None,
    )


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix='REPORTX_',
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore',
    )

    app_name: str = 'reportx'
    log_level: str = Field(
        default='INFO',
        validation_alias=AliasChoices('REPORTX_LOG_LEVEL', 'LOG_LEVEL'),
    )

    # PDF font sizes (points)
    pdf_h1_font_size: float = 24.0
    pdf_h2_font_size: float = 18.0
    pdf_h3_font_size: float = 14.0
    pdf_body_font_size: float = 12.0
    pdf_footer_font_size: float = 10.0

    # Fonts: explicit directory with Liberation Sans TTFs, else discovered, else Helvetica
    font_dir: Path | None = None
    use_builtin_fonts: bool = False

    show_page_number: bool = True

    # Repeating page images (png/jpeg/gif files)
    background_image_path: Path | None = None
    header_image_path: Path | None = None
    footer_image_path: Path | None = None

    include_timestamp: bool = False
    timestamp_format: str = DEFAULT_TIMESTAMP_FORMAT

    def font_sizes(self) -> FontSizes:
        return FontSizes(
            h1=self.pdf_h1_font_size,
            h2=self.pdf_h2_font_size,
            h3=self.pdf_h3_font_size,
            p=self.pdf_body_font_size,
            footer=self.pdf_footer_font_size,
        )

    def font_paths(self) -> FontPaths | None:
        if self.use_builtin_fonts:
            return None
        if self.font_dir is not None:
            configured = _font_paths_in(self.font_dir)
            if configured is None:
                raise SurfaceInitError(
                    f'font directory {self.font_dir} does not contain '
                    f'{FONT_REGULAR_FILE}, {FONT_BOLD_FILE} and {FONT_ITALIC_FILE}'
                )
            return configured

        root = _repo_root()
        candidates = [root / relative for relative in FONT_DIR_RELATIVE_CANDIDATES]
        candidates.extend(FONT_DIR_SYSTEM_CANDIDATES)
        for directory in candidates:
            found = _font_paths_in(directory)
            if found is not None:
                return found
        return None

    def render_config(
        self,
        *,
        show_page_number: bool | None = None,
        background_image_path: Path | None = None,
        header_image_path: Path | None = None,
        footer_image_path: Path | None = None,
        include_timestamp: bool | None = None,
        timestamp_format: str | None = None,
    ) -> RenderConfig:
        def _image(override: Path | None, configured: Path | None) -> str:
            path = override or configured
            if path is None:
                return ''
            return load_image_base64(Path(path))

        return RenderConfig(
            font_sizes=self.font_sizes(),
            show_page_number=self.show_page_number if show_page_number is None else show_page_number,
            background_image=_image(background_image_path, self.background_image_path),
            header_image=_image(header_image_path, self.header_image_path),
            footer_image=_image(footer_image_path, self.footer_image_path),
            font_paths=self.font_paths(),
            include_timestamp=self.include_timestamp if include_timestamp is None else include_timestamp,
            timestamp_format=timestamp_format or self.timestamp_format,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
