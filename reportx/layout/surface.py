from __future__ import annotations

import hashlib
import io
import logging
from dataclasses import dataclass
from pathlib import Path

from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.pdfgen import canvas as pdf_canvas

from ..errors import SurfaceInitError
from ..types import FontPaths


logger = logging.getLogger(__name__)

PAGE_WIDTH, PAGE_HEIGHT = A4

PDF_PRODUCER = 'reportx'


@dataclass(frozen=True)
class ReportFonts:
    regular: str
    bold: str
    italic: str
    bold_italic: str

    def pick(self, *, bold: bool = False, italic: bool = False) -> str:
        if bold and italic:
            return self.bold_italic
        if bold:
            return self.bold
        if italic:
            return self.italic
        return self.regular


BUILTIN_FONTS = ReportFonts(
    regular='Helvetica',
    bold='Helvetica-Bold',
    italic='Helvetica-Oblique',
    bold_italic='Helvetica-BoldOblique',
)


def font_resource_name(font_path: Path) -> str:
    """PDF resource name for a TTF file, unique per resolved path."""
    digest = hashlib.sha1(str(font_path.resolve()).encode('utf-8')).hexdigest()[:8]
    return f'RX-{font_path.stem}-{digest}'


def _register_ttf_font(font_path: Path) -> str:
    font_name = font_resource_name(font_path)
    if font_name in pdfmetrics.getRegisteredFontNames():
        return font_name
    if not font_path.is_file():
        raise SurfaceInitError(f'font file not found: {font_path}')
    try:
        pdfmetrics.registerFont(TTFont(font_name, str(font_path)))
    except Exception as exc:
        raise SurfaceInitError(f'failed to register PDF font {font_name} from {font_path}: {exc}') from exc
    return font_name


def resolve_report_fonts(font_paths: FontPaths | None) -> ReportFonts:
    if font_paths is None:
        return BUILTIN_FONTS

    regular = _register_ttf_font(Path(font_paths.regular))
    bold = _register_ttf_font(Path(font_paths.bold))
    italic = _register_ttf_font(Path(font_paths.italic))
    bold_italic = bold
    if font_paths.bold_italic:
        bold_italic = _register_ttf_font(Path(font_paths.bold_italic))
    return ReportFonts(regular=regular, bold=bold, italic=italic, bold_italic=bold_italic)


@dataclass(frozen=True)
class DrawCommand:
    op: str
    page: int
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    text: str = ''
    font_name: str = ''
    font_size: float = 0.0


class DocumentSurface:
    """Drawing context over a reportlab canvas using top-left page coordinates.

    Every call is recorded as a :class:`DrawCommand`. Output is produced with
    reportlab's invariant mode so identical input gives identical bytes.
    """

    def __init__(
        self,
        *,
        fonts: ReportFonts = BUILTIN_FONTS,
        page_size: tuple[float, float] = (PAGE_WIDTH, PAGE_HEIGHT),
        title: str = 'Report',
    ) -> None:
        self.fonts = fonts
        self.page_width, self.page_height = page_size
        self._buffer = io.BytesIO()
        self._canvas = pdf_canvas.Canvas(self._buffer, pagesize=page_size, invariant=1)
        self._canvas.setTitle(title)
        self._canvas.setProducer(PDF_PRODUCER)
        self._page_number = 1
        self._font_name = fonts.regular
        self._font_size = 12.0
        self._commands: list[DrawCommand] = []
        self._serialized: bytes | None = None

    @property
    def page_number(self) -> int:
        return self._page_number

    @property
    def font_name(self) -> str:
        return self._font_name

    @property
    def font_size(self) -> float:
        return self._font_size

    @property
    def commands(self) -> tuple[DrawCommand, ...]:
        return tuple(self._commands)

    def set_font(self, size: float, *, bold: bool = False, italic: bool = False) -> str:
        self._font_name = self.fonts.pick(bold=bold, italic=italic)
        self._font_size = float(size)
        return self._font_name

    def measure_text_width(self, text: str) -> float:
        return float(pdfmetrics.stringWidth(text, self._font_name, self._font_size))

    def measure(self, text: str, *, size: float, bold: bool = False, italic: bool = False) -> float:
        font_name = self.fonts.pick(bold=bold, italic=italic)
        return float(pdfmetrics.stringWidth(text, font_name, float(size)))

    def draw_text(self, x: float, y: float, text: str) -> None:
        if not text:
            return
        ascent = pdfmetrics.getAscent(self._font_name, self._font_size)
        self._canvas.setFont(self._font_name, self._font_size)
        self._canvas.drawString(x, self.page_height - y - ascent, text)
        self._commands.append(
            DrawCommand(
                op='text',
                page=self._page_number,
                x=x,
                y=y,
                text=text,
                font_name=self._font_name,
                font_size=self._font_size,
            )
        )

    def draw_rect(self, x: float, y: float, width: float, height: float) -> None:
        self._canvas.rect(x, self.page_height - y - height, width, height, stroke=1, fill=0)
        self._commands.append(
            DrawCommand(op='rect', page=self._page_number, x=x, y=y, width=width, height=height)
        )

    def draw_image(self, path: Path, x: float, y: float, width: float, height: float) -> None:
        # Read through bytes so the embedded image name depends on content, not on the temp path.
        reader = ImageReader(io.BytesIO(Path(path).read_bytes()))
        self._canvas.drawImage(
            reader,
            x,
            self.page_height - y - height,
            width=width,
            height=height,
            mask='auto',
        )
        self._commands.append(
            DrawCommand(op='image', page=self._page_number, x=x, y=y, width=width, height=height)
        )

    def new_page(self) -> None:
        self._canvas.showPage()
        self._page_number += 1
        self._commands.append(DrawCommand(op='page', page=self._page_number))

    def serialize(self) -> bytes:
        if self._serialized is None:
            self._canvas.showPage()
            self._canvas.save()
            self._serialized = self._buffer.getvalue()
        return self._serialized
