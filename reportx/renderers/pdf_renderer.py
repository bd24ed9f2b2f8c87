from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from jinja2 import Template

from ..layout.engine import PageLayoutEngine, RenderResult
from ..layout.nodes import parse_markup
from ..layout.pagination import PageGeometry
from ..storage import write_bytes_atomic
from ..types import RenderConfig, Report
from .templates import render_template


logger = logging.getLogger(__name__)


class PdfRenderer:
    """Template -> markup -> paginated PDF.

    Nothing is written unless the whole render succeeds; the output file is
    replaced atomically.
    """

    def __init__(
        self,
        report: Report | dict[str, Any],
        template: Template,
        config: RenderConfig | None = None,
        *,
        geometry: PageGeometry | None = None,
    ) -> None:
        self.report = report
        self.template = template
        self.config = config or RenderConfig()
        self.geometry = geometry

    def build(self, *, timestamp: str | None = None) -> RenderResult:
        markup = render_template(self.template, self.report)
        logger.debug('Template produced %d characters of markup', len(markup))
        engine = PageLayoutEngine(self.config, geometry=self.geometry, title=self._title())
        return engine.render(parse_markup(markup), timestamp=timestamp)

    def render(self, output_path: Path | None = None) -> bytes:
        result = self.build()
        if output_path is not None:
            write_bytes_atomic(output_path, result.pdf_bytes)
        return result.pdf_bytes

    def _title(self) -> str:
        if isinstance(self.report, Report):
            return self.report.header.title or 'Report'
        header = self.report.get('Header') if isinstance(self.report, dict) else None
        if isinstance(header, dict) and header.get('Title'):
            return str(header['Title'])
        return 'Report'
