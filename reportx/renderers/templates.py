from __future__ import annotations

from pathlib import Path
from typing import Any

from jinja2 import (
    ChainableUndefined,
    Environment,
    FileSystemLoader,
    Template,
    TemplateError,
    select_autoescape,
)

from ..errors import TemplateRenderError
from ..types import Report, report_payload


TEMPLATES_DIR = Path(__file__).resolve().parents[1] / 'templates'
DEFAULT_TEMPLATE_NAME = 'default_report.html'


def build_environment(search_path: Path = TEMPLATES_DIR) -> Environment:
    # Missing report fields render as empty strings, as the bundled templates expect.
    return Environment(
        loader=FileSystemLoader(str(search_path)),
        autoescape=select_autoescape(['html', 'htm']),
        undefined=ChainableUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
    )


def load_template(path: Path | None = None) -> Template:
    """Load ``path`` (or the bundled default template) with the report environment."""
    if path is None:
        search_path, name = TEMPLATES_DIR, DEFAULT_TEMPLATE_NAME
    else:
        search_path, name = path.resolve().parent, path.name
    try:
        return build_environment(search_path).get_template(name)
    except TemplateError as exc:
        raise TemplateRenderError(f'failed to load template {name}: {exc}') from exc


def template_from_string(source: str) -> Template:
    try:
        return build_environment().from_string(source)
    except TemplateError as exc:
        raise TemplateRenderError(f'failed to compile template: {exc}') from exc


def render_template(template: Template, report: Report | dict[str, Any]) -> str:
    try:
        return template.render(**report_payload(report))
    except (TemplateError, TypeError) as exc:
        raise TemplateRenderError(f'failed to render template: {exc}') from exc
