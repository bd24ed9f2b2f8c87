from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_pascal

from .timestamps import DEFAULT_TIMESTAMP_FORMAT


class Alignment(str, Enum):
    left = 'left'
    center = 'center'
    right = 'right'


class OutputFormat(str, Enum):
    pdf = 'pdf'
    json = 'json'


class FontSizes(BaseModel):
    model_config = ConfigDict(frozen=True)

    h1: float = 24.0
    h2: float = 18.0
    h3: float = 14.0
    p: float = 12.0
    footer: float = 10.0


class FontPaths(BaseModel):
    model_config = ConfigDict(frozen=True)

    regular: str
    bold: str
    italic: str
    bold_italic: str | None = None


class RenderConfig(BaseModel):
    """Immutable PDF render options, built once and handed to the layout engine."""

    model_config = ConfigDict(frozen=True)

    font_sizes: FontSizes = Field(default_factory=FontSizes)
    show_page_number: bool = True

    # data:image/...;base64 URIs; empty means the asset is absent.
    background_image: str = ''
    header_image: str = ''
    footer_image: str = ''

    # None selects the built-in Helvetica family.
    font_paths: FontPaths | None = None

    include_timestamp: bool = False
    timestamp_format: str = DEFAULT_TIMESTAMP_FORMAT


class _ReportModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_pascal, populate_by_name=True)


class Header(_ReportModel):
    title: str = ''
    subtitle: str = ''
    explanation: str = ''
    logo: str = ''
    logo_align: Alignment = Alignment.left


class Footer(_ReportModel):
    note: str = ''


class Chart(_ReportModel):
    tag: str = ''
    align: Alignment = Alignment.left
    order: int = 0
    description: str = ''
    title: str = ''


class Report(_ReportModel):
    header: Header = Field(default_factory=Header)
    footer: Footer = Field(default_factory=Footer)
    data: dict[str, str] = Field(default_factory=dict)
    charts: list[Chart] = Field(default_factory=list)


def report_payload(report: Report | dict[str, Any]) -> dict[str, Any]:
    """Template/JSON view of a report: models dump with their capitalized field names."""
    if isinstance(report, Report):
        return report.model_dump(by_alias=True, mode='json')
    if isinstance(report, dict):
        return report
    raise TypeError(f'unsupported report type: {type(report).__name__}')
