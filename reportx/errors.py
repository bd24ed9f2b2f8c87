from __future__ import annotations


class ReportRenderError(RuntimeError):
    """Base error for renders that must abort without producing output."""


class MarkupParseError(ReportRenderError):
    pass


class TemplateRenderError(ReportRenderError):
    pass


class SurfaceInitError(ReportRenderError):
    """Raised when the PDF surface cannot be prepared (for example, missing font files)."""
