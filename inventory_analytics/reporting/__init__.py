"""
Inventory Analytics Service
Report Rendering Module
"""
from .pdf import (
    PdfReportRenderer,
    ReportRenderError,
    ReportRenderTimeout,
    render_report_pdf,
)

__all__ = [
    "PdfReportRenderer",
    "ReportRenderError",
    "ReportRenderTimeout",
    "render_report_pdf",
]
