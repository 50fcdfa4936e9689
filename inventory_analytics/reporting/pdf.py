"""
PDF Report Rendering

Renders the serialized report (`ReportData.to_dict()`) into a PDF document
with reportlab platypus. The renderer never recomputes anything: what the
JSON endpoint returns is exactly what gets printed.
"""

import asyncio
import time
from datetime import datetime, timezone
from io import BytesIO
from typing import Any, Dict, List, Optional, Sequence, Set
from xml.sax.saxutils import escape

import structlog
from prometheus_client import Histogram
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, LETTER
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from inventory_analytics.config.settings import ReportSettings

logger = structlog.get_logger(__name__)

RENDER_TIME = Histogram(
    "inventory_analytics_render_seconds",
    "Time spent rendering PDF reports",
)

PAGE_SIZES = {"A4": A4, "LETTER": LETTER}

HEADER_COLOR = colors.HexColor("#2c3e50")
ROW_ALT_COLOR = colors.HexColor("#f4f6f8")


class ReportRenderError(Exception):
    """PDF rendering failed"""


class ReportRenderTimeout(ReportRenderError):
    """PDF rendering did not finish in time"""


def format_currency(value: Optional[float], symbol: str) -> str:
    return f"{symbol}{(value or 0):,.2f}"


def format_number(value: Optional[float]) -> str:
    return f"{(value or 0):,.2f}"


def format_date(value: Optional[str]) -> str:
    """ISO string to '05 Jan 2024', '-' when missing"""
    if not value:
        return "-"
    return datetime.fromisoformat(value).strftime("%d %b %Y")


class PdfReportRenderer:
    """
    Builds the inventory report PDF.

    Sections: header, executive summary, peak day, best performing items,
    restocking suggestions, items to avoid restocking, company performance
    and recommendations.

    Example:
        renderer = PdfReportRenderer(settings.report)
        try:
            pdf = renderer.render(report.to_dict())
        finally:
            renderer.close()
    """

    def __init__(self, settings: ReportSettings):
        self.settings = settings
        self.currency = settings.currency_symbol
        self._buffer: Optional[BytesIO] = BytesIO()

        styles = getSampleStyleSheet()
        self.title_style = ParagraphStyle(
            "ReportTitle", parent=styles["Title"], textColor=HEADER_COLOR
        )
        self.heading_style = ParagraphStyle(
            "SectionHeading", parent=styles["Heading2"], textColor=HEADER_COLOR, spaceBefore=8
        )
        self.body_style = styles["BodyText"]
        self.cell_style = ParagraphStyle("Cell", parent=styles["BodyText"], fontSize=8, leading=10)

    # -------------------------------------------------------------------------
    # Building blocks
    # -------------------------------------------------------------------------

    def _paragraph(self, text: str, style: Optional[ParagraphStyle] = None) -> Paragraph:
        return Paragraph(escape(text), style or self.body_style)

    def _table(self, headers: Sequence[str], rows: List[List[str]]) -> Table:
        data = [[self._paragraph(h, self.cell_style) for h in headers]]
        data.extend([self._paragraph(cell, self.cell_style) for cell in row] for row in rows)

        table = Table(data, repeatRows=1, hAlign="LEFT")
        style = [
            ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#dfe6ec")),
            ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ]
        for index in range(2, len(data), 2):
            style.append(("BACKGROUND", (0, index), (-1, index), ROW_ALT_COLOR))
        table.setStyle(TableStyle(style))
        return table

    def _section(self, title: str, headers: Sequence[str], rows: List[List[str]], empty: str) -> List[Any]:
        flowables: List[Any] = [self._paragraph(title, self.heading_style)]
        if rows:
            flowables.append(self._table(headers, rows))
        else:
            flowables.append(self._paragraph(empty))
        return flowables

    # -------------------------------------------------------------------------
    # Sections
    # -------------------------------------------------------------------------

    def _header(self, report: Dict[str, Any], generated_at: datetime) -> List[Any]:
        period = report["period"]
        return [
            self._paragraph(self.settings.title, self.title_style),
            self._paragraph(f"Generated on: {generated_at.strftime('%d %b %Y %H:%M')} UTC"),
            self._paragraph(f"Report Period: {period['label']}"),
            self._paragraph(
                f"From {format_date(period['start_date'])} to {format_date(period['end_date'])}"
            ),
            Spacer(1, 4 * mm),
        ]

    def _summary(self, report: Dict[str, Any]) -> List[Any]:
        summary = report["summary"]
        rows = [
            ["Total Revenue", format_currency(summary["total_revenue"], self.currency)],
            ["Total Sales", str(summary["total_sales"])],
            ["Average Sale Value", format_currency(summary["avg_sale_value"], self.currency)],
            ["Total Quantity Sold", format_number(summary["total_quantity"])],
        ]
        return self._section("Executive Summary", ["Metric", "Value"], rows, "")

    def _peak_day(self, report: Dict[str, Any]) -> List[Any]:
        peak = report["peak_day"]
        flowables: List[Any] = [self._paragraph("Peak Sales Day", self.heading_style)]
        if peak.get("date") is None:
            flowables.append(self._paragraph("No sales recorded in this period."))
        else:
            flowables.append(self._paragraph(
                f"{format_date(peak['date'])}: {format_currency(peak['revenue'], self.currency)} "
                f"revenue from {peak.get('count', 0)} sales"
            ))
        return flowables

    def _best_items(self, report: Dict[str, Any]) -> List[Any]:
        rows = [
            [
                item["item_name"],
                item["company_name"],
                format_currency(item["total_revenue"], self.currency),
                format_number(item["total_quantity"]),
                format_number(item["performance_score"]),
            ]
            for item in report["best_performing_items"]
        ]
        return self._section(
            "Best Performing Items",
            ["Item", "Company", "Revenue", "Quantity Sold", "Score"],
            rows,
            "No items sold in this period.",
        )

    def _restocking(self, report: Dict[str, Any]) -> List[Any]:
        rows = [
            [
                suggestion["item_name"],
                suggestion["company_name"],
                format_number(suggestion["current_quantity"]),
                "Out of stock" if suggestion["is_out_of_stock"] else "Low stock",
                suggestion["priority"],
            ]
            for suggestion in report["restocking_suggestions"]
        ]
        return self._section(
            "Restocking Suggestions",
            ["Item", "Company", "Current Quantity", "Status", "Priority"],
            rows,
            "No items need restocking.",
        )

    def _avoid(self, report: Dict[str, Any]) -> List[Any]:
        rows = [
            [
                item["item_name"],
                item["company_name"],
                format_currency(item["total_revenue"], self.currency),
                str(item["sale_count"]),
                format_number(item["sales_velocity"]),
            ]
            for item in report["avoid_restocking"]
        ]
        return self._section(
            "Items to Avoid Restocking",
            ["Item", "Company", "Revenue", "Sales", "Units/Day"],
            rows,
            "No slow-moving items identified.",
        )

    def _companies(self, report: Dict[str, Any]) -> List[Any]:
        rows = [
            [
                company["company_name"],
                format_currency(company["total_revenue"], self.currency),
                format_number(company["total_quantity"]),
                str(company["sale_count"]),
                str(company["unique_items_count"]),
            ]
            for company in report["company_analytics"]
        ]
        return self._section(
            "Company Performance",
            ["Company", "Revenue", "Quantity Sold", "Sales", "Unique Items"],
            rows,
            "No company sales in this period.",
        )

    def _recommendations(self, report: Dict[str, Any]) -> List[Any]:
        lines = []
        best = report["best_performing_items"]
        if best:
            lines.append(f"Keep {best[0]['item_name']} well stocked, it is the top performer.")

        high = [s for s in report["restocking_suggestions"] if s["priority"] == "High"]
        if high:
            lines.append(f"Restock {len(high)} out-of-stock item(s) with high priority.")
        elif report["restocking_suggestions"]:
            lines.append("Top up low stock items before they sell out.")

        if report["avoid_restocking"]:
            lines.append(
                f"Review {len(report['avoid_restocking'])} slow-moving item(s) before reordering."
            )
        if not lines:
            lines.append("Not enough sales data for recommendations.")

        flowables: List[Any] = [self._paragraph("Recommendations", self.heading_style)]
        flowables.extend(self._paragraph(f"- {line}") for line in lines)
        return flowables

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def render(self, report: Dict[str, Any], generated_at: Optional[datetime] = None) -> bytes:
        """
        Render a serialized report.

        Args:
            report: Output of ReportData.to_dict()
            generated_at: Timestamp printed in the header, defaults to now

        Returns:
            PDF document bytes
        """
        if self._buffer is None:
            raise ReportRenderError("Renderer already closed")

        generated_at = generated_at or datetime.now(timezone.utc)
        document = SimpleDocTemplate(
            self._buffer,
            pagesize=PAGE_SIZES.get(self.settings.page_size.upper(), A4),
            topMargin=20 * mm,
            rightMargin=15 * mm,
            bottomMargin=20 * mm,
            leftMargin=15 * mm,
            title=self.settings.title,
        )

        story: List[Any] = []
        story += self._header(report, generated_at)
        story += self._summary(report)
        story += self._peak_day(report)
        story += self._best_items(report)
        story += self._restocking(report)
        story += self._avoid(report)
        story += self._companies(report)
        story += self._recommendations(report)

        document.build(story)
        return self._buffer.getvalue()

    def close(self) -> None:
        if self._buffer is not None:
            self._buffer.close()
            self._buffer = None


# Renders abandoned after a timeout, kept referenced until their thread ends
_abandoned_renders: Set["asyncio.Future[bytes]"] = set()


def _render_and_close(renderer: PdfReportRenderer, report: Dict[str, Any]) -> bytes:
    """Worker body: the thread that renders is the one that releases the buffer"""
    try:
        return renderer.render(report)
    finally:
        renderer.close()


def _abandon(worker: "asyncio.Future[bytes]") -> None:
    _abandoned_renders.add(worker)
    worker.add_done_callback(_abandoned_render_done)


def _abandoned_render_done(worker: "asyncio.Future[bytes]") -> None:
    _abandoned_renders.discard(worker)
    if worker.cancelled():
        return
    error = worker.exception()
    if error is not None:
        logger.warning("Abandoned PDF render failed", error=str(error), error_type=type(error).__name__)
    else:
        logger.info("Abandoned PDF render finished", size_bytes=len(worker.result()))


async def render_report_pdf(
    report: Dict[str, Any],
    settings: ReportSettings,
    renderer: Optional[PdfReportRenderer] = None,
) -> bytes:
    """
    Render a report in a worker thread, bounded by the configured timeout.

    The worker closes the renderer when it ends. A render that times out
    keeps running in its thread; its outcome is logged and discarded.

    Raises:
        ReportRenderTimeout: Rendering exceeded render_timeout_seconds
        ReportRenderError: Rendering failed
    """
    renderer = renderer or PdfReportRenderer(settings)
    start = time.perf_counter()
    worker = asyncio.ensure_future(asyncio.to_thread(_render_and_close, renderer, report))
    try:
        pdf = await asyncio.wait_for(asyncio.shield(worker), timeout=settings.render_timeout_seconds)
    except asyncio.CancelledError:
        _abandon(worker)
        raise
    except asyncio.TimeoutError as e:
        _abandon(worker)
        logger.error(
            "PDF render timed out",
            timeout_seconds=settings.render_timeout_seconds,
            abandoned_renders=len(_abandoned_renders),
        )
        raise ReportRenderTimeout(
            f"PDF rendering exceeded {settings.render_timeout_seconds}s"
        ) from e
    except ReportRenderError:
        raise
    except Exception as e:
        logger.error("PDF render failed", error=str(e), error_type=type(e).__name__)
        raise ReportRenderError(f"PDF rendering failed: {e}") from e

    duration = time.perf_counter() - start
    RENDER_TIME.observe(duration)
    logger.info("PDF rendered", size_bytes=len(pdf), duration_ms=round(duration * 1000, 2))
    return pdf
