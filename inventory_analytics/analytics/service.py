"""
Analytics Service

Request-scoped facade over the analytics engine: fetches the window's
records from a SalesDataSource, assembles the report and renders PDFs.
Nothing is cached between calls.
"""

import time
from datetime import datetime, timezone
from typing import Any, Optional, Tuple

import structlog
from prometheus_client import Counter, Histogram

from inventory_analytics.config.settings import AnalyticsSettings, Settings
from inventory_analytics.reporting.pdf import render_report_pdf

from .models import (
    PeriodType,
    RankingPolicy,
    ReportData,
    ReportPeriod,
    ReportVariant,
    ScoreWeights,
)
from .report import build_report, parse_months, resolve_period
from .sources import SaleFilters, SalesDataSource

logger = structlog.get_logger(__name__)


# =============================================================================
# METRICS
# =============================================================================

REPORTS_TOTAL = Counter(
    "inventory_analytics_reports_total",
    "Total number of analytics reports assembled",
    ["variant", "status"],
)

COMPUTE_TIME = Histogram(
    "inventory_analytics_compute_seconds",
    "Time spent fetching and assembling reports",
    ["variant"],
)


def weights_from_settings(settings: AnalyticsSettings) -> ScoreWeights:
    return ScoreWeights(
        revenue=settings.revenue_weight,
        quantity=settings.quantity_weight,
        frequency=settings.frequency_weight,
        velocity=settings.velocity_weight,
        frequency_scale=settings.frequency_scale,
    )


def policy_from_settings(settings: AnalyticsSettings) -> RankingPolicy:
    return RankingPolicy(
        top_n=settings.top_n,
        low_stock_threshold=settings.low_stock_threshold,
        avoid_revenue_multiplier=settings.avoid_revenue_multiplier,
        avoid_max_sale_count=settings.avoid_max_sale_count,
        avoid_max_velocity=settings.avoid_max_velocity,
    )


def report_filename(period: ReportPeriod, now: Optional[datetime] = None) -> str:
    """inventory-report-week-<ms>.pdf or inventory-report-<N>months-<ms>.pdf"""
    now = now or datetime.now(timezone.utc)
    span = "week" if period.type == PeriodType.WEEKLY.value else f"{period.value}months"
    return f"inventory-report-{span}-{int(now.timestamp() * 1000)}.pdf"


class AnalyticsService:
    """
    Analytics Service

    Example:
        service = AnalyticsService(SalesRepository(db), get_settings())
        report = await service.report_data("months", "6")
    """

    def __init__(self, source: SalesDataSource, settings: Settings):
        self.source = source
        self.settings = settings
        self.weights = weights_from_settings(settings.analytics)
        self.policy = policy_from_settings(settings.analytics)

    async def _assemble(
        self,
        period: ReportPeriod,
        variant: ReportVariant,
        filters: Optional[SaleFilters] = None,
    ) -> ReportData:
        start = time.perf_counter()
        try:
            sales = await self.source.fetch_sales_in_window(
                period.start_date, period.end_date, filters
            )
            names = {sale.item_name for sale in sales}
            stocks = await self.source.fetch_stock_by_names(names)

            report = build_report(
                sales,
                stocks,
                period,
                variant=variant,
                weights=self.weights,
                policy=self.policy,
            )
        except Exception as e:
            REPORTS_TOTAL.labels(variant=variant.value, status="error").inc()
            logger.error(
                "Report assembly failed",
                variant=variant.value,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise

        duration = time.perf_counter() - start
        REPORTS_TOTAL.labels(variant=variant.value, status="success").inc()
        COMPUTE_TIME.labels(variant=variant.value).observe(duration)

        logger.info(
            "Report assembled",
            variant=variant.value,
            period=period.label,
            sales=len(sales),
            items=len(report.item_analytics),
            duration_ms=round(duration * 1000, 2),
        )
        return report

    async def report_data(
        self,
        period_type: Optional[str],
        period_value: Any = None,
        now: Optional[datetime] = None,
    ) -> ReportData:
        """Period report (JSON preview and PDF source)"""
        period = resolve_period(
            period_type,
            period_value,
            now=now,
            default_months=self.settings.analytics.default_report_months,
        )
        return await self._assemble(period, ReportVariant.REPORT)

    async def sales_analytics(
        self,
        item_name: Optional[str] = None,
        company_name: Optional[str] = None,
        months: Any = None,
        now: Optional[datetime] = None,
    ) -> ReportData:
        """
        Sales analytics dashboard over the last `months` months.

        Args:
            item_name: Case-insensitive item name substring
            company_name: Case-insensitive company name substring
            months: Window length, defaults to default_analytics_months
            now: Window end, defaults to the current UTC time
        """
        default_months = self.settings.analytics.default_analytics_months
        period = resolve_period(
            PeriodType.MONTHS.value,
            parse_months(months, default_months),
            now=now,
            default_months=default_months,
        )
        filters = SaleFilters(item_name=item_name or None, company_name=company_name or None)
        return await self._assemble(period, ReportVariant.ANALYTICS, filters)

    async def generate_pdf(
        self,
        period_type: Optional[str],
        period_value: Any = None,
        now: Optional[datetime] = None,
    ) -> Tuple[bytes, str]:
        """
        Render the period report as a PDF.

        Returns:
            (pdf bytes, attachment filename)
        """
        report = await self.report_data(period_type, period_value, now=now)
        pdf = await render_report_pdf(report.to_dict(), self.settings.report)
        return pdf, report_filename(report.period, now)
