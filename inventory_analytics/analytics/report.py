"""
Report Assembly

Resolves the report window and runs aggregation, correlation and ranking
into one ReportData. The same assembly serves the period report (JSON and
PDF) and the sales analytics dashboard; the variant only toggles the extra
per-item enrichment fields.
"""

import calendar
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Optional

from .aggregation import aggregate_sales, to_utc
from .correlation import correlate_stock
from .models import (
    DEFAULT_RANKING_POLICY,
    DEFAULT_SCORE_WEIGHTS,
    PeriodType,
    RankingPolicy,
    ReportData,
    ReportPeriod,
    ReportVariant,
    SaleRecord,
    ScoreWeights,
    StockRecord,
)
from .ranking import (
    avoid_restocking,
    best_performing,
    rank_companies_by_performance,
    rank_companies_by_revenue,
    restocking_suggestions,
    score_companies,
    worst_performing,
)

DEFAULT_PERIOD_MONTHS = 3
WEEKLY_DAYS = 7


def subtract_months(moment: datetime, months: int) -> datetime:
    """Same day-of-month `months` earlier, clamped to the target month's length"""
    month_index = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def parse_months(value: Any, default: int = DEFAULT_PERIOD_MONTHS) -> int:
    """Positive month count from user input, `default` when missing or invalid"""
    if value is None or isinstance(value, bool):
        return default
    try:
        months = int(str(value).strip())
    except ValueError:
        return default
    return months if months > 0 else default


def resolve_period(
    period_type: Optional[str],
    period_value: Any = None,
    now: Optional[datetime] = None,
    default_months: int = DEFAULT_PERIOD_MONTHS,
) -> ReportPeriod:
    """
    Resolve a report window ending now.

    - "weekly": the last 7 days
    - "months": the last N months, N from `period_value` (default 3)
    - anything else: the last `default_months` months

    Args:
        period_type: "weekly" or "months"
        period_value: Month count for "months", may be a string
        now: Window end, defaults to the current UTC time
        default_months: Fallback month count

    Returns:
        ReportPeriod with aware UTC bounds
    """
    end_date = to_utc(now) if now is not None else datetime.now(timezone.utc)

    if period_type == PeriodType.WEEKLY.value:
        return ReportPeriod(
            type=PeriodType.WEEKLY.value,
            value=None,
            start_date=end_date - timedelta(days=WEEKLY_DAYS),
            end_date=end_date,
        )

    months = default_months
    if period_type == PeriodType.MONTHS.value:
        months = parse_months(period_value, default_months)

    return ReportPeriod(
        type=PeriodType.MONTHS.value,
        value=months,
        start_date=subtract_months(end_date, months),
        end_date=end_date,
    )


def build_report(
    sales: Iterable[SaleRecord],
    stocks: Iterable[StockRecord],
    period: ReportPeriod,
    variant: ReportVariant = ReportVariant.REPORT,
    weights: ScoreWeights = DEFAULT_SCORE_WEIGHTS,
    policy: RankingPolicy = DEFAULT_RANKING_POLICY,
) -> ReportData:
    """
    Assemble a report from already fetched sales and stock rows.

    Args:
        sales: Sales of the window, ascending by sale date
        stocks: Stock rows for the sold item names, newest first
        period: Resolved window, its end drives velocity
        variant: REPORT or ANALYTICS (adds per-item enrichment)
        weights: Performance score weights
        policy: Ranking thresholds

    Returns:
        ReportData
    """
    detailed = variant is ReportVariant.ANALYTICS

    aggregation = aggregate_sales(
        sales,
        window_end=period.end_date,
        weights=weights,
        include_sale_averages=detailed,
    )
    items = correlate_stock(aggregation.items, stocks, include_stockout_timing=detailed)
    item_list = list(items.values())

    companies = score_companies(aggregation.companies.values(), item_list)

    return ReportData(
        variant=variant,
        period=period,
        summary=aggregation.summary,
        peak_day=aggregation.peak_day,
        sales_trend=aggregation.daily_trend,
        item_analytics=tuple(sorted(item_list, key=lambda item: item.performance_score, reverse=True)),
        best_performing_items=best_performing(item_list, policy),
        worst_performing_items=worst_performing(item_list, policy),
        company_analytics=rank_companies_by_revenue(companies),
        company_performance=rank_companies_by_performance(companies),
        restocking_suggestions=restocking_suggestions(item_list, policy),
        avoid_restocking=avoid_restocking(item_list, aggregation.summary.avg_sale_value, policy),
    )
