"""
Sales Aggregation Engine

Folds a window of sale records into per-item, per-company and per-day
aggregates in a single pass, then derives velocity and performance score
for every item.

Example:
    result = aggregate_sales(sales, window_end=period.end_date)
    rice = result.items["Rice"]
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional, Set, Tuple

from .models import (
    DEFAULT_SCORE_WEIGHTS,
    CompanyAggregate,
    DailyTrendPoint,
    ItemAggregate,
    NoPeakDay,
    PeakDay,
    PeakDayResult,
    SaleRecord,
    SalesSummary,
    ScoreWeights,
)

SECONDS_PER_DAY = 86400.0


def to_utc(value: datetime) -> datetime:
    """Normalize a timestamp to aware UTC. Naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def days_between(later: datetime, earlier: datetime) -> float:
    """Fractional days from `earlier` to `later`"""
    return (to_utc(later) - to_utc(earlier)).total_seconds() / SECONDS_PER_DAY


def day_key(value: datetime) -> date:
    """UTC calendar day of a timestamp"""
    return to_utc(value).date()


# =============================================================================
# ACCUMULATORS
# =============================================================================

@dataclass
class _ItemTotals:
    item_name: str
    company_name: str
    first_sale_date: datetime
    last_sale_date: datetime
    total_quantity: float = 0.0
    total_revenue: float = 0.0
    sale_count: int = 0

    def add(self, sale: SaleRecord, sale_date: datetime) -> None:
        self.total_quantity += sale.quantity_sold
        self.total_revenue += sale.revenue
        self.sale_count += 1
        if sale_date < self.first_sale_date:
            self.first_sale_date = sale_date
        if sale_date > self.last_sale_date:
            self.last_sale_date = sale_date


@dataclass
class _CompanyTotals:
    company_name: str
    total_quantity: float = 0.0
    total_revenue: float = 0.0
    sale_count: int = 0
    unique_items: Set[str] = field(default_factory=set)

    def add(self, sale: SaleRecord) -> None:
        self.total_quantity += sale.quantity_sold
        self.total_revenue += sale.revenue
        self.sale_count += 1
        self.unique_items.add(sale.item_name)

    def freeze(self) -> CompanyAggregate:
        return CompanyAggregate(
            company_name=self.company_name,
            total_quantity=self.total_quantity,
            total_revenue=self.total_revenue,
            sale_count=self.sale_count,
            unique_items_count=len(self.unique_items),
        )


@dataclass
class _DayTotals:
    date: date
    quantity: float = 0.0
    revenue: float = 0.0
    count: int = 0

    def add(self, sale: SaleRecord) -> None:
        self.quantity += sale.quantity_sold
        self.revenue += sale.revenue
        self.count += 1

    def freeze(self) -> DailyTrendPoint:
        return DailyTrendPoint(
            date=self.date,
            quantity=self.quantity,
            revenue=self.revenue,
            count=self.count,
        )


# =============================================================================
# RESULT
# =============================================================================

@dataclass(frozen=True)
class SalesAggregation:
    """Output of the aggregation stage. Mappings keep sale-encounter order."""
    items: Mapping[str, ItemAggregate]
    companies: Mapping[str, CompanyAggregate]
    daily_trend: Tuple[DailyTrendPoint, ...]
    summary: SalesSummary

    @property
    def peak_day(self) -> PeakDayResult:
        return find_peak_day(self.daily_trend)


# =============================================================================
# OPERATIONS
# =============================================================================

def derive_item_metrics(
    totals: _ItemTotals,
    window_end: datetime,
    weights: ScoreWeights = DEFAULT_SCORE_WEIGHTS,
    include_sale_averages: bool = False,
) -> ItemAggregate:
    """Compute velocity, average gap and score for accumulated item totals"""
    days_since_first_sale = days_between(window_end, totals.first_sale_date)

    if days_since_first_sale > 0:
        sales_velocity = totals.total_quantity / days_since_first_sale
        avg_days_between_sales = days_since_first_sale / totals.sale_count
    else:
        sales_velocity = 0.0
        avg_days_between_sales = 0.0

    avg_quantity_per_sale: Optional[float] = None
    if include_sale_averages:
        avg_quantity_per_sale = totals.total_quantity / totals.sale_count

    return ItemAggregate(
        item_name=totals.item_name,
        company_name=totals.company_name,
        total_quantity=totals.total_quantity,
        total_revenue=totals.total_revenue,
        sale_count=totals.sale_count,
        first_sale_date=totals.first_sale_date,
        last_sale_date=totals.last_sale_date,
        sales_velocity=sales_velocity,
        avg_days_between_sales=avg_days_between_sales,
        performance_score=weights.score(
            totals.total_revenue,
            totals.total_quantity,
            avg_days_between_sales,
            sales_velocity,
        ),
        avg_quantity_per_sale=avg_quantity_per_sale,
    )


def find_peak_day(trend: Iterable[DailyTrendPoint]) -> PeakDayResult:
    """Day with the highest revenue. Earliest day wins ties."""
    peak: Optional[DailyTrendPoint] = None
    for point in trend:
        if peak is None or point.revenue > peak.revenue:
            peak = point

    if peak is None:
        return NoPeakDay()

    return PeakDay(
        date=peak.date,
        revenue=peak.revenue,
        quantity=peak.quantity,
        count=peak.count,
    )


def aggregate_sales(
    sales: Iterable[SaleRecord],
    window_end: datetime,
    weights: ScoreWeights = DEFAULT_SCORE_WEIGHTS,
    include_sale_averages: bool = False,
) -> SalesAggregation:
    """
    Aggregate sales by item, company and day in a single pass.

    Args:
        sales: Sale records of the window, ideally ascending by sale date
        window_end: End of the window, used for velocity
        weights: Performance score weights
        include_sale_averages: Also compute avg_quantity_per_sale per item

    Returns:
        SalesAggregation with read-only mappings and an ascending daily trend
    """
    items: Dict[str, _ItemTotals] = {}
    companies: Dict[str, _CompanyTotals] = {}
    days: Dict[date, _DayTotals] = {}

    total_revenue = 0.0
    total_quantity = 0.0
    total_sales = 0

    for sale in sales:
        sale_date = to_utc(sale.sale_date)

        item = items.get(sale.item_name)
        if item is None:
            item = items[sale.item_name] = _ItemTotals(
                item_name=sale.item_name,
                company_name=sale.company_name,
                first_sale_date=sale_date,
                last_sale_date=sale_date,
            )
        item.add(sale, sale_date)

        company = companies.get(sale.company_name)
        if company is None:
            company = companies[sale.company_name] = _CompanyTotals(sale.company_name)
        company.add(sale)

        key = day_key(sale_date)
        day = days.get(key)
        if day is None:
            day = days[key] = _DayTotals(key)
        day.add(sale)

        total_revenue += sale.revenue
        total_quantity += sale.quantity_sold
        total_sales += 1

    item_aggregates = {
        name: derive_item_metrics(totals, window_end, weights, include_sale_averages)
        for name, totals in items.items()
    }
    company_aggregates = {name: totals.freeze() for name, totals in companies.items()}
    trend = tuple(day.freeze() for _, day in sorted(days.items()))

    summary = SalesSummary(
        total_revenue=total_revenue,
        total_quantity=total_quantity,
        total_sales=total_sales,
        avg_sale_value=total_revenue / total_sales if total_sales > 0 else 0.0,
    )

    return SalesAggregation(
        items=MappingProxyType(item_aggregates),
        companies=MappingProxyType(company_aggregates),
        daily_trend=trend,
        summary=summary,
    )
