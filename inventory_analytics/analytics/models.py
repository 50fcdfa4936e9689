"""
Analytics Domain Models

Immutable records consumed and produced by the analytics engine:

Inputs:
- SaleRecord: a point-in-time sale, denormalized at creation
- StockRecord: a stock row as currently stored

Derived (one request lifetime):
- ItemAggregate / CompanyAggregate: per-entity totals, velocity and score
- DailyTrendPoint: per-day totals
- PeakDay / NoPeakDay: highest revenue day, or the explicit "no sales" variant
- ReportData: the assembled result shared by the JSON API and the PDF renderer
"""

from dataclasses import asdict, dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union


class ReportVariant(str, Enum):
    """Which call site an assembled report serves"""
    REPORT = "report"  # Period report (JSON preview and PDF)
    ANALYTICS = "analytics"  # Sales analytics dashboard, adds enrichment fields


class PeriodType(str, Enum):
    """Supported report period types"""
    WEEKLY = "weekly"
    MONTHS = "months"


class RestockPriority(str, Enum):
    """Restocking priority"""
    HIGH = "High"
    MEDIUM = "Medium"


def _jsonable(value: Any) -> Any:
    """Convert dates and enums inside a plain structure to JSON-safe values"""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {key: _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    return value


# =============================================================================
# INPUT RECORDS
# =============================================================================

@dataclass(frozen=True)
class SaleRecord:
    """A recorded sale. Price is the unit price at the time of sale."""
    item_name: str
    company_name: str
    quantity_sold: float
    price: float
    sale_date: datetime
    stock_ref: Optional[int] = None
    id: Optional[int] = None

    def __post_init__(self):
        if self.quantity_sold < 0:
            raise ValueError(f"quantity_sold cannot be negative: {self.quantity_sold}")

    @property
    def revenue(self) -> float:
        return self.quantity_sold * self.price

    def to_dict(self) -> Dict[str, Any]:
        return _jsonable(asdict(self))


@dataclass(frozen=True)
class StockRecord:
    """A stock row. Read-only to the analytics engine."""
    name: str
    company_name: str
    quantity: float
    price: float
    is_sold_out: bool = False
    expiry_date: Optional[datetime] = None
    date_out_of_stock: Optional[datetime] = None
    date_added: Optional[datetime] = None
    quantity_type: str = "numbers"
    id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return _jsonable(asdict(self))


# =============================================================================
# TUNABLE HEURISTICS
# =============================================================================

@dataclass(frozen=True)
class ScoreWeights:
    """
    Weights of the performance score.

    score = revenue*w_r + quantity*w_q + 1/(avg_gap+1)*scale*w_f + velocity*w_v

    The defaults are an unvalidated heuristic kept for compatibility with
    historical reports.
    """
    revenue: float = 0.4
    quantity: float = 0.2
    frequency: float = 0.2
    velocity: float = 0.2
    frequency_scale: float = 1000.0

    def score(
        self,
        total_revenue: float,
        total_quantity: float,
        avg_days_between_sales: float,
        sales_velocity: float,
    ) -> float:
        return (
            total_revenue * self.revenue
            + total_quantity * self.quantity
            + (1 / (avg_days_between_sales + 1)) * self.frequency_scale * self.frequency
            + sales_velocity * self.velocity
        )


@dataclass(frozen=True)
class RankingPolicy:
    """Thresholds of the ranking and recommendation stage"""
    top_n: int = 10
    low_stock_threshold: float = 10
    avoid_revenue_multiplier: float = 2.0
    avoid_max_sale_count: int = 5
    avoid_max_velocity: float = 0.1


DEFAULT_SCORE_WEIGHTS = ScoreWeights()
DEFAULT_RANKING_POLICY = RankingPolicy()


# =============================================================================
# DERIVED AGGREGATES
# =============================================================================

@dataclass(frozen=True)
class ItemAggregate:
    """Sales of one item name over the window, merged across companies"""
    item_name: str
    company_name: str  # First company seen for this item
    total_quantity: float
    total_revenue: float
    sale_count: int
    first_sale_date: datetime
    last_sale_date: datetime
    sales_velocity: float  # units/day
    avg_days_between_sales: float
    performance_score: float

    # Set by the correlation stage
    is_out_of_stock: Optional[bool] = None
    current_quantity: Optional[float] = None

    # Analytics variant only
    avg_quantity_per_sale: Optional[float] = None
    time_to_out_of_stock: Optional[float] = None  # days

    def to_dict(self) -> Dict[str, Any]:
        return _jsonable(asdict(self))


@dataclass(frozen=True)
class CompanyAggregate:
    """Sales of one company over the window"""
    company_name: str
    total_quantity: float
    total_revenue: float
    sale_count: int
    unique_items_count: int

    # Set by the ranking stage
    avg_performance_score: Optional[float] = None
    item_count: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return _jsonable(asdict(self))


@dataclass(frozen=True)
class DailyTrendPoint:
    """Totals for one UTC calendar day"""
    date: date
    quantity: float
    revenue: float
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return _jsonable(asdict(self))


@dataclass(frozen=True)
class PeakDay:
    """The day with the highest revenue in the window"""
    date: date
    revenue: float
    quantity: float
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return _jsonable(asdict(self))


@dataclass(frozen=True)
class NoPeakDay:
    """Peak day of a window without sales"""
    date: Optional[date] = None
    revenue: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {"date": None, "revenue": 0.0}


PeakDayResult = Union[PeakDay, NoPeakDay]


@dataclass(frozen=True)
class SalesSummary:
    """Window-global totals"""
    total_revenue: float = 0.0
    total_quantity: float = 0.0
    total_sales: int = 0
    avg_sale_value: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class RestockSuggestion:
    """Reduced view of an item recommended for replenishment"""
    item_name: str
    company_name: str
    current_quantity: float
    is_out_of_stock: bool
    performance_score: float
    total_revenue: float
    sales_velocity: float
    priority: RestockPriority

    def to_dict(self) -> Dict[str, Any]:
        return _jsonable(asdict(self))


@dataclass(frozen=True)
class ReportPeriod:
    """Resolved aggregation window"""
    type: str
    value: Optional[int]  # Months, None for weekly
    start_date: datetime
    end_date: datetime

    @property
    def label(self) -> str:
        if self.type == PeriodType.WEEKLY.value:
            return "Last Week"
        unit = "Month" if self.value == 1 else "Months"
        return f"Last {self.value} {unit}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "value": self.value,
            "label": self.label,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
        }


@dataclass(frozen=True)
class ReportData:
    """
    Assembled analytics result.

    `to_dict()` is the only serialization: the API returns it as JSON and
    the PDF renderer templates the very same structure.
    """
    variant: ReportVariant
    period: ReportPeriod
    summary: SalesSummary
    peak_day: PeakDayResult
    sales_trend: Tuple[DailyTrendPoint, ...]
    item_analytics: Tuple[ItemAggregate, ...]
    best_performing_items: Tuple[ItemAggregate, ...]
    worst_performing_items: Tuple[ItemAggregate, ...]
    company_analytics: Tuple[CompanyAggregate, ...]  # by total revenue
    company_performance: Tuple[CompanyAggregate, ...]  # by average item score
    restocking_suggestions: Tuple[RestockSuggestion, ...]
    avoid_restocking: Tuple[ItemAggregate, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "variant": self.variant.value,
            "period": self.period.to_dict(),
            "summary": self.summary.to_dict(),
            "peak_day": self.peak_day.to_dict(),
            "sales_trend": [point.to_dict() for point in self.sales_trend],
            "item_analytics": [item.to_dict() for item in self.item_analytics],
            "best_performing_items": [item.to_dict() for item in self.best_performing_items],
            "worst_performing_items": [item.to_dict() for item in self.worst_performing_items],
            "company_analytics": [company.to_dict() for company in self.company_analytics],
            "company_performance": [company.to_dict() for company in self.company_performance],
            "restocking_suggestions": [s.to_dict() for s in self.restocking_suggestions],
            "avoid_restocking": [item.to_dict() for item in self.avoid_restocking],
        }
