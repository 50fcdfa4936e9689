"""
Analytics Engine Module
"""
from .aggregation import aggregate_sales, find_peak_day
from .correlation import correlate_stock
from .models import (
    ItemAggregate,
    CompanyAggregate,
    ReportData,
    ReportPeriod,
    ReportVariant,
    SaleRecord,
    StockRecord,
)
from .ranking import (
    avoid_restocking,
    best_performing,
    rank_companies_by_performance,
    rank_companies_by_revenue,
    restocking_suggestions,
    worst_performing,
)
from .report import build_report, resolve_period

__all__ = [
    "aggregate_sales",
    "find_peak_day",
    "correlate_stock",
    "ItemAggregate",
    "CompanyAggregate",
    "ReportData",
    "ReportPeriod",
    "ReportVariant",
    "SaleRecord",
    "StockRecord",
    "avoid_restocking",
    "best_performing",
    "rank_companies_by_performance",
    "rank_companies_by_revenue",
    "restocking_suggestions",
    "worst_performing",
    "build_report",
    "resolve_period",
]
