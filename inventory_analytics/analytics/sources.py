"""
Record Sources

Contract of the storage collaborator that feeds the analytics engine.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Collection, List, Optional

from .models import SaleRecord, StockRecord


@dataclass(frozen=True)
class SaleFilters:
    """Optional narrowing of a sales query. Name filters are case-insensitive substrings."""
    search: Optional[str] = None  # Item or company name
    item_name: Optional[str] = None
    company_name: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    min_quantity: Optional[float] = None
    max_quantity: Optional[float] = None


class SalesDataSource(ABC):
    """
    Supplies raw records to the analytics engine.

    Implementations must return sales ascending by sale date (then id) and
    stock rows newest first (date added descending, then id descending).
    Both orders are part of the contract: trend, peak day and the current
    stock tie-break depend on them.
    """

    @abstractmethod
    async def fetch_sales_in_window(
        self,
        start_date: datetime,
        end_date: datetime,
        filters: Optional[SaleFilters] = None,
    ) -> List[SaleRecord]:
        """All sales with start_date <= sale_date <= end_date"""

    @abstractmethod
    async def fetch_stock_by_names(self, names: Collection[str]) -> List[StockRecord]:
        """All stock rows whose name is in `names`"""
