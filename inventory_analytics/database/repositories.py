"""
Sales and Stock Repositories

Session-bound queries behind the analytics engine and the API endpoints.
Every query returns immutable records, never ORM rows.

Stock writes follow the inventory rules: lowering a quantity records a sale
for the difference, marking a batch sold out records a sale for whatever was
left, and `is_sold_out` / `date_out_of_stock` always track the quantity.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Collection, Dict, Generic, List, Optional, Tuple, TypeVar

import structlog
from sqlalchemy import Select, and_, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_analytics.analytics.models import SaleRecord, StockRecord
from inventory_analytics.analytics.report import subtract_months
from inventory_analytics.analytics.sources import SaleFilters, SalesDataSource
from inventory_analytics.database.models import QuantityType, Sale, Stock

logger = structlog.get_logger(__name__)

T = TypeVar("T")

LIKE_ESCAPE = "\\"

SALE_SORT_FIELDS = {
    "item_name": Sale.item_name,
    "quantity_sold": Sale.quantity_sold,
    "company_name": Sale.company_name,
    "price": Sale.price,
    "sale_date": Sale.sale_date,
}

STOCK_SORT_FIELDS = {
    "name": Stock.name,
    "quantity": Stock.quantity,
    "company_name": Stock.company_name,
    "price": Stock.price,
    "expiry_date": Stock.expiry_date,
    "date_added": Stock.date_added,
    "date_out_of_stock": Stock.date_out_of_stock,
}

# Columns a stock update may set directly; is_sold_out has its own rules
STOCK_UPDATE_FIELDS = frozenset({"name", "company_name", "quantity", "quantity_type", "price", "expiry_date"})


@dataclass(frozen=True)
class StockFilters:
    """Optional narrowing of a stock listing"""
    search: Optional[str] = None  # Item or company name
    company_name: Optional[str] = None
    quantity_type: Optional[QuantityType] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None


@dataclass(frozen=True)
class SortSpec:
    """Requested ordering. Unknown fields fall back to the listing's default."""
    field: Optional[str] = None
    descending: bool = False


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of a listing"""
    items: List[T] = field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 10

    @property
    def pagination(self) -> Dict[str, int]:
        return {
            "current_page": self.page,
            "total_pages": math.ceil(self.total / self.limit) if self.limit else 0,
            "total_items": self.total,
            "items_per_page": self.limit,
        }


def _contains(column: Any, text: str) -> Any:
    """Case-insensitive substring match; `%` and `_` in the text are literals"""
    escaped = (
        text.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", f"{LIKE_ESCAPE}%")
        .replace("_", f"{LIKE_ESCAPE}_")
    )
    return column.ilike(f"%{escaped}%", escape=LIKE_ESCAPE)


def _sale_conditions(filters: Optional[SaleFilters]) -> List[Any]:
    if filters is None:
        return []

    conditions = []
    if filters.search:
        conditions.append(or_(
            _contains(Sale.item_name, filters.search),
            _contains(Sale.company_name, filters.search),
        ))
    if filters.item_name:
        conditions.append(_contains(Sale.item_name, filters.item_name))
    if filters.company_name:
        conditions.append(_contains(Sale.company_name, filters.company_name))
    if filters.start_date is not None:
        conditions.append(Sale.sale_date >= filters.start_date)
    if filters.end_date is not None:
        conditions.append(Sale.sale_date <= filters.end_date)
    if filters.min_quantity is not None:
        conditions.append(Sale.quantity_sold >= filters.min_quantity)
    if filters.max_quantity is not None:
        conditions.append(Sale.quantity_sold <= filters.max_quantity)
    return conditions


def _stock_conditions(filters: Optional[StockFilters]) -> List[Any]:
    if filters is None:
        return []

    conditions = []
    if filters.search:
        conditions.append(or_(
            _contains(Stock.name, filters.search),
            _contains(Stock.company_name, filters.search),
        ))
    if filters.company_name:
        conditions.append(_contains(Stock.company_name, filters.company_name))
    if filters.quantity_type is not None:
        conditions.append(Stock.quantity_type == filters.quantity_type)
    if filters.min_price is not None:
        conditions.append(Stock.price >= filters.min_price)
    if filters.max_price is not None:
        conditions.append(Stock.price <= filters.max_price)
    return conditions


def _order_by(sort: Optional[SortSpec], fields: Dict[str, Any], default: Tuple[Any, bool]) -> Any:
    column, descending = default
    if sort is not None and sort.field in fields:
        column, descending = fields[sort.field], sort.descending
    return column.desc() if descending else column.asc()


@dataclass(frozen=True)
class StockUpdate:
    """Outcome of a stock update: the stored row and the sale it produced, if any"""
    stock: StockRecord
    sale: Optional[SaleRecord] = None


class _SessionRepository:
    """Shared pagination over an AsyncSession"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _paginate(self, query: Select, conditions: List[Any], model: Any, page: int, limit: int) -> Tuple[List[Any], int]:
        count_query = select(func.count(model.id))
        if conditions:
            count_query = count_query.where(and_(*conditions))
        total = (await self.session.execute(count_query)).scalar() or 0

        offset = (page - 1) * limit
        result = await self.session.execute(query.offset(offset).limit(limit))
        return list(result.scalars().all()), total

    async def _list_stock(
        self,
        base_conditions: List[Any],
        filters: Optional[StockFilters],
        sort: Optional[SortSpec],
        page: int,
        limit: int,
        default_order: Tuple[Any, bool] = (Stock.expiry_date, False),
    ) -> Page[StockRecord]:
        conditions = _stock_conditions(filters) + base_conditions
        query = select(Stock)
        if conditions:
            query = query.where(and_(*conditions))
        query = query.order_by(
            _order_by(sort, STOCK_SORT_FIELDS, default_order),
            Stock.id.asc(),
        )

        rows, total = await self._paginate(query, conditions, Stock, page, limit)
        return Page(items=[row.to_record() for row in rows], total=total, page=page, limit=limit)


class SalesRepository(_SessionRepository, SalesDataSource):
    """
    Repository over the sales and stock tables.

    Example:
        async with get_db() as db:
            repository = SalesRepository(db)
            sales = await repository.fetch_sales_in_window(start, end)
    """

    # -------------------------------------------------------------------------
    # Analytics accessors
    # -------------------------------------------------------------------------

    async def fetch_sales_in_window(
        self,
        start_date: datetime,
        end_date: datetime,
        filters: Optional[SaleFilters] = None,
    ) -> List[SaleRecord]:
        query = (
            select(Sale)
            .where(and_(
                Sale.sale_date >= start_date,
                Sale.sale_date <= end_date,
                *_sale_conditions(filters),
            ))
            .order_by(Sale.sale_date.asc(), Sale.id.asc())
        )
        result = await self.session.execute(query)
        records = [sale.to_record() for sale in result.scalars().all()]

        logger.debug(
            "Fetched sales window",
            start_date=start_date.isoformat(),
            end_date=end_date.isoformat(),
            count=len(records),
        )
        return records

    async def fetch_stock_by_names(self, names: Collection[str]) -> List[StockRecord]:
        if not names:
            return []

        query = (
            select(Stock)
            .where(Stock.name.in_(sorted(names)))
            .order_by(Stock.date_added.desc(), Stock.id.desc())
        )
        result = await self.session.execute(query)
        return [stock.to_record() for stock in result.scalars().all()]

    # -------------------------------------------------------------------------
    # Listings
    # -------------------------------------------------------------------------

    async def list_sales(
        self,
        filters: Optional[SaleFilters] = None,
        sort: Optional[SortSpec] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Page[SaleRecord]:
        """Paginated sales, newest first unless another sort field is given"""
        conditions = _sale_conditions(filters)
        query = select(Sale)
        if conditions:
            query = query.where(and_(*conditions))
        query = query.order_by(
            _order_by(sort, SALE_SORT_FIELDS, (Sale.sale_date, True)),
            Sale.id.asc(),
        )

        rows, total = await self._paginate(query, conditions, Sale, page, limit)
        return Page(items=[row.to_record() for row in rows], total=total, page=page, limit=limit)

    async def list_expiring_soon(
        self,
        filters: Optional[StockFilters] = None,
        sort: Optional[SortSpec] = None,
        page: int = 1,
        limit: int = 10,
        window_months: int = 3,
        now: Optional[datetime] = None,
    ) -> Page[StockRecord]:
        """Stock expiring between now and `window_months` from now"""
        now = now or datetime.now(timezone.utc)
        horizon = subtract_months(now, -window_months)
        return await self._list_stock(
            [
                Stock.expiry_date.is_not(None),
                Stock.expiry_date >= now,
                Stock.expiry_date <= horizon,
            ],
            filters, sort, page, limit,
        )

    async def list_expired(
        self,
        filters: Optional[StockFilters] = None,
        sort: Optional[SortSpec] = None,
        page: int = 1,
        limit: int = 10,
        now: Optional[datetime] = None,
    ) -> Page[StockRecord]:
        """Stock whose expiry date has passed"""
        now = now or datetime.now(timezone.utc)
        return await self._list_stock(
            [
                Stock.expiry_date.is_not(None),
                Stock.expiry_date < now,
            ],
            filters, sort, page, limit,
        )


class StockRepository(_SessionRepository):
    """
    Stock management: single-row reads, availability listings and writes.

    Writes only flush; the request session commits.
    """

    async def get_stock(self, stock_id: int) -> Optional[StockRecord]:
        stock = await self.session.get(Stock, stock_id)
        return stock.to_record() if stock is not None else None

    async def list_available(
        self,
        filters: Optional[StockFilters] = None,
        sort: Optional[SortSpec] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Page[StockRecord]:
        """Stock that is not sold out, most recently created first"""
        return await self._list_stock(
            [Stock.is_sold_out.is_(False)],
            filters, sort, page, limit,
            default_order=(Stock.created_at, True),
        )

    async def list_out_of_stock(
        self,
        filters: Optional[StockFilters] = None,
        sort: Optional[SortSpec] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Page[StockRecord]:
        """Sold out stock, most recently created first"""
        return await self._list_stock(
            [Stock.is_sold_out.is_(True)],
            filters, sort, page, limit,
            default_order=(Stock.created_at, True),
        )

    async def add_stock(
        self,
        name: str,
        company_name: str,
        quantity: float,
        price: float,
        quantity_type: QuantityType = QuantityType.NUMBERS,
        expiry_date: Optional[datetime] = None,
        now: Optional[datetime] = None,
    ) -> StockRecord:
        """
        Add a stock batch.

        A batch added with zero quantity starts out sold out.

        Raises:
            ValueError: Negative quantity or price
        """
        if quantity < 0:
            raise ValueError("Quantity cannot be negative")
        if price < 0:
            raise ValueError("Price cannot be negative")

        now = now or datetime.now(timezone.utc)
        stock = Stock(
            name=name,
            company_name=company_name,
            quantity=quantity,
            quantity_type=quantity_type,
            price=price,
            expiry_date=expiry_date,
            date_added=now,
            is_sold_out=quantity == 0,
            date_out_of_stock=now if quantity == 0 else None,
        )
        self.session.add(stock)
        await self.session.flush()

        logger.info("Stock added", stock_id=stock.id, name=name, quantity=quantity)
        return stock.to_record()

    async def update_stock(
        self,
        stock_id: int,
        changes: Dict[str, Any],
        now: Optional[datetime] = None,
    ) -> Optional[StockUpdate]:
        """
        Apply a partial update and record the sale it implies.

        Args:
            stock_id: Stock row to update
            changes: Fields to set. Keys from STOCK_UPDATE_FIELDS plus is_sold_out
            now: Sale and stock-out timestamp, defaults to now

        Returns:
            StockUpdate, or None when the row does not exist

        Raises:
            ValueError: Unknown field, or a negative quantity or price
        """
        unknown = set(changes) - STOCK_UPDATE_FIELDS - {"is_sold_out"}
        if unknown:
            raise ValueError(f"Unknown stock fields: {sorted(unknown)}")
        if changes.get("quantity") is not None and changes["quantity"] < 0:
            raise ValueError("Quantity cannot be negative")
        if changes.get("price") is not None and changes["price"] < 0:
            raise ValueError("Price cannot be negative")

        stock = await self.session.get(Stock, stock_id)
        if stock is None:
            return None

        now = now or datetime.now(timezone.utc)
        old_quantity = stock.quantity
        new_quantity = changes.get("quantity", old_quantity)

        for name in STOCK_UPDATE_FIELDS & set(changes):
            setattr(stock, name, changes[name])

        sold_quantity = 0.0
        if "is_sold_out" in changes:
            stock.is_sold_out = changes["is_sold_out"]
            if stock.is_sold_out:
                # Whatever was left before the update is sold
                sold_quantity = old_quantity
                stock.quantity = 0
                if stock.date_out_of_stock is None:
                    stock.date_out_of_stock = now
            else:
                stock.date_out_of_stock = None
        else:
            if new_quantity == 0 and not stock.is_sold_out:
                stock.is_sold_out = True
                stock.date_out_of_stock = now
            elif new_quantity > 0 and stock.is_sold_out:
                stock.is_sold_out = False
                stock.date_out_of_stock = None
            sold_quantity = max(old_quantity - new_quantity, 0)

        sale = None
        if sold_quantity > 0:
            sale = Sale(
                stock_id=stock.id,
                item_name=stock.name,
                company_name=stock.company_name,
                quantity_sold=sold_quantity,
                price=stock.price,
                sale_date=now,
            )
            self.session.add(sale)

        await self.session.flush()

        logger.info(
            "Stock updated",
            stock_id=stock_id,
            fields=sorted(changes),
            quantity_sold=sold_quantity,
            is_sold_out=stock.is_sold_out,
        )
        return StockUpdate(
            stock=stock.to_record(),
            sale=sale.to_record() if sale is not None else None,
        )

    async def delete_stock(self, stock_id: int) -> bool:
        """Delete a stock row. Its recorded sales are kept."""
        result = await self.session.execute(delete(Stock).where(Stock.id == stock_id))
        deleted = result.rowcount > 0
        if deleted:
            logger.info("Stock deleted", stock_id=stock_id)
        return deleted
