"""
Stock Correlation Stage

Joins item aggregates with the current stock rows of the same name.
"""

from dataclasses import replace
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from .aggregation import days_between
from .models import ItemAggregate, StockRecord


def group_stock_by_name(stocks: Iterable[StockRecord]) -> Dict[str, List[StockRecord]]:
    """Group stock rows by item name, keeping accessor order within each name"""
    stock_map: Dict[str, List[StockRecord]] = {}
    for stock in stocks:
        stock_map.setdefault(stock.name, []).append(stock)
    return stock_map


def select_current_stock(rows: Sequence[StockRecord]) -> Optional[StockRecord]:
    """
    Pick the row that represents current stock for an item.

    First row that is not sold out, else the first row. Rows are expected
    newest first, so this is the most recent active batch.
    """
    for row in rows:
        if not row.is_sold_out:
            return row
    return rows[0] if rows else None


def correlate_item(
    item: ItemAggregate,
    rows: Sequence[StockRecord],
    include_stockout_timing: bool = False,
) -> ItemAggregate:
    """Attach stock state to a single item aggregate"""
    current = select_current_stock(rows)

    # No stock row at all counts as out of stock
    is_out_of_stock = current is None or current.is_sold_out
    current_quantity = current.quantity if current is not None else 0

    time_to_out_of_stock = None
    if (
        include_stockout_timing
        and is_out_of_stock
        and current is not None
        and current.date_out_of_stock is not None
    ):
        time_to_out_of_stock = days_between(current.date_out_of_stock, item.first_sale_date)

    return replace(
        item,
        is_out_of_stock=is_out_of_stock,
        current_quantity=current_quantity,
        time_to_out_of_stock=time_to_out_of_stock,
    )


def correlate_stock(
    items: Mapping[str, ItemAggregate],
    stocks: Iterable[StockRecord],
    include_stockout_timing: bool = False,
) -> Dict[str, ItemAggregate]:
    """
    Enrich every item aggregate with its stock state.

    Args:
        items: Item aggregates keyed by item name
        stocks: Stock rows whose name is among the item names
        include_stockout_timing: Compute time_to_out_of_stock (analytics variant)

    Returns:
        New item aggregates in the same order. Items are never dropped.
    """
    stock_map = group_stock_by_name(stocks)
    return {
        name: correlate_item(item, stock_map.get(name, []), include_stockout_timing)
        for name, item in items.items()
    }
