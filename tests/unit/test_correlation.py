"""
Unit Tests - Stock Correlation
"""
from datetime import timedelta

import pytest

from inventory_analytics.analytics.aggregation import aggregate_sales
from inventory_analytics.analytics.correlation import correlate_stock, select_current_stock

from tests.conftest import NOW


class TestSelectCurrentStock:
    """Tests for the current stock row choice"""

    def test_first_active_row(self, make_stock):
        """The first row that is not sold out wins"""
        rows = [
            make_stock("Rice", 0, is_sold_out=True, days_ago_added=1),
            make_stock("Rice", 20, days_ago_added=5),
            make_stock("Rice", 7, days_ago_added=9),
        ]
        assert select_current_stock(rows).quantity == 20

    def test_all_sold_out(self, make_stock):
        """Falls back to the first row when every row is sold out"""
        rows = [
            make_stock("Rice", 0, is_sold_out=True, days_ago_added=1),
            make_stock("Rice", 0, is_sold_out=True, days_ago_added=5),
        ]
        assert select_current_stock(rows) is rows[0]

    def test_no_rows(self):
        """No rows, no current stock"""
        assert select_current_stock([]) is None


class TestCorrelateStock:
    """Tests for joining items with stock"""

    def test_missing_stock_is_out_of_stock(self, make_sale):
        """An item without any stock row is out of stock with quantity 0"""
        items = aggregate_sales([make_sale("Oil", 2, 100, days_ago=3)], window_end=NOW).items

        oil = correlate_stock(items, [])["Oil"]

        assert oil.is_out_of_stock is True
        assert oil.current_quantity == 0

    def test_active_row_after_sold_out_row(self, make_sale, make_stock):
        """A sold-out batch and an active batch resolve to the active one"""
        items = aggregate_sales([make_sale("Rice", 5, 50, days_ago=3)], window_end=NOW).items
        stocks = [
            make_stock("Rice", 0, is_sold_out=True, days_ago_added=2),
            make_stock("Rice", 20, days_ago_added=6),
        ]

        rice = correlate_stock(items, stocks)["Rice"]

        assert rice.is_out_of_stock is False
        assert rice.current_quantity == 20

    def test_items_never_dropped(self, sample_sales, sample_stock):
        """Every item survives correlation in the same order"""
        items = aggregate_sales(sample_sales, window_end=NOW).items

        result = correlate_stock(items, sample_stock)

        assert list(result) == list(items)
        assert result["Salt"].current_quantity == 200
        assert result["Rice"].is_out_of_stock is True

    def test_stockout_timing(self, make_sale, make_stock):
        """Time to stock-out counts from the first sale in the window"""
        items = aggregate_sales([make_sale("Rice", 5, 50, days_ago=10)], window_end=NOW).items
        stocks = [
            make_stock("Rice", 0, is_sold_out=True, date_out_of_stock=NOW - timedelta(days=4)),
        ]

        plain = correlate_stock(items, stocks)["Rice"]
        detailed = correlate_stock(items, stocks, include_stockout_timing=True)["Rice"]

        assert plain.time_to_out_of_stock is None
        assert detailed.time_to_out_of_stock == pytest.approx(6.0)

    def test_no_timing_without_stockout_date(self, make_sale, make_stock):
        """Sold out without a stock-out date leaves the timing empty"""
        items = aggregate_sales([make_sale("Rice", 5, 50, days_ago=10)], window_end=NOW).items
        stocks = [make_stock("Rice", 0, is_sold_out=True)]

        rice = correlate_stock(items, stocks, include_stockout_timing=True)["Rice"]

        assert rice.time_to_out_of_stock is None

    def test_inputs_unchanged(self, sample_sales, sample_stock):
        """Correlation returns new aggregates"""
        items = aggregate_sales(sample_sales, window_end=NOW).items

        correlate_stock(items, sample_stock)

        assert items["Rice"].is_out_of_stock is None
