"""
Unit Tests - Report Assembly
"""
from datetime import datetime, timedelta, timezone

import pytest

from inventory_analytics.analytics.models import NoPeakDay, ReportVariant
from inventory_analytics.analytics.report import (
    build_report,
    parse_months,
    resolve_period,
    subtract_months,
)

from tests.conftest import NOW


@pytest.fixture
def period():
    return resolve_period("months", 3, now=NOW)


class TestPeriodResolution:
    """Tests for report window resolution"""

    def test_weekly(self):
        """Weekly is the last 7 days"""
        period = resolve_period("weekly", now=NOW)

        assert period.start_date == NOW - timedelta(days=7)
        assert period.end_date == NOW
        assert period.value is None
        assert period.label == "Last Week"

    def test_months(self):
        """Months takes N from the period value"""
        period = resolve_period("months", "6", now=NOW)

        assert period.start_date == datetime(2023, 12, 15, 12, 0, tzinfo=timezone.utc)
        assert period.value == 6
        assert period.label == "Last 6 Months"

    def test_single_month_label(self):
        """One month is labelled in the singular"""
        period = resolve_period("months", 1, now=NOW)

        assert period.label == "Last 1 Month"
        assert period.to_dict()["label"] == "Last 1 Month"

    @pytest.mark.parametrize("value", [None, "abc", "0", "-2", ""])
    def test_invalid_months_default(self, value):
        """Missing, non-numeric or non-positive month counts fall back to 3"""
        assert resolve_period("months", value, now=NOW).value == 3

    def test_unknown_type(self):
        """Unknown period types mean the last 3 months"""
        period = resolve_period("yearly", "5", now=NOW)

        assert period.type == "months"
        assert period.value == 3
        assert period.start_date == datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)

    def test_naive_now_is_utc(self):
        """A naive window end is taken as UTC"""
        period = resolve_period("weekly", now=datetime(2024, 6, 15, 12, 0))
        assert period.end_date == NOW

    def test_month_end_clamped(self):
        """Month subtraction clamps to the target month's length"""
        assert subtract_months(datetime(2024, 5, 31, tzinfo=timezone.utc), 3) == datetime(
            2024, 2, 29, tzinfo=timezone.utc
        )
        assert subtract_months(datetime(2024, 1, 15, tzinfo=timezone.utc), 2) == datetime(
            2023, 11, 15, tzinfo=timezone.utc
        )

    def test_parse_months(self):
        """Month counts parse from strings and ints"""
        assert parse_months(" 12 ") == 12
        assert parse_months(4) == 4
        assert parse_months(True) == 3
        assert parse_months(None, default=12) == 12


class TestScenarios:
    """End-to-end report scenarios"""

    def test_two_rice_sales(self, make_sale, make_stock, period):
        """Rice 10@50 and 5@50 on consecutive days"""
        sales = [make_sale("Rice", 10, 50, days_ago=2), make_sale("Rice", 5, 50, days_ago=1)]

        report = build_report(sales, [make_stock("Rice", 40)], period)
        rice = report.item_analytics[0]

        assert rice.total_quantity == 15
        assert rice.total_revenue == 750
        assert rice.sale_count == 2

    def test_empty_window(self, period):
        """No sales gives a zeroed report"""
        report = build_report([], [], period)
        data = report.to_dict()

        assert data["summary"]["total_revenue"] == 0
        assert data["summary"]["total_sales"] == 0
        assert data["peak_day"]["date"] is None
        assert isinstance(report.peak_day, NoPeakDay)
        assert data["best_performing_items"] == []
        assert data["item_analytics"] == []
        assert data["restocking_suggestions"] == []

    def test_item_without_stock(self, make_sale, period):
        """Oil sold without any stock row is out of stock and suggested High"""
        report = build_report([make_sale("Oil", 2, 150, days_ago=3)], [], period)
        oil = report.item_analytics[0]

        assert oil.is_out_of_stock is True
        assert oil.current_quantity == 0
        assert report.restocking_suggestions[0].priority.value == "High"

    def test_slow_mover_avoided(self, make_sale, make_stock, period):
        """Salt with one small sale and low velocity is in the avoid list"""
        sales = [
            make_sale("Rice", 10, 50, days_ago=20),
            make_sale("Salt", 1, 20, days_ago=20),
            make_sale("Rice", 10, 50, days_ago=10),
        ]
        stocks = [make_stock("Rice", 100), make_stock("Salt", 100)]

        report = build_report(sales, stocks, period)
        salt = next(i for i in report.item_analytics if i.item_name == "Salt")

        assert salt.sales_velocity == pytest.approx(0.05)
        assert [i.item_name for i in report.avoid_restocking] == ["Salt"]

    def test_sold_out_and_active_batches(self, make_sale, make_stock, period):
        """A sold-out Rice batch next to an active one reports the active quantity"""
        stocks = [
            make_stock("Rice", 0, is_sold_out=True, days_ago_added=1),
            make_stock("Rice", 20, days_ago_added=5),
        ]

        report = build_report([make_sale("Rice", 5, 50, days_ago=3)], stocks, period)

        assert report.item_analytics[0].current_quantity == 20
        assert report.item_analytics[0].is_out_of_stock is False


class TestReportProperties:
    """Invariants of an assembled report"""

    def test_revenue_conservation(self, sample_sales, sample_stock, period):
        """Items, companies and summary agree on revenue"""
        report = build_report(sample_sales, sample_stock, period)

        total = report.summary.total_revenue
        assert sum(i.total_revenue for i in report.item_analytics) == pytest.approx(total)
        assert sum(c.total_revenue for c in report.company_analytics) == pytest.approx(total)

    def test_item_invariants(self, sample_sales, sample_stock, period):
        """Every item has a sale and a non-negative quantity"""
        report = build_report(sample_sales, sample_stock, period)

        for item in report.item_analytics:
            assert item.sale_count >= 1
            assert item.total_quantity >= 0

    def test_ordered_lists(self, sample_sales, sample_stock, period):
        """item_analytics and best_performing_items are score descending"""
        report = build_report(sample_sales, sample_stock, period)

        scores = [i.performance_score for i in report.best_performing_items]
        assert scores == sorted(scores, reverse=True)
        assert len(report.best_performing_items) <= 10
        assert [i.item_name for i in report.item_analytics] == [i.item_name for i in report.best_performing_items]

    def test_avoid_list_is_slow(self, sample_sales, sample_stock, period):
        """Nothing in the avoid list moves at 0.1 units/day or more"""
        report = build_report(sample_sales, sample_stock, period)
        assert all(i.sales_velocity < 0.1 for i in report.avoid_restocking)

    def test_both_company_rankings(self, sample_sales, sample_stock, period):
        """Revenue and performance rankings are both present"""
        report = build_report(sample_sales, sample_stock, period)

        assert [c.company_name for c in report.company_analytics] == ["Acme Foods", "Sweet Co"]
        assert all(c.avg_performance_score is not None for c in report.company_performance)

    def test_idempotent(self, sample_sales, sample_stock, period):
        """Two runs over the same input serialize identically"""
        first = build_report(sample_sales, sample_stock, period).to_dict()
        second = build_report(sample_sales, sample_stock, period).to_dict()
        assert first == second


class TestVariants:
    """Tests for report vs analytics variants"""

    def test_report_variant_leaves_enrichment_empty(self, sample_sales, sample_stock, period):
        """The report variant has no per-item averages or stock-out timing"""
        data = build_report(sample_sales, sample_stock, period).to_dict()

        assert data["variant"] == "report"
        for item in data["item_analytics"]:
            assert item["avg_quantity_per_sale"] is None
            assert item["time_to_out_of_stock"] is None

    def test_analytics_variant_enriches(self, sample_sales, sample_stock, period):
        """The analytics variant adds averages and stock-out timing"""
        report = build_report(sample_sales, sample_stock, period, variant=ReportVariant.ANALYTICS)
        items = {i.item_name: i for i in report.item_analytics}

        assert items["Rice"].avg_quantity_per_sale == pytest.approx(7.5)
        # Rice first sold 20 days ago, sold out 1 day ago
        assert items["Rice"].time_to_out_of_stock == pytest.approx(19.0)
        assert items["Salt"].time_to_out_of_stock is None

    def test_serialization_is_json_ready(self, sample_sales, sample_stock, period):
        """Dates serialize to ISO strings"""
        data = build_report(sample_sales, sample_stock, period).to_dict()

        assert data["period"]["label"] == "Last 3 Months"
        assert isinstance(data["period"]["start_date"], str)
        assert isinstance(data["sales_trend"][0]["date"], str)
        assert isinstance(data["item_analytics"][0]["first_sale_date"], str)
