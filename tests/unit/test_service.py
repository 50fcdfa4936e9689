"""
Unit Tests - Analytics Service
"""
import re
from datetime import timedelta

import pytest

from inventory_analytics.analytics.models import ReportVariant
from inventory_analytics.analytics.service import (
    AnalyticsService,
    policy_from_settings,
    report_filename,
    weights_from_settings,
)
from inventory_analytics.analytics.report import resolve_period
from inventory_analytics.config.settings import AnalyticsSettings, ReportSettings, Settings

from tests.conftest import NOW
from tests.fakes import InMemorySalesSource


@pytest.fixture
def source(sample_sales, sample_stock, make_sale):
    old_sale = make_sale("Tea", 1, 100, days_ago=200, company_name="Leaf Ltd")
    return InMemorySalesSource([old_sale] + sample_sales, sample_stock)


@pytest.fixture
def service(source, test_settings):
    return AnalyticsService(source, test_settings)


class TestSettingsMapping:
    """Tests for settings to engine parameters"""

    def test_weights(self):
        """Score weights come from analytics settings"""
        weights = weights_from_settings(AnalyticsSettings(revenue_weight=1.0, frequency_scale=10))

        assert weights.revenue == 1.0
        assert weights.frequency_scale == 10
        assert weights.quantity == 0.2

    def test_policy(self):
        """Ranking thresholds come from analytics settings"""
        policy = policy_from_settings(AnalyticsSettings(top_n=3, low_stock_threshold=5))

        assert policy.top_n == 3
        assert policy.low_stock_threshold == 5
        assert policy.avoid_max_velocity == 0.1


class TestReportFilename:
    """Tests for PDF attachment names"""

    def test_weekly(self):
        """Weekly reports are named 'week'"""
        name = report_filename(resolve_period("weekly", now=NOW), now=NOW)
        assert name == f"inventory-report-week-{int(NOW.timestamp() * 1000)}.pdf"

    def test_months(self):
        """Monthly reports carry the month count"""
        name = report_filename(resolve_period("months", 6, now=NOW))
        assert re.fullmatch(r"inventory-report-6months-\d+\.pdf", name)


class TestAnalyticsService:
    """Tests for AnalyticsService"""

    async def test_report_data_window(self, service, source):
        """The report variant uses the resolved window"""
        report = await service.report_data("months", "3", now=NOW)

        start, end, filters = source.windows[0]
        assert start == NOW - timedelta(days=92)
        assert end == NOW
        assert filters is None
        assert report.variant is ReportVariant.REPORT
        assert "Tea" not in {i.item_name for i in report.item_analytics}

    async def test_report_data_default_period(self, service):
        """Unknown period types fall back to three months"""
        report = await service.report_data(None, now=NOW)
        assert report.period.label == "Last 3 Months"

    async def test_sales_analytics_defaults_to_twelve_months(self, service):
        """The analytics variant covers 12 months by default"""
        report = await service.sales_analytics(now=NOW)

        assert report.variant is ReportVariant.ANALYTICS
        assert report.period.value == 12
        assert "Tea" in {i.item_name for i in report.item_analytics}

    async def test_sales_analytics_filters(self, service, source):
        """Item and company filters reach the source"""
        report = await service.sales_analytics(item_name="ric", company_name="acme", months="6", now=NOW)

        _, _, filters = source.windows[0]
        assert filters.item_name == "ric"
        assert filters.company_name == "acme"
        assert [i.item_name for i in report.item_analytics] == ["Rice"]

    async def test_source_errors_propagate(self, test_settings):
        """Storage failures are not swallowed"""
        class BrokenSource(InMemorySalesSource):
            async def fetch_sales_in_window(self, *args, **kwargs):
                raise ConnectionError("database down")

        service = AnalyticsService(BrokenSource([], []), test_settings)

        with pytest.raises(ConnectionError):
            await service.report_data("weekly", now=NOW)

    async def test_generate_pdf(self, source):
        """The PDF is rendered from the period report"""
        settings = Settings(app_env="testing", report=ReportSettings(render_timeout_seconds=30))
        service = AnalyticsService(source, settings)

        pdf, filename = await service.generate_pdf("weekly", now=NOW)

        assert pdf.startswith(b"%PDF")
        assert filename.startswith("inventory-report-week-")
