"""
Unit Tests - Synthetic Data
"""
from inventory_analytics.analytics.models import SaleRecord
from inventory_analytics.data.generators import DataGenerator, SaleGenerator, StockGenerator

from tests.conftest import NOW


class TestStockGenerator:
    """Tests for StockGenerator"""

    def test_generate(self):
        """Generates the requested rows with the stock columns"""
        df = StockGenerator().generate(20, now=NOW)

        assert len(df) == 20
        assert {"name", "company_name", "quantity", "price", "is_sold_out"} <= set(df.columns)

    def test_sold_out_rows_have_zero_quantity(self):
        """Sold out batches are empty and carry a stock-out date"""
        for row in StockGenerator().generate(50, now=NOW).to_dicts():
            if row["is_sold_out"]:
                assert row["quantity"] == 0
                assert row["date_out_of_stock"] is not None

    def test_seeded(self):
        """Same seed, same data"""
        assert StockGenerator(seed=7).generate(10, now=NOW).equals(StockGenerator(seed=7).generate(10, now=NOW))


class TestSaleGenerator:
    """Tests for SaleGenerator"""

    def test_sales_match_stock(self):
        """Every sale points at a generated stock row with its name and price"""
        stock = StockGenerator().generate(10, now=NOW)
        sales = SaleGenerator(stock).generate(100, days=30, now=NOW)
        rows = stock.to_dicts()

        for sale in sales.to_dicts():
            batch = rows[sale["stock_index"]]
            assert sale["item_name"] == batch["name"]
            assert sale["price"] == batch["price"]

    def test_sorted_and_valid(self):
        """Sales are ascending and convert to sale records"""
        stock = StockGenerator().generate(10, now=NOW)
        sales = SaleGenerator(stock).generate(50, days=30, now=NOW).to_dicts()

        dates = [sale["sale_date"] for sale in sales]
        assert dates == sorted(dates)

        record = SaleRecord(
            item_name=sales[0]["item_name"],
            company_name=sales[0]["company_name"],
            quantity_sold=sales[0]["quantity_sold"],
            price=sales[0]["price"],
            sale_date=sales[0]["sale_date"],
        )
        assert record.revenue > 0


class TestDataGenerator:
    """Tests for DataGenerator"""

    def test_generate_all(self, tmp_path):
        """Generates and saves both datasets"""
        data = DataGenerator(output_dir=str(tmp_path)).generate_all(n_stock=5, n_sales=20, save=True)

        assert len(data["stock"]) == 5
        assert len(data["sales"]) == 20
        assert (tmp_path / "stock.csv").exists()
        assert (tmp_path / "sales.csv").exists()
