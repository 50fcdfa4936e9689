"""
Synthetic Data Generator

Generates realistic inventory data for development and demos:
- Stock batches across common grocery items and suppliers
- Sales drawn from those batches over a recent window
"""

import random
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, Optional

import polars as pl
import structlog
from faker import Faker

from inventory_analytics.database.models import QuantityType

logger = structlog.get_logger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

ITEMS = [
    ("Rice", QuantityType.KG, (40, 120)),
    ("Wheat Flour", QuantityType.KG, (30, 60)),
    ("Sugar", QuantityType.KG, (35, 55)),
    ("Salt", QuantityType.KG, (15, 30)),
    ("Sunflower Oil", QuantityType.LITERS, (120, 220)),
    ("Milk", QuantityType.LITERS, (45, 70)),
    ("Tea", QuantityType.BOXES, (90, 400)),
    ("Biscuits", QuantityType.PIECES, (10, 60)),
    ("Soap", QuantityType.PIECES, (25, 80)),
    ("Toothpaste", QuantityType.UNITS, (60, 150)),
    ("Lentils", QuantityType.KG, (80, 160)),
    ("Eggs", QuantityType.NUMBERS, (5, 8)),
]

DEFAULT_SEED = 42


# =============================================================================
# GENERATORS
# =============================================================================

class StockGenerator:
    """Generate stock batches. An item may get several batches from one supplier."""

    def __init__(self, seed: int = DEFAULT_SEED, companies: int = 5):
        self.random = random.Random(seed)
        self.fake = Faker()
        self.fake.seed_instance(seed)
        self.companies = [self.fake.company() for _ in range(companies)]

    def generate(self, n: int = 40, now: Optional[datetime] = None) -> pl.DataFrame:
        """Generate n stock rows"""
        now = now or datetime.now(timezone.utc)
        suppliers: Dict[str, str] = {}
        rows = []

        for _ in range(n):
            name, quantity_type, (low, high) = self.random.choice(ITEMS)
            company = suppliers.setdefault(name, self.random.choice(self.companies))
            date_added = now - timedelta(days=self.random.randint(0, 365))

            quantity = float(self.random.choice([0, self.random.randint(1, 9), self.random.randint(10, 500)]))
            is_sold_out = quantity == 0
            date_out_of_stock = None
            if is_sold_out:
                date_out_of_stock = date_added + timedelta(days=self.random.randint(1, 90))
                date_out_of_stock = min(date_out_of_stock, now)

            rows.append({
                "name": name,
                "company_name": company,
                "quantity": quantity,
                "quantity_type": quantity_type.value,
                "price": round(self.random.uniform(low, high), 2),
                "expiry_date": now + timedelta(days=self.random.randint(-30, 365)),
                "date_added": date_added,
                "is_sold_out": is_sold_out,
                "date_out_of_stock": date_out_of_stock,
            })

        return pl.DataFrame(rows, infer_schema_length=None)


class SaleGenerator:
    """Generate sales against existing stock rows"""

    def __init__(self, stock_df: pl.DataFrame, seed: int = DEFAULT_SEED):
        self.stock = stock_df.to_dicts()
        self.random = random.Random(seed)

    def generate(self, n: int = 500, days: int = 365, now: Optional[datetime] = None) -> pl.DataFrame:
        """
        Generate n sales over the last `days` days.

        `stock_index` is the row position of the sold batch in the stock frame.
        """
        now = now or datetime.now(timezone.utc)
        sales = []

        for _ in range(n):
            index = self.random.randrange(len(self.stock))
            batch = self.stock[index]
            sales.append({
                "stock_index": index,
                "item_name": batch["name"],
                "company_name": batch["company_name"],
                "quantity_sold": float(self.random.randint(1, 10)),
                "price": batch["price"],
                "sale_date": now - timedelta(minutes=self.random.randint(0, days * 24 * 60)),
            })

        return pl.DataFrame(sales, infer_schema_length=None).sort("sale_date")


class DataGenerator:
    """Generate a matching stock and sales dataset"""

    def __init__(self, output_dir: Optional[str] = None, seed: int = DEFAULT_SEED):
        self.output_dir = Path(output_dir) if output_dir else Path("data/generated")
        self.seed = seed

    def generate_all(
        self,
        n_stock: int = 40,
        n_sales: int = 500,
        days: int = 365,
        save: bool = False,
    ) -> Dict[str, pl.DataFrame]:
        """Generate stock and sales, optionally writing CSV files"""
        now = datetime.now(timezone.utc)
        stock = StockGenerator(seed=self.seed).generate(n_stock, now=now)
        sales = SaleGenerator(stock, seed=self.seed).generate(n_sales, days=days, now=now)

        logger.info("Generated dataset", stock=stock.height, sales=sales.height)

        data = {"stock": stock, "sales": sales}
        if save:
            self._save_data(data)
        return data

    def _save_data(self, data: Dict[str, pl.DataFrame]) -> None:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        for name, df in data.items():
            path = self.output_dir / f"{name}.csv"
            df.write_csv(path)
            logger.info("Saved dataset", name=name, path=str(path), rows=df.height)
