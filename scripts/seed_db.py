"""
Seed the database with synthetic stock and sales.

Usage:
    python scripts/seed_db.py --stock 40 --sales 500 --days 365
"""

import argparse
import asyncio

import structlog

from inventory_analytics.config.logging import configure_logging
from inventory_analytics.data.generators import DataGenerator
from inventory_analytics.database.connection import close_database, create_tables, get_db, init_database
from inventory_analytics.database.models import QuantityType, Sale, Stock

logger = structlog.get_logger(__name__)


async def seed(n_stock: int, n_sales: int, days: int, reset: bool) -> None:
    await init_database()
    try:
        await create_tables(reset=reset)

        data = DataGenerator().generate_all(n_stock=n_stock, n_sales=n_sales, days=days)

        async with get_db() as db:
            stock_rows = [
                Stock(**{**row, "quantity_type": QuantityType(row["quantity_type"])})
                for row in data["stock"].to_dicts()
            ]
            db.add_all(stock_rows)
            await db.flush()

            sales = []
            for row in data["sales"].to_dicts():
                batch = stock_rows[row.pop("stock_index")]
                sales.append(Sale(stock_id=batch.id, **row))
            db.add_all(sales)

        logger.info("Database seeded", stock=len(stock_rows), sales=len(sales))
    finally:
        await close_database()


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed the inventory database")
    parser.add_argument("--stock", type=int, default=40, help="Stock batches to create")
    parser.add_argument("--sales", type=int, default=500, help="Sales to create")
    parser.add_argument("--days", type=int, default=365, help="Spread sales over this many days")
    parser.add_argument("--reset", action="store_true", help="Drop existing tables first")
    args = parser.parse_args()

    configure_logging()
    asyncio.run(seed(args.stock, args.sales, args.days, args.reset))


if __name__ == "__main__":
    main()
