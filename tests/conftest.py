"""
Test Suite Configuration
"""
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Callable, List, Optional

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from inventory_analytics.analytics.models import SaleRecord, StockRecord
from inventory_analytics.config import Settings
from inventory_analytics.database.models import Base

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    """Fixed window end used by the analytics tests"""
    return NOW


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Create test settings"""
    return Settings(app_env="testing", debug=True)


@pytest.fixture
async def test_engine():
    """In-memory SQLite engine with the schema created"""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def test_db(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session"""
    session_factory = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def make_sale() -> Callable[..., SaleRecord]:
    """Factory for sale records, days_ago counted back from NOW"""
    def _make(
        item_name: str,
        quantity: float,
        price: float,
        days_ago: float = 0,
        company_name: str = "Acme Foods",
    ) -> SaleRecord:
        return SaleRecord(
            item_name=item_name,
            company_name=company_name,
            quantity_sold=quantity,
            price=price,
            sale_date=NOW - timedelta(days=days_ago),
        )
    return _make


@pytest.fixture
def make_stock() -> Callable[..., StockRecord]:
    """Factory for stock records"""
    def _make(
        name: str,
        quantity: float,
        is_sold_out: bool = False,
        company_name: str = "Acme Foods",
        price: float = 10.0,
        date_out_of_stock: Optional[datetime] = None,
        days_ago_added: float = 30,
    ) -> StockRecord:
        return StockRecord(
            name=name,
            company_name=company_name,
            quantity=quantity,
            price=price,
            is_sold_out=is_sold_out,
            date_out_of_stock=date_out_of_stock,
            date_added=NOW - timedelta(days=days_ago_added),
        )
    return _make


@pytest.fixture
def sample_sales(make_sale) -> List[SaleRecord]:
    """Three items across two companies, ascending by sale date"""
    return [
        make_sale("Rice", 10, 50, days_ago=20, company_name="Acme Foods"),
        make_sale("Sugar", 4, 40, days_ago=15, company_name="Sweet Co"),
        make_sale("Rice", 5, 50, days_ago=10, company_name="Acme Foods"),
        make_sale("Salt", 1, 20, days_ago=5, company_name="Acme Foods"),
        make_sale("Sugar", 6, 40, days_ago=2, company_name="Sweet Co"),
    ]


@pytest.fixture
def sample_stock(make_stock) -> List[StockRecord]:
    """Stock rows for the sample sales, newest first"""
    return [
        make_stock("Sugar", 3, company_name="Sweet Co", days_ago_added=5),
        make_stock("Rice", 0, is_sold_out=True, date_out_of_stock=NOW - timedelta(days=1), days_ago_added=10),
        make_stock("Salt", 200, days_ago_added=40),
    ]
