"""
FastAPI Dependencies

Per-request wiring: one session, its repositories and the analytics service.
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_analytics.analytics.service import AnalyticsService
from inventory_analytics.config import Settings, get_settings
from inventory_analytics.database.connection import get_db_dependency
from inventory_analytics.database.repositories import SalesRepository, StockRepository


async def get_sales_repository(
    db: AsyncSession = Depends(get_db_dependency),
) -> SalesRepository:
    return SalesRepository(db)


async def get_analytics_service(
    repository: SalesRepository = Depends(get_sales_repository),
    settings: Settings = Depends(get_settings),
) -> AnalyticsService:
    return AnalyticsService(repository, settings)


async def get_stock_repository(
    db: AsyncSession = Depends(get_db_dependency),
) -> StockRepository:
    return StockRepository(db)
