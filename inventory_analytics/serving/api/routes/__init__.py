"""
API Routes Module
"""
from .health import router as health_router
from .reports import router as reports_router
from .sales import router as sales_router
from .stock import router as stock_router

__all__ = [
    "health_router",
    "reports_router",
    "sales_router",
    "stock_router",
]
