"""
Database Module
"""
from .connection import (
    init_database,
    close_database,
    get_db,
    get_db_dependency,
    check_database_health,
    create_tables,
)
from .models import Base, Sale, Stock, QuantityType
from .repositories import Page, SalesRepository, SortSpec, StockFilters, StockRepository, StockUpdate

__all__ = [
    "init_database",
    "close_database",
    "get_db",
    "get_db_dependency",
    "check_database_health",
    "create_tables",
    "Base",
    "Sale",
    "Stock",
    "QuantityType",
    "Page",
    "SalesRepository",
    "SortSpec",
    "StockFilters",
    "StockRepository",
    "StockUpdate",
]
