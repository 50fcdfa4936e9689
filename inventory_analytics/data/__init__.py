"""
Synthetic Data Module
"""
from .generators import DataGenerator, SaleGenerator, StockGenerator

__all__ = ["DataGenerator", "SaleGenerator", "StockGenerator"]
