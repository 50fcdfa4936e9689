"""
Inventory Analytics Service

Stock tracking, sales analytics and PDF reporting for small businesses.
"""

__version__ = "1.0.0"
