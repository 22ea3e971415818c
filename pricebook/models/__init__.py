"""
SQLAlchemy Models for pricebook

Usage:
    from pricebook.models import Product, Category, PriceHistory
    # または
    from pricebook.models import Base
"""

from .base import Base
from .category import Category
from .product import Product, PRODUCT_UNITS, DEFAULT_UNIT
from .price_history import PriceHistory

__all__ = [
    "Base",
    "Category",
    "Product",
    "PRODUCT_UNITS",
    "DEFAULT_UNIT",
    "PriceHistory",
]
