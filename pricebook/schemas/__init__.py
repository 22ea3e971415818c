"""
Pydantic Schemas for pricebook
Based on pricebook/models
"""

from .base import BaseSchema
from .category import CategoryBase, CategoryCreate, CategoryUpdate, CategoryResponse
from .product import (
    SortMode,
    ProductForm,
    ProductQuery,
    ProductResponse,
    ProductPage,
    ProductUpdateRequest,
)
from .price_history import PriceHistoryResponse

__all__ = [
    "BaseSchema",
    "CategoryBase",
    "CategoryCreate",
    "CategoryUpdate",
    "CategoryResponse",
    "SortMode",
    "ProductForm",
    "ProductQuery",
    "ProductResponse",
    "ProductPage",
    "ProductUpdateRequest",
    "PriceHistoryResponse",
]
