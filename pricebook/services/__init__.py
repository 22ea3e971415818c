"""
カタログサービス
"""

from .query_engine import QueryEngine, PAGE_SIZE
from .price_history import PriceHistoryRecorder
from .barcode import BarcodeLookupService
from .catalog import CatalogService, validate_product_form
from .pricing import normalize_price, is_price_equal, format_price

__all__ = [
    "QueryEngine",
    "PAGE_SIZE",
    "PriceHistoryRecorder",
    "BarcodeLookupService",
    "CatalogService",
    "validate_product_form",
    "normalize_price",
    "is_price_equal",
    "format_price",
]
