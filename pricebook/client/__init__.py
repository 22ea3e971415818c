"""
pricebook クライアント（API クライアント + 商品リスト同期）
"""

from .api_client import CatalogAPIClient
from .list_sync import DEBOUNCE_SECONDS, ListParams, ListState, ListSyncController, ProductSource

__all__ = [
    "CatalogAPIClient",
    "DEBOUNCE_SECONDS",
    "ListParams",
    "ListState",
    "ListSyncController",
    "ProductSource",
]
