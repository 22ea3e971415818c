"""PriceHistory schemas"""
from datetime import datetime
from decimal import Decimal

from .base import BaseSchema


class PriceHistoryResponse(BaseSchema):
    """Schema for price history response"""
    id: str
    product_id: str
    old_price: Decimal
    new_price: Decimal
    changed_at: datetime
