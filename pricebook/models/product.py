"""
Product Model - 商品テーブル
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional, TYPE_CHECKING
from sqlalchemy import String, Numeric, Text, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

if TYPE_CHECKING:
    from .category import Category


# 選択可能な単位（先頭がデフォルト）
PRODUCT_UNITS = ("件", "个", "斤", "公斤", "克", "升", "毫升", "瓶", "盒", "袋", "包", "箱")
DEFAULT_UNIT = PRODUCT_UNITS[0]


class Product(Base):
    """商品テーブル"""
    __tablename__ = "products"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    # 一意制約なし（重複は BarcodeLookupService が検出する）
    barcode: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, index=True)
    unit: Mapped[str] = mapped_column(String(16), default=DEFAULT_UNIT, nullable=False)
    category_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True
    )
    image_url: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.now, nullable=False, index=True
    )

    # Relationships
    category: Mapped[Optional["Category"]] = relationship("Category", back_populates="products")
