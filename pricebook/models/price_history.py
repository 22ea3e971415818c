"""
PriceHistory Model - 価格履歴テーブル
"""
from datetime import datetime
from decimal import Decimal
from sqlalchemy import String, Integer, Numeric, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class PriceHistory(Base):
    """価格履歴テーブル（追記のみ）"""
    __tablename__ = "price_history"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    # 商品削除後も履歴は残すため外部キーにしない
    product_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    old_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    new_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    changed_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.now, nullable=False, index=True
    )
    # 商品ごとの追記順（changed_at が同じときの並び）
    seq: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
