"""
バーコード検索サービス
"""
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pricebook.exceptions import AmbiguousBarcodeError, StoreError
from pricebook.models.product import Product

logger = logging.getLogger(__name__)


class BarcodeLookupService:
    """バーコードの完全一致で商品を1件引く"""

    def __init__(self, db: Session):
        self.db = db

    def find_by_barcode(self, code: str) -> Optional[Product]:
        """
        Returns:
            一致した商品。0件なら None

        Raises:
            AmbiguousBarcodeError: 2件以上一致した
            StoreError: DB エラー
        """
        code = (code or "").strip()
        if not code:
            return None

        try:
            # 重複検出には2件取れれば十分
            matches = self.db.scalars(
                select(Product)
                .where(Product.barcode == code)
                .order_by(Product.created_at.asc(), Product.id.asc())
                .limit(2)
            ).all()
        except SQLAlchemyError as e:
            logger.error(f"バーコード検索エラー: {code} - {str(e)}")
            raise StoreError(f"バーコード検索に失敗しました: {str(e)}") from e

        if not matches:
            logger.info(f"バーコード未登録: {code}")
            return None
        if len(matches) > 1:
            logger.warning(f"バーコードが重複しています: {code}")
            raise AmbiguousBarcodeError(code, [p.id for p in matches])
        return matches[0]

    def is_registered(self, code: str) -> bool:
        """同じバーコードの商品が既にあるか"""
        code = (code or "").strip()
        if not code:
            return False
        try:
            return self.db.scalar(
                select(Product.id).where(Product.barcode == code).limit(1)
            ) is not None
        except SQLAlchemyError as e:
            raise StoreError(f"バーコード検索に失敗しました: {str(e)}") from e
