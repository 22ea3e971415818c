"""
価格履歴の記録

商品更新時に価格が実際に変わったかを判定し、変わった場合のみ
履歴を追記してから商品を更新する。履歴の追記と商品の更新は
同一トランザクションでコミットする。
"""
import uuid
import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Union

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pricebook.exceptions import ProductNotFoundError, StoreError
from pricebook.models.price_history import PriceHistory
from pricebook.models.product import Product, DEFAULT_UNIT
from pricebook.schemas.product import ProductForm
from pricebook.services.pricing import is_price_equal, normalize_price

logger = logging.getLogger(__name__)


def _or_none(value: str) -> Union[str, None]:
    value = value.strip()
    return value or None


def apply_form(product: Product, form: ProductForm, price: Decimal) -> None:
    """フォームの値を商品レコードに反映（空文字は NULL）"""
    product.name = form.name.strip()
    product.barcode = _or_none(form.barcode)
    product.price = price
    product.unit = _or_none(form.unit) or DEFAULT_UNIT
    product.category_id = _or_none(form.category_id)
    product.note = _or_none(form.note)
    product.image_url = _or_none(form.image_url)


class PriceHistoryRecorder:
    """価格変更の検出と履歴記録"""

    def __init__(self, db: Session):
        self.db = db

    def apply_update(
        self,
        product_id: str,
        form: ProductForm,
        old_price: Union[Decimal, str, float],
    ) -> Product:
        """
        商品を更新し、価格が変わっていれば履歴を1件追記する

        Args:
            product_id: 商品ID
            form: 編集後のフォーム値
            old_price: 編集開始時点の価格

        Returns:
            更新後の商品

        Raises:
            ProductNotFoundError: 商品が存在しない
            StoreError: DB エラー（履歴・商品ともにロールバック済み）
        """
        new_price = normalize_price(form.price)
        old = normalize_price(old_price)
        now = datetime.now()

        try:
            product = self.db.get(Product, product_id)
            if product is None:
                raise ProductNotFoundError(product_id)

            if not is_price_equal(new_price, old):
                last_seq = self.db.scalar(
                    select(func.max(PriceHistory.seq)).where(
                        PriceHistory.product_id == product_id
                    )
                )
                self.db.add(
                    PriceHistory(
                        id=str(uuid.uuid4()),
                        product_id=product_id,
                        old_price=old,
                        new_price=new_price,
                        changed_at=now,
                        seq=(last_seq or 0) + 1,
                    )
                )
                logger.info(f"価格変動を記録: {product_id} ¥{old} → ¥{new_price}")

            apply_form(product, form, new_price)
            product.updated_at = now

            self.db.commit()
            self.db.refresh(product)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"商品更新エラー（ロールバック）: {product_id} - {str(e)}")
            raise StoreError(f"商品の更新に失敗しました: {str(e)}") from e

        logger.info(f"商品を更新: {product.id} - {product.name}")
        return product

    def get_price_history(self, product_id: str) -> List[PriceHistory]:
        """価格履歴を新しい順に取得"""
        try:
            return list(
                self.db.scalars(
                    select(PriceHistory)
                    .where(PriceHistory.product_id == product_id)
                    .order_by(PriceHistory.changed_at.desc(), PriceHistory.seq.desc())
                ).all()
            )
        except SQLAlchemyError as e:
            logger.error(f"価格履歴取得エラー: {product_id} - {str(e)}")
            raise StoreError(f"価格履歴の取得に失敗しました: {str(e)}") from e
