"""
カタログ書き込みサービス

商品の登録・更新・削除と、カテゴリの管理を行う。
商品の価格変更は PriceHistoryRecorder を経由する。
"""
import uuid
import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Union

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pricebook.exceptions import (
    CatalogValidationError,
    CategoryNotFoundError,
    ProductNotFoundError,
    StoreError,
)
from pricebook.models.category import Category
from pricebook.models.product import Product, PRODUCT_UNITS
from pricebook.schemas.category import CategoryResponse
from pricebook.schemas.product import ProductForm
from pricebook.services.barcode import BarcodeLookupService
from pricebook.services.cache_service import CategoryCacheService
from pricebook.services.price_history import PriceHistoryRecorder, apply_form
from pricebook.services.pricing import normalize_price

logger = logging.getLogger(__name__)


def validate_product_form(form: ProductForm) -> None:
    """
    保存前の入力チェック（ストアには一切アクセスしない）

    Raises:
        CatalogValidationError: 商品名が空 / 価格が0以下または数値でない / 単位が不正
    """
    if not form.name.strip():
        raise CatalogValidationError("商品名を入力してください", field="name")
    if normalize_price(form.price) <= 0:
        raise CatalogValidationError("有効な価格を入力してください", field="price")
    unit = form.unit.strip()
    if unit and unit not in PRODUCT_UNITS:
        raise CatalogValidationError(f"対応していない単位です: {unit}", field="unit")


def _validate_category_name(name: str) -> str:
    name = (name or "").strip()
    if not name:
        raise CatalogValidationError("カテゴリ名を入力してください", field="name")
    return name


class CatalogService:
    """商品・カテゴリの書き込み"""

    def __init__(self, db: Session, category_cache: Optional[CategoryCacheService] = None):
        self.db = db
        self.category_cache = category_cache

    def _commit(self, action: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"{action}エラー: {str(e)}")
            raise StoreError(f"{action}に失敗しました: {str(e)}") from e

    # ==================== 商品 ====================

    def get_product_by_id(self, product_id: str) -> Optional[Product]:
        """商品を1件取得（存在しなければ None）"""
        try:
            return self.db.get(Product, product_id)
        except SQLAlchemyError as e:
            raise StoreError(f"商品の取得に失敗しました: {str(e)}") from e

    def create_product(self, form: ProductForm) -> Product:
        """商品を新規登録"""
        validate_product_form(form)

        barcode = form.barcode.strip()
        if barcode and BarcodeLookupService(self.db).is_registered(barcode):
            logger.warning(f"同じバーコードの商品が既に存在します: {barcode}")

        now = datetime.now()
        product = Product(id=str(uuid.uuid4()), created_at=now, updated_at=now)
        apply_form(product, form, normalize_price(form.price))
        self.db.add(product)
        self._commit("商品登録")
        self.db.refresh(product)

        logger.info(f"商品を新規作成: {product.id} - {product.name} ¥{product.price}")
        return product

    def update_product(
        self,
        product_id: str,
        form: ProductForm,
        old_price: Union[Decimal, str, float],
    ) -> Product:
        """商品を更新（価格が変わった場合は履歴も記録）"""
        validate_product_form(form)
        return PriceHistoryRecorder(self.db).apply_update(product_id, form, old_price)

    def delete_product(self, product_id: str) -> None:
        """商品を削除（価格履歴は残す）"""
        product = self.get_product_by_id(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)

        self.db.delete(product)
        self._commit("商品削除")
        logger.info(f"商品を削除: {product_id}")

    # ==================== カテゴリ ====================

    def list_categories(self) -> List[CategoryResponse]:
        """カテゴリ一覧（sort_order 昇順）"""
        if self.category_cache is not None:
            cached = self.category_cache.get()
            if cached is not None:
                return cached

        try:
            rows = self.db.scalars(
                select(Category).order_by(Category.sort_order.asc(), Category.created_at.asc())
            ).all()
        except SQLAlchemyError as e:
            logger.error(f"カテゴリ取得エラー: {str(e)}")
            raise StoreError(f"カテゴリの取得に失敗しました: {str(e)}") from e

        categories = [CategoryResponse.model_validate(c) for c in rows]
        if self.category_cache is not None:
            self.category_cache.set(categories)
        return categories

    def _get_category(self, category_id: str) -> Category:
        try:
            category = self.db.get(Category, category_id)
        except SQLAlchemyError as e:
            raise StoreError(f"カテゴリの取得に失敗しました: {str(e)}") from e
        if category is None:
            raise CategoryNotFoundError(category_id)
        return category

    def _invalidate_categories(self) -> None:
        if self.category_cache is not None:
            self.category_cache.invalidate()

    def create_category(self, name: str) -> Category:
        category = Category(id=str(uuid.uuid4()), name=_validate_category_name(name))
        self.db.add(category)
        self._commit("カテゴリ作成")
        self.db.refresh(category)
        self._invalidate_categories()

        logger.info(f"カテゴリを作成: {category.id} - {category.name}")
        return category

    def update_category(self, category_id: str, name: str) -> Category:
        new_name = _validate_category_name(name)
        category = self._get_category(category_id)
        category.name = new_name
        self._commit("カテゴリ更新")
        self.db.refresh(category)
        self._invalidate_categories()

        logger.info(f"カテゴリ名を変更: {category.id} - {category.name}")
        return category

    def delete_category(self, category_id: str) -> int:
        """
        カテゴリを削除

        所属していた商品は削除せず、category_id を NULL（未分類）に戻す。
        付け替えとカテゴリ削除は同一トランザクション。

        Returns:
            未分類に戻した商品数
        """
        category = self._get_category(category_id)
        try:
            result = self.db.execute(
                update(Product)
                .where(Product.category_id == category_id)
                .values(category_id=None)
                .execution_options(synchronize_session="evaluate")
            )
            self.db.delete(category)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"カテゴリ削除エラー: {str(e)}")
            raise StoreError(f"カテゴリの削除に失敗しました: {str(e)}") from e
        self._commit("カテゴリ削除")
        self._invalidate_categories()

        reclassified = result.rowcount or 0
        logger.info(f"カテゴリを削除: {category_id}（未分類に戻した商品: {reclassified}件）")
        return reclassified
