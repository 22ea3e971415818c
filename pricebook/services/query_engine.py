"""
商品一覧クエリ

検索 + カテゴリ絞り込み + 並び替え + ページ分割をまとめて実行し、
1ページ分の商品と「続きがあるか」を返す。
"""

import logging
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pricebook.exceptions import StoreError
from pricebook.models.product import Product
from pricebook.schemas.product import ProductPage, ProductQuery, ProductResponse, SortMode

logger = logging.getLogger(__name__)

PAGE_SIZE = 20


def escape_like(text: str, escape: str = "\\") -> str:
    """LIKE のワイルドカードを文字として扱う"""
    return (
        text.replace(escape, escape * 2)
        .replace("%", f"{escape}%")
        .replace("_", f"{escape}_")
    )


class QueryEngine:
    """商品一覧のクエリを組み立てて実行する"""

    def __init__(self, db: Session, page_size: int = PAGE_SIZE):
        self.db = db
        self.page_size = page_size

    def _filtered(self, search: Optional[str], category_id: Optional[str]):
        stmt = select(Product)

        # キーワード検索（商品名 or バーコードの部分一致、大小文字無視）
        keyword = (search or "").strip()
        if keyword:
            pattern = f"%{escape_like(keyword)}%"
            stmt = stmt.where(
                or_(
                    Product.name.ilike(pattern, escape="\\"),
                    Product.barcode.ilike(pattern, escape="\\"),
                )
            )

        # カテゴリフィルタ
        if category_id:
            stmt = stmt.where(Product.category_id == category_id)

        return stmt

    @staticmethod
    def _ordered(stmt, sort: SortMode):
        # 同値は id で並べて順序を一意にする
        if sort == SortMode.PRICE_ASC:
            return stmt.order_by(Product.price.asc(), Product.id.asc())
        if sort == SortMode.PRICE_DESC:
            return stmt.order_by(Product.price.desc(), Product.id.asc())
        return stmt.order_by(Product.updated_at.desc(), Product.id.asc())

    def query(self, params: ProductQuery) -> ProductPage:
        """
        1ページ分の商品を取得

        Returns:
            ProductPage: data（最大 page_size 件）と hasMore
        Raises:
            StoreError: DB エラー
        """
        offset = params.page * self.page_size
        filtered = self._filtered(params.search, params.category_id)

        try:
            total = self.db.scalar(
                select(func.count()).select_from(filtered.subquery())
            ) or 0
            rows = self.db.scalars(
                self._ordered(filtered, params.sort).offset(offset).limit(self.page_size)
            ).all()
        except SQLAlchemyError as e:
            logger.error(f"商品一覧クエリエラー: {str(e)}")
            raise StoreError(f"商品一覧の取得に失敗しました: {str(e)}") from e

        has_more = offset + len(rows) < total
        logger.info(
            f"商品一覧取得: search={params.search!r}, category_id={params.category_id}, "
            f"sort={params.sort.value}, page={params.page} → {len(rows)}件（総数: {total}件）"
        )
        return ProductPage(
            data=[ProductResponse.model_validate(p) for p in rows],
            has_more=has_more,
        )
