"""
Products API エンドポイント
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from pricebook.dependencies import (
    get_barcode_service,
    get_catalog_service,
    get_price_history_recorder,
    get_query_engine,
    to_http_exception,
)
from pricebook.exceptions import CatalogError
from pricebook.schemas.price_history import PriceHistoryResponse
from pricebook.schemas.product import (
    ProductForm,
    ProductPage,
    ProductQuery,
    ProductResponse,
    ProductUpdateRequest,
    SortMode,
)
from pricebook.services.barcode import BarcodeLookupService
from pricebook.services.catalog import CatalogService
from pricebook.services.price_history import PriceHistoryRecorder
from pricebook.services.query_engine import QueryEngine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/products", tags=["Products"])


@router.get("", response_model=ProductPage)
def list_products(
    search: Optional[str] = Query(None, description="検索キーワード（商品名・バーコード）"),
    category_id: Optional[str] = Query(None, description="カテゴリID"),
    page: int = Query(0, ge=0, description="ページ番号（0始まり）"),
    sort: SortMode = Query(SortMode.RECENCY, description="並び順"),
    engine: QueryEngine = Depends(get_query_engine),
):
    """
    商品一覧（検索・カテゴリ絞り込み・並び替え・ページ分割）

    Returns:
        data: 商品リスト（最大20件）
        hasMore: 次のページがあるか
    """
    params = ProductQuery(search=search, category_id=category_id, page=page, sort=sort)
    try:
        return engine.query(params)
    except CatalogError as e:
        raise to_http_exception(e)


@router.get("/barcode/{code:path}", response_model=Optional[ProductResponse])
def find_by_barcode(
    code: str,
    service: BarcodeLookupService = Depends(get_barcode_service),
):
    """
    バーコードの完全一致で商品を取得

    未登録なら null。複数一致した場合は 409。
    QR / Code128 の値は "/" を含むことがあるため path として受け取る。
    """
    try:
        return service.find_by_barcode(code)
    except CatalogError as e:
        raise to_http_exception(e)


@router.get("/{product_id}", response_model=ProductResponse)
def get_product(
    product_id: str,
    service: CatalogService = Depends(get_catalog_service),
):
    """商品詳細"""
    try:
        product = service.get_product_by_id(product_id)
    except CatalogError as e:
        raise to_http_exception(e)

    if product is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="商品が見つかりません")
    return product


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
def create_product(
    form: ProductForm,
    service: CatalogService = Depends(get_catalog_service),
):
    """商品を登録"""
    try:
        return service.create_product(form)
    except CatalogError as e:
        raise to_http_exception(e)


@router.put("/{product_id}", response_model=ProductResponse)
def update_product(
    product_id: str,
    request: ProductUpdateRequest,
    service: CatalogService = Depends(get_catalog_service),
):
    """
    商品を更新

    old_price（編集開始時の価格）と比べて価格が変わっていれば
    価格履歴を1件追加する。
    """
    try:
        return service.update_product(product_id, request.form, request.old_price)
    except CatalogError as e:
        raise to_http_exception(e)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(
    product_id: str,
    service: CatalogService = Depends(get_catalog_service),
):
    """商品を削除"""
    try:
        service.delete_product(product_id)
    except CatalogError as e:
        raise to_http_exception(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{product_id}/price-history", response_model=List[PriceHistoryResponse])
def get_price_history(
    product_id: str,
    recorder: PriceHistoryRecorder = Depends(get_price_history_recorder),
):
    """価格履歴（新しい順）"""
    try:
        return recorder.get_price_history(product_id)
    except CatalogError as e:
        raise to_http_exception(e)
