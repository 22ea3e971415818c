"""
Categories API エンドポイント
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Response, status

from pricebook.dependencies import get_catalog_service, to_http_exception
from pricebook.exceptions import CatalogError
from pricebook.schemas.category import CategoryCreate, CategoryResponse, CategoryUpdate
from pricebook.services.catalog import CatalogService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/categories", tags=["Categories"])


@router.get("", response_model=List[CategoryResponse])
def list_categories(service: CatalogService = Depends(get_catalog_service)):
    """カテゴリ一覧（表示順）"""
    try:
        return service.list_categories()
    except CatalogError as e:
        raise to_http_exception(e)


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
def create_category(
    request: CategoryCreate,
    service: CatalogService = Depends(get_catalog_service),
):
    """カテゴリを追加"""
    try:
        return service.create_category(request.name)
    except CatalogError as e:
        raise to_http_exception(e)


@router.put("/{category_id}", response_model=CategoryResponse)
def update_category(
    category_id: str,
    request: CategoryUpdate,
    service: CatalogService = Depends(get_catalog_service),
):
    """カテゴリ名を変更"""
    try:
        return service.update_category(category_id, request.name)
    except CatalogError as e:
        raise to_http_exception(e)


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_category(
    category_id: str,
    service: CatalogService = Depends(get_catalog_service),
):
    """
    カテゴリを削除

    所属商品は削除されず「未分類」になる。
    """
    try:
        service.delete_category(category_id)
    except CatalogError as e:
        raise to_http_exception(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
