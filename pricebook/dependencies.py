"""依存注入モジュール"""
import logging

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from pricebook.config import Settings
from pricebook.database import get_db
from pricebook.exceptions import (
    AmbiguousBarcodeError,
    CatalogError,
    CatalogValidationError,
    CategoryNotFoundError,
    ProductNotFoundError,
    StoreError,
    UploadError,
)
from pricebook.services.barcode import BarcodeLookupService
from pricebook.services.cache_service import CategoryCacheService
from pricebook.services.catalog import CatalogService
from pricebook.services.image_storage import LocalImageStorage
from pricebook.services.price_history import PriceHistoryRecorder
from pricebook.services.query_engine import QueryEngine

logger = logging.getLogger(__name__)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_category_cache(request: Request) -> CategoryCacheService:
    return request.app.state.category_cache


def get_image_storage(request: Request) -> LocalImageStorage:
    return request.app.state.image_storage


def get_query_engine(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> QueryEngine:
    return QueryEngine(db, page_size=settings.PAGE_SIZE)


def get_catalog_service(
    db: Session = Depends(get_db),
    cache: CategoryCacheService = Depends(get_category_cache),
) -> CatalogService:
    return CatalogService(db, category_cache=cache)


def get_price_history_recorder(db: Session = Depends(get_db)) -> PriceHistoryRecorder:
    return PriceHistoryRecorder(db)


def get_barcode_service(db: Session = Depends(get_db)) -> BarcodeLookupService:
    return BarcodeLookupService(db)


def to_http_exception(e: CatalogError) -> HTTPException:
    """カタログ例外を HTTP エラーに変換"""
    if isinstance(e, CatalogValidationError):
        logger.warning(f"入力エラー: {str(e)}")
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if isinstance(e, (ProductNotFoundError, CategoryNotFoundError)):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, AmbiguousBarcodeError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    if isinstance(e, UploadError):
        code = (
            status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
            if e.too_large
            else status.HTTP_400_BAD_REQUEST
        )
        return HTTPException(status_code=code, detail=str(e))
    if isinstance(e, StoreError):
        logger.error(f"ストアエラー: {str(e)}")
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    logger.error(f"予期しないエラー: {str(e)}")
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
