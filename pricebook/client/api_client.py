"""pricebook API Client.

pricebook REST API 用の非同期 HTTP クライアント。
HTTP エラーはサーバー側と同じカタログ例外に変換して送出する。
"""

import logging
from decimal import Decimal
from typing import Any, Callable, List, Optional, TypeVar, Union
from urllib.parse import quote

import httpx

from pricebook.exceptions import (
    AmbiguousBarcodeError,
    CatalogError,
    CatalogValidationError,
    CategoryNotFoundError,
    ProductNotFoundError,
    StoreError,
    UploadError,
)
from pricebook.schemas.category import CategoryResponse
from pricebook.schemas.price_history import PriceHistoryResponse
from pricebook.schemas.product import (
    ProductForm,
    ProductPage,
    ProductQuery,
    ProductResponse,
    ProductUpdateRequest,
)
from pricebook.services.catalog import validate_product_form

logger = logging.getLogger(__name__)

NotFoundFactory = Callable[[], CatalogError]
T = TypeVar("T")


class CatalogAPIClient:
    """pricebook REST API クライアント

    ListSyncController の商品ソースとしても使う（query / update_product /
    delete_product）。
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Args:
            base_url: API のベース URL
            timeout: リクエストタイムアウト（秒）
            transport: httpx のトランスポート（テストで ASGI アプリに繋ぐ場合）
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
                headers={"Accept": "application/json"},
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "CatalogAPIClient":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    @staticmethod
    def _error_from(
        response: httpx.Response, not_found: Optional[NotFoundFactory]
    ) -> CatalogError:
        try:
            detail = response.json().get("detail", response.text)
        except (ValueError, AttributeError):
            detail = response.text
        message = detail if isinstance(detail, str) else str(detail)
        code = response.status_code

        if code == 404 and not_found is not None:
            return not_found()
        if code == 409:
            return AmbiguousBarcodeError(message)
        if code == 413:
            return UploadError(message, too_large=True)
        if code in (400, 422):
            return CatalogValidationError(message)
        return StoreError(f"HTTP {code}: {message}")

    async def _request(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: Optional[dict[str, Any]] = None,
        files: Any = None,
        not_found: Optional[NotFoundFactory] = None,
    ) -> httpx.Response:
        """
        API リクエスト

        Raises:
            StoreError: 通信エラー / 5xx
            CatalogError: その他 4xx（ステータスに応じたサブクラス）
        """
        client = await self._get_client()
        try:
            logger.debug(f"API request: {method} {path} params={params}")
            response = await client.request(
                method=method, url=path, json=json, params=params, files=files
            )
        except httpx.HTTPError as e:
            logger.error(f"API通信エラー: {method} {path} - {str(e)}")
            raise StoreError(f"通信エラー: {str(e)}") from e

        if response.status_code >= 400:
            raise self._error_from(response, not_found)
        return response

    @staticmethod
    def _parse(response: httpx.Response, parse: Callable[[Any], T]) -> T:
        """
        レスポンス本文を読み取る

        Raises:
            StoreError: 本文が JSON でない / 想定した形でない
        """
        try:
            return parse(response.json())
        except (ValueError, TypeError, KeyError) as e:
            # pydantic の ValidationError も ValueError
            logger.error(f"不正なAPIレスポンス: {response.request.url} - {str(e)}")
            raise StoreError(f"不正なレスポンス: {str(e)}") from e

    # ==================== 商品 ====================

    async def query(self, params: ProductQuery) -> ProductPage:
        """商品一覧の1ページを取得"""
        response = await self._request("GET", "/api/products", params=params.to_params())
        return self._parse(response, ProductPage.model_validate)

    async def get_product(self, product_id: str) -> Optional[ProductResponse]:
        """商品詳細（存在しなければ None）"""
        try:
            response = await self._request(
                "GET",
                f"/api/products/{quote(product_id, safe='')}",
                not_found=lambda: ProductNotFoundError(product_id),
            )
        except ProductNotFoundError:
            return None
        return self._parse(response, ProductResponse.model_validate)

    async def find_by_barcode(self, code: str) -> Optional[ProductResponse]:
        """バーコード検索（未登録なら None、重複は AmbiguousBarcodeError）"""
        code = (code or "").strip()
        if not code:
            return None
        try:
            response = await self._request("GET", f"/api/products/barcode/{quote(code, safe='')}")
        except AmbiguousBarcodeError as e:
            raise AmbiguousBarcodeError(code) from e
        return self._parse(
            response, lambda data: ProductResponse.model_validate(data) if data else None
        )

    async def create_product(self, form: ProductForm) -> ProductResponse:
        validate_product_form(form)
        response = await self._request("POST", "/api/products", json=form.model_dump())
        return self._parse(response, ProductResponse.model_validate)

    async def update_product(
        self,
        product_id: str,
        form: ProductForm,
        old_price: Union[Decimal, str, float],
    ) -> ProductResponse:
        validate_product_form(form)
        body = ProductUpdateRequest(form=form, old_price=Decimal(str(old_price)))
        response = await self._request(
            "PUT",
            f"/api/products/{quote(product_id, safe='')}",
            json=body.model_dump(mode="json"),
            not_found=lambda: ProductNotFoundError(product_id),
        )
        return self._parse(response, ProductResponse.model_validate)

    async def delete_product(self, product_id: str) -> None:
        await self._request(
            "DELETE",
            f"/api/products/{quote(product_id, safe='')}",
            not_found=lambda: ProductNotFoundError(product_id),
        )

    async def get_price_history(self, product_id: str) -> List[PriceHistoryResponse]:
        response = await self._request(
            "GET", f"/api/products/{quote(product_id, safe='')}/price-history"
        )
        return self._parse(
            response, lambda rows: [PriceHistoryResponse.model_validate(row) for row in rows]
        )

    # ==================== カテゴリ ====================

    async def list_categories(self) -> List[CategoryResponse]:
        response = await self._request("GET", "/api/categories")
        return self._parse(
            response, lambda rows: [CategoryResponse.model_validate(row) for row in rows]
        )

    async def create_category(self, name: str) -> CategoryResponse:
        response = await self._request("POST", "/api/categories", json={"name": name})
        return self._parse(response, CategoryResponse.model_validate)

    async def update_category(self, category_id: str, name: str) -> CategoryResponse:
        response = await self._request(
            "PUT",
            f"/api/categories/{quote(category_id, safe='')}",
            json={"name": name},
            not_found=lambda: CategoryNotFoundError(category_id),
        )
        return self._parse(response, CategoryResponse.model_validate)

    async def delete_category(self, category_id: str) -> None:
        await self._request(
            "DELETE",
            f"/api/categories/{quote(category_id, safe='')}",
            not_found=lambda: CategoryNotFoundError(category_id),
        )

    # ==================== 画像 ====================

    async def upload_image(self, filename: str, content: bytes, content_type: str) -> str:
        """画像をアップロードして公開 URL を返す"""
        try:
            response = await self._request(
                "POST",
                "/api/uploads/images",
                files={"file": (filename, content, content_type)},
            )
        except CatalogValidationError as e:
            raise UploadError(str(e)) from e
        return self._parse(response, lambda body: str(body["url"]))
