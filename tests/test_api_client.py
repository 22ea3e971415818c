"""
API クライアントのテスト

ASGI アプリに直接つないで実際のエンドポイントを通す。
"""

from decimal import Decimal

import httpx
import pytest

from pricebook.client.api_client import CatalogAPIClient
from pricebook.exceptions import (
    AmbiguousBarcodeError,
    CatalogValidationError,
    CategoryNotFoundError,
    ProductNotFoundError,
    StoreError,
    UploadError,
)
from pricebook.schemas.product import ProductForm, ProductQuery, SortMode


class TestProductCalls:
    """商品 API の呼び出し"""

    @pytest.mark.asyncio
    async def test_create_update_and_history(self, api):
        created = await api.create_product(ProductForm(name="酸奶", price="10.5"))
        assert created.price == Decimal("10.50")

        updated = await api.update_product(
            created.id, ProductForm(name="酸奶", price="12"), created.price
        )
        assert updated.price == Decimal("12.00")

        history = await api.get_price_history(created.id)
        assert len(history) == 1
        assert history[0].old_price == Decimal("10.50")
        assert history[0].new_price == Decimal("12.00")

    @pytest.mark.asyncio
    async def test_query_pages(self, api):
        for i in range(21):
            await api.create_product(ProductForm(name=f"item-{i}", price=str(i + 1)))

        first = await api.query(ProductQuery(sort=SortMode.PRICE_DESC))
        second = await api.query(ProductQuery(page=1, sort=SortMode.PRICE_DESC))

        assert len(first.data) == 20
        assert first.has_more is True
        assert first.data[0].price == Decimal("21.00")
        assert [p.price for p in second.data] == [Decimal("1.00")]
        assert second.has_more is False

    @pytest.mark.asyncio
    async def test_get_missing_product_returns_none(self, api):
        assert await api.get_product("missing") is None

    @pytest.mark.asyncio
    async def test_update_and_delete_missing_product(self, api):
        with pytest.raises(ProductNotFoundError):
            await api.update_product("missing", ProductForm(name="x", price="1"), "1")
        with pytest.raises(ProductNotFoundError):
            await api.delete_product("missing")

    @pytest.mark.asyncio
    async def test_delete_product(self, api):
        created = await api.create_product(ProductForm(name="面包", price="8"))
        await api.delete_product(created.id)
        assert await api.get_product(created.id) is None


class TestBarcodeCalls:
    """バーコード検索"""

    @pytest.mark.asyncio
    async def test_unknown_and_found(self, api):
        assert await api.find_by_barcode("123") is None
        assert await api.find_by_barcode("  ") is None

        created = await api.create_product(
            ProductForm(name="酱油", price="9.9", barcode="6901234567890")
        )
        found = await api.find_by_barcode("6901234567890")
        assert found is not None
        assert found.id == created.id

    @pytest.mark.asyncio
    async def test_duplicate_barcode(self, api):
        await api.create_product(ProductForm(name="A", price="1", barcode="555"))
        await api.create_product(ProductForm(name="B", price="1", barcode="555"))

        with pytest.raises(AmbiguousBarcodeError) as exc_info:
            await api.find_by_barcode("555")
        assert exc_info.value.barcode == "555"

    @pytest.mark.asyncio
    async def test_barcode_with_slash(self, api):
        """QR などの "/" を含むコード"""
        created = await api.create_product(ProductForm(name="茶叶", price="30", barcode="AB/12"))

        found = await api.find_by_barcode("AB/12")
        assert found is not None
        assert found.id == created.id
        assert await api.find_by_barcode("AB/13") is None


class TestCategoryCalls:
    """カテゴリ API の呼び出し"""

    @pytest.mark.asyncio
    async def test_category_lifecycle(self, api):
        category = await api.create_category("水果")
        renamed = await api.update_category(category.id, "生鲜")
        assert renamed.name == "生鲜"
        assert [c.name for c in await api.list_categories()] == ["生鲜"]

        await api.delete_category(category.id)
        assert await api.list_categories() == []

    @pytest.mark.asyncio
    async def test_missing_category(self, api):
        with pytest.raises(CategoryNotFoundError):
            await api.delete_category("missing")


class TestUploadCalls:
    """画像アップロード"""

    @pytest.mark.asyncio
    async def test_upload(self, api):
        url = await api.upload_image("photo.png", b"\x89PNG", "image/png")
        assert url.startswith("http://testserver/uploads/products/")

    @pytest.mark.asyncio
    async def test_upload_errors(self, api, settings):
        with pytest.raises(UploadError) as exc_info:
            await api.upload_image("a.txt", b"hello", "text/plain")
        assert exc_info.value.too_large is False

        with pytest.raises(UploadError) as exc_info:
            await api.upload_image("big.png", b"x" * (settings.MAX_UPLOAD_BYTES + 1), "image/png")
        assert exc_info.value.too_large is True


class TestErrorMapping:
    """通信エラー・サーバーエラーの変換"""

    @pytest.mark.asyncio
    async def test_invalid_form_is_rejected_without_request(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(201, json={})

        async with CatalogAPIClient(
            "http://testserver", transport=httpx.MockTransport(handler)
        ) as api:
            with pytest.raises(CatalogValidationError):
                await api.create_product(ProductForm(name="", price="3"))
            with pytest.raises(CatalogValidationError):
                await api.update_product("p1", ProductForm(name="盐", price="abc"), "1")

        assert calls == []

    @pytest.mark.asyncio
    async def test_connection_error_becomes_store_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with CatalogAPIClient(
            "http://testserver", transport=httpx.MockTransport(handler)
        ) as api:
            with pytest.raises(StoreError):
                await api.query(ProductQuery())

    @pytest.mark.asyncio
    async def test_server_error_becomes_store_error(self):
        def handler(request):
            return httpx.Response(503, json={"detail": "database is locked"})

        async with CatalogAPIClient(
            "http://testserver", transport=httpx.MockTransport(handler)
        ) as api:
            with pytest.raises(StoreError) as exc_info:
                await api.query(ProductQuery())

        assert "database is locked" in str(exc_info.value)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            {"text": "<html>proxy</html>"},
            {"json": {"items": []}},
            {"json": None},
        ],
    )
    async def test_broken_body_becomes_store_error(self, body):
        """200 でも本文が壊れていればストアエラー"""

        def handler(request):
            return httpx.Response(200, **body)

        async with CatalogAPIClient(
            "http://testserver", transport=httpx.MockTransport(handler)
        ) as api:
            with pytest.raises(StoreError):
                await api.query(ProductQuery())
            with pytest.raises(StoreError):
                await api.list_categories()

    @pytest.mark.asyncio
    async def test_query_sends_only_set_params(self):
        seen = []

        def handler(request):
            seen.append(dict(request.url.params))
            return httpx.Response(200, json={"data": [], "hasMore": False})

        async with CatalogAPIClient(
            "http://testserver", transport=httpx.MockTransport(handler)
        ) as api:
            page = await api.query(ProductQuery(search="milk", page=2))

        assert page.data == []
        assert seen == [{"search": "milk", "page": "2", "sort": "recency"}]
