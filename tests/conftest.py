"""
テスト用の共通設定・フィクスチャ
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from pricebook.client.api_client import CatalogAPIClient
from pricebook.config import Settings
from pricebook.database import Database
from pricebook.main import create_app
from pricebook.schemas.product import ProductForm, ProductResponse
from pricebook.services.cache_service import CategoryCacheService
from pricebook.services.catalog import CatalogService


@pytest.fixture(scope="function")
def database():
    """テスト用のインメモリSQLiteデータベース"""
    db = Database("sqlite://", poolclass=StaticPool)
    db.create_all()
    try:
        yield db
    finally:
        db.drop_all()
        db.dispose()


@pytest.fixture(scope="function")
def db_session(database):
    """各テスト用のDBセッション"""
    session = database.session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def catalog(db_session):
    """キャッシュ付きのカタログサービス"""
    return CatalogService(db_session, category_cache=CategoryCacheService())


@pytest.fixture
def make_product(catalog):
    """商品をDBに登録するファクトリ"""

    def _make(name: str = "牛奶", price: str = "10.5", **fields) -> ProductResponse:
        form = ProductForm(name=name, price=price, **fields)
        return ProductResponse.model_validate(catalog.create_product(form))

    return _make


@pytest.fixture
def settings(tmp_path):
    """アップロード先を一時ディレクトリにした設定"""
    return Settings(
        DATABASE_URL="sqlite://",
        UPLOAD_DIR=str(tmp_path / "uploads"),
        PUBLIC_BASE_URL="http://testserver",
        MAX_UPLOAD_BYTES=1024,
    )


@pytest.fixture
def app(settings, database):
    return create_app(settings=settings, database=database)


@pytest.fixture(scope="function")
def client(app):
    """テスト用のAPIクライアント"""
    with TestClient(app) as test_client:
        yield test_client


def product_response(
    index: int,
    price: str = "1.00",
    name: Optional[str] = None,
    category_id: Optional[str] = None,
) -> ProductResponse:
    """DB を通さない商品（リスト同期のテスト用）"""
    now = datetime(2024, 1, 1, 12, 0, 0)
    return ProductResponse(
        id=f"p{index}",
        name=name or f"product-{index}",
        price=Decimal(price),
        unit="件",
        category_id=category_id,
        created_at=now,
        updated_at=now,
    )


@pytest_asyncio.fixture
async def api(app):
    """ASGI アプリに直接つないだ API クライアント"""
    async with CatalogAPIClient(
        "http://testserver", transport=httpx.ASGITransport(app=app)
    ) as client:
        yield client
