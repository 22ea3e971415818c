"""
FastAPI メインアプリケーション
pricebook - 家庭用の商品価格管理
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError

load_dotenv()

from pricebook.config import Settings, settings as default_settings
from pricebook.database import Database
from pricebook.routers.categories import router as categories_router
from pricebook.routers.products import router as products_router
from pricebook.routers.uploads import router as uploads_router
from pricebook.services.cache_service import CategoryCacheService
from pricebook.services.image_storage import LocalImageStorage

# ログ設定
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
) -> FastAPI:
    """
    アプリケーションを組み立てる

    Database・キャッシュ・画像ストレージはここで一度だけ生成し、
    app.state 経由で各エンドポイントへ注入する。

    Args:
        settings: 設定（省略時は環境変数から）
        database: 既存の Database（テストで差し替える場合）
    """
    settings = settings or default_settings
    owns_database = database is None
    if database is None:
        database = Database(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)

    # ============================================
    # ライフサイクル管理
    # ============================================
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """アプリケーションの起動・終了処理"""
        logger.info("🚀 pricebook starting...")
        logger.info(f"Database engine: {database.engine.url}")

        Path(settings.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)

        # テーブル作成 + DB接続テスト
        try:
            database.create_all()
            database.ping()
            logger.info("✅ Database connection test successful")
        except SQLAlchemyError as e:
            logger.error(f"❌ Database connection test failed: {e}")

        yield

        logger.info("👋 pricebook shutting down...")
        if owns_database:
            database.dispose()

    app = FastAPI(
        title="pricebook API",
        description="家庭用の商品価格管理 - 価格履歴つきカタログ",
        version=settings.VERSION,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.database = database
    app.state.category_cache = CategoryCacheService(ttl=settings.CATEGORY_CACHE_TTL)
    app.state.image_storage = LocalImageStorage(
        root=settings.UPLOAD_DIR,
        public_base_url=settings.PUBLIC_BASE_URL,
        max_bytes=settings.MAX_UPLOAD_BYTES,
    )

    # CORS設定
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            settings.FRONTEND_URL,
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        max_age=3600,
    )

    # ルータ登録
    app.include_router(products_router)
    app.include_router(categories_router)
    app.include_router(uploads_router)

    # アップロード画像の配信（ディレクトリは起動時に作成）
    app.mount(
        "/uploads",
        StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False),
        name="uploads",
    )

    # ============================================
    # 基本エンドポイント
    # ============================================
    @app.get("/api/health")
    async def health_check():
        """ヘルスチェックエンドポイント"""
        return {
            "status": "ok",
            "service": settings.PROJECT_NAME,
            "version": settings.VERSION,
            "timestamp": datetime.now().isoformat(),
        }

    @app.get("/api/db/health")
    def db_health_check(request: Request):
        """データベース接続確認エンドポイント"""
        try:
            request.app.state.database.ping()
            return {"status": "connected", "dialect": database.engine.dialect.name}
        except SQLAlchemyError as e:
            logger.error(f"Database connection failed: {e}")
            return {"status": "error", "message": str(e)}

    @app.get("/api/cache/stats")
    async def get_cache_stats(request: Request):
        """キャッシュ統計情報を取得（管理・モニタリング用）"""
        return {
            "status": "ok",
            "cache": request.app.state.category_cache.get_stats(),
        }

    return app


app = create_app()


# ============================================
# 開発サーバー起動
# ============================================
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "pricebook.main:app", host="0.0.0.0", port=8000, reload=True, log_level="info"
    )
