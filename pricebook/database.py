"""
データベース接続コンテキスト

エンジンとセッションファクトリーをまとめた Database オブジェクトを
起動時に一度だけ生成し、必要なコンポーネントへ明示的に渡す。
"""

import logging
from typing import Any, Iterator, Optional

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from pricebook.models.base import Base

logger = logging.getLogger(__name__)


class Database:
    """エンジン + セッションファクトリー"""

    def __init__(self, url: str, echo: bool = False, **engine_kwargs: Any):
        connect_args = engine_kwargs.pop("connect_args", {})
        if url.startswith("sqlite"):
            # FastAPI のスレッドプールから同一接続を使うため
            connect_args.setdefault("check_same_thread", False)
        else:
            engine_kwargs.setdefault("pool_size", 5)
            engine_kwargs.setdefault("max_overflow", 10)
            engine_kwargs.setdefault("pool_recycle", 3600)
            engine_kwargs.setdefault("pool_pre_ping", True)

        self.url = url
        self.engine: Engine = create_engine(
            url, echo=echo, connect_args=connect_args, **engine_kwargs
        )
        # セッションファクトリー
        self.SessionLocal = sessionmaker(
            autocommit=False, autoflush=False, expire_on_commit=False, bind=self.engine
        )

    def create_all(self) -> None:
        """テーブルを作成（存在するものはスキップ）"""
        Base.metadata.create_all(bind=self.engine)

    def drop_all(self) -> None:
        Base.metadata.drop_all(bind=self.engine)

    def ping(self) -> bool:
        """接続確認"""
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True

    def session(self) -> Session:
        return self.SessionLocal()

    def dispose(self) -> None:
        self.engine.dispose()


# 依存性注入用のジェネレータ
def get_db(request: Request) -> Iterator[Session]:
    """
    FastAPIの依存性注入で使用するDBセッション

    create_app() が app.state.database に格納した Database から
    リクエストごとにセッションを払い出す。

    使用例:
        @router.get("/api/products")
        def list_products(db: Session = Depends(get_db)):
            ...
    """
    database: Optional[Database] = getattr(request.app.state, "database", None)
    if database is None:
        raise RuntimeError("Database is not configured on app.state")

    db = database.session()
    try:
        yield db
    finally:
        db.close()
