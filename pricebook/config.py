"""Application configuration"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    PROJECT_NAME: str = "pricebook"
    VERSION: str = "0.1.0"
    DEBUG: bool = False

    # database
    DATABASE_URL: str = "sqlite:///./pricebook.db"
    DATABASE_ECHO: bool = False

    # 商品一覧
    PAGE_SIZE: int = 20
    CATEGORY_CACHE_TTL: int = 5 * 60

    # 画像アップロード
    UPLOAD_DIR: str = "./uploads"
    PUBLIC_BASE_URL: str = "http://localhost:8000"
    MAX_UPLOAD_BYTES: int = 5 * 1024 * 1024

    # Frontend
    FRONTEND_URL: str = "http://localhost:3000"

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=True, extra="ignore"
    )


settings = Settings()
