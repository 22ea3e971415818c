"""Base schema"""
from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """ORM オブジェクトからの変換を許可する共通スキーマ"""
    model_config = ConfigDict(from_attributes=True)
