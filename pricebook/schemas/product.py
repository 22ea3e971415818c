"""Product schemas"""
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .base import BaseSchema


class SortMode(str, Enum):
    """一覧の並び順"""
    RECENCY = "recency"
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"

    def next(self) -> "SortMode":
        """トグル順: recency → price_asc → price_desc → recency"""
        order = list(SortMode)
        return order[(order.index(self) + 1) % len(order)]


class ProductForm(BaseModel):
    """
    商品フォームの入力値

    入力欄の文字列をそのまま受け取る。空文字は保存時に NULL になる。
    """
    name: str = ""
    barcode: str = ""
    price: str = ""
    unit: str = ""
    category_id: str = ""
    note: str = ""
    image_url: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def coerce_to_str(cls, v: Any) -> str:
        """数値や None をフォーム文字列に揃える"""
        if v is None:
            return ""
        return str(v)


class ProductQuery(BaseModel):
    """一覧取得パラメータ"""
    search: Optional[str] = None
    category_id: Optional[str] = None
    page: int = Field(0, ge=0)
    sort: SortMode = SortMode.RECENCY

    def to_params(self) -> dict[str, Any]:
        """HTTP クエリパラメータ（None は除外）"""
        params: dict[str, Any] = {"page": self.page, "sort": self.sort.value}
        if self.search:
            params["search"] = self.search
        if self.category_id:
            params["category_id"] = self.category_id
        return params


class ProductResponse(BaseSchema):
    """Schema for product response"""
    id: str
    name: str
    barcode: Optional[str] = None
    price: Decimal
    unit: str
    category_id: Optional[str] = None
    image_url: Optional[str] = None
    note: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ProductPage(BaseModel):
    """一覧の1ページ分"""
    data: List[ProductResponse]
    has_more: bool = Field(..., alias="hasMore")

    model_config = ConfigDict(populate_by_name=True)


class ProductUpdateRequest(BaseModel):
    """商品更新リクエスト（編集前の価格を含む）"""
    form: ProductForm
    old_price: Decimal = Field(..., ge=0)
