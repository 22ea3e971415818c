"""Category schemas"""
from datetime import datetime

from pydantic import Field

from .base import BaseSchema


class CategoryBase(BaseSchema):
    """Base category schema"""
    name: str = Field(..., max_length=255)


class CategoryCreate(CategoryBase):
    """Schema for creating a category"""


class CategoryUpdate(CategoryBase):
    """Schema for renaming a category"""


class CategoryResponse(CategoryBase):
    """Schema for category response"""
    id: str
    sort_order: int = 0
    created_at: datetime
