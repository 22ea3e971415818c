"""
画像アップロード API
"""

from fastapi import APIRouter, Depends, File, UploadFile
from pydantic import BaseModel

from pricebook.dependencies import get_image_storage, to_http_exception
from pricebook.exceptions import CatalogError
from pricebook.services.image_storage import LocalImageStorage

router = APIRouter(prefix="/api/uploads", tags=["Uploads"])


class UploadResponse(BaseModel):
    """アップロード結果"""
    url: str


@router.post("/images", response_model=UploadResponse)
async def upload_image(
    file: UploadFile = File(..., description="商品画像"),
    storage: LocalImageStorage = Depends(get_image_storage),
):
    """商品画像をアップロードして公開 URL を返す"""
    content = await file.read()
    try:
        url = storage.upload(file.filename or "", content, file.content_type or "")
    except CatalogError as e:
        raise to_http_exception(e)
    return UploadResponse(url=url)
