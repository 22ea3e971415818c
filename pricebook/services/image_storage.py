"""
商品画像ストレージ

アップロードされた画像をローカルディレクトリに保存し、公開 URL を返す。
"""
import logging
import secrets
import time
from pathlib import Path

from pricebook.exceptions import UploadError

logger = logging.getLogger(__name__)

# 画像の最大サイズ: 5MB
MAX_IMAGE_BYTES = 5 * 1024 * 1024
IMAGE_PREFIX = "products"

# 受け付ける画像形式と保存時の拡張子（SVG はスクリプトを含めるため不可）
IMAGE_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
    "image/heic": "heic",
    "image/heif": "heif",
    "image/bmp": "bmp",
}


class LocalImageStorage:
    """ローカルファイルシステムへの画像保存"""

    def __init__(self, root: str, public_base_url: str, max_bytes: int = MAX_IMAGE_BYTES):
        self.root = Path(root)
        self.public_base_url = public_base_url.rstrip("/")
        self.max_bytes = max_bytes

    def upload(self, filename: str, content: bytes, content_type: str) -> str:
        """
        画像を保存して公開 URL を返す

        Raises:
            UploadError: 画像以外 / サイズ超過 / 書き込み失敗
        """
        content_type = (content_type or "").split(";")[0].strip().lower()
        ext = IMAGE_EXTENSIONS.get(content_type)
        if ext is None:
            raise UploadError(f"画像ファイルを選択してください: {content_type}")
        if not content:
            raise UploadError("ファイルが空です")
        if len(content) > self.max_bytes:
            raise UploadError(
                f"画像サイズは {self.max_bytes:,} バイト以下にしてください",
                too_large=True,
            )

        name = f"{int(time.time() * 1000)}-{secrets.token_hex(6)}.{ext}"
        target = self.root / IMAGE_PREFIX / name

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)
        except OSError as e:
            logger.error(f"画像保存エラー: {target} - {str(e)}")
            raise UploadError(f"画像の保存に失敗しました: {str(e)}") from e

        url = f"{self.public_base_url}/uploads/{IMAGE_PREFIX}/{name}"
        logger.info(f"画像をアップロード: {filename} → {url} ({len(content):,} bytes)")
        return url
