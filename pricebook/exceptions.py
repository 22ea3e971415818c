"""
カタログ共通の例外

サーバー側のサービスとクライアント側（API クライアント / リスト同期）で
同じ例外クラスを使う。
"""

from typing import Optional, Sequence


class CatalogError(Exception):
    """カタログ関連エラーの基底クラス"""

    pass


class CatalogValidationError(CatalogError):
    """入力値エラー（ストアへ書き込む前に検出）"""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class ProductNotFoundError(CatalogError):
    """更新・削除対象の商品が存在しない"""

    def __init__(self, product_id: str):
        super().__init__(f"商品が見つかりません: {product_id}")
        self.product_id = product_id


class CategoryNotFoundError(CatalogError):
    """更新・削除対象のカテゴリが存在しない"""

    def __init__(self, category_id: str):
        super().__init__(f"カテゴリが見つかりません: {category_id}")
        self.category_id = category_id


class AmbiguousBarcodeError(CatalogError):
    """同じバーコードを持つ商品が複数ある"""

    def __init__(self, barcode: str, product_ids: Sequence[str] = ()):
        super().__init__(f"バーコードが複数の商品に一致しました: {barcode}")
        self.barcode = barcode
        self.product_ids = list(product_ids)


class StoreError(CatalogError):
    """ストア（DB / ネットワーク）のエラー"""

    pass


class UploadError(CatalogError):
    """画像アップロードのエラー"""

    def __init__(self, message: str, too_large: bool = False):
        super().__init__(message)
        self.too_large = too_large


class IllegalTransitionError(CatalogError):
    """リスト同期の状態遷移エラー"""

    pass
