"""
カテゴリ一覧キャッシュサービス
TTL付きメモリキャッシュでカテゴリ一覧を保持し、カテゴリ更新時に破棄する
"""

import threading
from typing import Any, Dict, List, Optional
from cachetools import TTLCache

from pricebook.schemas.category import CategoryResponse


class CategoryCacheService:
    """カテゴリ一覧のメモリキャッシュ"""

    # デフォルトTTL: 5分
    DEFAULT_TTL = 5 * 60
    _KEY = "categories"

    def __init__(self, ttl: int = DEFAULT_TTL):
        """
        Args:
            ttl: キャッシュ有効期限（秒）
        """
        self._cache: TTLCache = TTLCache(maxsize=1, ttl=ttl)
        self._lock = threading.Lock()
        self._stats = {
            "hits": 0,
            "misses": 0,
            "sets": 0,
            "invalidations": 0,
        }

    def get(self) -> Optional[List[CategoryResponse]]:
        """
        キャッシュからカテゴリ一覧を取得

        Returns:
            カテゴリ一覧 or None（キャッシュミス）
        """
        with self._lock:
            result = self._cache.get(self._KEY)
            if result is not None:
                self._stats["hits"] += 1
                return list(result)
            self._stats["misses"] += 1
            return None

    def set(self, categories: List[CategoryResponse]) -> None:
        """カテゴリ一覧をキャッシュに保存"""
        with self._lock:
            self._cache[self._KEY] = list(categories)
            self._stats["sets"] += 1

    def invalidate(self) -> bool:
        """
        キャッシュを破棄（カテゴリの追加・変更・削除時）

        Returns:
            破棄したかどうか
        """
        with self._lock:
            self._stats["invalidations"] += 1
            if self._KEY in self._cache:
                del self._cache[self._KEY]
                return True
            return False

    def get_stats(self) -> Dict[str, Any]:
        """
        キャッシュ統計を取得

        Returns:
            統計情報
        """
        with self._lock:
            total_requests = self._stats["hits"] + self._stats["misses"]
            hit_rate = (
                self._stats["hits"] / total_requests * 100
                if total_requests > 0 else 0
            )
            return {
                **self._stats,
                "hit_rate": round(hit_rate, 2),
                "cached": self._KEY in self._cache,
                "ttl_seconds": self._cache.ttl,
            }
