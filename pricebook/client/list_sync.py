"""
商品リスト同期コントローラー

表示中の商品リスト・検索条件・ページ位置を保持し、
- 条件変更時のデバウンス付き再読み込み（全件置き換え）
- 末尾到達時の追加読み込み（追記）
- 削除・更新が確定した後のリスト部分更新
を行う。リストの状態は ListState の遷移表に従ってのみ変化する。

古いレスポンスはリクエストごとの連番で判定して捨てる。
通信そのものはキャンセルしない。
"""

import asyncio
import logging
from dataclasses import dataclass, replace
from decimal import Decimal
from enum import Enum
from typing import Callable, Coroutine, Dict, FrozenSet, List, Optional, Protocol, Set, Tuple, Union

from pricebook.exceptions import CatalogError, IllegalTransitionError
from pricebook.schemas.product import (
    ProductForm,
    ProductPage,
    ProductQuery,
    ProductResponse,
    SortMode,
)

logger = logging.getLogger(__name__)

# 入力が止まってから再読み込みするまでの待ち時間（秒）
DEBOUNCE_SECONDS = 0.3


class ProductSource(Protocol):
    """コントローラーが使う商品ストア（CatalogAPIClient が実装）"""

    async def query(self, params: ProductQuery) -> ProductPage: ...

    async def update_product(
        self, product_id: str, form: ProductForm, old_price: Union[Decimal, str, float]
    ) -> ProductResponse: ...

    async def delete_product(self, product_id: str) -> None: ...


class ListState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADING_MORE = "loading_more"
    READY = "ready"
    ERROR = "error"


_TRANSITIONS: Dict[ListState, FrozenSet[ListState]] = {
    ListState.IDLE: frozenset({ListState.LOADING}),
    # 再読み込み中の再読み込みは後発が優先
    ListState.LOADING: frozenset({ListState.LOADING, ListState.READY, ListState.ERROR}),
    ListState.LOADING_MORE: frozenset({ListState.LOADING, ListState.READY, ListState.ERROR}),
    ListState.READY: frozenset({ListState.LOADING, ListState.LOADING_MORE}),
    ListState.ERROR: frozenset({ListState.LOADING}),
}


@dataclass(frozen=True)
class ListParams:
    """一覧の検索条件"""
    search: str = ""
    category_id: Optional[str] = None
    sort: SortMode = SortMode.RECENCY

    def to_query(self, page: int) -> ProductQuery:
        return ProductQuery(
            search=self.search.strip() or None,
            category_id=self.category_id or None,
            page=page,
            sort=self.sort,
        )


class ListSyncController:
    """表示中の商品リストとストアの同期"""

    def __init__(
        self,
        source: ProductSource,
        debounce: float = DEBOUNCE_SECONDS,
        on_error: Optional[Callable[[CatalogError], None]] = None,
        on_change: Optional[Callable[["ListSyncController"], None]] = None,
    ):
        """
        Args:
            source: 商品ストア
            debounce: 条件変更から再読み込みまでの待ち時間（秒）
            on_error: 読み込み失敗時の通知（トースト表示など）
            on_change: リストや状態が変わったときの通知
        """
        self._source = source
        self._debounce = debounce
        self._on_error = on_error
        self._on_change = on_change

        self._state = ListState.IDLE
        self._items: List[ProductResponse] = []
        self._page = 0
        self._has_more = False
        self._params = ListParams()
        # 表示中のリストを取得したときの条件（追加読み込みはこれを使う）
        self._loaded_params = self._params
        self._error: Optional[CatalogError] = None

        self._seq = 0
        self._alive = True
        self._timer: Optional[asyncio.TimerHandle] = None
        self._tasks: Set[asyncio.Task] = set()

    # ============================================
    # 参照
    # ============================================
    @property
    def state(self) -> ListState:
        return self._state

    @property
    def items(self) -> Tuple[ProductResponse, ...]:
        return tuple(self._items)

    @property
    def page(self) -> int:
        return self._page

    @property
    def has_more(self) -> bool:
        return self._has_more

    @property
    def params(self) -> ListParams:
        return self._params

    @property
    def error(self) -> Optional[CatalogError]:
        return self._error

    @property
    def is_alive(self) -> bool:
        return self._alive

    @property
    def can_load_more(self) -> bool:
        return self._alive and self._state == ListState.READY and self._has_more

    # ============================================
    # 状態遷移
    # ============================================
    def _transition(self, new_state: ListState) -> None:
        if new_state not in _TRANSITIONS[self._state]:
            raise IllegalTransitionError(
                f"不正な状態遷移: {self._state.value} → {new_state.value}"
            )
        logger.debug(f"状態遷移: {self._state.value} → {new_state.value}")
        self._state = new_state

    def _issue(self) -> int:
        self._seq += 1
        return self._seq

    def _is_current(self, seq: int) -> bool:
        return self._alive and seq == self._seq

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change(self)

    def _fail(self, error: CatalogError) -> None:
        self._error = error
        self._transition(ListState.ERROR)
        logger.error(f"商品リストの読み込みに失敗: {str(error)}")
        if self._on_error is not None:
            self._on_error(error)
        self._notify()

    # ============================================
    # 検索条件の変更（デバウンス付き）
    # ============================================
    def set_search(self, text: str) -> None:
        self._update_params(search=text or "")

    def set_category(self, category_id: Optional[str]) -> None:
        self._update_params(category_id=category_id or None)

    def set_sort(self, sort: SortMode) -> None:
        self._update_params(sort=SortMode(sort))

    def toggle_sort(self) -> SortMode:
        """recency → price_asc → price_desc → recency"""
        next_sort = self._params.sort.next()
        self.set_sort(next_sort)
        return next_sort

    def _update_params(self, **changes) -> None:
        if not self._alive:
            return
        self._params = replace(self._params, **changes)
        self._schedule_reload()

    def _schedule_reload(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self._debounce, self._fire_reload)

    def _fire_reload(self) -> None:
        self._timer = None
        if self._alive:
            self._spawn(self._reload())

    def _spawn(self, coro: Coroutine) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    # ============================================
    # 読み込み
    # ============================================
    async def start(self) -> None:
        """初回読み込み"""
        await self.refresh()

    async def refresh(self) -> None:
        """現在の条件で1ページ目から読み直す（デバウンスなし）"""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        await self._reload()

    async def _reload(self) -> None:
        if not self._alive:
            return
        seq = self._issue()
        params = self._params
        self._transition(ListState.LOADING)
        self._notify()

        try:
            result = await self._source.query(params.to_query(0))
        except CatalogError as e:
            if self._is_current(seq):
                self._fail(e)
            return

        if not self._is_current(seq):
            logger.debug(f"古いレスポンスを破棄: seq={seq}, latest={self._seq}")
            return

        self._items = list(result.data)
        self._page = 0
        self._has_more = result.has_more
        self._loaded_params = params
        self._error = None
        self._transition(ListState.READY)
        logger.info(f"商品リストを再読み込み: {len(self._items)}件 (hasMore={self._has_more})")
        self._notify()

    async def load_more(self) -> bool:
        """
        次のページを追記する

        READY かつ続きがある場合のみ実行。追加読み込み中の再呼び出しや
        続きがない場合は何もせず False を返す。
        """
        if not self.can_load_more:
            return False

        seq = self._issue()
        next_page = self._page + 1
        self._transition(ListState.LOADING_MORE)
        self._notify()

        try:
            result = await self._source.query(self._loaded_params.to_query(next_page))
        except CatalogError as e:
            if self._is_current(seq):
                self._fail(e)
            return False

        if not self._is_current(seq):
            logger.debug(f"古い追加読み込みを破棄: seq={seq}, latest={self._seq}")
            return False

        self._items.extend(result.data)
        self._page = next_page
        self._has_more = result.has_more
        self._transition(ListState.READY)
        logger.info(f"追加読み込み: page={next_page}, +{len(result.data)}件")
        self._notify()
        return True

    # ============================================
    # 確定した変更の反映
    # ============================================
    def _index_of(self, product_id: str) -> Optional[int]:
        for i, item in enumerate(self._items):
            if item.id == product_id:
                return i
        return None

    def confirm_deleted(self, product_id: str) -> bool:
        """削除が確定した商品をリストから外す"""
        if not self._alive:
            return False
        index = self._index_of(product_id)
        if index is None:
            return False
        del self._items[index]
        self._notify()
        return True

    def confirm_updated(self, product: ProductResponse) -> bool:
        """更新が確定した商品を同じ位置で差し替える"""
        if not self._alive:
            return False
        index = self._index_of(product.id)
        if index is None:
            return False
        self._items[index] = product
        self._notify()
        return True

    async def delete(self, product_id: str) -> bool:
        """
        ストアから削除し、成功した場合のみリストから外す

        Raises:
            CatalogError: 削除失敗（リストは変更しない）
        """
        await self._source.delete_product(product_id)
        return self.confirm_deleted(product_id)

    async def update(
        self,
        product_id: str,
        form: ProductForm,
        old_price: Union[Decimal, str, float],
    ) -> ProductResponse:
        """
        ストアを更新し、成功した場合のみリスト内の商品を差し替える

        Raises:
            CatalogError: 更新失敗（リストは変更しない）
        """
        updated = await self._source.update_product(product_id, form, old_price)
        self.confirm_updated(updated)
        return updated

    # ============================================
    # 終了処理
    # ============================================
    def close(self) -> None:
        """以降に届いたレスポンスは反映しない（送信済みリクエストは中断しない）"""
        self._alive = False
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    async def settle(self) -> None:
        """保留中のデバウンスと実行中の読み込みが終わるまで待つ"""
        while True:
            if self._tasks:
                await asyncio.gather(*list(self._tasks), return_exceptions=True)
            elif self._timer is not None:
                await asyncio.sleep(self._debounce / 2)
            else:
                return
