"""
Infinite scroll controller - cursor pagination state for a feed view
"""
from enum import Enum
from typing import Awaitable, Callable, List, Optional
import asyncio
import logging

from ..domain.models import FeedResult, Post
from .scroll_cache import ScrollPosition, ScrollPositionCache

logger = logging.getLogger(__name__)

FetchPage = Callable[[Optional[str], int], Awaitable[FeedResult]]
Listener = Callable[["InfiniteScrollController"], None]


class ScrollState(str, Enum):
    IDLE = "idle"
    LOADING_INITIAL = "loading_initial"
    READY = "ready"
    LOADING_MORE = "loading_more"
    ERROR = "error"
    EXHAUSTED = "exhausted"


class InfiniteScrollController:
    """
    Drives repeated feed fetches for one view and accumulates the pages.

    Only one fetch runs at a time; triggers that arrive while one is pending
    are dropped. Pages are appended in server order and never re-sorted.
    Results that settle after unmount() are discarded.
    """

    def __init__(
        self,
        fetch_page: FetchPage,
        page_size: int = 20,
        enabled: bool = True,
        scroll_cache: Optional[ScrollPositionCache] = None,
        scroll_key: Optional[str] = None
    ):
        self.fetch_page = fetch_page
        self.page_size = page_size
        self.enabled = enabled
        self.scroll_cache = scroll_cache
        self.scroll_key = scroll_key

        self._items: List[Post] = []
        self._cursor: Optional[str] = None
        self._has_more = True
        self._error: Optional[str] = None
        self._loading_initial = False
        self._loading_more = False
        self._loaded = False
        self._mounted = False
        self._generation = 0
        self._listeners: List[Listener] = []

    # -- read-only state ---------------------------------------------------

    @property
    def items(self) -> List[Post]:
        return list(self._items)

    @property
    def cursor(self) -> Optional[str]:
        return self._cursor

    @property
    def has_more(self) -> bool:
        return self._has_more

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def is_loading(self) -> bool:
        return self._loading_initial

    @property
    def is_loading_more(self) -> bool:
        return self._loading_more

    @property
    def in_flight(self) -> bool:
        return self._loading_initial or self._loading_more

    @property
    def observing(self) -> bool:
        """Whether the last-item sentinel should currently be watched"""
        return self._mounted and self._has_more and not self.in_flight

    @property
    def state(self) -> ScrollState:
        if self._loading_initial:
            return ScrollState.LOADING_INITIAL
        if self._loading_more:
            return ScrollState.LOADING_MORE
        if self._error is not None:
            return ScrollState.ERROR
        if not self._loaded:
            return ScrollState.IDLE
        if not self._has_more:
            return ScrollState.EXHAUSTED
        return ScrollState.READY

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call listener after every state change; returns an unsubscribe function"""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self):
        for listener in list(self._listeners):
            listener(self)

    # -- lifecycle ---------------------------------------------------------

    async def mount(self) -> Optional[ScrollPosition]:
        """
        Attach the view: run the initial load when enabled, then hand back
        the scroll position saved for this view, if any.
        """
        self._mounted = True
        if self.enabled:
            await self._load_initial()

        if self.scroll_cache is not None and self.scroll_key:
            return self.scroll_cache.restore(self.scroll_key)
        return None

    def unmount(self, position: Optional[ScrollPosition] = None) -> None:
        """Detach the view; any fetch still pending will not apply its result"""
        if self.scroll_cache is not None and self.scroll_key and position is not None:
            self.scroll_cache.save(self.scroll_key, position)

        self._mounted = False
        self._generation += 1
        self._loading_initial = False
        self._loading_more = False

    # -- loading -----------------------------------------------------------

    def _page_has_more(self, result: FeedResult) -> bool:
        # A short page ends the feed even if a cursor came back
        return result.next_cursor is not None and len(result.items) == self.page_size

    async def _load_initial(self) -> bool:
        if self.in_flight:
            return False

        generation = self._generation
        self._loading_initial = True
        self._error = None
        self._notify()

        try:
            result = await self.fetch_page(None, self.page_size)
        except asyncio.CancelledError:
            if generation == self._generation:
                self._loading_initial = False
                self._notify()
            raise
        except Exception as e:
            if generation != self._generation:
                return False
            logger.warning(f"Initial feed load failed: {e}")
            self._error = str(e) or "Failed to load data"
            self._items = []
            self._has_more = False
            self._loading_initial = False
            self._notify()
            return True

        if generation != self._generation:
            return False

        self._items = list(result.items)
        self._cursor = result.next_cursor
        self._has_more = self._page_has_more(result)
        self._loaded = True
        self._loading_initial = False
        self._notify()
        return True

    async def load_more(self) -> bool:
        """
        Fetch the page after the stored cursor and append it

        Returns:
            True if a fetch was issued, False if the call was dropped
        """
        if not self._mounted or not self._has_more or self.in_flight:
            return False

        generation = self._generation
        self._loading_more = True
        self._error = None
        self._notify()

        try:
            result = await self.fetch_page(self._cursor, self.page_size)
        except asyncio.CancelledError:
            if generation == self._generation:
                self._loading_more = False
                self._notify()
            raise
        except Exception as e:
            if generation != self._generation:
                return False
            logger.warning(f"Loading more feed items failed: {e}")
            self._error = str(e) or "Failed to load more data"
            self._has_more = False
            self._loading_more = False
            self._notify()
            return True

        if generation != self._generation:
            return False

        self._items.extend(result.items)
        self._cursor = result.next_cursor
        self._has_more = self._page_has_more(result)
        self._loading_more = False
        self._notify()
        return True

    async def refresh(self) -> bool:
        """Start over from the first page, replacing everything loaded so far"""
        if self.in_flight:
            return False

        self._cursor = None
        self._has_more = True
        return await self._load_initial()

    async def on_sentinel_visible(self, is_intersecting: bool) -> bool:
        """Visibility signal for the last rendered item"""
        if not is_intersecting or not self.observing:
            return False
        return await self.load_more()
