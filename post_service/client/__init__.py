from .feed_client import FeedClient
from .infinite_scroll import InfiniteScrollController, ScrollState
from .scroll_cache import ScrollPosition, ScrollPositionCache


__all__ = [
    # feed_client.py
    "FeedClient",
    # infinite_scroll.py
    "InfiniteScrollController",
    "ScrollState",
    # scroll_cache.py
    "ScrollPosition",
    "ScrollPositionCache",
]
