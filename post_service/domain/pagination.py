"""
Cursor pagination rules shared by every repository implementation
"""
from datetime import datetime
from typing import Callable, List, Optional, Sequence, TypeVar

from .exceptions import InvalidCursor
from .models import FeedResult, Post, as_utc

Row = TypeVar("Row")


def encode_cursor(created_at: datetime) -> str:
    """Cursor for the page that follows an item created at created_at"""
    return as_utc(created_at).isoformat()


def decode_cursor(cursor: str) -> datetime:
    """Parse a cursor back into the exact creation-time boundary"""
    try:
        value = datetime.fromisoformat(cursor.strip().replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        raise InvalidCursor(f"Malformed feed cursor: {cursor!r}")
    return as_utc(value)


def paginate(
    rows: Sequence[Row],
    limit: int,
    to_post: Callable[[Row], Post],
) -> FeedResult:
    """
    Build a page from a query that asked for limit + 1 rows.

    The extra row only signals that more data exists; the next cursor comes
    from the last row actually returned.
    """
    has_more = len(rows) > limit
    kept = list(rows[:limit]) if has_more else list(rows)
    items: List[Post] = [to_post(row) for row in kept]

    next_cursor: Optional[str] = None
    if has_more and items:
        next_cursor = encode_cursor(items[-1].created_at)

    return FeedResult(items=items, next_cursor=next_cursor)
