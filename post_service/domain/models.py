"""
Domain models - Core business entities
"""
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any
from enum import Enum
import hashlib
import json


class PostType(str, Enum):
    """Post type enumeration"""
    QUESTION = "question"
    DISCUSSION = "discussion"
    RESOURCE = "resource"
    ANNOUNCEMENT = "announcement"


class Visibility(str, Enum):
    """Content visibility state"""
    ACTIVE = "active"
    UNDER_REVIEW = "under_review"
    REMOVED = "removed"
    ARCHIVED = "archived"


@dataclass(frozen=True)
class SortOrder:
    """Ordering descriptor: the field a feed is sorted by and its direction"""
    field: str
    descending: bool = True


class FeedSort(str, Enum):
    """Feed sort modes"""
    HOT = "hot"
    NEW = "new"
    TOP = "top"
    TRENDING = "trending"

    @property
    def ordering(self) -> SortOrder:
        return _SORT_ORDERINGS[self]


_SORT_ORDERINGS = {
    FeedSort.HOT: SortOrder("score_hot"),
    FeedSort.NEW: SortOrder("created_at"),
    FeedSort.TOP: SortOrder("vote_count"),
    FeedSort.TRENDING: SortOrder("score_trending"),
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass
class Post:
    """Post domain model"""
    id: str
    author_id: str
    title: str
    body: str
    type: PostType
    category: str
    created_at: datetime
    updated_at: datetime
    media_url: Optional[str] = None
    link_url: Optional[str] = None
    visibility: Visibility = Visibility.ACTIVE
    score_hot: float = 0.0
    score_trending: float = 0.0
    vote_count: int = 0
    comment_count: int = 0
    view_count: int = 0
    moderation_flags_count: int = 0
    deleted_at: Optional[datetime] = None
    created_by: Optional[str] = None
    updated_by: Optional[str] = None

    def __post_init__(self):
        if self.created_by is None:
            self.created_by = self.author_id
        if self.updated_by is None:
            self.updated_by = self.author_id

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def is_owner(self, user_id: str) -> bool:
        """Check if the given user_id is the author of this post"""
        return self.author_id == user_id

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-compatible dict"""
        data = asdict(self)
        data["type"] = self.type.value
        data["visibility"] = self.visibility.value
        for key in ("created_at", "updated_at", "deleted_at"):
            if data[key] is not None:
                data[key] = data[key].isoformat()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Post":
        """Inverse of to_dict"""
        data = dict(data)
        data["type"] = PostType(data["type"])
        data["visibility"] = Visibility(data["visibility"])
        for key in ("created_at", "updated_at", "deleted_at"):
            if data.get(key) is not None:
                data[key] = datetime.fromisoformat(data[key])
        return cls(**data)


@dataclass
class CreatePostCommand:
    """Validated input for persisting a new post"""
    author_id: str
    title: str
    body: str
    category: str
    type: PostType
    created_by: str
    media_url: Optional[str] = None
    link_url: Optional[str] = None


@dataclass
class FeedQuery:
    """Request descriptor for one page of the feed

    The cursor is always a creation-time boundary, whatever the sort mode.
    """
    limit: int
    sort: FeedSort = FeedSort.HOT
    category: Optional[str] = None
    cursor: Optional[str] = None
    include_removed: bool = False

    def cache_key(self) -> str:
        payload = json.dumps([
            self.sort.value,
            self.category,
            self.cursor,
            self.limit,
            self.include_removed,
        ])
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()


@dataclass
class FeedResult:
    """One page of posts; next_cursor is None at the end of the feed"""
    items: List[Post] = field(default_factory=list)
    next_cursor: Optional[str] = None

    @property
    def has_more(self) -> bool:
        return self.next_cursor is not None
