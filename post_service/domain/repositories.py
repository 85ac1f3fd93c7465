"""
Repository interfaces - Define contracts for data access
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, List, Dict
from .models import Post, CreatePostCommand, FeedQuery, FeedResult


class IPostRepository(ABC):
    """Post repository interface

    Posts are never hard-deleted and never un-deleted.
    """

    @abstractmethod
    async def create(self, command: CreatePostCommand) -> Post:
        """Persist a new active post and return the stored row"""
        pass

    @abstractmethod
    async def get_by_id(self, post_id: str) -> Optional[Post]:
        """Find a live post by ID; None when missing or soft-deleted"""
        pass

    @abstractmethod
    async def get_feed(self, query: FeedQuery) -> FeedResult:
        """Fetch one sorted, filtered, cursor-bounded page of posts"""
        pass

    @abstractmethod
    async def increment_view(self, post_id: str) -> None:
        """Atomically bump the post's view counter"""
        pass

    @abstractmethod
    async def soft_delete(self, post_id: str, actor_id: str) -> None:
        """Mark the post removed"""
        pass

    @abstractmethod
    async def find_for_scoring(self, since: datetime, limit: int) -> List[Post]:
        """Live posts created after since, newest first"""
        pass

    @abstractmethod
    async def update_hot_scores(self, scores: Dict[str, float]) -> None:
        """Write recomputed hot scores keyed by post ID"""
        pass
