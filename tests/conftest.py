"""
Shared fixtures: an in-memory post store that follows the same feed rules
as the PostgreSQL repository.
"""
import os

os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("KAFKA_ENABLED", "false")
os.environ.setdefault("MODERATOR_USER_IDS", '["mod-1"]')
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")

import uuid
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import pytest

from post_service.domain.models import (
    Post, PostType, Visibility, CreatePostCommand, FeedQuery, FeedResult, utcnow
)
from post_service.domain.pagination import decode_cursor, paginate
from post_service.domain.repositories import IPostRepository

BASE_TIME = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)


def make_post(
    minutes_ago: int = 0,
    votes: int = 0,
    category: str = "tech",
    author_id: str = "user-1",
    post_id: Optional[str] = None,
    score_hot: float = 0.0,
    score_trending: float = 0.0,
    deleted: bool = False,
    post_type: PostType = PostType.QUESTION,
) -> Post:
    created_at = BASE_TIME - timedelta(minutes=minutes_ago)
    return Post(
        id=post_id or str(uuid.uuid4()),
        author_id=author_id,
        title="Sidee loo barto Python?",
        body="Waxaan rabaa inaan barto Python, xaggee ka bilaabaa?",
        type=post_type,
        category=category,
        created_at=created_at,
        updated_at=created_at,
        vote_count=votes,
        score_hot=score_hot,
        score_trending=score_trending,
        deleted_at=created_at + timedelta(minutes=1) if deleted else None,
        visibility=Visibility.REMOVED if deleted else Visibility.ACTIVE,
    )


class InMemoryPostRepository(IPostRepository):
    """Dictionary-backed post store"""

    def __init__(self, posts: Optional[List[Post]] = None):
        self.posts: Dict[str, Post] = {post.id: post for post in posts or []}
        self.feed_queries: List[FeedQuery] = []

    async def create(self, command: CreatePostCommand) -> Post:
        now = utcnow()
        post = Post(
            id=str(uuid.uuid4()),
            author_id=command.author_id,
            title=command.title,
            body=command.body,
            type=command.type,
            category=command.category,
            media_url=command.media_url,
            link_url=command.link_url,
            created_at=now,
            updated_at=now,
            created_by=command.created_by,
            updated_by=command.created_by,
        )
        self.posts[post.id] = post
        return post

    async def get_by_id(self, post_id: str) -> Optional[Post]:
        post = self.posts.get(post_id)
        if post is None or post.is_deleted:
            return None
        return post

    async def get_feed(self, query: FeedQuery) -> FeedResult:
        self.feed_queries.append(query)
        posts = [p for p in self.posts.values() if query.include_removed or not p.is_deleted]
        if query.category:
            posts = [p for p in posts if p.category == query.category]
        if query.cursor:
            boundary = decode_cursor(query.cursor)
            posts = [p for p in posts if p.created_at < boundary]

        field = query.sort.ordering.field
        posts.sort(key=lambda p: (getattr(p, field), p.created_at, p.id), reverse=True)
        return paginate(posts[:query.limit + 1], query.limit, lambda p: p)

    async def increment_view(self, post_id: str) -> None:
        if post_id in self.posts:
            self.posts[post_id].view_count += 1

    async def soft_delete(self, post_id: str, actor_id: str) -> None:
        post = self.posts.get(post_id)
        if post is None:
            return
        if post.deleted_at is None:
            post.deleted_at = utcnow()
        post.visibility = Visibility.REMOVED
        post.updated_by = actor_id

    async def find_for_scoring(self, since: datetime, limit: int) -> List[Post]:
        posts = [p for p in self.posts.values() if not p.is_deleted and p.created_at >= since]
        posts.sort(key=lambda p: p.created_at, reverse=True)
        return posts[:limit]

    async def update_hot_scores(self, scores: Dict[str, float]) -> None:
        for post_id, score in scores.items():
            self.posts[post_id].score_hot = score


@pytest.fixture
def repo():
    return InMemoryPostRepository()
