"""
Repository implementations - Data access layer
"""
from typing import Optional, List, Dict, Any, Mapping
from datetime import datetime
import uuid
import logging

import asyncpg

from ...domain.models import (
    Post, PostType, Visibility, CreatePostCommand, FeedQuery, FeedResult, utcnow
)
from ...domain.repositories import IPostRepository
from ...domain.exceptions import (
    PostCreateFailed, PostFetchFailed, FeedFetchFailed, PostDeleteFailed
)
from ...domain.pagination import decode_cursor, paginate
from .connection import DatabaseConnection

logger = logging.getLogger(__name__)

POST_COLUMNS = """
    id::text AS id, user_id, title, content, category, post_type,
    image_video_url, link_url, visibility, score_hot, score_trending,
    vote_count, comment_count, view_count, moderation_flags_count,
    created_at, updated_at, deleted_at, created_by, updated_by
"""

# Ordering descriptor field -> column; a closed mapping, never interpolated
# from user input.
SORT_COLUMNS = {
    "score_hot": "score_hot",
    "created_at": "created_at",
    "vote_count": "vote_count",
    "score_trending": "score_trending",
}


def _parse_id(post_id: str) -> Optional[uuid.UUID]:
    try:
        return uuid.UUID(str(post_id))
    except ValueError:
        return None


def row_to_post(row: Mapping[str, Any]) -> Post:
    """Map a posts row to the Post model, substituting storage defaults"""
    return Post(
        id=str(row["id"]),
        author_id=row["user_id"],
        title=row["title"],
        body=row["content"],
        type=PostType(row["post_type"]),
        category=row["category"],
        media_url=row.get("image_video_url"),
        link_url=row.get("link_url"),
        visibility=Visibility(row.get("visibility") or Visibility.ACTIVE.value),
        score_hot=row.get("score_hot") or 0.0,
        score_trending=row.get("score_trending") or 0.0,
        vote_count=row.get("vote_count") or 0,
        comment_count=row.get("comment_count") or 0,
        view_count=row.get("view_count") or 0,
        moderation_flags_count=row.get("moderation_flags_count") or 0,
        created_at=row["created_at"],
        updated_at=row.get("updated_at") or row["created_at"],
        deleted_at=row.get("deleted_at"),
        created_by=row.get("created_by") or row["user_id"],
        updated_by=row.get("updated_by") or row["user_id"],
    )


class PostRepository(IPostRepository):
    """Post repository implementation using PostgreSQL"""

    def __init__(self, db: DatabaseConnection):
        self.db = db

    def _row_to_post(self, row: Optional[asyncpg.Record]) -> Optional[Post]:
        """Convert database row to Post model"""
        if not row:
            return None
        return row_to_post(dict(row))

    async def create(self, command: CreatePostCommand) -> Post:
        """Create a new post"""
        try:
            row = await self.db.fetch_one(
                f"""
                INSERT INTO posts (user_id, title, content, category, post_type,
                                   image_video_url, link_url, visibility,
                                   created_by, updated_by)
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $9)
                RETURNING {POST_COLUMNS}
                """,
                command.author_id,
                command.title,
                command.body,
                command.category,
                command.type.value,
                command.media_url,
                command.link_url,
                Visibility.ACTIVE.value,
                command.created_by
            )
        except (asyncpg.PostgresError, OSError) as e:
            logger.error(f"Failed to insert post for user {command.author_id}: {e}")
            raise PostCreateFailed(str(e)) from e

        if not row:
            raise PostCreateFailed()
        return self._row_to_post(row)

    async def get_by_id(self, post_id: str) -> Optional[Post]:
        """Find post by ID"""
        pk = _parse_id(post_id)
        if pk is None:
            return None

        try:
            row = await self.db.fetch_one(
                f"""
                SELECT {POST_COLUMNS}
                FROM posts
                WHERE id = $1 AND deleted_at IS NULL
                """,
                pk
            )
        except (asyncpg.PostgresError, OSError) as e:
            logger.error(f"Failed to fetch post {post_id}: {e}")
            raise PostFetchFailed(str(e)) from e

        return self._row_to_post(row)

    def _build_feed_query(self, query: FeedQuery):
        """Build the SQL and arguments for one feed page"""
        conditions = []
        values: List[Any] = []

        if not query.include_removed:
            conditions.append("deleted_at IS NULL")

        if query.category:
            values.append(query.category)
            conditions.append(f"category = ${len(values)}")

        # Cursoring is by creation time regardless of the sort mode
        if query.cursor:
            values.append(decode_cursor(query.cursor))
            conditions.append(f"created_at < ${len(values)}")

        ordering = query.sort.ordering
        column = SORT_COLUMNS[ordering.field]
        direction = "DESC" if ordering.descending else "ASC"
        order_by = [f"{column} {direction}"]
        if column != "created_at":
            order_by.append("created_at DESC")
        order_by.append("id DESC")

        values.append(query.limit + 1)

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        sql = f"""
            SELECT {POST_COLUMNS}
            FROM posts
            {where}
            ORDER BY {", ".join(order_by)}
            LIMIT ${len(values)}
        """
        return sql, values

    async def get_feed(self, query: FeedQuery) -> FeedResult:
        """Fetch one page of the feed"""
        sql, values = self._build_feed_query(query)

        try:
            rows = await self.db.fetch_all(sql, *values)
        except (asyncpg.PostgresError, OSError) as e:
            logger.error(f"Failed to fetch {query.sort.value} feed: {e}")
            raise FeedFetchFailed(str(e)) from e

        return paginate(rows, query.limit, lambda row: row_to_post(dict(row)))

    async def increment_view(self, post_id: str) -> None:
        """Increment view counter"""
        pk = _parse_id(post_id)
        if pk is None:
            return
        await self.db.execute(
            "UPDATE posts SET view_count = view_count + 1 WHERE id = $1",
            pk
        )

    async def soft_delete(self, post_id: str, actor_id: str) -> None:
        """Soft delete a post, keeping the first deletion time"""
        pk = _parse_id(post_id)
        if pk is None:
            return

        now = utcnow()
        try:
            await self.db.execute(
                """
                UPDATE posts
                SET deleted_at = COALESCE(deleted_at, $1),
                    visibility = $2,
                    updated_by = $3,
                    updated_at = $1
                WHERE id = $4
                """,
                now,
                Visibility.REMOVED.value,
                actor_id,
                pk
            )
        except (asyncpg.PostgresError, OSError) as e:
            logger.error(f"Failed to soft delete post {post_id}: {e}")
            raise PostDeleteFailed(str(e)) from e

    async def find_for_scoring(self, since: datetime, limit: int) -> List[Post]:
        """Find live posts created after since"""
        rows = await self.db.fetch_all(
            f"""
            SELECT {POST_COLUMNS}
            FROM posts
            WHERE deleted_at IS NULL AND created_at >= $1
            ORDER BY created_at DESC
            LIMIT $2
            """,
            since,
            limit
        )
        return [self._row_to_post(row) for row in rows]

    async def update_hot_scores(self, scores: Dict[str, float]) -> None:
        """Write recomputed hot scores"""
        args = [
            (score, pk)
            for pk, score in (
                (_parse_id(post_id), score) for post_id, score in scores.items()
            )
            if pk is not None
        ]
        if not args:
            return
        await self.db.execute_many(
            "UPDATE posts SET score_hot = $1 WHERE id = $2",
            args
        )
