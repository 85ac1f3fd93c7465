"""
Application services - Business logic layer
"""
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional
import asyncio
import logging

from ..domain.models import Post, PostType, CreatePostCommand, FeedQuery, FeedResult, utcnow
from ..domain.pagination import decode_cursor
from ..domain.repositories import IPostRepository
from ..domain.exceptions import (
    TitleTooShort, BodyTooShort, ResourceLinkRequired, InvalidPageSize,
    PostNotFound, PostDeleteForbidden
)
from ..domain.scoring import hot_score
from ..cache import RedisCache
from ..kafka_producer import KafkaProducerManager
from ..config import settings

logger = logging.getLogger(__name__)


def _clean_url(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None


@dataclass
class CreatePostInput:
    """Raw post input as submitted by an author"""
    author_id: str
    title: str
    body: str
    category: str
    type: PostType
    media_url: Optional[str] = None
    link_url: Optional[str] = None


class CreatePostUseCase:
    """Validate a new post locally, then hand it to the repository"""

    def __init__(
        self,
        post_repository: IPostRepository,
        title_min_length: Optional[int] = None,
        body_min_length: Optional[int] = None
    ):
        self.post_repo = post_repository
        self.title_min_length = (
            settings.TITLE_MIN_LENGTH if title_min_length is None else title_min_length
        )
        self.body_min_length = (
            settings.BODY_MIN_LENGTH if body_min_length is None else body_min_length
        )

    def validate(self, data: CreatePostInput) -> CreatePostCommand:
        """
        Check title, then body, then the resource link rule

        Raises:
            TitleTooShort, BodyTooShort, ResourceLinkRequired
        """
        title = data.title.strip()
        body = data.body.strip()

        if len(title) < self.title_min_length:
            raise TitleTooShort(
                f"Title must be at least {self.title_min_length} characters"
            )

        if len(body) < self.body_min_length:
            raise BodyTooShort(
                f"Body must be at least {self.body_min_length} characters"
            )

        link_url = _clean_url(data.link_url)
        if data.type == PostType.RESOURCE and not link_url:
            raise ResourceLinkRequired()

        post_type = PostType(data.type)

        return CreatePostCommand(
            author_id=data.author_id,
            title=title,
            body=body,
            category=data.category,
            type=post_type,
            media_url=_clean_url(data.media_url),
            link_url=link_url,
            created_by=data.author_id,
        )

    async def execute(self, data: CreatePostInput) -> Post:
        command = self.validate(data)
        return await self.post_repo.create(command)


class PostService:
    """Post service - handles post and feed business logic"""

    def __init__(
        self,
        post_repository: IPostRepository,
        cache: RedisCache,
        kafka_producer: KafkaProducerManager
    ):
        self.post_repo = post_repository
        self.cache = cache
        self.kafka_producer = kafka_producer
        self.create_use_case = CreatePostUseCase(post_repository)

    async def create_post(self, data: CreatePostInput) -> Post:
        """Create a post and announce it"""
        post = await self.create_use_case.execute(data)
        logger.info(f"User {post.author_id} created post {post.id}")

        await self.cache.invalidate_feeds()
        await self.kafka_producer.publish_post_created(post)
        return post

    async def get_post(self, post_id: str) -> Post:
        """Get a live post by ID"""
        post = await self.post_repo.get_by_id(post_id)
        if not post:
            raise PostNotFound()
        return post

    async def get_feed(self, query: FeedQuery) -> FeedResult:
        """Get one page of the feed, from cache when possible"""
        if not 1 <= query.limit <= settings.MAX_PAGE_SIZE:
            raise InvalidPageSize(
                f"Page size must be between 1 and {settings.MAX_PAGE_SIZE}"
            )
        if query.cursor:
            decode_cursor(query.cursor)

        cached = await self.cache.get_feed_page(query)
        if cached is not None:
            logger.debug(f"Cache hit for feed page {query.cache_key()}")
            return cached

        result = await self.post_repo.get_feed(query)
        await self.cache.set_feed_page(query, result)
        return result

    async def record_view(self, post_id: str) -> None:
        """Bump the view counter; failures never reach the caller"""
        try:
            await self.post_repo.increment_view(post_id)
        except Exception as e:
            logger.warning(f"Failed to record view for post {post_id}: {e}")

    async def delete_post(
        self,
        post_id: str,
        actor_id: str,
        is_moderator: bool = False
    ) -> None:
        """Soft delete a post as its author or a moderator"""
        post = await self.get_post(post_id)

        if not (post.is_owner(actor_id) or is_moderator):
            raise PostDeleteForbidden()

        await self.post_repo.soft_delete(post_id, actor_id)
        logger.info(f"Post {post_id} removed by {actor_id}")

        await self.cache.invalidate_feeds()
        await self.kafka_producer.publish_post_deleted(post_id, actor_id)


class ScoreService:
    """Recomputes the cached hot score of recent posts"""

    def __init__(self, post_repository: IPostRepository, cache: RedisCache):
        self.post_repo = post_repository
        self.cache = cache

    async def recompute_hot_scores(self) -> int:
        """
        Recompute score_hot for posts inside the recompute window

        Returns:
            Number of posts updated
        """
        now = utcnow()
        since = now - timedelta(hours=settings.SCORE_RECOMPUTE_WINDOW_HOURS)
        posts = await self.post_repo.find_for_scoring(
            since, settings.SCORE_RECOMPUTE_BATCH_SIZE
        )
        if not posts:
            return 0

        scores = {
            post.id: hot_score(post.vote_count, post.created_at, now)
            for post in posts
        }
        await self.post_repo.update_hot_scores(scores)
        await self.cache.invalidate_feeds()

        logger.info(f"Recomputed hot score for {len(scores)} posts")
        return len(scores)


class ScoreRecomputeJob:
    """Runs ScoreService.recompute_hot_scores periodically"""

    def __init__(self, score_service: ScoreService, interval_seconds: int):
        self.score_service = score_service
        self.interval_seconds = interval_seconds
        self.running = False
        self.task: Optional[asyncio.Task] = None

    async def start(self):
        """Start the periodic job"""
        if self.interval_seconds <= 0:
            logger.info("Hot score recompute job is disabled")
            return

        self.running = True
        self.task = asyncio.create_task(self._run())
        logger.info(f"Hot score recompute job started (every {self.interval_seconds}s)")

    async def stop(self):
        """Stop the periodic job"""
        self.running = False

        if self.task:
            self.task.cancel()
            try:
                await self.task
            except asyncio.CancelledError:
                pass
            logger.info("Hot score recompute job stopped")

    async def _run(self):
        while self.running:
            try:
                await self.score_service.recompute_hot_scores()
            except Exception as e:
                logger.error(f"Hot score recompute failed: {e}")
            await asyncio.sleep(self.interval_seconds)
