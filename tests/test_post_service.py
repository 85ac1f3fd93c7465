"""
Application service tests with cache and Kafka mocked.
"""
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from post_service.application.services import (
    CreatePostInput, PostService, ScoreRecomputeJob, ScoreService
)
from post_service.domain.exceptions import (
    InvalidCursor, InvalidPageSize, PostDeleteForbidden, PostNotFound, TitleTooShort
)
from post_service.domain.models import FeedQuery, FeedResult, FeedSort, PostType, Visibility, utcnow
from tests.conftest import InMemoryPostRepository, make_post


def _service(repo, cached=None):
    cache = AsyncMock()
    cache.get_feed_page.return_value = cached
    kafka = AsyncMock()
    return PostService(repo, cache, kafka), cache, kafka


@pytest.mark.asyncio
async def test_create_post_invalidates_feeds_and_publishes():
    repo = InMemoryPostRepository()
    service, cache, kafka = _service(repo)

    post = await service.create_post(CreatePostInput(
        author_id="user-1",
        title="Sidee loo barto Python?",
        body="Waxaan rabaa inaan barto Python, xaggee ka bilaabaa?",
        category="tech",
        type=PostType.QUESTION,
    ))

    assert post.id in repo.posts
    cache.invalidate_feeds.assert_awaited_once()
    kafka.publish_post_created.assert_awaited_once_with(post)


@pytest.mark.asyncio
async def test_invalid_post_touches_nothing():
    repo = InMemoryPostRepository()
    service, cache, kafka = _service(repo)

    with pytest.raises(TitleTooShort):
        await service.create_post(CreatePostInput(
            author_id="user-1", title="short", body="x" * 40,
            category="tech", type=PostType.QUESTION,
        ))

    assert repo.posts == {}
    cache.invalidate_feeds.assert_not_called()
    kafka.publish_post_created.assert_not_called()


@pytest.mark.asyncio
async def test_get_post_not_found():
    service, _, _ = _service(InMemoryPostRepository([make_post(post_id="gone", deleted=True)]))

    with pytest.raises(PostNotFound):
        await service.get_post("gone")
    with pytest.raises(PostNotFound):
        await service.get_post("never-existed")


@pytest.mark.asyncio
async def test_feed_cache_hit_skips_repository():
    cached = FeedResult(items=[make_post()], next_cursor=None)
    repo = InMemoryPostRepository()
    service, cache, _ = _service(repo, cached=cached)

    result = await service.get_feed(FeedQuery(limit=10))

    assert result is cached
    assert repo.feed_queries == []
    cache.set_feed_page.assert_not_called()


@pytest.mark.asyncio
async def test_feed_cache_miss_reads_and_stores():
    repo = InMemoryPostRepository([make_post(minutes_ago=i) for i in range(3)])
    service, cache, _ = _service(repo)
    query = FeedQuery(limit=2, sort=FeedSort.NEW)

    result = await service.get_feed(query)

    assert len(result.items) == 2
    assert result.has_more
    cache.set_feed_page.assert_awaited_once_with(query, result)


@pytest.mark.asyncio
@pytest.mark.parametrize("limit", [0, -1, 101])
async def test_feed_page_size_bounds(limit):
    service, _, _ = _service(InMemoryPostRepository())

    with pytest.raises(InvalidPageSize):
        await service.get_feed(FeedQuery(limit=limit))


@pytest.mark.asyncio
async def test_feed_walks_every_post_exactly_once_by_new():
    posts = [make_post(minutes_ago=i) for i in range(7)]
    service, _, _ = _service(InMemoryPostRepository(posts))

    seen, cursor = [], None
    while True:
        page = await service.get_feed(FeedQuery(limit=3, sort=FeedSort.NEW, cursor=cursor))
        seen.extend(p.id for p in page.items)
        cursor = page.next_cursor
        if cursor is None:
            break

    assert seen == [p.id for p in posts]


@pytest.mark.asyncio
async def test_feed_hides_removed_posts_unless_asked():
    live = make_post(minutes_ago=1)
    removed = make_post(minutes_ago=2, deleted=True)
    service, _, _ = _service(InMemoryPostRepository([live, removed]))

    default = await service.get_feed(FeedQuery(limit=10))
    everything = await service.get_feed(FeedQuery(limit=10, include_removed=True))

    assert [p.id for p in default.items] == [live.id]
    assert {p.id for p in everything.items} == {live.id, removed.id}


@pytest.mark.asyncio
async def test_record_view_never_raises():
    repo = AsyncMock()
    repo.increment_view.side_effect = ConnectionError("db down")
    service, _, _ = _service(repo)

    await service.record_view("post-1")

    repo.increment_view.assert_awaited_once_with("post-1")


@pytest.mark.asyncio
async def test_only_author_or_moderator_can_delete():
    post = make_post(author_id="author")
    repo = InMemoryPostRepository([post])
    service, cache, kafka = _service(repo)

    with pytest.raises(PostDeleteForbidden):
        await service.delete_post(post.id, actor_id="stranger")
    assert not post.is_deleted

    await service.delete_post(post.id, actor_id="mod-1", is_moderator=True)

    assert post.is_deleted
    assert post.visibility is Visibility.REMOVED
    assert post.updated_by == "mod-1"
    cache.invalidate_feeds.assert_awaited_once()
    kafka.publish_post_deleted.assert_awaited_once_with(post.id, "mod-1")


@pytest.mark.asyncio
async def test_removed_post_is_gone_for_later_deletes():
    post = make_post(author_id="author")
    repo = InMemoryPostRepository([post])
    service, _, _ = _service(repo)

    await service.delete_post(post.id, actor_id="author")
    first_deleted_at = post.deleted_at
    await repo.soft_delete(post.id, "author")

    assert post.deleted_at == first_deleted_at
    with pytest.raises(PostNotFound):
        await service.delete_post(post.id, actor_id="author")


@pytest.mark.asyncio
async def test_recompute_hot_scores_updates_recent_posts():
    now = utcnow()
    recent = make_post(votes=100)
    recent.created_at = now - timedelta(hours=12)
    old = make_post(votes=100)
    old.created_at = now - timedelta(days=30)
    repo = InMemoryPostRepository([recent, old])
    cache = AsyncMock()

    updated = await ScoreService(repo, cache).recompute_hot_scores()

    assert updated == 1
    assert recent.score_hot == pytest.approx(1.0, abs=0.01)
    assert old.score_hot == 0.0
    cache.invalidate_feeds.assert_awaited_once()


@pytest.mark.asyncio
async def test_disabled_recompute_job_does_not_start():
    job = ScoreRecomputeJob(AsyncMock(), interval_seconds=0)

    await job.start()
    await job.stop()

    assert job.task is None


@pytest.mark.asyncio
@pytest.mark.parametrize("cursor", ["-", "*", "yesterday"])
async def test_malformed_cursor_fails_even_with_warm_cache(cursor):
    warm = FeedResult(items=[make_post()], next_cursor=None)
    repo = InMemoryPostRepository()
    service, cache, _ = _service(repo, cached=warm)

    with pytest.raises(InvalidCursor):
        await service.get_feed(FeedQuery(limit=2, cursor=cursor))

    cache.get_feed_page.assert_not_called()
    assert repo.feed_queries == []
