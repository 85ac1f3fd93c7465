"""
Feed client tests against a mocked HTTP transport.
"""
import json

import httpx
import pytest

from post_service.client import FeedClient, InfiniteScrollController, ScrollState
from post_service.domain.exceptions import FeedFetchFailed, ResourceLinkRequired
from post_service.domain.models import FeedSort, PostType
from post_service.schemas import CreatePostRequest


def _item(n):
    return {
        "id": f"post-{n}",
        "author_id": "user-1",
        "title": "Sidee loo barto Python?",
        "body": "Waxaan rabaa inaan barto Python, xaggee ka bilaabaa?",
        "type": "question",
        "category": "tech",
        "visibility": "active",
        "vote_count": n,
        "created_at": f"2026-10-01T12:{n:02d}:00+00:00",
        "updated_at": f"2026-10-01T12:{n:02d}:00+00:00",
    }


class FeedApi:
    """Serves a fixed list of items two at a time, newest first"""

    def __init__(self, count):
        self.items = [_item(n) for n in reversed(range(count))]
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        params = request.url.params
        limit = int(params["limit"])
        cursor = params.get("cursor")
        remaining = [i for i in self.items if cursor is None or i["created_at"] < cursor]
        page = remaining[:limit]
        has_more = len(remaining) > limit
        return httpx.Response(200, json={
            "items": page,
            "next_cursor": page[-1]["created_at"] if has_more else None,
            "has_more": has_more,
        })


@pytest.mark.asyncio
async def test_get_feed_sends_query_and_parses_posts():
    api = FeedApi(3)
    async with FeedClient("http://posts.test", transport=httpx.MockTransport(api)) as client:
        page = await client.get_feed(limit=2, sort=FeedSort.TOP, category="tech")

    params = api.requests[0].url.params
    assert api.requests[0].url.path == "/api/v1/posts/feed"
    assert params["sort"] == "top"
    assert params["category"] == "tech"
    assert "cursor" not in params
    assert [p.id for p in page.items] == ["post-2", "post-1"]
    assert page.items[0].type is PostType.QUESTION
    assert page.next_cursor == "2026-10-01T12:01:00+00:00"


@pytest.mark.asyncio
async def test_controller_drives_client_to_the_end():
    api = FeedApi(5)
    async with FeedClient("http://posts.test", transport=httpx.MockTransport(api)) as client:
        controller = InfiniteScrollController(client.feed_fetcher(FeedSort.NEW), page_size=2)
        await controller.mount()
        while controller.has_more:
            await controller.on_sentinel_visible(True)

    assert [p.id for p in controller.items] == [f"post-{n}" for n in (4, 3, 2, 1, 0)]
    assert controller.state is ScrollState.EXHAUSTED
    assert len(api.requests) == 3


@pytest.mark.asyncio
async def test_server_error_becomes_feed_fetch_failed():
    transport = httpx.MockTransport(lambda request: httpx.Response(
        500, json={"code": "FEED_FETCH_FAILED", "message": "store unavailable"}
    ))
    async with FeedClient("http://posts.test", transport=transport) as client:
        with pytest.raises(FeedFetchFailed, match="store unavailable"):
            await client.get_feed()


@pytest.mark.asyncio
async def test_foreign_error_body_falls_back_to_default_error():
    transport = httpx.MockTransport(lambda request: httpx.Response(
        502, text="<html>Bad Gateway</html>"
    ))
    async with FeedClient("http://posts.test", transport=transport) as client:
        with pytest.raises(FeedFetchFailed, match="HTTP 502"):
            await client.get_feed()


@pytest.mark.asyncio
async def test_network_error_becomes_feed_fetch_failed():
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with FeedClient("http://posts.test", transport=httpx.MockTransport(refuse)) as client:
        with pytest.raises(FeedFetchFailed):
            await client.get_feed()


@pytest.mark.asyncio
async def test_create_post_maps_validation_errors_and_sends_token():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(400, json={
            "code": "RESOURCE_LINK_REQUIRED", "message": "Resource posts require a link"
        })

    request = CreatePostRequest(
        title="Buugaagta barashada",
        body="Liiska buugaagta ugu wanaagsan ee barashada",
        category="resources",
        type=PostType.RESOURCE,
    )
    async with FeedClient("http://posts.test", token="abc", transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(ResourceLinkRequired):
            await client.create_post(request)

    assert seen[0].headers["Authorization"] == "Bearer abc"
    assert json.loads(seen[0].content)["type"] == "resource"


@pytest.mark.asyncio
async def test_get_missing_post_returns_none():
    transport = httpx.MockTransport(lambda request: httpx.Response(
        404, json={"code": "POST_NOT_FOUND", "message": "Post not found"}
    ))
    async with FeedClient("http://posts.test", transport=transport) as client:
        assert await client.get_post("post-9") is None
