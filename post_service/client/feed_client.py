"""
HTTP client for the post service API
"""
import httpx
from typing import Optional, Dict, Any, Type
import logging

from ..domain.models import FeedResult, FeedSort, Post
from ..domain.exceptions import (
    PostError, TitleTooShort, BodyTooShort, ResourceLinkRequired, InvalidCursor,
    InvalidPageSize, PostNotFound, PostDeleteForbidden, PostCreateFailed,
    PostFetchFailed, FeedFetchFailed, PostDeleteFailed
)
from ..schemas import (
    CreatePostRequest, CreatePostResponse, ErrorResponse, FeedResponse, PostResponse
)
from .infinite_scroll import FetchPage

logger = logging.getLogger(__name__)

ERRORS_BY_CODE: Dict[str, Type[PostError]] = {
    cls.code: cls
    for cls in (
        TitleTooShort, BodyTooShort, ResourceLinkRequired, InvalidCursor,
        InvalidPageSize, PostNotFound, PostDeleteForbidden, PostCreateFailed,
        PostFetchFailed, FeedFetchFailed, PostDeleteFailed,
    )
}


def _to_post(item: PostResponse) -> Post:
    return Post(**item.model_dump())


class FeedClient:
    """HTTP client for reading feeds and writing posts"""

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = httpx.Timeout(10.0, connect=5.0)
        self.transport = transport
        self.client: Optional[httpx.AsyncClient] = None

    async def start(self):
        """Initialize HTTP client"""
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self.transport,
        )

    async def stop(self):
        """Close HTTP client"""
        if self.client:
            await self.client.aclose()
            self.client = None

    async def __aenter__(self) -> "FeedClient":
        await self.start()
        return self

    async def __aexit__(self, *exc_info):
        await self.stop()

    def _headers(self) -> Dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    def _raise_for_error(self, response: httpx.Response, default: Type[PostError]):
        """Turn an error response into the matching domain error"""
        if response.is_success:
            return

        try:
            error = ErrorResponse.model_validate(response.json())
        except ValueError:
            # Not one of ours, e.g. a proxy error page or a 422 body
            raise default(f"HTTP {response.status_code} from {response.url}")

        error_cls = ERRORS_BY_CODE.get(error.code, default)
        raise error_cls(error.message)

    async def _request(
        self,
        method: str,
        url: str,
        default_error: Type[PostError],
        **kwargs
    ) -> httpx.Response:
        if not self.client:
            await self.start()

        try:
            response = await self.client.request(
                method, url, headers=self._headers(), **kwargs
            )
        except httpx.HTTPError as e:
            logger.error(f"Request failed for {url}: {e}")
            raise default_error(str(e)) from e

        self._raise_for_error(response, default_error)
        return response

    async def get_feed(
        self,
        cursor: Optional[str] = None,
        limit: int = 20,
        sort: FeedSort = FeedSort.HOT,
        category: Optional[str] = None
    ) -> FeedResult:
        """Fetch one page of the feed"""
        params: Dict[str, Any] = {"limit": limit, "sort": FeedSort(sort).value}
        if cursor:
            params["cursor"] = cursor
        if category:
            params["category"] = category

        response = await self._request(
            "GET", "/api/v1/posts/feed", FeedFetchFailed, params=params
        )
        page = FeedResponse.model_validate(response.json())
        return FeedResult(
            items=[_to_post(item) for item in page.items],
            next_cursor=page.next_cursor,
        )

    def feed_fetcher(
        self,
        sort: FeedSort = FeedSort.HOT,
        category: Optional[str] = None
    ) -> FetchPage:
        """Fetch function for an InfiniteScrollController"""
        async def fetch(cursor: Optional[str], limit: int) -> FeedResult:
            return await self.get_feed(cursor=cursor, limit=limit, sort=sort, category=category)

        return fetch

    async def create_post(self, request: CreatePostRequest) -> CreatePostResponse:
        """Create a post"""
        response = await self._request(
            "POST",
            "/api/v1/posts",
            PostCreateFailed,
            json=request.model_dump(mode="json"),
        )
        return CreatePostResponse.model_validate(response.json())

    async def get_post(self, post_id: str) -> Optional[Post]:
        """Get post by ID; None when it does not exist"""
        try:
            response = await self._request("GET", f"/api/v1/posts/{post_id}", PostFetchFailed)
        except PostNotFound:
            return None
        return _to_post(PostResponse.model_validate(response.json()))

    async def delete_post(self, post_id: str) -> None:
        """Remove a post"""
        await self._request("DELETE", f"/api/v1/posts/{post_id}", PostDeleteFailed)
