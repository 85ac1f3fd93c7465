"""
Post and feed routes
"""
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from typing import Optional

from ...config import settings
from ...domain.models import FeedQuery, FeedSort, Post
from ...application.services import CreatePostInput, PostService, ScoreService
from ...schemas import (
    User, CreatePostRequest, CreatePostResponse, PostResponse, FeedResponse,
    ScoreRecomputeResponse, MessageResponse, ErrorResponse
)
from ..dependencies import (
    get_post_service, get_score_service, get_current_user, get_current_user_optional
)


router = APIRouter(
    prefix="/api/v1/posts",
    tags=["Posts"],
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)


def to_response(post: Post) -> PostResponse:
    return PostResponse.model_validate(post)


@router.post("", response_model=CreatePostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    post_data: CreatePostRequest,
    current_user: User = Depends(get_current_user),
    post_service: PostService = Depends(get_post_service)
):
    """
    Create a new post

    - **title**: At least 8 characters after trimming
    - **body**: At least 20 characters after trimming
    - **category**: Category slug
    - **type**: question, discussion, resource or announcement
    - **link_url**: Required for resource posts
    - Requires authentication
    """
    post = await post_service.create_post(CreatePostInput(
        author_id=current_user.id,
        title=post_data.title,
        body=post_data.body,
        category=post_data.category,
        type=post_data.type,
        media_url=post_data.media_url,
        link_url=post_data.link_url,
    ))

    return CreatePostResponse(id=post.id, created_at=post.created_at)


@router.get("/feed", response_model=FeedResponse)
async def get_feed(
    sort: FeedSort = Query(FeedSort.HOT, description="hot, new, top or trending"),
    category: Optional[str] = Query(None, description="Only posts of this category"),
    cursor: Optional[str] = Query(None, description="next_cursor of the previous page"),
    limit: int = Query(
        settings.DEFAULT_PAGE_SIZE,
        description=f"Items per page, 1 to {settings.MAX_PAGE_SIZE}"
    ),
    include_removed: bool = Query(False, description="Moderators only"),
    current_user: Optional[User] = Depends(get_current_user_optional),
    post_service: PostService = Depends(get_post_service)
):
    """
    Get one page of the feed

    Pages are always cursored by creation time, whatever the sort.
    Authentication optional.
    """
    is_moderator = bool(current_user and current_user.is_moderator)
    result = await post_service.get_feed(FeedQuery(
        limit=limit,
        sort=sort,
        category=category,
        cursor=cursor,
        include_removed=include_removed and is_moderator,
    ))

    return FeedResponse(
        items=[to_response(post) for post in result.items],
        next_cursor=result.next_cursor,
        has_more=result.has_more,
    )


@router.post("/scores/recompute", response_model=ScoreRecomputeResponse)
async def recompute_scores(
    current_user: User = Depends(get_current_user),
    score_service: ScoreService = Depends(get_score_service)
):
    """
    Recompute hot scores of recent posts

    Moderators only.
    """
    if not current_user.is_moderator:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Moderator access required"
        )

    updated = await score_service.recompute_hot_scores()
    return ScoreRecomputeResponse(updated=updated)


@router.get("/{post_id}", response_model=PostResponse)
async def get_post(
    post_id: str,
    background_tasks: BackgroundTasks,
    post_service: PostService = Depends(get_post_service)
):
    """
    Get post by ID

    Counts a view after the response is sent.
    """
    post = await post_service.get_post(post_id)
    background_tasks.add_task(post_service.record_view, post.id)
    return to_response(post)


@router.delete("/{post_id}", response_model=MessageResponse)
async def delete_post(
    post_id: str,
    current_user: User = Depends(get_current_user),
    post_service: PostService = Depends(get_post_service)
):
    """
    Remove a post

    Authors can remove their own posts; moderators can remove any post.
    """
    await post_service.delete_post(
        post_id,
        actor_id=current_user.id,
        is_moderator=current_user.is_moderator
    )

    return MessageResponse(message="Post removed successfully")
