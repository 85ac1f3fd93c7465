"""
Pydantic schemas for Post Service
"""
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from .domain.models import PostType, Visibility


class User(BaseModel):
    """Authenticated caller, taken from the bearer token"""
    id: str
    username: Optional[str] = None
    is_moderator: bool = False


class CreatePostRequest(BaseModel):
    """Post creation request

    Length rules are enforced by the create-post use case, not here.
    """
    title: str = Field(..., max_length=300)
    body: str = Field(..., max_length=40000)
    category: str = Field(..., min_length=1, max_length=100)
    type: PostType
    media_url: Optional[str] = Field(None, max_length=2048)
    link_url: Optional[str] = Field(None, max_length=2048)


class CreatePostResponse(BaseModel):
    """Post creation response"""
    id: str
    created_at: datetime


class PostResponse(BaseModel):
    """Post response"""
    id: str
    author_id: str
    title: str
    body: str
    type: PostType
    category: str
    media_url: Optional[str] = None
    link_url: Optional[str] = None
    visibility: Visibility = Visibility.ACTIVE
    score_hot: float = 0.0
    score_trending: float = 0.0
    vote_count: int = 0
    comment_count: int = 0
    view_count: int = 0
    moderation_flags_count: int = 0
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None
    created_by: Optional[str] = None
    updated_by: Optional[str] = None

    class Config:
        from_attributes = True


class FeedResponse(BaseModel):
    """Feed page response with cursor pagination"""
    items: List[PostResponse]
    next_cursor: Optional[str] = None
    has_more: bool


class ScoreRecomputeResponse(BaseModel):
    """Hot score recompute response"""
    updated: int


class MessageResponse(BaseModel):
    """Generic message response"""
    message: str
    success: bool = True


class ErrorResponse(BaseModel):
    """Error response"""
    code: str
    message: str
