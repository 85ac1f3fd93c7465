"""
Domain errors

Every error carries a stable code, a human readable message and the HTTP
status the API answers with.
"""
from typing import Optional


class PostError(Exception):
    """Base class for post service errors"""
    code = "POST_ERROR"
    status = 500
    default_message = "Post service error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


# Validation errors - detected before any I/O

class PostValidationError(PostError):
    status = 400


class TitleTooShort(PostValidationError):
    code = "TITLE_TOO_SHORT"
    default_message = "Title is too short"


class BodyTooShort(PostValidationError):
    code = "BODY_TOO_SHORT"
    default_message = "Body is too short"


class ResourceLinkRequired(PostValidationError):
    code = "RESOURCE_LINK_REQUIRED"
    default_message = "Resource posts require a link"


class InvalidCursor(PostValidationError):
    code = "INVALID_CURSOR"
    default_message = "Malformed feed cursor"


class InvalidPageSize(PostValidationError):
    code = "INVALID_PAGE_SIZE"
    default_message = "Page size out of range"


class PostNotFound(PostError):
    code = "POST_NOT_FOUND"
    status = 404
    default_message = "Post not found"


class PostDeleteForbidden(PostError):
    code = "POST_DELETE_FORBIDDEN"
    status = 403
    default_message = "Not authorized to delete this post"


# Store errors

class PostStoreError(PostError):
    status = 500


class PostCreateFailed(PostStoreError):
    code = "POST_CREATE_FAILED"
    default_message = "Failed to create post"


class PostFetchFailed(PostStoreError):
    code = "POST_FETCH_FAILED"
    default_message = "Failed to fetch post"


class FeedFetchFailed(PostStoreError):
    code = "FEED_FETCH_FAILED"
    default_message = "Failed to fetch feed"


class PostDeleteFailed(PostStoreError):
    code = "POST_DELETE_FAILED"
    default_message = "Failed to delete post"
