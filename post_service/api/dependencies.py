"""
FastAPI dependencies
"""
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from typing import Optional

from ..config import settings
from ..schemas import User
from ..cache import RedisCache, get_cache
from ..kafka_producer import KafkaProducerManager, get_kafka_producer
from ..infrastructure.database.connection import DatabaseConnection, get_db_connection
from ..infrastructure.database.repositories import PostRepository
from ..application.services import PostService, ScoreService


# Security scheme
security = HTTPBearer(auto_error=False)


async def get_post_repository(
    db: DatabaseConnection = Depends(get_db_connection)
) -> PostRepository:
    """Get post repository dependency"""
    return PostRepository(db)


async def get_post_service(
    post_repo: PostRepository = Depends(get_post_repository),
    cache: RedisCache = Depends(get_cache),
    kafka_producer: KafkaProducerManager = Depends(get_kafka_producer)
) -> PostService:
    """Get post service dependency"""
    return PostService(post_repo, cache, kafka_producer)


async def get_score_service(
    post_repo: PostRepository = Depends(get_post_repository),
    cache: RedisCache = Depends(get_cache)
) -> ScoreService:
    """Get score service dependency"""
    return ScoreService(post_repo, cache)


def decode_user(token: str) -> User:
    """
    Validate a JWT and build the caller

    Raises:
        HTTPException: If the token is invalid
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = payload.get("sub")
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = str(user_id)
    return User(
        id=user_id,
        username=payload.get("username"),
        is_moderator=user_id in settings.MODERATOR_USER_IDS,
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> User:
    """Get current authenticated user from JWT token"""
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return decode_user(credentials.credentials)


async def get_current_user_optional(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Optional[User]:
    """
    Get current authenticated user from JWT token (optional)

    Returns None if not authenticated instead of raising exception
    """
    if not credentials:
        return None

    try:
        return decode_user(credentials.credentials)
    except HTTPException:
        return None
