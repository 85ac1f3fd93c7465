"""
Horumarin - Post Service
FastAPI application for posts and ranked feeds
"""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging

from .config import settings
from .infrastructure.database.connection import db_connection
from .infrastructure.database.repositories import PostRepository
from .cache import cache
from .kafka_producer import kafka_producer
from .application.services import ScoreService, ScoreRecomputeJob
from .domain.exceptions import PostError
from .schemas import ErrorResponse
from .api import posts_router

# Configure logging
logging.basicConfig(
    level=logging.INFO if not settings.DEBUG else logging.DEBUG,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    # Startup
    logger.info("Starting Post Service...")

    await db_connection.connect()
    await cache.connect()
    await kafka_producer.start()

    score_job = ScoreRecomputeJob(
        ScoreService(PostRepository(db_connection), cache),
        settings.SCORE_RECOMPUTE_INTERVAL_SECONDS
    )
    await score_job.start()

    logger.info(f"{settings.APP_NAME} v{settings.APP_VERSION} started on port {settings.PORT}")

    yield

    # Shutdown
    logger.info("Shutting down Post Service...")
    await score_job.stop()
    await kafka_producer.stop()
    await cache.disconnect()
    await db_connection.disconnect()
    logger.info("Post Service shut down successfully")


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Posts, ranked feeds and cursor pagination for the Horumarin community",
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=settings.CORS_ALLOW_METHODS,
    allow_headers=settings.CORS_ALLOW_HEADERS,
)


@app.exception_handler(PostError)
async def post_error_handler(request: Request, exc: PostError):
    if exc.status >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.code} {exc.message}")
    return JSONResponse(
        status_code=exc.status,
        content=ErrorResponse(code=exc.code, message=exc.message).model_dump(),
    )


@app.get("/", tags=["Health"])
async def root():
    """Root endpoint"""
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


app.include_router(posts_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("post_service.main:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG)
