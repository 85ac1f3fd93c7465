"""
Database connection and utilities
"""
import asyncpg
from typing import Optional
import logging

from ...config import settings

logger = logging.getLogger(__name__)


class DatabaseConnection:
    """PostgreSQL connection manager using asyncpg"""

    def __init__(self):
        self.pool: Optional[asyncpg.Pool] = None

    async def connect(self):
        """Create database connection pool"""
        try:
            self.pool = await asyncpg.create_pool(
                settings.DATABASE_URL,
                min_size=1,
                max_size=settings.DB_POOL_SIZE,
                command_timeout=60,
            )
            logger.info(f"Database pool created with size {settings.DB_POOL_SIZE}")

            await self._init_schema()
        except Exception as e:
            logger.error(f"Failed to connect to database: {e}")
            raise

    async def disconnect(self):
        """Close database connection pool"""
        if self.pool:
            await self.pool.close()
            logger.info("Database pool closed")

    async def _init_schema(self):
        """Initialize database schema"""
        async with self.pool.acquire() as conn:
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS posts (
                    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
                    user_id TEXT NOT NULL,
                    title TEXT NOT NULL,
                    content TEXT NOT NULL,
                    category TEXT NOT NULL,
                    post_type VARCHAR(20) NOT NULL,
                    image_video_url TEXT,
                    link_url TEXT,
                    visibility VARCHAR(20) NOT NULL DEFAULT 'active',
                    score_hot DOUBLE PRECISION DEFAULT 0,
                    score_trending DOUBLE PRECISION DEFAULT 0,
                    vote_count INTEGER DEFAULT 0,
                    comment_count INTEGER DEFAULT 0,
                    view_count INTEGER DEFAULT 0,
                    moderation_flags_count INTEGER DEFAULT 0,
                    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                    deleted_at TIMESTAMPTZ,
                    created_by TEXT,
                    updated_by TEXT
                )
            """)

            # One index per feed ordering, restricted to live rows
            for column in ("created_at", "score_hot", "score_trending", "vote_count"):
                await conn.execute(f"""
                    CREATE INDEX IF NOT EXISTS idx_posts_live_{column}
                    ON posts ({column} DESC) WHERE deleted_at IS NULL
                """)

            await conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_posts_category_created
                ON posts (category, created_at DESC)
            """)

        logger.info("Database schema initialized")

    async def fetch_one(self, query: str, *args):
        """Fetch a single row"""
        async with self.pool.acquire() as conn:
            return await conn.fetchrow(query, *args)

    async def fetch_all(self, query: str, *args):
        """Fetch all rows"""
        async with self.pool.acquire() as conn:
            return await conn.fetch(query, *args)

    async def execute(self, query: str, *args):
        """Execute a query without returning results"""
        async with self.pool.acquire() as conn:
            return await conn.execute(query, *args)

    async def execute_many(self, query: str, args_list):
        """Execute a query multiple times"""
        async with self.pool.acquire() as conn:
            return await conn.executemany(query, args_list)


# Global database instance
db_connection = DatabaseConnection()


async def get_db_connection():
    """Dependency for getting database connection"""
    return db_connection
