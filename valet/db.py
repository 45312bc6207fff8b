"""
Database connection and initialization.
"""

import asyncpg
import redis.asyncio as redis
from redis.exceptions import RedisError
from typing import Optional
import logging

from valet.config import ValetSettings

logger = logging.getLogger(__name__)

# Global connection pools
pg_pool: Optional[asyncpg.Pool] = None
redis_client: Optional[redis.Redis] = None


async def init_db(settings: ValetSettings):
    """Initialize database connections"""
    global pg_pool, redis_client

    # PostgreSQL
    if settings.database.job_store == "postgres":
        try:
            pg_pool = await asyncpg.create_pool(
                settings.database.url,
                min_size=settings.database.min_pool_size,
                max_size=settings.database.max_pool_size
            )
            logger.info("PostgreSQL connection pool created")

            await create_tables()
        except (OSError, asyncpg.PostgresError) as e:
            logger.error(f"Failed to connect to PostgreSQL: {e}")
            raise

    # Redis is optional: the search cache degrades to a miss without it
    if settings.cache.enabled:
        try:
            redis_client = redis.from_url(settings.cache.redis_url, decode_responses=True)
            await redis_client.ping()
            logger.info("Redis connection established")
        except (OSError, RedisError) as e:
            logger.warning(f"Redis unavailable, search cache disabled: {e}")
            redis_client = None


async def close_db():
    """Close database connections"""
    global pg_pool, redis_client

    if pg_pool:
        await pg_pool.close()
        pg_pool = None
        logger.info("PostgreSQL connection pool closed")

    if redis_client:
        await redis_client.aclose()
        redis_client = None
        logger.info("Redis connection closed")


async def create_tables():
    """Create database tables if they don't exist"""
    async with pg_pool.acquire() as conn:
        # Search jobs table
        await conn.execute("""
            CREATE TABLE IF NOT EXISTS search_jobs (
                id VARCHAR(36) PRIMARY KEY,
                user_id INTEGER,
                query TEXT NOT NULL,
                country VARCHAR(8) NOT NULL DEFAULT 'us',
                status VARCHAR(32) NOT NULL,
                message TEXT NOT NULL DEFAULT '',
                result JSONB,
                error TEXT,
                created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                completed_at TIMESTAMPTZ
            )
        """)

        await conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_search_jobs_user_created
            ON search_jobs(user_id, created_at DESC);
        """)

        await conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_search_jobs_status ON search_jobs(status);
        """)

        # Favorites table
        await conn.execute("""
            CREATE TABLE IF NOT EXISTS favorites (
                id SERIAL PRIMARY KEY,
                user_id INTEGER NOT NULL,
                product_id TEXT NOT NULL,
                name TEXT NOT NULL,
                price DOUBLE PRECISION,
                currency VARCHAR(8) NOT NULL DEFAULT 'USD',
                url TEXT NOT NULL,
                image_url TEXT,
                snippet TEXT,
                source TEXT,
                created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                UNIQUE (user_id, product_id)
            )
        """)

        # Price alerts table
        await conn.execute("""
            CREATE TABLE IF NOT EXISTS alerts (
                id SERIAL PRIMARY KEY,
                user_id INTEGER NOT NULL,
                job_id VARCHAR(36) REFERENCES search_jobs(id) ON DELETE SET NULL,
                query TEXT NOT NULL,
                country VARCHAR(8) NOT NULL DEFAULT 'us',
                objective_type VARCHAR(32) NOT NULL,
                target_price DOUBLE PRECISION,
                min_price DOUBLE PRECISION,
                max_price DOUBLE PRECISION,
                drop_percent DOUBLE PRECISION,
                is_active BOOLEAN NOT NULL DEFAULT TRUE,
                created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
            )
        """)

        await conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_alerts_user ON alerts(user_id);
        """)

        logger.info("Database tables created/verified")


def get_pg_pool() -> asyncpg.Pool:
    """Get PostgreSQL connection pool"""
    if pg_pool is None:
        raise RuntimeError("Database not initialized")
    return pg_pool


def get_redis() -> redis.Redis:
    """Get Redis client"""
    if redis_client is None:
        raise RuntimeError("Redis not initialized")
    return redis_client
