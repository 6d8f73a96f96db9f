"""
Database initialization.

Creates the FilmFriend tables (and the ``watch_status`` enum type) if they do not
already exist. Every statement is idempotent so the routine is safe to re-run.
All DDL runs on a single connection inside one transaction.

Run directly with ``python -m db.schema`` to initialize a database and seed the
mock user the API acts as.
"""

import asyncio
import logging

from dotenv import load_dotenv
from psycopg_pool import AsyncConnectionPool

from db.postgres import _execute_on_conn, create_pool, open_pool, close_pool
from db.users import MOCK_USER_ID, MOCK_USERNAME, upsert_user

logger = logging.getLogger(__name__)

# CREATE TYPE has no IF NOT EXISTS; guard it with a catalog lookup instead.
_CREATE_WATCH_STATUS_TYPE = """
DO $$
BEGIN
    IF NOT EXISTS (SELECT 1 FROM pg_type WHERE typname = 'watch_status') THEN
        CREATE TYPE watch_status AS ENUM ('watched', 'want_to_watch', 'rewatched');
    END IF;
END
$$;
"""

_CREATE_USERS = """
CREATE TABLE IF NOT EXISTS users (
    id VARCHAR(255) PRIMARY KEY,
    username VARCHAR(50) UNIQUE NOT NULL,
    name VARCHAR(100),
    avatar_url VARCHAR(255),
    bio TEXT,
    created_at TIMESTAMPTZ DEFAULT NOW(),
    updated_at TIMESTAMPTZ DEFAULT NOW()
);
"""

# id is the external catalog (TMDB) identifier
_CREATE_MOVIES = """
CREATE TABLE IF NOT EXISTS movies (
    id VARCHAR(255) PRIMARY KEY,
    title VARCHAR(255) NOT NULL,
    year INT,
    poster_url VARCHAR(255),
    overview TEXT
);
"""

_CREATE_USER_MOVIE_INTERACTIONS = """
CREATE TABLE IF NOT EXISTS user_movie_interactions (
    user_id VARCHAR(255) REFERENCES users(id) ON DELETE CASCADE,
    movie_id VARCHAR(255) REFERENCES movies(id) ON DELETE CASCADE,
    liked BOOLEAN DEFAULT FALSE,
    status watch_status,
    created_at TIMESTAMPTZ DEFAULT NOW(),
    updated_at TIMESTAMPTZ DEFAULT NOW(),
    PRIMARY KEY (user_id, movie_id)
);
"""

_CREATE_REVIEWS = """
CREATE TABLE IF NOT EXISTS reviews (
    id SERIAL PRIMARY KEY,
    user_id VARCHAR(255) REFERENCES users(id) ON DELETE CASCADE,
    movie_id VARCHAR(255) REFERENCES movies(id) ON DELETE CASCADE,
    rating DECIMAL(2, 1) CHECK (rating >= 0.5 AND rating <= 5.0),
    text TEXT,
    is_public BOOLEAN DEFAULT TRUE,
    created_at TIMESTAMPTZ DEFAULT NOW(),
    updated_at TIMESTAMPTZ DEFAULT NOW(),
    UNIQUE (user_id, movie_id)
);
"""

_CREATE_MOVIE_LISTS = """
CREATE TABLE IF NOT EXISTS movie_lists (
    id SERIAL PRIMARY KEY,
    user_id VARCHAR(255) REFERENCES users(id) ON DELETE CASCADE,
    name VARCHAR(100) NOT NULL,
    description TEXT,
    is_public BOOLEAN DEFAULT TRUE,
    created_at TIMESTAMPTZ DEFAULT NOW(),
    updated_at TIMESTAMPTZ DEFAULT NOW()
);
"""

_CREATE_LIST_ITEMS = """
CREATE TABLE IF NOT EXISTS list_items (
    list_id INTEGER REFERENCES movie_lists(id) ON DELETE CASCADE,
    movie_id VARCHAR(255) REFERENCES movies(id) ON DELETE CASCADE,
    added_at TIMESTAMPTZ DEFAULT NOW(),
    PRIMARY KEY (list_id, movie_id)
);
"""

# Order matters: referenced tables and the enum type come first.
SCHEMA_STATEMENTS: tuple[str, ...] = (
    _CREATE_USERS,
    _CREATE_MOVIES,
    _CREATE_WATCH_STATUS_TYPE,
    _CREATE_USER_MOVIE_INTERACTIONS,
    _CREATE_REVIEWS,
    _CREATE_MOVIE_LISTS,
    _CREATE_LIST_ITEMS,
)


async def create_tables(pool: AsyncConnectionPool) -> None:
    """
    Create all tables in a single transaction.

    On failure the transaction is rolled back and the error is re-raised, so a
    half-built schema is never committed.
    """
    async with pool.connection() as conn:
        try:
            for statement in SCHEMA_STATEMENTS:
                await _execute_on_conn(conn, statement)
            await conn.commit()
        except Exception:
            await conn.rollback()
            logger.exception("Error creating tables")
            raise
    logger.info("Tables created successfully")


async def init_db(pool: AsyncConnectionPool) -> None:
    """Create the schema and make sure the mock user exists."""
    await create_tables(pool)
    await upsert_user(pool, user_id=MOCK_USER_ID, username=MOCK_USERNAME)


async def main() -> None:
    load_dotenv()
    pool = create_pool()
    await open_pool(pool)
    try:
        await init_db(pool)
    finally:
        await close_pool(pool)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
