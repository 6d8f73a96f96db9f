"""
Movie, interaction and review data-access methods.

- get_or_insert_movie: ensures a movie exists locally before anyone interacts with it.
- set_movie_interaction: partial-merge upsert of like / watch status.
- add_review: full-replace upsert of a user's review of a movie.

Correctness under concurrent writers relies on Postgres INSERT ... ON CONFLICT;
no application-level locking is done here.
"""

from typing import Optional

from psycopg_pool import AsyncConnectionPool

from db.postgres import _execute_on_conn, _execute_read, _execute_read_one, _execute_write
from implementation.classes.enums import WatchStatus
from implementation.classes.records import (
    ActivityEntry,
    Movie,
    Review,
    UserMovieInteraction,
)

_MOVIE_COLUMNS = "id, title, year, poster_url, overview"
_INTERACTION_COLUMNS = "user_id, movie_id, liked, status, created_at, updated_at"
_REVIEW_COLUMNS = "id, user_id, movie_id, rating, text, is_public, created_at, updated_at"

# Ratings are DECIMAL(2, 1) with a CHECK constraint on this range.
MIN_RATING = 0.5
MAX_RATING = 5.0


# ===============================
#            MOVIES
# ===============================

async def get_or_insert_movie(
    pool: AsyncConnectionPool,
    movie_id: str,
    title: str,
    year: Optional[int] = None,
    poster_url: Optional[str] = None,
    overview: Optional[str] = None,
) -> Movie:
    """
    Return the stored movie, inserting it first if it is not stored yet.

    The local movies table is a cache of catalog metadata: an existing row is
    never overwritten, and the returned record is always the stored one (which
    may differ from the supplied metadata if another caller inserted first).

    Args:
        pool: Connection pool.
        movie_id: External catalog identifier.
        title: Movie title (required by the schema).
        year: Optional release year.
        poster_url: Optional poster URL.
        overview: Optional synopsis.

    Returns:
        The canonical stored Movie.
    """
    insert_query = f"""
    INSERT INTO movies ({_MOVIE_COLUMNS})
    VALUES (%s, %s, %s, %s, %s)
    ON CONFLICT (id) DO NOTHING;
    """
    select_query = f"SELECT {_MOVIE_COLUMNS} FROM movies WHERE id = %s"

    async with pool.connection() as conn:
        await _execute_on_conn(conn, insert_query, (movie_id, title, year, poster_url, overview))
        rows = await _execute_on_conn(conn, select_query, (movie_id,), fetch=True)
        await conn.commit()

    return Movie.from_row(rows[0])


async def fetch_movie(pool: AsyncConnectionPool, movie_id: str) -> Optional[Movie]:
    """Return the stored movie with the given id, or None."""
    row = await _execute_read_one(
        pool,
        f"SELECT {_MOVIE_COLUMNS} FROM movies WHERE id = %s",
        (movie_id,),
    )
    return Movie.from_row(row) if row else None


# ===============================
#         INTERACTIONS
# ===============================

def _build_interaction_set_clause(
    liked: Optional[bool],
    status: Optional[WatchStatus],
) -> str:
    """
    Assemble the ON CONFLICT update list for a partial interaction upsert.

    Only the supplied fields appear in the SET list, so omitted fields keep
    their stored values. updated_at is always refreshed.
    """
    set_clauses: list[str] = []
    if liked is not None:
        set_clauses.append("liked = EXCLUDED.liked")
    if status is not None:
        set_clauses.append("status = EXCLUDED.status")
    set_clauses.append("updated_at = now()")
    return ",\n        ".join(set_clauses)


async def set_movie_interaction(
    pool: AsyncConnectionPool,
    user_id: str,
    movie_id: str,
    liked: Optional[bool] = None,
    status: Optional[WatchStatus] = None,
) -> UserMovieInteraction:
    """
    Merge a like flag and/or watch status into the user's interaction row.

    Creates the row if it does not exist (liked defaults to false and status to
    null). Fields passed as None are left untouched on an existing row. With
    neither field supplied the call only refreshes updated_at (or creates a
    default row).

    The movie must already be stored (see get_or_insert_movie).

    Returns:
        The interaction row as stored after the write.
    """
    set_sql = _build_interaction_set_clause(liked, status)
    query = f"""
    INSERT INTO user_movie_interactions (user_id, movie_id, liked, status, created_at, updated_at)
    VALUES (%s, %s, COALESCE(%s, FALSE), %s::watch_status, now(), now())
    ON CONFLICT (user_id, movie_id) DO UPDATE SET
        {set_sql}
    RETURNING {_INTERACTION_COLUMNS};
    """
    status_value = status.value if status is not None else None
    params = (user_id, movie_id, liked, status_value)
    row = await _execute_write(pool, query, params, fetch_one=True)
    return UserMovieInteraction.from_row(row)


async def fetch_interaction(
    pool: AsyncConnectionPool,
    user_id: str,
    movie_id: str,
) -> Optional[UserMovieInteraction]:
    """Return the user's interaction with a movie, or None if there is none."""
    row = await _execute_read_one(
        pool,
        f"SELECT {_INTERACTION_COLUMNS} FROM user_movie_interactions WHERE user_id = %s AND movie_id = %s",
        (user_id, movie_id),
    )
    return UserMovieInteraction.from_row(row) if row else None


async def fetch_liked_movies(pool: AsyncConnectionPool, user_id: str) -> list[Movie]:
    """Return every movie the user has liked, most recently touched first."""
    query = """
    SELECT m.id, m.title, m.year, m.poster_url, m.overview
    FROM user_movie_interactions i
    JOIN movies m ON m.id = i.movie_id
    WHERE i.user_id = %s AND i.liked
    ORDER BY i.updated_at DESC;
    """
    rows = await _execute_read(pool, query, (user_id,))
    return [Movie.from_row(row) for row in rows]


async def fetch_watched_movies(pool: AsyncConnectionPool, user_id: str) -> list[Movie]:
    """Return every movie the user has watched or rewatched, most recent first."""
    return await fetch_recently_watched(pool, user_id, limit=None)


async def fetch_recently_watched(
    pool: AsyncConnectionPool,
    user_id: str,
    limit: int | None = 20,
) -> list[Movie]:
    """
    Return movies with status watched or rewatched, most recently updated first.

    Args:
        limit: Maximum number of movies, or None for all of them.
    """
    query = """
    SELECT m.id, m.title, m.year, m.poster_url, m.overview
    FROM user_movie_interactions i
    JOIN movies m ON m.id = i.movie_id
    WHERE i.user_id = %s AND i.status IN ('watched', 'rewatched')
    ORDER BY i.updated_at DESC"""
    params: list[object] = [user_id]
    if limit is not None:
        query += "\n    LIMIT %s"
        params.append(limit)
    rows = await _execute_read(pool, query, tuple(params))
    return [Movie.from_row(row) for row in rows]


async def fetch_user_activity(
    pool: AsyncConnectionPool,
    user_id: str,
    limit: int = 50,
) -> list[ActivityEntry]:
    """Return the user's interaction log, most recent first."""
    query = """
    SELECT m.id, m.title, m.year, m.poster_url, m.overview,
           i.liked, i.status, i.updated_at
    FROM user_movie_interactions i
    JOIN movies m ON m.id = i.movie_id
    WHERE i.user_id = %s
    ORDER BY i.updated_at DESC
    LIMIT %s;
    """
    rows = await _execute_read(pool, query, (user_id, limit))
    return [
        ActivityEntry(
            movie=Movie.from_row(row),
            liked=bool(row["liked"]),
            status=WatchStatus(row["status"]) if row["status"] is not None else None,
            logged_at=row["updated_at"],
        )
        for row in rows
    ]


# ===============================
#            REVIEWS
# ===============================

async def add_review(
    pool: AsyncConnectionPool,
    user_id: str,
    movie_id: str,
    rating: float,
    text: str,
    is_public: bool = True,
) -> Review:
    """
    Insert the user's review of a movie, or fully replace the existing one.

    rating, text and is_public are always overwritten together, so no field
    can be left stale from an earlier submission.

    Raises:
        ValueError: If the rating is outside [0.5, 5.0] or a required field is
            empty. Nothing is written in that case.

    Returns:
        The stored review.
    """
    if not user_id or not movie_id:
        raise ValueError("user_id and movie_id are required")
    if not text:
        raise ValueError("Review text is required")
    if not MIN_RATING <= rating <= MAX_RATING:
        raise ValueError(f"rating {rating} out of range [{MIN_RATING}, {MAX_RATING}]")

    query = f"""
    INSERT INTO reviews (user_id, movie_id, rating, text, is_public, created_at, updated_at)
    VALUES (%s, %s, %s, %s, %s, now(), now())
    ON CONFLICT (user_id, movie_id) DO UPDATE SET
        rating = EXCLUDED.rating,
        text = EXCLUDED.text,
        is_public = EXCLUDED.is_public,
        updated_at = now()
    RETURNING {_REVIEW_COLUMNS};
    """
    row = await _execute_write(pool, query, (user_id, movie_id, rating, text, is_public), fetch_one=True)
    return Review.from_row(row)


async def fetch_reviews_for_movie(
    pool: AsyncConnectionPool,
    movie_id: str,
    include_private: bool = False,
) -> list[Review]:
    """Return reviews of a movie with reviewer usernames, newest first."""
    query = """
    SELECT r.id, r.user_id, r.movie_id, r.rating, r.text, r.is_public,
           r.created_at, r.updated_at, u.username
    FROM reviews r
    JOIN users u ON u.id = r.user_id
    WHERE r.movie_id = %s"""
    if not include_private:
        query += " AND r.is_public"
    query += "\n    ORDER BY r.updated_at DESC;"
    rows = await _execute_read(pool, query, (movie_id,))
    return [Review.from_row(row) for row in rows]


async def fetch_user_reviews(
    pool: AsyncConnectionPool,
    user_id: str,
    include_private: bool = False,
) -> list[Review]:
    """Return the reviews written by a user with the movie titles, newest first."""
    query = """
    SELECT r.id, r.user_id, r.movie_id, r.rating, r.text, r.is_public,
           r.created_at, r.updated_at, m.title AS movie_title
    FROM reviews r
    JOIN movies m ON m.id = r.movie_id
    WHERE r.user_id = %s"""
    if not include_private:
        query += " AND r.is_public"
    query += "\n    ORDER BY r.updated_at DESC;"
    rows = await _execute_read(pool, query, (user_id,))
    return [Review.from_row(row) for row in rows]
