"""
Mutating movie actions used by the HTTP routes.

Each action ensures the movie is stored locally (get-or-insert) before writing
the interaction or review, invalidates the cache entries the write affects, and
reports the outcome as an ActionResult. Validation failures raise SubmissionError
before anything is written; persistence failures are logged and reported as a
generic failure message.
"""

import logging
from typing import Optional

import psycopg
from psycopg_pool import AsyncConnectionPool

from db.movies import MAX_RATING, MIN_RATING, add_review, fetch_movie, get_or_insert_movie, set_movie_interaction
from db.redis import Cache
from db.users import MOCK_USER_ID
from implementation.classes.enums import WatchStatus
from implementation.classes.schemas import ActionResult, MovieIn, ReviewSubmission

logger = logging.getLogger(__name__)


class SubmissionError(ValueError):
    """A request failed validation; nothing was written."""


# ===============================
#          Cache keys
# ===============================

def movie_cache_key(movie_id: str, user_id: str = MOCK_USER_ID) -> str:
    return f"movie:{movie_id}:user:{user_id}"


def profile_cache_key(user_id: str) -> str:
    return f"user:{user_id}:profile"


def user_lists_cache_key(user_id: str) -> str:
    return f"user:{user_id}:lists"


def list_cache_key(list_id: int) -> str:
    return f"list:{list_id}"


def recommendations_cache_key(user_id: str, kind: str) -> str:
    return f"user:{user_id}:recommendations:{kind}"


def recommendation_cache_keys(user_id: str) -> tuple[str, str]:
    return (
        recommendations_cache_key(user_id, "movies"),
        recommendations_cache_key(user_id, "users"),
    )


# ===============================
#          Validation
# ===============================

def validate_review_submission(movie_id: str, submission: ReviewSubmission) -> tuple[float, str]:
    """
    Check a review submission before any write is attempted.

    Returns:
        (rating, text) once validated.

    Raises:
        SubmissionError: If the movie id, rating or text is missing, or the
            rating is outside [0.5, 5.0].
    """
    text = (submission.text or "").strip()
    if not movie_id or not submission.rating or not text:
        raise SubmissionError("Missing required fields.")
    if not MIN_RATING <= submission.rating <= MAX_RATING:
        raise SubmissionError(f"Rating must be between {MIN_RATING} and {MAX_RATING}.")
    return submission.rating, text


# ===============================
#           Actions
# ===============================

async def _ensure_movie(pool: AsyncConnectionPool, movie: MovieIn) -> None:
    await get_or_insert_movie(
        pool,
        movie_id=movie.id,
        title=movie.title,
        year=movie.year,
        poster_url=movie.poster_url,
        overview=movie.overview,
    )


async def like_movie_action(
    pool: AsyncConnectionPool,
    cache: Cache,
    movie: MovieIn,
    is_liked: bool,
    user_id: str = MOCK_USER_ID,
) -> ActionResult:
    """Like or unlike a movie. The stored watch status is left untouched."""
    try:
        await _ensure_movie(pool, movie)
        await set_movie_interaction(pool, user_id=user_id, movie_id=movie.id, liked=is_liked)
    except psycopg.Error:
        logger.exception("Error liking movie %s", movie.id)
        return ActionResult(success=False, message="Failed to update like status.")

    await cache.delete(movie_cache_key(movie.id, user_id), *recommendation_cache_keys(user_id))
    return ActionResult(success=True, message="Movie liked" if is_liked else "Movie unliked")


async def set_watch_status_action(
    pool: AsyncConnectionPool,
    cache: Cache,
    movie: MovieIn,
    status: WatchStatus,
    user_id: str = MOCK_USER_ID,
) -> ActionResult:
    """Set the watch status of a movie. The stored like flag is left untouched."""
    try:
        await _ensure_movie(pool, movie)
        await set_movie_interaction(pool, user_id=user_id, movie_id=movie.id, status=status)
    except psycopg.Error:
        logger.exception("Error setting watch status for movie %s", movie.id)
        return ActionResult(success=False, message="Failed to set watch status.")

    await cache.delete(movie_cache_key(movie.id, user_id), *recommendation_cache_keys(user_id))
    return ActionResult(success=True, message=f"Status set to {status.value}")


async def submit_review_action(
    pool: AsyncConnectionPool,
    cache: Cache,
    movie_id: str,
    submission: ReviewSubmission,
    user_id: str = MOCK_USER_ID,
) -> ActionResult:
    """
    Add or replace the user's review of a movie.

    Raises:
        SubmissionError: On missing or out-of-range fields, or when the movie is
            not stored yet and no title was supplied to store it with.
    """
    rating, text = validate_review_submission(movie_id, submission)

    try:
        movie_title: Optional[str] = (submission.movie_title or "").strip() or None
        if movie_title is None:
            if await fetch_movie(pool, movie_id) is None:
                raise SubmissionError("Missing required fields.")
        else:
            await get_or_insert_movie(pool, movie_id=movie_id, title=movie_title)

        await add_review(
            pool,
            user_id=user_id,
            movie_id=movie_id,
            rating=rating,
            text=text,
            is_public=submission.is_public,
        )
    except psycopg.Error:
        logger.exception("Error submitting review for movie %s", movie_id)
        return ActionResult(success=False, message="Failed to submit review.")

    await cache.delete(movie_cache_key(movie_id, user_id))
    return ActionResult(success=True, message="Review submitted successfully!")
