"""Shared pytest fixtures for unit tests."""

from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable
import sys

import psycopg
import pytest

# Ensure project root is importable when tests run from repository root.
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from implementation.classes.schemas import MovieIn


class FakeFilmFriendDB:
    """
    In-memory stand-in for the movies, user_movie_interactions and reviews tables.

    Understands exactly the statements db/movies.py issues for get-or-insert,
    the interaction upsert and the review upsert, including which columns the
    ON CONFLICT branch updates. Foreign keys to movies are enforced.
    """

    def __init__(self) -> None:
        self.movies: dict[str, dict] = {}
        self.interactions: dict[tuple[str, str], dict] = {}
        self.reviews: dict[tuple[str, str], dict] = {}
        self.commits = 0
        self._next_review_id = 1
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def _now(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    def _require_movie(self, movie_id: str) -> None:
        if movie_id not in self.movies:
            raise psycopg.errors.ForeignKeyViolation(f"movie {movie_id} is not present in table movies")

    def run(self, query: str, params) -> list[dict]:
        if "INSERT INTO movies" in query:
            movie_id, title, year, poster_url, overview = params
            self.movies.setdefault(movie_id, {
                "id": movie_id, "title": title, "year": year,
                "poster_url": poster_url, "overview": overview,
            })
            return []
        if "FROM movies WHERE id" in query:
            row = self.movies.get(params[0])
            return [dict(row)] if row else []
        if "INSERT INTO user_movie_interactions" in query:
            return [self._upsert_interaction(query, params)]
        if "INSERT INTO reviews" in query:
            return [self._upsert_review(params)]
        raise AssertionError(f"Unexpected query: {query}")

    def _upsert_interaction(self, query: str, params) -> dict:
        user_id, movie_id, liked, status = params
        self._require_movie(movie_id)
        now = self._now()
        key = (user_id, movie_id)
        row = self.interactions.get(key)
        if row is None:
            row = {
                "user_id": user_id, "movie_id": movie_id,
                "liked": bool(liked) if liked is not None else False,
                "status": status, "created_at": now, "updated_at": now,
            }
            self.interactions[key] = row
        else:
            if "liked = EXCLUDED.liked" in query:
                row["liked"] = bool(liked) if liked is not None else False
            if "status = EXCLUDED.status" in query:
                row["status"] = status
            row["updated_at"] = now
        return dict(row)

    def _upsert_review(self, params) -> dict:
        user_id, movie_id, rating, text, is_public = params
        self._require_movie(movie_id)
        if not 0.5 <= rating <= 5.0:
            raise psycopg.errors.CheckViolation("reviews_rating_check")
        now = self._now()
        key = (user_id, movie_id)
        row = self.reviews.get(key)
        if row is None:
            row = {"id": self._next_review_id, "user_id": user_id, "movie_id": movie_id, "created_at": now}
            self._next_review_id += 1
            self.reviews[key] = row
        row.update({"rating": rating, "text": text, "is_public": is_public, "updated_at": now})
        return dict(row)


class _FakeCursor:
    def __init__(self, db: FakeFilmFriendDB) -> None:
        self._db = db
        self._rows: list[dict] = []

    async def execute(self, query, params=None):
        self._rows = self._db.run(query, params)

    async def fetchone(self):
        return self._rows[0] if self._rows else None

    async def fetchall(self):
        return list(self._rows)


class _FakeConnection:
    def __init__(self, db: FakeFilmFriendDB) -> None:
        self._db = db

    @asynccontextmanager
    async def cursor(self):
        yield _FakeCursor(self._db)

    async def commit(self):
        self._db.commits += 1

    async def rollback(self):
        pass


class FakePool:
    """Duck-typed AsyncConnectionPool backed by a FakeFilmFriendDB."""

    def __init__(self, db: FakeFilmFriendDB) -> None:
        self.db = db

    @asynccontextmanager
    async def connection(self):
        yield _FakeConnection(self.db)


@pytest.fixture
def fake_db() -> FakeFilmFriendDB:
    return FakeFilmFriendDB()


@pytest.fixture
def fake_pool(fake_db: FakeFilmFriendDB) -> FakePool:
    return FakePool(fake_db)


@pytest.fixture
def movie_in_factory() -> Callable[..., MovieIn]:
    """Return a factory that builds a valid MovieIn with optional overrides."""

    def _factory(**overrides: Any) -> MovieIn:
        base_data: dict[str, Any] = {
            "id": "42",
            "title": "Test Film",
            "year": 2020,
            "poster_url": "https://image.test/poster.jpg",
            "overview": "A film made for testing.",
        }
        base_data.update(overrides)
        return MovieIn(**base_data)

    return _factory
