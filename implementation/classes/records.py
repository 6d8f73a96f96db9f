"""
Typed records for rows read from Postgres.

These are plain dataclasses with no validation of their own; validation of
incoming data happens at the request boundary (see schemas.py and api/actions.py).
Each record has a ``from_row`` constructor that accepts a dict row as produced
by the pool's ``dict_row`` row factory.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .enums import WatchStatus


@dataclass(slots=True)
class User:
    id: str
    username: str
    name: Optional[str]
    avatar_url: Optional[str]
    bio: Optional[str]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, row: dict) -> "User":
        return cls(
            id=row["id"],
            username=row["username"],
            name=row.get("name"),
            avatar_url=row.get("avatar_url"),
            bio=row.get("bio"),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )


@dataclass(slots=True)
class Movie:
    id: str
    title: str
    year: Optional[int] = None
    poster_url: Optional[str] = None
    overview: Optional[str] = None

    @classmethod
    def from_row(cls, row: dict) -> "Movie":
        return cls(
            id=row["id"],
            title=row["title"],
            year=row.get("year"),
            poster_url=row.get("poster_url"),
            overview=row.get("overview"),
        )


@dataclass(slots=True)
class UserMovieInteraction:
    user_id: str
    movie_id: str
    liked: bool
    status: Optional[WatchStatus]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, row: dict) -> "UserMovieInteraction":
        status = row.get("status")
        return cls(
            user_id=row["user_id"],
            movie_id=row["movie_id"],
            liked=bool(row.get("liked")),
            status=WatchStatus(status) if status is not None else None,
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )


@dataclass(slots=True)
class Review:
    id: int
    user_id: str
    movie_id: str
    rating: float
    text: str
    is_public: bool
    created_at: datetime
    updated_at: datetime
    movie_title: Optional[str] = None   # populated by joined reads only
    username: Optional[str] = None      # populated by joined reads only

    @classmethod
    def from_row(cls, row: dict) -> "Review":
        # DECIMAL(2, 1) comes back as Decimal
        return cls(
            id=int(row["id"]),
            user_id=row["user_id"],
            movie_id=row["movie_id"],
            rating=float(row["rating"]),
            text=row["text"],
            is_public=bool(row["is_public"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            movie_title=row.get("movie_title"),
            username=row.get("username"),
        )


@dataclass(slots=True)
class MovieList:
    id: int
    user_id: str
    name: str
    description: Optional[str]
    is_public: bool
    created_at: datetime
    updated_at: datetime
    movie_count: Optional[int] = None   # populated by aggregate reads only

    @classmethod
    def from_row(cls, row: dict) -> "MovieList":
        movie_count = row.get("movie_count")
        return cls(
            id=int(row["id"]),
            user_id=row["user_id"],
            name=row["name"],
            description=row.get("description"),
            is_public=bool(row["is_public"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            movie_count=int(movie_count) if movie_count is not None else None,
        )


@dataclass(slots=True)
class ListItem:
    list_id: int
    movie_id: str
    added_at: datetime

    @classmethod
    def from_row(cls, row: dict) -> "ListItem":
        return cls(
            list_id=int(row["list_id"]),
            movie_id=row["movie_id"],
            added_at=row["added_at"],
        )


@dataclass(slots=True)
class ListedMovie:
    """A movie as it appears inside a list."""
    movie: Movie
    added_at: datetime


@dataclass(slots=True)
class MovieListDetail:
    """A list together with its movies, oldest addition first."""
    list: MovieList
    movies: list[ListedMovie]


@dataclass(slots=True)
class ActivityEntry:
    """One row of a user's interaction log."""
    movie: Movie
    liked: bool
    status: Optional[WatchStatus]
    logged_at: datetime
