"""
Builds the recommendation profile for a user from stored data.

Reads watched movies, liked movies and the user's lists concurrently and maps
them onto the UserProfile schema the recommendation flow accepts. The lists and
their movies come back from a single query, so a profile build holds at most
four pooled connections however many lists the user has.
"""

import asyncio

from psycopg_pool import AsyncConnectionPool

from db.lists import fetch_user_lists_with_movies
from db.movies import fetch_liked_movies, fetch_watched_movies
from db.users import fetch_user
from implementation.classes.records import Movie, MovieListDetail
from implementation.classes.schemas import (
    ProfileMovieList,
    RecommendationMovie,
    UserProfile,
)


def to_recommendation_movie(movie: Movie) -> RecommendationMovie:
    return RecommendationMovie(title=movie.title, year=movie.year)


def _to_profile_list(detail: MovieListDetail) -> ProfileMovieList:
    return ProfileMovieList(
        name=detail.list.name,
        movies=[to_recommendation_movie(listed.movie) for listed in detail.movies],
    )


async def build_user_profile(
    pool: AsyncConnectionPool,
    user_id: str,
    taste_description: str | None = None,
    include_private: bool = False,
) -> UserProfile:
    """
    Assemble a UserProfile for the recommendation flow.

    Args:
        pool: Connection pool.
        user_id: User whose history is read.
        taste_description: Free-text taste. Falls back to the user's bio, then to "".
        include_private: Whether the user's private lists feed the profile.
            Only set when the profile belongs to the requesting user.
    """
    user, watched, liked, list_details = await asyncio.gather(
        fetch_user(pool, user_id),
        fetch_watched_movies(pool, user_id),
        fetch_liked_movies(pool, user_id),
        fetch_user_lists_with_movies(pool, user_id, include_private=include_private),
    )

    if not taste_description:
        taste_description = (user.bio if user else None) or ""

    return UserProfile(
        watched_movies=[to_recommendation_movie(movie) for movie in watched],
        liked_movies=[to_recommendation_movie(movie) for movie in liked],
        movie_lists=[_to_profile_list(detail) for detail in list_details],
        taste_description=taste_description,
    )
