"""Unit tests for implementation.profile."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from implementation import profile
from implementation.classes.records import ListedMovie, Movie, MovieList, MovieListDetail, User

_NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _user(bio) -> User:
    return User(id="1", username="filmfan", name=None, avatar_url=None, bio=bio, created_at=_NOW, updated_at=_NOW)


def _list_detail(list_id: int, name: str, titles: list[str]) -> MovieListDetail:
    return MovieListDetail(
        list=MovieList(id=list_id, user_id="1", name=name, description=None, is_public=True, created_at=_NOW, updated_at=_NOW),
        movies=[ListedMovie(movie=Movie(id=str(i), title=title), added_at=_NOW) for i, title in enumerate(titles)],
    )


def _patch_reads(mocker, user, list_details=None) -> AsyncMock:
    mocker.patch("implementation.profile.fetch_user", new=AsyncMock(return_value=user))
    mocker.patch("implementation.profile.fetch_watched_movies", new=AsyncMock(return_value=[Movie(id="1", title="Heat", year=1995)]))
    mocker.patch("implementation.profile.fetch_liked_movies", new=AsyncMock(return_value=[Movie(id="2", title="Ronin")]))
    if list_details is None:
        list_details = [_list_detail(5, "Heists", ["Rififi"])]
    return mocker.patch(
        "implementation.profile.fetch_user_lists_with_movies",
        new=AsyncMock(return_value=list_details),
    )


@pytest.mark.asyncio
async def test_build_user_profile_maps_history(mocker) -> None:
    _patch_reads(mocker, _user(bio=None))
    user_profile = await profile.build_user_profile(AsyncMock(), "1", taste_description="Tense crime films.")

    assert [str(movie) for movie in user_profile.watched_movies] == ["Heat (1995)"]
    assert [movie.title for movie in user_profile.liked_movies] == ["Ronin"]
    assert user_profile.movie_lists[0].name == "Heists"
    assert [movie.title for movie in user_profile.movie_lists[0].movies] == ["Rififi"]
    assert user_profile.taste_description == "Tense crime films."


@pytest.mark.asyncio
async def test_build_user_profile_reads_all_lists_in_one_call(mocker) -> None:
    """Many lists must not turn into one query (and one pooled connection) per list."""
    details = [_list_detail(i, f"List {i}", ["Heat"]) for i in range(40)]
    fetch_lists = _patch_reads(mocker, _user(bio=None), details)

    user_profile = await profile.build_user_profile(AsyncMock(), "1")

    fetch_lists.assert_awaited_once()
    assert len(user_profile.movie_lists) == 40


@pytest.mark.asyncio
async def test_build_user_profile_excludes_private_lists_by_default(mocker) -> None:
    fetch_lists = _patch_reads(mocker, _user(bio=None))
    pool = AsyncMock()

    await profile.build_user_profile(pool, "2")
    fetch_lists.assert_awaited_with(pool, "2", include_private=False)

    await profile.build_user_profile(pool, "1", include_private=True)
    fetch_lists.assert_awaited_with(pool, "1", include_private=True)


@pytest.mark.asyncio
async def test_build_user_profile_falls_back_to_bio(mocker) -> None:
    _patch_reads(mocker, _user(bio="Slow cinema."))
    user_profile = await profile.build_user_profile(AsyncMock(), "1", taste_description="")
    assert user_profile.taste_description == "Slow cinema."


@pytest.mark.asyncio
async def test_build_user_profile_empty_taste_without_bio(mocker) -> None:
    _patch_reads(mocker, None)
    user_profile = await profile.build_user_profile(AsyncMock(), "1")
    assert user_profile.taste_description == ""
