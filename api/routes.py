"""
HTTP routes consumed by the FilmFriend UI.

Handles on app.state (pool, cache, LLM client) are injected through the
dependencies below. Read routes go through the fail-open cache; mutating routes
delegate to api/actions.py, which invalidates what they change.
"""

import logging
from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from openai import AsyncOpenAI
from psycopg_pool import AsyncConnectionPool

from api.actions import (
    like_movie_action,
    list_cache_key,
    movie_cache_key,
    profile_cache_key,
    recommendation_cache_keys,
    recommendations_cache_key,
    set_watch_status_action,
    submit_review_action,
    user_lists_cache_key,
)
from db.lists import (
    add_list_item,
    create_list,
    delete_list,
    fetch_list,
    fetch_list_detail,
    fetch_popular_lists,
    fetch_user_lists,
    remove_list_item,
)
from db.movies import (
    fetch_interaction,
    fetch_movie,
    fetch_recently_watched,
    fetch_reviews_for_movie,
    fetch_user_activity,
    fetch_user_reviews,
    get_or_insert_movie,
)
from db.redis import Cache
from db.users import MOCK_USER_ID, fetch_user, update_user_profile
from implementation.classes.enums import RecommendationType
from implementation.classes.records import MovieList
from implementation.classes.schemas import (
    ActionResult,
    AddListItemRequest,
    CreateListRequest,
    GenerateListSuggestionsInput,
    GenerateListSuggestionsOutput,
    LikeMovieRequest,
    ListSuggestionsRequest,
    RecommendationContext,
    RecommendationInput,
    RecommendationOutput,
    ReviewSubmission,
    UpdateProfileRequest,
    WatchStatusRequest,
)
from implementation.llms.recommendation_methods import generate_list_suggestions, get_recommendations
from implementation.profile import build_user_profile, to_recommendation_movie

logger = logging.getLogger(__name__)

router = APIRouter()

RECOMMENDATION_TTL_SECONDS = 3600
READ_TTL_SECONDS = 300


# ===============================
#         Dependencies
# ===============================

def get_pool(request: Request) -> AsyncConnectionPool:
    return request.app.state.pool


def get_cache(request: Request) -> Cache:
    return request.app.state.cache


def get_llm_client(request: Request) -> AsyncOpenAI:
    return request.app.state.llm_client


def _action_response(result: ActionResult) -> Any:
    """Report failed actions with a 500 while keeping the same body shape."""
    if result.success:
        return result
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=result.model_dump())


async def _owned_list_or_error(pool: AsyncConnectionPool, list_id: int) -> MovieList:
    movie_list = await fetch_list(pool, list_id)
    if movie_list is None:
        raise HTTPException(status_code=404, detail="List not found")
    _require_visible_list(movie_list.user_id, movie_list.is_public)
    if movie_list.user_id != MOCK_USER_ID:
        raise HTTPException(status_code=403, detail="List belongs to another user")
    return movie_list


def _is_current_user(user_id: str) -> bool:
    return user_id == MOCK_USER_ID


def _require_visible_list(user_id: str, is_public: bool) -> None:
    """Private lists of other users are reported as missing."""
    if not is_public and not _is_current_user(user_id):
        raise HTTPException(status_code=404, detail="List not found")


# ===============================
#            Movies
# ===============================

@router.get("/movies/{movie_id}")
async def get_movie(
    movie_id: str,
    pool: AsyncConnectionPool = Depends(get_pool),
    cache: Cache = Depends(get_cache),
):
    """Stored movie plus the current user's interaction with it."""
    key = movie_cache_key(movie_id)
    cached = await cache.get(key)
    if cached is not None:
        return cached

    movie = await fetch_movie(pool, movie_id)
    if movie is None:
        raise HTTPException(status_code=404, detail="Movie not found")
    interaction = await fetch_interaction(pool, MOCK_USER_ID, movie_id)

    payload = jsonable_encoder({"movie": movie, "interaction": interaction})
    await cache.set(key, payload, READ_TTL_SECONDS)
    return payload


@router.post("/movies/like", response_model=ActionResult)
async def like_movie(
    body: LikeMovieRequest,
    pool: AsyncConnectionPool = Depends(get_pool),
    cache: Cache = Depends(get_cache),
):
    return _action_response(await like_movie_action(pool, cache, body.movie, body.liked))


@router.post("/movies/status", response_model=ActionResult)
async def set_watch_status(
    body: WatchStatusRequest,
    pool: AsyncConnectionPool = Depends(get_pool),
    cache: Cache = Depends(get_cache),
):
    return _action_response(await set_watch_status_action(pool, cache, body.movie, body.status))


@router.post("/movies/{movie_id}/reviews", response_model=ActionResult)
async def submit_review(
    movie_id: str,
    body: ReviewSubmission,
    pool: AsyncConnectionPool = Depends(get_pool),
    cache: Cache = Depends(get_cache),
):
    return _action_response(await submit_review_action(pool, cache, movie_id, body))


@router.get("/movies/{movie_id}/reviews")
async def get_movie_reviews(movie_id: str, pool: AsyncConnectionPool = Depends(get_pool)):
    return await fetch_reviews_for_movie(pool, movie_id)


# ===============================
#            Users
# ===============================

@router.get("/users/{user_id}/profile")
async def get_profile(
    user_id: str,
    pool: AsyncConnectionPool = Depends(get_pool),
    cache: Cache = Depends(get_cache),
):
    key = profile_cache_key(user_id)
    cached = await cache.get(key)
    if cached is not None:
        return cached

    user = await fetch_user(pool, user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")

    payload = jsonable_encoder(user)
    await cache.set(key, payload, READ_TTL_SECONDS)
    return payload


@router.patch("/users/{user_id}/profile")
async def update_profile(
    user_id: str,
    body: UpdateProfileRequest,
    pool: AsyncConnectionPool = Depends(get_pool),
    cache: Cache = Depends(get_cache),
):
    if user_id != MOCK_USER_ID:
        raise HTTPException(status_code=403, detail="Cannot edit another user's profile")

    user = await update_user_profile(pool, user_id, name=body.name, avatar_url=body.avatar_url, bio=body.bio)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")

    # bio feeds the taste description used by recommendations
    await cache.delete(
        profile_cache_key(user_id),
        *recommendation_cache_keys(user_id),
    )
    return user


@router.get("/users/{user_id}/reviews")
async def get_user_reviews(user_id: str, pool: AsyncConnectionPool = Depends(get_pool)):
    return await fetch_user_reviews(pool, user_id, include_private=_is_current_user(user_id))


@router.get("/users/{user_id}/lists")
async def get_user_lists(
    user_id: str,
    pool: AsyncConnectionPool = Depends(get_pool),
    cache: Cache = Depends(get_cache),
):
    key = user_lists_cache_key(user_id)
    cached = await cache.get(key)
    if cached is not None:
        return cached

    payload = jsonable_encoder(
        await fetch_user_lists(pool, user_id, include_private=_is_current_user(user_id))
    )
    await cache.set(key, payload, READ_TTL_SECONDS)
    return payload


@router.get("/users/{user_id}/recently-watched")
async def get_recently_watched(
    user_id: str,
    limit: int = Query(20, ge=1, le=100),
    pool: AsyncConnectionPool = Depends(get_pool),
):
    return await fetch_recently_watched(pool, user_id, limit=limit)


@router.get("/users/{user_id}/activity")
async def get_activity(
    user_id: str,
    limit: int = Query(50, ge=1, le=100),
    pool: AsyncConnectionPool = Depends(get_pool),
):
    return await fetch_user_activity(pool, user_id, limit=limit)


async def _cached_recommendations(
    pool: AsyncConnectionPool,
    cache: Cache,
    llm_client: AsyncOpenAI,
    user_id: str,
    recommendation_type: RecommendationType,
    kind: str,
) -> RecommendationOutput:
    key = recommendations_cache_key(user_id, kind)
    cached = await cache.get(key)
    if cached is not None:
        return RecommendationOutput.model_validate(cached)

    if await fetch_user(pool, user_id) is None:
        raise HTTPException(status_code=404, detail="User not found")

    profile = await build_user_profile(pool, user_id, include_private=_is_current_user(user_id))
    output = await get_recommendations(
        llm_client,
        RecommendationInput(user_profile=profile, recommendation_type=recommendation_type),
    )
    await cache.set(key, output.model_dump(mode="json"), RECOMMENDATION_TTL_SECONDS)
    return output


@router.get("/users/{user_id}/recommendations/movies")
async def get_watch_next(
    user_id: str,
    pool: AsyncConnectionPool = Depends(get_pool),
    cache: Cache = Depends(get_cache),
    llm_client: AsyncOpenAI = Depends(get_llm_client),
) -> list[str]:
    output = await _cached_recommendations(
        pool, cache, llm_client, user_id, RecommendationType.WATCH_NEXT, "movies"
    )
    return output.suggested_movies


@router.get("/users/{user_id}/recommendations/users")
async def get_similar_users(
    user_id: str,
    pool: AsyncConnectionPool = Depends(get_pool),
    cache: Cache = Depends(get_cache),
    llm_client: AsyncOpenAI = Depends(get_llm_client),
):
    output = await _cached_recommendations(
        pool, cache, llm_client, user_id, RecommendationType.SIMILAR_USERS, "users"
    )
    return output.similar_users


# ===============================
#            Lists
# ===============================

@router.post("/lists", status_code=status.HTTP_201_CREATED)
async def create_movie_list(
    body: CreateListRequest,
    pool: AsyncConnectionPool = Depends(get_pool),
    cache: Cache = Depends(get_cache),
):
    movie_list = await create_list(
        pool,
        user_id=MOCK_USER_ID,
        name=body.name,
        description=body.description,
        is_public=body.is_public,
    )
    await cache.delete(user_lists_cache_key(MOCK_USER_ID), *recommendation_cache_keys(MOCK_USER_ID))
    return movie_list


@router.get("/lists/popular")
async def get_popular_lists(
    limit: int = Query(10, ge=1, le=100),
    pool: AsyncConnectionPool = Depends(get_pool),
):
    return await fetch_popular_lists(pool, limit=limit)


@router.get("/lists/{list_id}")
async def get_list(
    list_id: int,
    pool: AsyncConnectionPool = Depends(get_pool),
    cache: Cache = Depends(get_cache),
):
    key = list_cache_key(list_id)
    cached = await cache.get(key)
    if cached is not None:
        _require_visible_list(cached["user_id"], cached["is_public"])
        return cached

    detail = await fetch_list_detail(pool, list_id)
    if detail is None:
        raise HTTPException(status_code=404, detail="List not found")
    _require_visible_list(detail.list.user_id, detail.list.is_public)

    payload = jsonable_encoder({**asdict(detail.list), "movies": detail.movies})
    await cache.set(key, payload, READ_TTL_SECONDS)
    return payload


@router.delete("/lists/{list_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_list(
    list_id: int,
    pool: AsyncConnectionPool = Depends(get_pool),
    cache: Cache = Depends(get_cache),
):
    await _owned_list_or_error(pool, list_id)
    await delete_list(pool, list_id, MOCK_USER_ID)
    await cache.delete(
        list_cache_key(list_id),
        user_lists_cache_key(MOCK_USER_ID),
        *recommendation_cache_keys(MOCK_USER_ID),
    )


@router.post("/lists/{list_id}/movies", status_code=status.HTTP_201_CREATED)
async def add_movie_to_list(
    list_id: int,
    body: AddListItemRequest,
    pool: AsyncConnectionPool = Depends(get_pool),
    cache: Cache = Depends(get_cache),
):
    await _owned_list_or_error(pool, list_id)
    movie = body.movie
    await get_or_insert_movie(
        pool,
        movie_id=movie.id,
        title=movie.title,
        year=movie.year,
        poster_url=movie.poster_url,
        overview=movie.overview,
    )
    item = await add_list_item(pool, list_id, movie.id)
    await cache.delete(
        list_cache_key(list_id),
        user_lists_cache_key(MOCK_USER_ID),
        *recommendation_cache_keys(MOCK_USER_ID),
    )
    return item


@router.delete("/lists/{list_id}/movies/{movie_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_movie_from_list(
    list_id: int,
    movie_id: str,
    pool: AsyncConnectionPool = Depends(get_pool),
    cache: Cache = Depends(get_cache),
):
    await _owned_list_or_error(pool, list_id)
    if not await remove_list_item(pool, list_id, movie_id):
        raise HTTPException(status_code=404, detail="Movie is not in this list")
    await cache.delete(
        list_cache_key(list_id),
        user_lists_cache_key(MOCK_USER_ID),
        *recommendation_cache_keys(MOCK_USER_ID),
    )


@router.post("/lists/{list_id}/suggestions")
async def suggest_for_list(
    list_id: int,
    body: ListSuggestionsRequest,
    pool: AsyncConnectionPool = Depends(get_pool),
    llm_client: AsyncOpenAI = Depends(get_llm_client),
) -> list[str]:
    """Movie titles the model suggests adding to a list, given its contents and the user's profile."""
    detail = await fetch_list_detail(pool, list_id)
    if detail is None:
        raise HTTPException(status_code=404, detail="List not found")
    _require_visible_list(detail.list.user_id, detail.list.is_public)

    profile = await build_user_profile(
        pool, MOCK_USER_ID, taste_description=body.user_taste, include_private=True
    )
    output = await get_recommendations(
        llm_client,
        RecommendationInput(
            user_profile=profile,
            recommendation_type=RecommendationType.LIST_SUGGESTIONS,
            context=RecommendationContext(
                list_name=detail.list.name,
                list_movies=[to_recommendation_movie(listed.movie) for listed in detail.movies],
            ),
        ),
    )
    return output.suggested_movies


# ===============================
#     Stateless AI endpoints
# ===============================

@router.post("/recommendations", response_model=RecommendationOutput)
async def recommend(
    body: RecommendationInput,
    llm_client: AsyncOpenAI = Depends(get_llm_client),
):
    """Run the recommendation flow on a caller-supplied profile."""
    return await get_recommendations(llm_client, body)


@router.post("/recommendations/list-suggestions", response_model=GenerateListSuggestionsOutput)
async def list_suggestions(
    body: GenerateListSuggestionsInput,
    llm_client: AsyncOpenAI = Depends(get_llm_client),
):
    """Suggest titles for a caller-described list without reading stored data."""
    return await generate_list_suggestions(llm_client, body)
