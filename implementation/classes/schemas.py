"""
Pydantic schemas for API request bodies and LLM input/output structures.

Request bodies only check shape and types; business rules (required review text,
rating range, ...) are checked explicitly in api/actions.py before any write.
The recommendation output models double as OpenAI structured-output formats.
"""

from typing import List, Optional
from pydantic import BaseModel, Field, constr, field_validator, model_validator
from .enums import RecommendationType, WatchStatus


# -----------------------------
#       REQUEST BODIES
# -----------------------------

class MovieIn(BaseModel):
    """Minimal catalog metadata sent by the UI when it interacts with a movie."""
    id: constr(strip_whitespace=True, min_length=1) = Field(
        ...,
        description="External catalog (TMDB) identifier."
    )
    title: constr(strip_whitespace=True, min_length=1)
    year: Optional[int] = None
    poster_url: Optional[str] = None
    overview: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value):
        # TMDB ids arrive as numbers from the catalog API
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class LikeMovieRequest(BaseModel):
    movie: MovieIn
    liked: bool


class WatchStatusRequest(BaseModel):
    movie: MovieIn
    status: WatchStatus

    @field_validator("status", mode="before")
    @classmethod
    def parse_status(cls, value):
        """Accept the UI's hyphenated spelling ("want-to-watch") as well."""
        if isinstance(value, str):
            return WatchStatus.from_string(value) or value
        return value


class ReviewSubmission(BaseModel):
    movie_title: Optional[str] = None
    rating: Optional[float] = None
    text: Optional[str] = None
    is_public: bool = False


class CreateListRequest(BaseModel):
    name: constr(strip_whitespace=True, min_length=1, max_length=100)
    description: Optional[str] = None
    is_public: bool = True


class AddListItemRequest(BaseModel):
    movie: MovieIn


class ListSuggestionsRequest(BaseModel):
    user_taste: str = Field(
        default="",
        description="Free-text description of the user's taste. Falls back to the profile bio when empty."
    )


class UpdateProfileRequest(BaseModel):
    name: Optional[constr(strip_whitespace=True, max_length=100)] = None
    avatar_url: Optional[constr(max_length=255)] = None
    bio: Optional[str] = None


class ActionResult(BaseModel):
    """Outcome of a mutating movie action, shown to the user as a toast."""
    success: bool
    message: str


# -----------------------------
#   RECOMMENDATION INPUTS
# -----------------------------

class RecommendationMovie(BaseModel):
    title: str
    year: Optional[int] = None
    genres: Optional[List[str]] = None

    def __str__(self) -> str:
        return f"{self.title} ({self.year})" if self.year else self.title


class ProfileMovieList(BaseModel):
    name: str
    movies: List[RecommendationMovie] = Field(default_factory=list)


class UserProfile(BaseModel):
    watched_movies: List[RecommendationMovie] = Field(
        default_factory=list,
        description="Movies the user has watched."
    )
    liked_movies: List[RecommendationMovie] = Field(
        default_factory=list,
        description="Movies the user has explicitly liked."
    )
    movie_lists: List[ProfileMovieList] = Field(
        default_factory=list,
        description="User's created movie lists."
    )
    taste_description: str = Field(
        default="",
        description="A short description of the user's taste in movies."
    )


class RecommendationContext(BaseModel):
    list_name: Optional[str] = Field(
        default=None,
        description="The name of the list to get suggestions for. Required for LIST_SUGGESTIONS."
    )
    list_movies: Optional[List[RecommendationMovie]] = Field(
        default=None,
        description="The movies currently in the list. Required for LIST_SUGGESTIONS."
    )


class RecommendationInput(BaseModel):
    user_profile: UserProfile
    recommendation_type: RecommendationType
    context: Optional[RecommendationContext] = None

    @model_validator(mode="after")
    def require_list_context(self) -> "RecommendationInput":
        if self.recommendation_type is RecommendationType.LIST_SUGGESTIONS:
            if self.context is None or not self.context.list_name or self.context.list_movies is None:
                raise ValueError("LIST_SUGGESTIONS requires context.list_name and context.list_movies")
        return self


class GenerateListSuggestionsInput(BaseModel):
    list_name: str = Field(..., description="The name of the movie list.")
    movie_titles: List[str] = Field(
        default_factory=list,
        description="The titles of the movies currently in the list."
    )
    user_taste: str = Field(
        default="",
        description="The user preference for movies to tailor recommendation."
    )


# -----------------------------
#   RECOMMENDATION OUTPUTS
# -----------------------------

class SimilarUser(BaseModel):
    username: str = Field(
        ...,
        description="A creative, fictional username."
    )
    reason: str = Field(
        ...,
        description="One or two sentences explaining why this user's taste aligns."
    )


class RecommendationOutput(BaseModel):
    suggested_movies: Optional[List[str]] = Field(
        default=None,
        description="A list of suggested movie titles."
    )
    similar_users: Optional[List[SimilarUser]] = Field(
        default=None,
        description="A list of users with similar taste and why they are a match."
    )


class GenerateListSuggestionsOutput(BaseModel):
    suggested_movies: List[str] = Field(
        ...,
        description="A list of suggested movie titles to add to the list."
    )
