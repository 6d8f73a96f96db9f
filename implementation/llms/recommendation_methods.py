from openai import AsyncOpenAI

from implementation.llms.generic_methods import LLMResponseError, generate_openai_response
from implementation.prompts.recommendation_prompts import (
    GENERATE_LIST_SUGGESTIONS_SYSTEM_PROMPT,
    RECOMMENDATION_SYSTEM_PROMPTS,
)
from implementation.classes.enums import RecommendationType
from implementation.classes.schemas import (
    GenerateListSuggestionsInput,
    GenerateListSuggestionsOutput,
    RecommendationInput,
    RecommendationMovie,
    RecommendationOutput,
)

# ===============================
#           Helpers
# ===============================

# Output field each recommendation type must populate.
_REQUIRED_OUTPUT_FIELD: dict[RecommendationType, str] = {
    RecommendationType.LIST_SUGGESTIONS: "suggested_movies",
    RecommendationType.WATCH_NEXT: "suggested_movies",
    RecommendationType.SIMILAR_USERS: "similar_users",
}


def _join_titles(movies: list[RecommendationMovie]) -> str:
    return ", ".join(movie.title for movie in movies)


def render_recommendation_prompt(recommendation_input: RecommendationInput) -> str:
    """Render the user message for the recommendation flow from a validated input."""
    profile = recommendation_input.user_profile
    lines = [
        "User Profile:",
        f"- Taste: {profile.taste_description}",
        f"- Watched Movies: {_join_titles(profile.watched_movies)}",
        f"- Liked Movies: {_join_titles(profile.liked_movies)}",
        "- Lists:",
    ]
    for movie_list in profile.movie_lists:
        lines.append(f"  - {movie_list.name}: {_join_titles(movie_list.movies)}")

    if recommendation_input.recommendation_type is RecommendationType.LIST_SUGGESTIONS:
        context = recommendation_input.context
        lines.extend([
            "",
            f"List Name: {context.list_name}",
            f"Movies already in the list: {_join_titles(context.list_movies)}",
        ])

    lines.extend(["", f"Recommendation Type: {recommendation_input.recommendation_type.value}"])
    return "\n".join(lines)


def render_list_suggestions_prompt(suggestions_input: GenerateListSuggestionsInput) -> str:
    """Render the user message for the standalone list-suggestions flow."""
    return (
        f"List Name: {suggestions_input.list_name}\n"
        f"Existing Movies: {', '.join(suggestions_input.movie_titles)}\n"
        f"User Taste: {suggestions_input.user_taste}"
    )


# ===============================
#        Recommendations
# ===============================

async def get_recommendations(
    client: AsyncOpenAI,
    recommendation_input: RecommendationInput,
) -> RecommendationOutput:
    """
        Run one recommendation task (list suggestions, watch next, similar users) on the model.
        The output is returned as the model produced it: no ranking, filtering or dedup.
        Raises LLMResponseError if the call fails or the output lacks the field the task requires.
    """
    recommendation_type = recommendation_input.recommendation_type
    output = await generate_openai_response(
        client=client,
        user_prompt=render_recommendation_prompt(recommendation_input),
        system_prompt=RECOMMENDATION_SYSTEM_PROMPTS[recommendation_type],
        response_format=RecommendationOutput,
    )

    required_field = _REQUIRED_OUTPUT_FIELD[recommendation_type]
    if getattr(output, required_field) is None:
        raise LLMResponseError(
            f"Model response for {recommendation_type.value} is missing '{required_field}'"
        )
    return output


async def generate_list_suggestions(
    client: AsyncOpenAI,
    suggestions_input: GenerateListSuggestionsInput,
) -> GenerateListSuggestionsOutput:
    """
        Suggest movie titles that fit an existing list.
        Throws an error if anything fails.
    """
    return await generate_openai_response(
        client=client,
        user_prompt=render_list_suggestions_prompt(suggestions_input),
        system_prompt=GENERATE_LIST_SUGGESTIONS_SYSTEM_PROMPT,
        response_format=GenerateListSuggestionsOutput,
    )
