import logging
import os
from typing import TypeVar

from openai import AsyncOpenAI
from pydantic import BaseModel

logger = logging.getLogger(__name__)

ResponseT = TypeVar("ResponseT", bound=BaseModel)

DEFAULT_MODEL = os.getenv("OPENAI_MODEL", "gpt-5-mini")


class LLMResponseError(RuntimeError):
    """The model call failed or its output did not match the response schema."""


# ===============================
#           Clients
# ===============================

def create_openai_client(api_key: str | None = None) -> AsyncOpenAI:
    """Build the async OpenAI client. Reads OPENAI_API_KEY when no key is passed."""
    return AsyncOpenAI(api_key=api_key or os.getenv("OPENAI_API_KEY"))


# ===============================
#     Base Generation Methods
# ===============================

async def generate_openai_response(
    client: AsyncOpenAI,
    user_prompt: str,
    system_prompt: str,
    response_format: type[ResponseT],
    model: str = DEFAULT_MODEL,
    reasoning_effort: str = "low",
    verbosity: str = "low",
) -> ResponseT:
    try:
        response = await client.chat.completions.parse(
            model=model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt}
            ],
            response_format=response_format,
            reasoning_effort=reasoning_effort,
            verbosity=verbosity
        )
    except Exception as e:
        raise LLMResponseError(f"OpenAI failed to generate response: {e}") from e

    # OpenAI validates the structure against response_format; a refusal leaves parsed empty
    parsed = response.choices[0].message.parsed
    if parsed is None:
        raise LLMResponseError("OpenAI returned no parsed response")
    return parsed
