"""
Enum classes shared by the data-access, API and AI layers.
"""

from enum import Enum


class WatchStatus(str, Enum):
    """Mirrors the Postgres ``watch_status`` enum type."""
    WATCHED = "watched"
    WANT_TO_WATCH = "want_to_watch"
    REWATCHED = "rewatched"

    @classmethod
    def from_string(cls, status: str) -> "WatchStatus | None":
        """
        Convert a string to a WatchStatus.

        Accepts the hyphenated spelling used by the UI ("want-to-watch") as well
        as the database spelling. Returns None if the string matches no status.
        """
        normalized = status.strip().lower().replace("-", "_")
        try:
            return cls(normalized)
        except ValueError:
            return None

    def __str__(self) -> str:
        return self.value


class RecommendationType(str, Enum):
    """Task discriminator for the recommendation flow."""
    LIST_SUGGESTIONS = "LIST_SUGGESTIONS"
    WATCH_NEXT = "WATCH_NEXT"
    SIMILAR_USERS = "SIMILAR_USERS"
