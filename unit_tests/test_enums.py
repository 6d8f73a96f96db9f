"""Unit tests for enum conversion and string formatting behavior."""

import pytest

from implementation.classes.enums import RecommendationType, WatchStatus


@pytest.mark.parametrize(
    ("raw_status", "expected"),
    [
        ("watched", WatchStatus.WATCHED),
        ("want_to_watch", WatchStatus.WANT_TO_WATCH),
        ("want-to-watch", WatchStatus.WANT_TO_WATCH),
        ("  Rewatched ", WatchStatus.REWATCHED),
        ("watching", None),
        ("", None),
    ],
)
def test_watch_status_from_string(raw_status: str, expected: WatchStatus | None) -> None:
    """WatchStatus.from_string should normalize case, spacing and hyphens and reject unknown values."""
    assert WatchStatus.from_string(raw_status) == expected


def test_watch_status_values_match_database_enum() -> None:
    """Values are bound directly to the Postgres watch_status type and must not drift."""
    assert [status.value for status in WatchStatus] == ["watched", "want_to_watch", "rewatched"]


def test_watch_status_str_is_value() -> None:
    assert str(WatchStatus.WANT_TO_WATCH) == "want_to_watch"


def test_recommendation_type_labels_are_stable() -> None:
    assert RecommendationType("LIST_SUGGESTIONS") is RecommendationType.LIST_SUGGESTIONS
    assert RecommendationType.WATCH_NEXT.value == "WATCH_NEXT"
    assert RecommendationType.SIMILAR_USERS.value == "SIMILAR_USERS"
