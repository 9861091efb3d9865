"""Discussions utils."""

from typing import Any, Optional

from django.core.exceptions import ValidationError


def get_int_value(value: Any, default: Optional[int] = None) -> Optional[int]:
    """Return ``value`` as an int, or ``default`` if it is not a valid integer."""
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def split_comma_separated(value: Optional[str]) -> list[str]:
    """Split a comma-separated parameter, dropping blank items."""
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def validate_upvote_or_downvote(value: int) -> None:
    """
    Validates that the given value is either 1 (upvote) or -1 (downvote).

    Raises:
        ValidationError: If the value is not 1 or -1.
    """
    if value not in [1, -1]:
        raise ValidationError("Vote must be 1 (upvote) or -1 (downvote)")
