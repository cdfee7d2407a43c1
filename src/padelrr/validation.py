"""Validation rules for identifiers, set scores and match status changes."""

import uuid
from datetime import datetime
from typing import Optional, Union

from padelrr.errors import InvalidTransitionError, ValidationError
from padelrr.models import MAX_SETS, MatchStatus

# Allowed status changes. Re-stating the current status is always accepted.
STATUS_TRANSITIONS = {
    MatchStatus.SCHEDULED: {MatchStatus.IN_PROGRESS, MatchStatus.COMPLETED, MatchStatus.CANCELLED},
    MatchStatus.IN_PROGRESS: {MatchStatus.COMPLETED, MatchStatus.CANCELLED},
    MatchStatus.COMPLETED: set(),
    MatchStatus.CANCELLED: set(),
}


def parse_identifier(value, kind: str = "identifier") -> str:
    """Normalize a UUID identifier.

    Args:
        value: Identifier as str or uuid.UUID
        kind: What the identifier refers to, used in the error message

    Returns:
        Canonical lowercase UUID string

    Raises:
        ValidationError: If value is not a UUID
    """
    if isinstance(value, uuid.UUID):
        return str(value)
    try:
        return str(uuid.UUID(str(value).strip()))
    except (ValueError, AttributeError, TypeError):
        raise ValidationError(f"Malformed {kind}: {value!r}")


def validate_set_score(team1_points, team2_points) -> tuple[bool, str]:
    """Validate a single set score pair.

    Rules:
    - Both values are non-negative integers
    - A set cannot end level, except the (0, 0) "not played" sentinel

    Returns:
        Tuple of (is_valid, error_message)

    Examples:
        >>> validate_set_score(6, 4)
        (True, '')
        >>> validate_set_score(0, 0)
        (True, '')
        >>> validate_set_score(5, 5)
        (False, 'A set cannot end level (5-5)')
    """
    for value in (team1_points, team2_points):
        if isinstance(value, bool) or not isinstance(value, int):
            return False, f"Set scores must be integers, got {value!r}"
        if value < 0:
            return False, "Set scores cannot be negative"

    if team1_points == team2_points and team1_points != 0:
        return False, f"A set cannot end level ({team1_points}-{team2_points})"

    return True, ""


def validate_match_sets(sets: list) -> tuple[bool, str]:
    """Validate the set pairs entered for a match.

    Args:
        sets: List of (team1_points, team2_points) pairs, at most three

    Returns:
        Tuple of (is_valid, error_message)
    """
    if len(sets) > MAX_SETS:
        return False, f"Too many sets (maximum: {MAX_SETS}, entered: {len(sets)})"

    for idx, pair in enumerate(sets, start=1):
        try:
            team1_points, team2_points = pair
        except (TypeError, ValueError):
            return False, f"Set {idx}: expected a (team1, team2) pair, got {pair!r}"
        is_valid, error_msg = validate_set_score(team1_points, team2_points)
        if not is_valid:
            return False, f"Set {idx}: {error_msg}"

    return True, ""


def validate_winner(team1_id: str, team2_id: str, winner_id: str) -> tuple[bool, str]:
    """Validate that a declared winner is one of the match teams."""
    if winner_id not in (team1_id, team2_id):
        return False, "Winner must be one of the two teams in the match"

    return True, ""


def check_status_transition(current: MatchStatus, new: MatchStatus) -> None:
    """Raise InvalidTransitionError if a match cannot move from current to new."""
    current = MatchStatus(current)
    new = MatchStatus(new)
    if current == new:
        return
    if new not in STATUS_TRANSITIONS[current]:
        raise InvalidTransitionError(
            f"Cannot change match status from '{current.value}' to '{new.value}'"
        )


def parse_status(value: Union[str, MatchStatus]) -> MatchStatus:
    """Parse a status string."""
    try:
        return MatchStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in MatchStatus)
        raise ValidationError(f"Unknown match status '{value}' (allowed: {allowed})")


def parse_scheduled_time(value: Union[str, datetime, None]) -> Optional[datetime]:
    """Parse a scheduled time.

    Accepts datetimes and ISO strings such as "2025-08-04T20:00" or
    "2025-08-04T20:00:00.000Z". Empty strings mean "no time".
    """
    if value is None or isinstance(value, datetime):
        return value
    text = str(value).strip()
    if not text:
        return None
    text = text.replace("Z", "").replace(".000", "")
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        raise ValidationError(f"Invalid scheduled time: {value!r}")
