"""Match result evaluation from set scores.

A match is best of three sets. A set pair of (0, 0) means the set has not
been played and is ignored; it is never read as a 0-0 result.
"""

from typing import Iterable, Optional

from padelrr.models import SETS_TO_WIN, Match, MatchResult, SetScore


def is_decisive(set_score) -> bool:
    """Return True if a set pair was actually contested."""
    return SetScore.from_pair(set_score).is_decisive


def decisive_sets(sets: Iterable) -> list[SetScore]:
    """Drop the (0, 0) sentinels from a list of set pairs."""
    return [s for s in (SetScore.from_pair(p) for p in sets) if s.is_decisive]


def evaluate_sets(
    sets: Iterable,
    team1_id: Optional[str] = None,
    team2_id: Optional[str] = None,
) -> MatchResult:
    """Derive the outcome of a match from its set pairs.

    The match is complete once one side has won SETS_TO_WIN decisive sets.
    Totals are summed over decisive sets and reported even when the match
    is incomplete.

    Args:
        sets: Up to three (team1_points, team2_points) pairs or SetScores
        team1_id: Identifier reported as winner when team 1 wins
        team2_id: Identifier reported as winner when team 2 wins

    Returns:
        MatchResult

    Examples:
        >>> evaluate_sets([(6, 2), (6, 4)], "A", "B")
        MatchResult(is_complete=True, winner_id='A', team1_total=12, team2_total=6)
        >>> evaluate_sets([(6, 3), (3, 6), (0, 0)], "A", "B").is_complete
        False
    """
    played = decisive_sets(sets)

    team1_wins = sum(1 for s in played if s.winner_team_num == 1)
    team2_wins = sum(1 for s in played if s.winner_team_num == 2)
    team1_total = sum(s.team1_points for s in played)
    team2_total = sum(s.team2_points for s in played)

    winner_id = None
    is_complete = False
    if team1_wins >= SETS_TO_WIN and team1_wins > team2_wins:
        winner_id = team1_id
        is_complete = True
    elif team2_wins >= SETS_TO_WIN and team2_wins > team1_wins:
        winner_id = team2_id
        is_complete = True

    return MatchResult(
        is_complete=is_complete,
        winner_id=winner_id,
        team1_total=team1_total,
        team2_total=team2_total,
    )


def evaluate_match(match: Match) -> MatchResult:
    """Evaluate a Match using its own team identifiers."""
    return evaluate_sets(match.sets, match.team1_id, match.team2_id)
