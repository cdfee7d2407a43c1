"""Standings aggregation and ranking.

Standings are always rebuilt from the full list of a group's matches.
Scores can be edited after a match was declared finished, so nothing is
ever patched incrementally.
"""

import logging
from typing import Iterable, Sequence

from padelrr.models import Match, Standing
from padelrr.scoring import evaluate_match

logger = logging.getLogger(__name__)

POINTS_PER_WIN = 3
POINTS_PER_DRAW = 1


def aggregate_standings(
    tournament_id: str,
    group_id: str,
    team_ids: Sequence[str],
    matches: Iterable[Match],
    points_per_win: int = POINTS_PER_WIN,
    points_per_draw: int = POINTS_PER_DRAW,
) -> list[Standing]:
    """Fold every complete match of a group into per-team records.

    Incomplete matches contribute nothing. A match referencing a team that
    is not in team_ids is logged and that team gets no row; its opponent is
    still credited.

    Args:
        tournament_id: Tournament identifier
        group_id: Group identifier
        team_ids: Teams currently in the group, in group order
        matches: All matches of the group
        points_per_win: Competition points for a win
        points_per_draw: Competition points for a draw

    Returns:
        Unranked Standing list in team_ids order
    """
    rows = {
        team_id: Standing(tournament_id=tournament_id, group_id=group_id, team_id=team_id)
        for team_id in team_ids
    }

    for match in matches:
        result = evaluate_match(match)
        if not result.is_complete:
            continue

        sides = (
            (match.team1_id, result.team1_total, result.team2_total),
            (match.team2_id, result.team2_total, result.team1_total),
        )
        for team_id, scored, conceded in sides:
            row = rows.get(team_id)
            if row is None:
                logger.warning(
                    "Match %s references team %s which is not in group %s; skipping its row",
                    match.id, team_id, group_id,
                )
                continue

            row.points_for += scored
            row.points_against += conceded
            if result.winner_id is None:
                row.matches_drawn += 1
            elif result.winner_id == team_id:
                row.matches_won += 1
            else:
                row.matches_lost += 1

    for row in rows.values():
        row.matches_played = row.matches_won + row.matches_lost + row.matches_drawn
        row.point_difference = row.points_for - row.points_against
        row.points = points_per_win * row.matches_won + points_per_draw * row.matches_drawn

    return list(rows.values())


def ranking_key(standing: Standing) -> tuple[int, int, int]:
    """Sort key: competition points, point difference, points for (all DESC)."""
    return (-standing.points, -standing.point_difference, -standing.points_for)


def rank_standings(standings: Iterable[Standing]) -> list[Standing]:
    """Sort standings and assign 1-based positions.

    Teams level on every key keep their input order (stable sort). No
    head-to-head comparison is applied.

    Args:
        standings: Standing records of one group

    Returns:
        Sorted list; each record's position is set in place
    """
    ranked = sorted(standings, key=ranking_key)
    for position, standing in enumerate(ranked, start=1):
        standing.position = position
    return ranked


def calculate_standings(
    tournament_id: str,
    group_id: str,
    team_ids: Sequence[str],
    matches: Iterable[Match],
    points_per_win: int = POINTS_PER_WIN,
    points_per_draw: int = POINTS_PER_DRAW,
) -> list[Standing]:
    """Aggregate and rank a group's standings in one step."""
    standings = aggregate_standings(
        tournament_id,
        group_id,
        team_ids,
        matches,
        points_per_win=points_per_win,
        points_per_draw=points_per_draw,
    )
    ranked = rank_standings(standings)
    logger.debug(
        "Standings for group %s: %s",
        group_id, ", ".join(str(s) for s in ranked),
    )
    return ranked
