"""
Export Module for padelrr
Generates CSV exports for standings and fixtures.
"""

import csv
import io
from typing import Dict, List, Optional

from padelrr.models import Match, Standing

STANDINGS_HEADERS = [
    "Pos", "Team", "Played", "Won", "Lost", "Drawn",
    "Points For", "Points Against", "Difference", "Points",
]

FIXTURES_HEADERS = ["Round", "Team 1", "Team 2", "Sets", "Status", "Winner", "Scheduled", "Venue"]


def _name(team_names: Optional[Dict[str, str]], team_id: Optional[str]) -> str:
    if not team_id:
        return ""
    if team_names:
        return team_names.get(team_id, team_id)
    return team_id


def standings_to_csv(standings: List[Standing], team_names: Optional[Dict[str, str]] = None) -> str:
    """
    Render ranked standings as CSV text.

    Args:
        standings: Standings ordered by position
        team_names: Optional team_id -> display name mapping
    """
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(STANDINGS_HEADERS)
    for s in standings:
        writer.writerow([
            s.position if s.position is not None else "",
            _name(team_names, s.team_id),
            s.matches_played,
            s.matches_won,
            s.matches_lost,
            s.matches_drawn,
            s.points_for,
            s.points_against,
            s.point_difference,
            s.points,
        ])
    return output.getvalue()


def fixtures_to_csv(matches: List[Match], team_names: Optional[Dict[str, str]] = None) -> str:
    """Render a group's matches as CSV text, one row per match."""
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(FIXTURES_HEADERS)
    for m in matches:
        writer.writerow([
            m.round,
            _name(team_names, m.team1_id),
            _name(team_names, m.team2_id),
            " ".join(str(s) for s in m.sets),
            m.status.value,
            _name(team_names, m.winner_id),
            m.scheduled_time.isoformat() if m.scheduled_time else "",
            m.venue_id or "",
        ])
    return output.getvalue()
