"""Tests for CSV exports."""

import csv
import io

from padelrr.exports import FIXTURES_HEADERS, STANDINGS_HEADERS, fixtures_to_csv, standings_to_csv
from padelrr.models import Match, MatchStatus, SetScore, Standing


def read_rows(text):
    return list(csv.reader(io.StringIO(text)))


def test_standings_csv_uses_team_names():
    standings = [
        Standing("t1", "g1", "A", matches_played=1, matches_won=1, points_for=12,
                 points_against=5, point_difference=7, points=3, position=1),
        Standing("t1", "g1", "B", matches_played=1, matches_lost=1, points_for=5,
                 points_against=12, point_difference=-7, points=0, position=2),
    ]
    rows = read_rows(standings_to_csv(standings, {"A": "Smash", "B": "Lob"}))

    assert rows[0] == STANDINGS_HEADERS
    assert rows[1] == ["1", "Smash", "1", "1", "0", "0", "12", "5", "7", "3"]
    assert rows[2][1] == "Lob"
    assert rows[2][8] == "-7"


def test_fixtures_csv():
    matches = [
        Match(id="m1", tournament_id="t1", group_id="g1", round=1, team1_id="A", team2_id="B",
              status=MatchStatus.COMPLETED, sets=[SetScore(6, 2), SetScore(6, 3)], winner_id="A",
              venue_id="court-1"),
        Match(id="m2", tournament_id="t1", group_id="g1", round=2, team1_id="A", team2_id="C"),
    ]
    rows = read_rows(fixtures_to_csv(matches))

    assert rows[0] == FIXTURES_HEADERS
    assert rows[1] == ["1", "A", "B", "6-2 6-3", "completed", "A", "", "court-1"]
    assert rows[2] == ["2", "A", "C", "", "scheduled", "", "", ""]
