"""Tests for domain models."""

import pytest

from padelrr.errors import ValidationError
from padelrr.models import (
    AmericanoConfig,
    Group,
    ProgressionType,
    RoundRobinConfig,
    SetScore,
    Tournament,
    TournamentFormat,
    format_config_from_dict,
    format_config_to_dict,
)


class TestTournamentFormat:
    """Test cases for the format tag and its configuration payload."""

    def test_round_robin_default(self):
        tournament = Tournament(id=None, name="Club Open")

        assert tournament.format == TournamentFormat.ROUND_ROBIN
        assert tournament.format_config == RoundRobinConfig()

    def test_americano_requires_americano_config(self):
        with pytest.raises(ValidationError, match="AmericanoConfig"):
            Tournament(id=None, name="Mix", format=TournamentFormat.AMERICANO)

    def test_americano(self):
        tournament = Tournament(
            id=None, name="Mix", format="americano", format_config=AmericanoConfig(points_to_win=24)
        )
        assert tournament.format == TournamentFormat.AMERICANO
        assert tournament.format_config.points_to_win == 24

    def test_config_from_dict(self):
        config = format_config_from_dict(
            TournamentFormat.ROUND_ROBIN,
            {"no_of_groups": 2, "progression_type": "combined_elimination"},
        )
        assert config.no_of_groups == 2
        assert config.progression_type == ProgressionType.COMBINED_ELIMINATION

    def test_config_from_dict_rejects_unknown_keys(self):
        with pytest.raises(ValidationError, match="round_robin"):
            format_config_from_dict(TournamentFormat.ROUND_ROBIN, {"points_to_win": 32})

    def test_config_to_dict(self):
        data = format_config_to_dict(RoundRobinConfig(no_of_groups=3))
        assert data == {
            "no_of_groups": 3,
            "teams_to_advance": 2,
            "progression_type": "group_based_elimination",
        }


def test_set_score_helpers():
    assert SetScore(0, 0).is_sentinel
    assert SetScore(6, 4).winner_team_num == 1
    assert SetScore(3, 6).winner_team_num == 2
    assert SetScore.from_pair([6, 2]) == SetScore(6, 2)
    assert tuple(SetScore(7, 5)) == (7, 5)
    assert str(SetScore(7, 5)) == "7-5"


def test_group_is_full():
    group = Group(id="g1", tournament_id="t1", name="Group 1", max_teams=2, current_teams=2)
    assert group.is_full

