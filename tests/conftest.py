"""Shared fixtures for padelrr tests."""

import pytest

from padelrr.service import TournamentService
from padelrr.storage import DatabaseManager


@pytest.fixture
def db(tmp_path):
    """Fresh SQLite database under pytest's tmp_path."""
    manager = DatabaseManager(str(tmp_path / "padelrr.sqlite"))
    manager.create_tables()
    return manager


@pytest.fixture
def service(db):
    return TournamentService(db)


@pytest.fixture
def tournament(service):
    """Round robin tournament sized for one group of four teams."""
    return service.create_tournament("Club Open", "round_robin", {"no_of_groups": 1}, max_participants=8)


@pytest.fixture
def group(service, tournament):
    return service.create_groups(tournament.id, 1)[0]


@pytest.fixture
def add_teams(service, tournament, group):
    """Add named two-player teams to the group and return them."""

    def _add(*names):
        return [
            service.add_team(tournament.id, group.id, name, [(f"{name}-1", 1000), (f"{name}-2", 900)])
            for name in names
        ]

    return _add
