"""Tests for the command-line interface."""

import uuid

import pytest
from click.testing import CliRunner

from padelrr.cli import cli
from padelrr.service import TournamentService
from padelrr.storage import DatabaseManager


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "cli.sqlite")


@pytest.fixture
def seeded(db_path):
    """A group with two teams, created directly through the service."""
    db = DatabaseManager(db_path)
    db.create_tables()
    service = TournamentService(db)
    tournament = service.create_tournament("Club Open", max_participants=8)
    group = service.create_groups(tournament.id, 1)[0]
    service.add_team(tournament.id, group.id, "Smash", [("ana", 1200), ("ben", 1100)])
    service.add_team(tournament.id, group.id, "Lob", [("cat", 1000)])
    return service, tournament, group


def run(db_path, *args):
    return CliRunner().invoke(cli, ["--db", db_path, *args])


def test_init_db(db_path):
    result = run(db_path, "init-db")
    assert result.exit_code == 0
    assert "[SUCCESS]" in result.output


def test_create_tournament_and_groups(db_path):
    result = run(db_path, "create-tournament", "--name", "Club Open", "--max-participants", "16", "--groups", "2")
    assert result.exit_code == 0
    tournament_id = result.output.split("id: ")[1].split()[0]

    result = run(db_path, "create-groups", "--tournament", tournament_id, "--groups", "2")
    assert result.exit_code == 0
    assert "Group 1" in result.output
    assert "max 4 teams" in result.output


def test_add_team(seeded, db_path):
    _, tournament, group = seeded
    result = run(
        db_path, "add-team", "--tournament", tournament.id, "--group", group.id,
        "--name", "Volley", "--player", "dan:900", "--player", "eve",
    )
    assert result.exit_code == 0
    assert "rating 900" in result.output


def test_add_team_duplicate_player(seeded, db_path):
    _, tournament, group = seeded
    result = run(
        db_path, "add-team", "--tournament", tournament.id, "--group", group.id,
        "--name", "Again", "--player", "ana",
    )
    assert result.exit_code != 0
    assert "[ERROR]" in result.output


def test_fixtures_result_and_standings(seeded, db_path):
    service, tournament, group = seeded

    result = run(db_path, "generate-fixtures", "--group", group.id)
    assert result.exit_code == 0
    assert "Generated 1 matches" in result.output

    match = service.get_group_matches(group.id)[0]
    result = run(db_path, "record-result", "--match", match.id, "--set", "6-2", "--set", "6-3", "--status", "completed")
    assert result.exit_code == 0
    assert "6-2 6-3 (completed)" in result.output

    result = run(db_path, "standings", "--tournament", tournament.id, "--group", group.id)
    assert result.exit_code == 0
    lines = [line for line in result.output.splitlines() if line.startswith("  ")]
    assert lines[0].startswith("  1. Smash - 3pts")
    assert "+7" in lines[0]
    assert lines[1].startswith("  2. Lob - 0pts")


def test_generate_fixtures_twice_fails(seeded, db_path):
    _, _, group = seeded
    run(db_path, "generate-fixtures", "--group", group.id)

    result = run(db_path, "generate-fixtures", "--group", group.id)
    assert result.exit_code != 0
    assert "already exist" in result.output

    result = run(db_path, "generate-fixtures", "--group", group.id, "--replace")
    assert result.exit_code == 0


def test_generate_fixtures_needs_one_target(db_path):
    result = run(db_path, "generate-fixtures")
    assert result.exit_code != 0


def test_bad_set_format(seeded, db_path):
    result = run(db_path, "record-result", "--match", str(uuid.uuid4()), "--set", "six-two")
    assert result.exit_code != 0


def test_record_result_unknown_match(db_path):
    result = run(db_path, "init-db")
    result = run(db_path, "record-result", "--match", str(uuid.uuid4()), "--set", "6-2", "--set", "6-3")
    assert result.exit_code != 0
    assert "Match not found" in result.output


def test_recompute_and_export(seeded, db_path, tmp_path):
    _, tournament, group = seeded
    run(db_path, "generate-fixtures", "--group", group.id)

    result = run(db_path, "recompute-standings", "--tournament", tournament.id, "--group", group.id)
    assert result.exit_code == 0
    assert "Computed 2 standings" in result.output

    out_dir = tmp_path / "out"
    for what in ("standings", "fixtures"):
        result = run(
            db_path, "export", "--what", what, "--tournament", tournament.id,
            "--group", group.id, "--out", str(out_dir),
        )
        assert result.exit_code == 0

    standings_csv = (out_dir / f"standings_{group.id}.csv").read_text(encoding="utf-8")
    assert "Smash" in standings_csv
    assert (out_dir / f"fixtures_{group.id}.csv").exists()


def test_bad_config_file(tmp_path, db_path):
    config = tmp_path / "bad.yaml"
    config.write_text("points_per_win: -3\n", encoding="utf-8")

    result = CliRunner().invoke(cli, ["--config", str(config), "--db", db_path, "init-db"])
    assert result.exit_code != 0
    assert "Configuration Error" in result.output
