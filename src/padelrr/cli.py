"""Command-line interface for padelrr."""

import os

import click

from padelrr.errors import TournamentError


def parse_set(value: str) -> tuple[int, int]:
    """Parse a set score written as "6-4"."""
    try:
        team1, team2 = value.split("-")
        return int(team1), int(team2)
    except ValueError:
        raise click.BadParameter(f"Set score must look like 6-4, got '{value}'")


def parse_player(value: str) -> tuple[str, int]:
    """Parse a player written as "uid" or "uid:rating"."""
    uid, _, rating = value.partition(":")
    if not uid:
        raise click.BadParameter(f"Player must look like uid or uid:rating, got '{value}'")
    try:
        return uid, int(rating) if rating else 0
    except ValueError:
        raise click.BadParameter(f"Rating must be an integer, got '{rating}'")


def _service(ctx):
    """Build the TournamentService for the current invocation."""
    from padelrr.service import TournamentService
    from padelrr.storage import DatabaseManager

    cfg = ctx.obj["config"]
    db = DatabaseManager(ctx.obj["db_path"] or cfg["database_path"])
    db.create_tables()
    return TournamentService(
        db,
        points_per_win=cfg["points_per_win"],
        points_per_draw=cfg["points_per_draw"],
    )


def _team_names(service, group_id: str) -> dict[str, str]:
    return {t.id: t.name for t in service.get_group_teams(group_id)}


@click.group()
@click.version_option(version="0.1.0")
@click.option("--config", "config_path", required=False, help="Path to config YAML file")
@click.option("--db", "db_path", envvar="PADELRR_DB", required=False, help="Path to SQLite database")
@click.pass_context
def cli(ctx, config_path: str, db_path: str):
    """Padel round robin manager - fixtures, results and standings."""
    from padelrr.config_loader import ConfigError, default_config, load_and_validate_config
    from padelrr.log import setup_logging

    try:
        cfg = load_and_validate_config(config_path) if config_path else default_config()
    except ConfigError as e:
        click.echo(f"[ERROR] Configuration Error: {e}", err=True)
        raise click.Abort()

    setup_logging(cfg["log_level"])
    ctx.obj = {"config": cfg, "db_path": db_path}


@cli.command()
@click.pass_context
def init_db(ctx):
    """Create the database tables."""
    _service(ctx)
    click.echo("[SUCCESS] Database ready")


@cli.command()
@click.option("--name", required=True, help="Tournament name")
@click.option("--format", "fmt", type=click.Choice(["round_robin", "americano"]), default="round_robin")
@click.option("--max-participants", type=int, required=False, help="Maximum number of players")
@click.option("--groups", "no_of_groups", type=int, default=1, help="Number of groups (round robin)")
@click.option("--teams-to-advance", type=int, default=2, help="Teams advancing per group (round robin)")
@click.option("--venue", required=False, help="Default venue for groups and matches")
@click.pass_context
def create_tournament(ctx, name, fmt, max_participants, no_of_groups, teams_to_advance, venue):
    """Create a tournament.

    Example:
        padelrr create-tournament --name "Club Open" --max-participants 16 --groups 2
    """
    format_config = None
    if fmt == "round_robin":
        format_config = {"no_of_groups": no_of_groups, "teams_to_advance": teams_to_advance}

    try:
        tournament = _service(ctx).create_tournament(
            name, fmt, format_config, venue_id=venue, max_participants=max_participants
        )
    except TournamentError as e:
        click.echo(f"[ERROR] {e}", err=True)
        raise click.Abort()

    click.echo(f"[SUCCESS] Created tournament {tournament.name}")
    click.echo(f"  id: {tournament.id}")


@cli.command()
@click.option("--tournament", "tournament_id", required=True, help="Tournament ID")
@click.option("--groups", "no_of_groups", type=int, required=True, help="Number of groups to create")
@click.option("--max-participants", type=int, required=False, help="Overrides the tournament's maximum")
@click.option("--venue", required=False, help="Venue for these groups")
@click.pass_context
def create_groups(ctx, tournament_id, no_of_groups, max_participants, venue):
    """Create groups for a tournament."""
    try:
        groups = _service(ctx).create_groups(tournament_id, no_of_groups, max_participants, venue)
    except TournamentError as e:
        click.echo(f"[ERROR] {e}", err=True)
        raise click.Abort()

    click.echo(f"[SUCCESS] Created {len(groups)} groups")
    for group in groups:
        click.echo(f"  {group.name}: {group.id} (max {group.max_teams} teams)")


@cli.command()
@click.option("--tournament", "tournament_id", required=True, help="Tournament ID")
@click.option("--group", "group_id", required=True, help="Group ID")
@click.option("--name", required=True, help="Team name")
@click.option("--player", "players", multiple=True, required=True, help="Player as uid[:rating], once or twice")
@click.pass_context
def add_team(ctx, tournament_id, group_id, name, players):
    """Add a team to a group.

    Example:
        padelrr add-team --tournament T --group G --name "Smash" --player ana:1200 --player ben:1100
    """
    try:
        parsed = [parse_player(p) for p in players]
        team = _service(ctx).add_team(tournament_id, group_id, name, parsed)
    except TournamentError as e:
        click.echo(f"[ERROR] {e}", err=True)
        raise click.Abort()

    click.echo(f"[SUCCESS] Added team {team.name} (rating {team.combined_rating})")
    click.echo(f"  id: {team.id}")


@cli.command()
@click.option("--group", "group_id", required=False, help="Group ID")
@click.option("--tournament", "tournament_id", required=False, help="Tournament ID (all groups)")
@click.option("--replace", is_flag=True, default=False, help="Replace existing fixtures")
@click.pass_context
def generate_fixtures(ctx, group_id, tournament_id, replace):
    """Generate round robin fixtures for one group or a whole tournament."""
    if bool(group_id) == bool(tournament_id):
        click.echo("[ERROR] Pass exactly one of --group or --tournament", err=True)
        raise click.Abort()

    service = _service(ctx)
    try:
        if group_id:
            matches = service.generate_fixtures(group_id, replace=replace)
        else:
            matches = service.generate_all_fixtures(tournament_id, replace=replace)
    except TournamentError as e:
        click.echo(f"[ERROR] {e}", err=True)
        raise click.Abort()

    if not matches:
        click.echo("[WARNING]  No fixtures generated (fewer than 2 teams)")
        return

    click.echo(f"[SUCCESS] Generated {len(matches)} matches")
    for match in matches:
        click.echo(f"  R{match.round}  {match.team1_id} vs {match.team2_id}  [{match.id}]")


@cli.command()
@click.option("--match", "match_id", required=True, help="Match ID")
@click.option("--set", "sets", multiple=True, help="Set score as 6-4 (up to three)")
@click.option("--status", type=click.Choice(["scheduled", "in_progress", "completed", "cancelled"]), required=False)
@click.option("--winner", "winner_id", required=False, help="Winner team ID")
@click.option("--time", "scheduled_time", required=False, help="Scheduled time, e.g. 2025-08-04T20:00")
@click.option("--venue", required=False, help="Venue ID")
@click.pass_context
def record_result(ctx, match_id, sets, status, winner_id, scheduled_time, venue):
    """Record set scores (and optionally status/winner) for a match.

    Example:
        padelrr record-result --match M --set 6-2 --set 6-3 --status completed
    """
    try:
        parsed_sets = [parse_set(s) for s in sets] if sets else None
        service = _service(ctx)
        service.record_match_result(
            match_id,
            sets=parsed_sets,
            status=status,
            winner_id=winner_id,
            scheduled_time=scheduled_time,
            venue_id=venue,
        )
        match = service.get_match(match_id)
    except TournamentError as e:
        click.echo(f"[ERROR] {e}", err=True)
        raise click.Abort()

    score = " ".join(str(s) for s in match.sets) or "no sets"
    click.echo(f"[SUCCESS] Match {match.id}: {score} ({match.status.value})")


def _echo_standings(service, standings, group_id):
    names = _team_names(service, group_id)
    for s in standings:
        click.echo(
            f"  {s.position}. {names.get(s.team_id, s.team_id)} - {s.points}pts "
            f"({s.matches_won}W-{s.matches_lost}L, {s.points_for}-{s.points_against}, {s.point_difference:+d})"
        )


@cli.command()
@click.option("--tournament", "tournament_id", required=True, help="Tournament ID")
@click.option("--group", "group_id", required=True, help="Group ID")
@click.pass_context
def standings(ctx, tournament_id, group_id):
    """Show the ranked standings of a group."""
    service = _service(ctx)
    try:
        rows = service.get_standings(tournament_id, group_id)
        _echo_standings(service, rows, group_id)
    except TournamentError as e:
        click.echo(f"[ERROR] {e}", err=True)
        raise click.Abort()


@cli.command()
@click.option("--tournament", "tournament_id", required=True, help="Tournament ID")
@click.option("--group", "group_id", required=True, help="Group ID")
@click.pass_context
def recompute_standings(ctx, tournament_id, group_id):
    """Recompute a group's standings from its matches."""
    service = _service(ctx)
    try:
        rows = service.recalculate_standings(tournament_id, group_id)
        _echo_standings(service, rows, group_id)
    except TournamentError as e:
        click.echo(f"[ERROR] {e}", err=True)
        raise click.Abort()

    click.echo(f"[SUCCESS] Computed {len(rows)} standings")


@cli.command()
@click.option("--what", type=click.Choice(["standings", "fixtures"]), required=True)
@click.option("--tournament", "tournament_id", required=True, help="Tournament ID")
@click.option("--group", "group_id", required=True, help="Group ID")
@click.option("--out", required=True, help="Output directory")
@click.pass_context
def export(ctx, what, tournament_id, group_id, out):
    """Export a group's standings or fixtures as CSV."""
    from padelrr.exports import fixtures_to_csv, standings_to_csv

    service = _service(ctx)
    try:
        names = _team_names(service, group_id)
        if what == "standings":
            content = standings_to_csv(service.get_standings(tournament_id, group_id), names)
        else:
            content = fixtures_to_csv(service.get_group_matches(group_id), names)
    except TournamentError as e:
        click.echo(f"[ERROR] {e}", err=True)
        raise click.Abort()

    os.makedirs(out, exist_ok=True)
    path = os.path.join(out, f"{what}_{group_id}.csv")
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(content)
    click.echo(f"[SUCCESS] Wrote {path}")


@cli.command()
@click.option("--host", default="127.0.0.1", help="Host to bind to")
@click.option("--port", default=8000, help="Port to bind to")
@click.pass_context
def serve(ctx, host: str, port: int):
    """Launch the JSON API.

    Example:
        padelrr serve --host 0.0.0.0 --port 8080
    """
    import uvicorn
    from padelrr.webapp.app import create_app

    app = create_app(_service(ctx))
    click.echo(f"[INFO] Starting API at http://{host}:{port}")
    click.echo("[INFO] Press CTRL+C to stop")

    try:
        uvicorn.run(app, host=host, port=port, log_level=ctx.obj["config"]["log_level"].lower())
    except KeyboardInterrupt:
        click.echo("\n[INFO] Shutting down...")


if __name__ == "__main__":
    cli()
