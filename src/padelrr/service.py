"""Tournament service: fixture generation, result entry and standings.

Every write that can change a group's standings runs inside that group's
lock and ends with a full recompute of the group's standings.
"""

import logging
import threading
from contextlib import contextmanager, nullcontext
from typing import Iterable, Optional, Sequence

from padelrr.errors import ConflictError, NotFoundError, ValidationError
from padelrr.fixtures import build_group_matches
from padelrr.models import (
    MAX_PLAYERS_PER_TEAM,
    Group,
    Match,
    Standing,
    Team,
    Tournament,
    TournamentFormat,
    format_config_from_dict,
)
from padelrr.standings import POINTS_PER_DRAW, POINTS_PER_WIN, calculate_standings
from padelrr.storage import (
    DatabaseManager,
    GroupORM,
    GroupRepository,
    MatchRepository,
    StandingRepository,
    TeamRepository,
    TournamentORM,
    TournamentRepository,
)
from padelrr.validation import (
    check_status_transition,
    parse_identifier,
    parse_scheduled_time,
    parse_status,
    validate_match_sets,
    validate_winner,
)

logger = logging.getLogger(__name__)


class TournamentService:
    """Operations exposed to the calling layer (CLI, web app)."""

    def __init__(
        self,
        db: DatabaseManager,
        points_per_win: int = POINTS_PER_WIN,
        points_per_draw: int = POINTS_PER_DRAW,
    ):
        self.db = db
        self.points_per_win = points_per_win
        self.points_per_draw = points_per_draw
        # (tournament_id, group_id) -> [lock, number of holders and waiters]
        self._locks: dict[tuple[str, str], list] = {}
        self._locks_guard = threading.Lock()

    @contextmanager
    def group_lock(self, tournament_id: str, group_id: str):
        """Critical section for one (tournament, group) pair.

        A group's lock is dropped from the registry once nobody holds or
        waits for it.
        """
        key = (tournament_id, group_id)
        with self._locks_guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = [threading.Lock(), 0]
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._locks_guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def _load_tournament(self, session, tournament_id: str) -> TournamentORM:
        tournament_orm = TournamentRepository(session).get_by_id(tournament_id)
        if tournament_orm is None:
            raise NotFoundError("tournament", tournament_id)
        return tournament_orm

    def _load_group(self, session, group_id: str, tournament_id: Optional[str] = None) -> GroupORM:
        group_orm = GroupRepository(session).get_by_id(group_id)
        if group_orm is None:
            raise NotFoundError("group", group_id)
        if tournament_id is not None and group_orm.tournament_id != tournament_id:
            self._load_tournament(session, tournament_id)
            raise NotFoundError("group", f"{group_id} in tournament {tournament_id}")
        return group_orm

    def get_tournament(self, tournament_id: str) -> Tournament:
        tournament_id = parse_identifier(tournament_id, "tournament id")
        with self.db.session_scope() as session:
            return self._load_tournament(session, tournament_id).to_model()

    def get_groups(self, tournament_id: str) -> list[Group]:
        tournament_id = parse_identifier(tournament_id, "tournament id")
        with self.db.session_scope() as session:
            self._load_tournament(session, tournament_id)
            return [g.to_model() for g in GroupRepository(session).get_by_tournament(tournament_id)]

    def get_group_teams(self, group_id: str) -> list[Team]:
        group_id = parse_identifier(group_id, "group id")
        with self.db.session_scope() as session:
            self._load_group(session, group_id)
            return [t.to_model() for t in TeamRepository(session).get_by_group(group_id)]

    def get_group_matches(self, group_id: str) -> list[Match]:
        group_id = parse_identifier(group_id, "group id")
        with self.db.session_scope() as session:
            self._load_group(session, group_id)
            return [m.to_model() for m in MatchRepository(session).get_by_group(group_id)]

    def get_match(self, match_id: str) -> Match:
        match_id = parse_identifier(match_id, "match id")
        with self.db.session_scope() as session:
            match_orm = MatchRepository(session).get_by_id(match_id)
            if match_orm is None:
                raise NotFoundError("match", match_id)
            return match_orm.to_model()

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def create_tournament(
        self,
        name: str,
        format: TournamentFormat = TournamentFormat.ROUND_ROBIN,
        format_config: Optional[dict] = None,
        venue_id: Optional[str] = None,
        max_participants: Optional[int] = None,
    ) -> Tournament:
        """Create a tournament with its format-specific configuration."""
        if not name or not name.strip():
            raise ValidationError("Tournament name is required")
        try:
            fmt = TournamentFormat(format)
        except ValueError:
            raise ValidationError(f"Unknown tournament format '{format}'")

        tournament = Tournament(
            id=None,
            name=name.strip(),
            format=fmt,
            format_config=format_config_from_dict(fmt, format_config),
            venue_id=venue_id,
            max_participants=max_participants,
        )
        with self.db.session_scope() as session:
            tournament_orm = TournamentRepository(session).create(tournament)
            logger.info("Created tournament %s (%s)", tournament_orm.id, tournament_orm.name)
            return tournament_orm.to_model()

    def create_groups(
        self,
        tournament_id: str,
        no_of_groups: int,
        max_participants: Optional[int] = None,
        venue_id: Optional[str] = None,
    ) -> list[Group]:
        """Create groups sized for two-player teams.

        Each group holds max_participants // 2 // no_of_groups teams. Names
        continue after any groups that already exist.
        """
        tournament_id = parse_identifier(tournament_id, "tournament id")
        if no_of_groups < 1:
            raise ValidationError(f"Number of groups must be at least 1, got {no_of_groups}")

        with self.db.session_scope() as session:
            tournament_orm = self._load_tournament(session, tournament_id)
            participants = max_participants or tournament_orm.max_participants
            if not participants:
                raise ValidationError("max_participants is required to size the groups")

            teams_per_group = participants // MAX_PLAYERS_PER_TEAM // no_of_groups
            if teams_per_group < 2:
                raise ValidationError(
                    f"{participants} participants in {no_of_groups} groups leaves "
                    f"{teams_per_group} team(s) per group (minimum 2)"
                )

            group_repo = GroupRepository(session)
            existing = len(group_repo.get_by_tournament(tournament_id))
            created = []
            for i in range(1, no_of_groups + 1):
                group_orm = group_repo.create(
                    Group(
                        id=None,
                        tournament_id=tournament_id,
                        name=f"Group {existing + i}",
                        max_teams=teams_per_group,
                        venue_id=venue_id or tournament_orm.venue_id,
                    )
                )
                created.append(group_orm.to_model())

            logger.info(
                "Created %d groups of %d teams for tournament %s",
                len(created), teams_per_group, tournament_id,
            )
            return created

    def add_team(
        self,
        tournament_id: str,
        group_id: str,
        name: str,
        players: Sequence[tuple[str, Optional[int]]],
    ) -> Team:
        """Register a team of one or two players in a group.

        Args:
            tournament_id: Tournament ID
            group_id: Group ID
            name: Team name
            players: (player_uid, rating) pairs; a missing rating counts as 0

        Returns:
            Created Team, with its combined rating frozen

        Raises:
            ConflictError: If the group is full, a player already has a team,
                or the group's fixtures already exist
        """
        tournament_id = parse_identifier(tournament_id, "tournament id")
        group_id = parse_identifier(group_id, "group id")
        if not name or not name.strip():
            raise ValidationError("Team name is required")
        if not 1 <= len(players) <= MAX_PLAYERS_PER_TEAM:
            raise ValidationError(f"A team has 1 or {MAX_PLAYERS_PER_TEAM} players, got {len(players)}")
        player_uids = [uid for uid, _ in players]
        if any(not uid for uid in player_uids) or len(set(player_uids)) != len(player_uids):
            raise ValidationError("Player uids must be present and distinct")

        with self.db.session_scope() as session:
            group_orm = self._load_group(session, group_id, tournament_id)
            team_repo = TeamRepository(session)

            with self.group_lock(tournament_id, group_id):
                if group_orm.to_model().is_full:
                    raise ConflictError(f"{group_orm.name} is full ({group_orm.max_teams} teams)")
                if MatchRepository(session).count_by_group(group_id):
                    raise ConflictError(
                        f"Fixtures for {group_orm.name} already exist; regenerate them after adding teams"
                    )
                for uid in player_uids:
                    existing = team_repo.find_by_player(tournament_id, uid)
                    if existing is not None:
                        raise ConflictError(f"Player {uid} already plays for team '{existing.name}'")

                team_orm = team_repo.create(
                    Team(
                        id=None,
                        tournament_id=tournament_id,
                        group_id=group_id,
                        name=name.strip(),
                        player_uids=player_uids,
                        combined_rating=sum(int(rating or 0) for _, rating in players),
                    ),
                    commit=False,
                )
                self._recompute(session, tournament_id, group_id)
            logger.info("Added team %s (%s) to %s", team_orm.id, team_orm.name, group_orm.name)
            return team_orm.to_model()

    # ------------------------------------------------------------------
    # Fixtures
    # ------------------------------------------------------------------

    def generate_fixtures(
        self, group_id: str, replace: bool = False, tournament_id: Optional[str] = None
    ) -> list[Match]:
        """Create and return a group's round robin fixtures.

        A group with fewer than two teams yields an empty list. Standings
        are recomputed (zeroed) together with the new fixtures.

        Args:
            group_id: Group ID
            replace: Replace existing fixtures instead of refusing
            tournament_id: When given, the group must belong to this tournament

        Raises:
            ConflictError: If the group already has fixtures and replace is False
        """
        group_id = parse_identifier(group_id, "group id")
        if tournament_id is not None:
            tournament_id = parse_identifier(tournament_id, "tournament id")

        with self.db.session_scope() as session:
            group_orm = self._load_group(session, group_id, tournament_id)
            tournament_id = group_orm.tournament_id
            match_repo = MatchRepository(session)

            with self.group_lock(tournament_id, group_id):
                teams = TeamRepository(session).get_by_group(group_id)
                if len(teams) < 2:
                    logger.info(
                        "%s has %d team(s); no fixtures generated", group_orm.name, len(teams)
                    )
                    return []

                if match_repo.count_by_group(group_id) and not replace:
                    raise ConflictError(f"Fixtures for {group_orm.name} already exist")

                matches = build_group_matches(
                    tournament_id,
                    group_id,
                    [t.id for t in teams],
                    venue_id=group_orm.venue_id,
                )
                match_orms = match_repo.replace_for_group(group_id, matches, commit=False)
                self._recompute(session, tournament_id, group_id)

            logger.info(
                "Generated %d matches for %s (%d teams)", len(match_orms), group_orm.name, len(teams)
            )
            return [m.to_model() for m in match_orms]

    def generate_all_fixtures(self, tournament_id: str, replace: bool = False) -> list[Match]:
        """Generate fixtures for every group of a tournament.

        Nothing is generated if any group already has fixtures and replace
        is False.
        """
        tournament_id = parse_identifier(tournament_id, "tournament id")

        with self.db.session_scope() as session:
            self._load_tournament(session, tournament_id)
            groups = GroupRepository(session).get_by_tournament(tournament_id)
            if not groups:
                raise NotFoundError("groups of tournament", tournament_id)
            match_repo = MatchRepository(session)
            scheduled = [g.name for g in groups if match_repo.count_by_group(g.id)]
            group_ids = [g.id for g in groups]

        if scheduled and not replace:
            raise ConflictError(f"Fixtures already exist for: {', '.join(scheduled)}")

        matches = []
        for group_id in group_ids:
            matches.extend(self.generate_fixtures(group_id, replace=replace))
        return matches

    # ------------------------------------------------------------------
    # Results and standings
    # ------------------------------------------------------------------

    def record_match_result(
        self,
        match_id: str,
        sets: Optional[Iterable] = None,
        status: Optional[str] = None,
        winner_id: Optional[str] = None,
        scheduled_time=None,
        venue_id: Optional[str] = None,
    ) -> None:
        """Update a match and recompute its group's standings.

        None leaves a field unchanged. An empty string clears winner_id,
        scheduled_time or venue_id. Status is never derived from the scores.

        Args:
            match_id: Match ID
            sets: Up to three (team1, team2) pairs; replaces all set scores
            status: New status (scheduled, in_progress, completed, cancelled)
            winner_id: Declared winner team ID
            scheduled_time: datetime or ISO string
            venue_id: Venue identifier
        """
        match_id = parse_identifier(match_id, "match id")

        if sets is not None:
            sets = [tuple(pair) if isinstance(pair, (list, tuple)) else pair for pair in sets]
            is_valid, error_msg = validate_match_sets(sets)
            if not is_valid:
                raise ValidationError(error_msg)
        new_status = parse_status(status) if status is not None else None
        if winner_id:
            winner_id = parse_identifier(winner_id, "winner id")
        time_given = scheduled_time is not None
        if time_given:
            scheduled_time = parse_scheduled_time(scheduled_time)

        with self.db.session_scope() as session:
            match_repo = MatchRepository(session)
            match_orm = match_repo.get_by_id(match_id)
            if match_orm is None:
                raise NotFoundError("match", match_id)
            tournament_id = match_orm.tournament_id
            group_id = match_orm.group_id

            lock = self.group_lock(tournament_id, group_id) if group_id else nullcontext()
            with lock:
                session.refresh(match_orm)

                if new_status is not None:
                    check_status_transition(match_orm.status, new_status)
                    match_orm.status = new_status.value
                if sets is not None:
                    match_orm.sets = sets
                if winner_id is not None:
                    if winner_id:
                        is_valid, error_msg = validate_winner(match_orm.team1_id, match_orm.team2_id, winner_id)
                        if not is_valid:
                            raise ValidationError(error_msg)
                    match_orm.winner_id = winner_id or None
                if time_given:
                    match_orm.scheduled_time = scheduled_time
                if venue_id is not None:
                    match_orm.venue_id = venue_id or None

                # The score write and the standings rewrite commit together.
                match_repo.update(match_orm, commit=group_id is None)
                if group_id:
                    self._recompute(session, tournament_id, group_id)

            logger.info(
                "Recorded match %s: sets=%s status=%s",
                match_id, " ".join(str(s) for s in match_orm.sets) or "-", match_orm.status,
            )

    def _recompute(self, session, tournament_id: str, group_id: str) -> list[Standing]:
        """Read all of a group's matches and rewrite all of its standings.

        Caller must hold the group lock.
        """
        team_ids = []
        for team_orm in TeamRepository(session).get_by_group(group_id):
            if team_orm.tournament_id != tournament_id:
                logger.warning(
                    "Team %s in group %s belongs to tournament %s, not %s; omitted from standings",
                    team_orm.id, group_id, team_orm.tournament_id, tournament_id,
                )
                continue
            team_ids.append(team_orm.id)

        matches = [m.to_model() for m in MatchRepository(session).get_by_group(group_id)]
        standings = calculate_standings(
            tournament_id,
            group_id,
            team_ids,
            matches,
            points_per_win=self.points_per_win,
            points_per_draw=self.points_per_draw,
        )
        StandingRepository(session).replace_for_group(tournament_id, group_id, standings)
        logger.debug("Recomputed %d standings for group %s", len(standings), group_id)
        return standings

    def recalculate_standings(self, tournament_id: str, group_id: str) -> list[Standing]:
        """Recompute, persist and return a group's ranked standings."""
        tournament_id = parse_identifier(tournament_id, "tournament id")
        group_id = parse_identifier(group_id, "group id")

        with self.db.session_scope() as session:
            self._load_group(session, group_id, tournament_id)
            with self.group_lock(tournament_id, group_id):
                return self._recompute(session, tournament_id, group_id)

    def get_standings(self, tournament_id: str, group_id: str) -> list[Standing]:
        """Return a group's current standings ordered by position.

        Groups whose standings were never computed are computed on first read.
        """
        tournament_id = parse_identifier(tournament_id, "tournament id")
        group_id = parse_identifier(group_id, "group id")

        with self.db.session_scope() as session:
            group_orm = self._load_group(session, group_id, tournament_id)
            standing_orms = StandingRepository(session).get_by_group(tournament_id, group_id)
            if standing_orms or not group_orm.teams:
                return [s.to_model() for s in standing_orms]

        return self.recalculate_standings(tournament_id, group_id)

    def get_tournament_standings(self, tournament_id: str) -> dict[str, list[Standing]]:
        """Ranked standings of every group, keyed by group ID in group order."""
        groups = self.get_groups(tournament_id)
        return {g.id: self.get_standings(g.tournament_id, g.id) for g in groups}
