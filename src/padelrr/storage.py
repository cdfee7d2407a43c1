"""SQLite storage layer for padelrr.

Provides ORM models and repository pattern for data persistence.
"""

import json
import uuid
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    create_engine,
    func,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker
from sqlalchemy.pool import NullPool

from padelrr.models import (
    MAX_SETS,
    Group,
    Match,
    MatchPhase,
    MatchStatus,
    SetScore,
    Standing,
    Team,
    Tournament,
    TournamentFormat,
    format_config_from_dict,
    format_config_to_dict,
)

Base = declarative_base()


def new_id() -> str:
    """Generate a new UUID4 identifier."""
    return str(uuid.uuid4())


# ============================================================================
# ORM Models
# ============================================================================


class TournamentORM(Base):
    """Tournament table.

    The format-specific configuration is stored as JSON next to its format tag.
    """

    __tablename__ = "tournaments"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(200), nullable=False)
    format = Column(String(20), nullable=False, default=TournamentFormat.ROUND_ROBIN.value)
    format_config_json = Column(Text, nullable=False, default="{}")
    venue_id = Column(String(64), nullable=True)
    max_participants = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    groups = relationship("GroupORM", back_populates="tournament", cascade="all, delete-orphan")

    @property
    def format_config(self) -> dict:
        """Get configuration payload from JSON."""
        return json.loads(self.format_config_json)

    def to_model(self) -> Tournament:
        fmt = TournamentFormat(self.format)
        return Tournament(
            id=self.id,
            name=self.name,
            format=fmt,
            format_config=format_config_from_dict(fmt, self.format_config),
            venue_id=self.venue_id,
            max_participants=self.max_participants,
        )


class GroupORM(Base):
    """Group table."""

    __tablename__ = "groups"

    id = Column(String(36), primary_key=True, default=new_id)
    tournament_id = Column(String(36), ForeignKey("tournaments.id"), nullable=False)
    name = Column(String(50), nullable=False)  # Group 1, Group 2, ...
    sequence = Column(Integer, nullable=False, default=1)  # Order within tournament
    max_teams = Column(Integer, nullable=False)
    venue_id = Column(String(64), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    tournament = relationship("TournamentORM", back_populates="groups")
    teams = relationship("TeamORM", back_populates="group", order_by="TeamORM.sequence")

    def to_model(self) -> Group:
        return Group(
            id=self.id,
            tournament_id=self.tournament_id,
            name=self.name,
            max_teams=self.max_teams,
            current_teams=len(self.teams),
            venue_id=self.venue_id,
        )


class TeamORM(Base):
    """Team table.

    combined_rating is written once, when the team is created.
    """

    __tablename__ = "teams"

    id = Column(String(36), primary_key=True, default=new_id)
    tournament_id = Column(String(36), ForeignKey("tournaments.id"), nullable=False)
    group_id = Column(String(36), ForeignKey("groups.id"), nullable=True)
    sequence = Column(Integer, nullable=False, default=1)  # Order within group
    name = Column(String(100), nullable=False)
    player1_uid = Column(String(128), nullable=False)
    player2_uid = Column(String(128), nullable=True)
    combined_rating = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    group = relationship("GroupORM", back_populates="teams")

    @property
    def player_uids(self) -> list[str]:
        return [uid for uid in (self.player1_uid, self.player2_uid) if uid]

    def to_model(self) -> Team:
        return Team(
            id=self.id,
            tournament_id=self.tournament_id,
            group_id=self.group_id,
            name=self.name,
            player_uids=self.player_uids,
            combined_rating=self.combined_rating,
        )


class MatchORM(Base):
    """Match table.

    Set scores are kept as three nullable column pairs. A NULL pair has not
    been entered.
    """

    __tablename__ = "matches"

    id = Column(String(36), primary_key=True, default=new_id)
    tournament_id = Column(String(36), ForeignKey("tournaments.id"), nullable=False)
    group_id = Column(String(36), ForeignKey("groups.id"), nullable=True)
    phase = Column(String(20), nullable=False, default=MatchPhase.GROUP.value)
    round = Column(Integer, nullable=False)
    sequence = Column(Integer, nullable=False, default=1)  # Order within group
    team1_id = Column(String(36), ForeignKey("teams.id"), nullable=False)
    team2_id = Column(String(36), ForeignKey("teams.id"), nullable=False)
    team1_set1 = Column(Integer, nullable=True)
    team2_set1 = Column(Integer, nullable=True)
    team1_set2 = Column(Integer, nullable=True)
    team2_set2 = Column(Integer, nullable=True)
    team1_set3 = Column(Integer, nullable=True)
    team2_set3 = Column(Integer, nullable=True)
    winner_id = Column(String(36), ForeignKey("teams.id"), nullable=True)
    status = Column(String(20), nullable=False, default=MatchStatus.SCHEDULED.value)
    scheduled_time = Column(DateTime, nullable=True)
    venue_id = Column(String(64), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def sets(self) -> list[SetScore]:
        """Entered set pairs, in set order."""
        pairs = [
            (self.team1_set1, self.team2_set1),
            (self.team1_set2, self.team2_set2),
            (self.team1_set3, self.team2_set3),
        ]
        return [SetScore(a, b) for a, b in pairs if a is not None and b is not None]

    @sets.setter
    def sets(self, value: Iterable):
        """Store up to three set pairs; missing sets become NULL."""
        scores = [SetScore.from_pair(p) for p in value]
        padded = scores + [None] * (MAX_SETS - len(scores))
        for idx, score in enumerate(padded[:MAX_SETS], start=1):
            setattr(self, f"team1_set{idx}", score.team1_points if score else None)
            setattr(self, f"team2_set{idx}", score.team2_points if score else None)

    def to_model(self) -> Match:
        return Match(
            id=self.id,
            tournament_id=self.tournament_id,
            group_id=self.group_id,
            round=self.round,
            team1_id=self.team1_id,
            team2_id=self.team2_id,
            phase=MatchPhase(self.phase),
            status=MatchStatus(self.status),
            sets=self.sets,
            winner_id=self.winner_id,
            scheduled_time=self.scheduled_time,
            venue_id=self.venue_id,
        )


class StandingORM(Base):
    """Group standing table, one row per (tournament, group, team)."""

    __tablename__ = "standings"
    __table_args__ = (UniqueConstraint("tournament_id", "group_id", "team_id", name="uq_standing_team"),)

    id = Column(String(36), primary_key=True, default=new_id)
    tournament_id = Column(String(36), ForeignKey("tournaments.id"), nullable=False)
    group_id = Column(String(36), ForeignKey("groups.id"), nullable=False)
    team_id = Column(String(36), ForeignKey("teams.id"), nullable=False)
    matches_played = Column(Integer, nullable=False, default=0)
    matches_won = Column(Integer, nullable=False, default=0)
    matches_lost = Column(Integer, nullable=False, default=0)
    matches_drawn = Column(Integer, nullable=False, default=0)
    points_for = Column(Integer, nullable=False, default=0)
    points_against = Column(Integer, nullable=False, default=0)
    point_difference = Column(Integer, nullable=False, default=0)
    points = Column(Integer, nullable=False, default=0)
    position = Column(Integer, nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_model(self) -> Standing:
        return Standing(
            tournament_id=self.tournament_id,
            group_id=self.group_id,
            team_id=self.team_id,
            matches_played=self.matches_played,
            matches_won=self.matches_won,
            matches_lost=self.matches_lost,
            matches_drawn=self.matches_drawn,
            points_for=self.points_for,
            points_against=self.points_against,
            point_difference=self.point_difference,
            points=self.points,
            position=self.position,
        )


# ============================================================================
# Database Manager
# ============================================================================


class DatabaseManager:
    """Manages SQLite database connection and session."""

    def __init__(self, db_path: str = ".padelrr/padelrr.sqlite"):
        """Initialize database manager.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        # Use NullPool for SQLite to avoid connection pool issues
        self.engine = create_engine(
            f"sqlite:///{self.db_path}",
            echo=False,
            poolclass=NullPool,
            connect_args={"check_same_thread": False},
        )
        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False)

    def create_tables(self):
        """Create all tables in the database."""
        Base.metadata.create_all(self.engine)

    def get_session(self):
        """Get a new database session."""
        return self.SessionLocal()

    @contextmanager
    def session_scope(self):
        """Session that is rolled back on error and always closed."""
        session = self.get_session()
        try:
            yield session
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


# ============================================================================
# Repository Pattern
# ============================================================================


class TournamentRepository:
    """Repository for Tournament operations."""

    def __init__(self, session):
        self.session = session

    def create(self, tournament: Tournament) -> TournamentORM:
        """Create a new tournament."""
        tournament_orm = TournamentORM(
            id=tournament.id or new_id(),
            name=tournament.name,
            format=tournament.format.value,
            format_config_json=json.dumps(format_config_to_dict(tournament.format_config)),
            venue_id=tournament.venue_id,
            max_participants=tournament.max_participants,
        )
        self.session.add(tournament_orm)
        self.session.commit()
        return tournament_orm

    def get_by_id(self, tournament_id: str) -> Optional[TournamentORM]:
        """Get tournament by ID."""
        return self.session.query(TournamentORM).filter(TournamentORM.id == tournament_id).first()


class GroupRepository:
    """Repository for Group operations."""

    def __init__(self, session):
        self.session = session

    def create(self, group: Group) -> GroupORM:
        """Create a new group at the end of its tournament's group list."""
        sequence = (
            self.session.query(func.count(GroupORM.id))
            .filter(GroupORM.tournament_id == group.tournament_id)
            .scalar()
        ) + 1
        group_orm = GroupORM(
            id=group.id or new_id(),
            tournament_id=group.tournament_id,
            name=group.name,
            sequence=sequence,
            max_teams=group.max_teams,
            venue_id=group.venue_id,
        )
        self.session.add(group_orm)
        self.session.commit()
        return group_orm

    def get_by_id(self, group_id: str) -> Optional[GroupORM]:
        """Get group by ID."""
        return self.session.query(GroupORM).filter(GroupORM.id == group_id).first()

    def get_by_tournament(self, tournament_id: str) -> list[GroupORM]:
        """Get all groups of a tournament in creation order."""
        return (
            self.session.query(GroupORM)
            .filter(GroupORM.tournament_id == tournament_id)
            .order_by(GroupORM.sequence)
            .all()
        )


class TeamRepository:
    """Repository for Team operations."""

    def __init__(self, session):
        self.session = session

    def create(self, team: Team, commit: bool = True) -> TeamORM:
        """Create a new team at the end of its group's team list."""
        sequence = (
            self.session.query(func.count(TeamORM.id))
            .filter(TeamORM.group_id == team.group_id)
            .scalar()
        ) + 1
        player_uids = list(team.player_uids) + [None, None]
        team_orm = TeamORM(
            id=team.id or new_id(),
            tournament_id=team.tournament_id,
            group_id=team.group_id,
            sequence=sequence,
            name=team.name,
            player1_uid=player_uids[0],
            player2_uid=player_uids[1],
            combined_rating=team.combined_rating,
        )
        self.session.add(team_orm)
        if commit:
            self.session.commit()
        else:
            self.session.flush()
        return team_orm

    def get_by_group(self, group_id: str) -> list[TeamORM]:
        """Get the ordered team list of a group."""
        return (
            self.session.query(TeamORM)
            .filter(TeamORM.group_id == group_id)
            .order_by(TeamORM.sequence)
            .all()
        )

    def find_by_player(self, tournament_id: str, player_uid: str) -> Optional[TeamORM]:
        """Find the team a player already belongs to within a tournament."""
        return (
            self.session.query(TeamORM)
            .filter(TeamORM.tournament_id == tournament_id)
            .filter((TeamORM.player1_uid == player_uid) | (TeamORM.player2_uid == player_uid))
            .first()
        )


class MatchRepository:
    """Repository for Match operations."""

    def __init__(self, session):
        self.session = session

    def _to_orm(self, match: Match, sequence: int) -> MatchORM:
        match_orm = MatchORM(
            id=match.id or new_id(),
            tournament_id=match.tournament_id,
            group_id=match.group_id,
            phase=MatchPhase(match.phase).value,
            round=match.round,
            sequence=sequence,
            team1_id=match.team1_id,
            team2_id=match.team2_id,
            winner_id=match.winner_id,
            status=MatchStatus(match.status).value,
            scheduled_time=match.scheduled_time,
            venue_id=match.venue_id,
        )
        match_orm.sets = match.sets
        return match_orm

    def replace_for_group(self, group_id: str, matches: list[Match], commit: bool = True) -> list[MatchORM]:
        """Delete a group's matches and insert a new set in one transaction.

        Args:
            group_id: Group ID
            matches: New matches, in fixture order
            commit: Commit immediately (False lets the caller batch more writes)

        Returns:
            Created MatchORM instances
        """
        self.session.query(MatchORM).filter(MatchORM.group_id == group_id).delete()
        match_orms = [self._to_orm(m, seq) for seq, m in enumerate(matches, start=1)]
        self.session.add_all(match_orms)
        if commit:
            self.session.commit()
        return match_orms

    def get_by_id(self, match_id: str) -> Optional[MatchORM]:
        """Get match by ID."""
        return self.session.query(MatchORM).filter(MatchORM.id == match_id).first()

    def get_by_group(self, group_id: str) -> list[MatchORM]:
        """Get all matches in a group, ordered by round."""
        return (
            self.session.query(MatchORM)
            .filter(MatchORM.group_id == group_id)
            .order_by(MatchORM.round, MatchORM.sequence)
            .all()
        )

    def count_by_group(self, group_id: str) -> int:
        return self.session.query(func.count(MatchORM.id)).filter(MatchORM.group_id == group_id).scalar()

    def update(self, match_orm: MatchORM, commit: bool = True) -> MatchORM:
        """Persist changes made to a MatchORM instance.

        With commit=False the changes are only flushed, so the caller can
        commit them together with the standings rewrite.
        """
        if commit:
            self.session.commit()
        else:
            self.session.flush()
        return match_orm


class StandingRepository:
    """Repository for Standing operations."""

    def __init__(self, session):
        self.session = session

    def get_by_group(self, tournament_id: str, group_id: str) -> list[StandingORM]:
        """Get a group's standings ordered by position."""
        return (
            self.session.query(StandingORM)
            .filter(StandingORM.tournament_id == tournament_id, StandingORM.group_id == group_id)
            .order_by(StandingORM.position)
            .all()
        )

    def get_by_team(self, tournament_id: str, group_id: str, team_id: str) -> Optional[StandingORM]:
        """Get the standing of one team in a group."""
        return (
            self.session.query(StandingORM)
            .filter(
                StandingORM.tournament_id == tournament_id,
                StandingORM.group_id == group_id,
                StandingORM.team_id == team_id,
            )
            .first()
        )

    def upsert(self, standing: Standing, commit: bool = True) -> StandingORM:
        """Insert or overwrite the standing keyed by (tournament, group, team)."""
        standing_orm = self.get_by_team(standing.tournament_id, standing.group_id, standing.team_id)
        if standing_orm is None:
            standing_orm = StandingORM(
                id=new_id(),
                tournament_id=standing.tournament_id,
                group_id=standing.group_id,
                team_id=standing.team_id,
            )
            self.session.add(standing_orm)
        for column in (
            "matches_played",
            "matches_won",
            "matches_lost",
            "matches_drawn",
            "points_for",
            "points_against",
            "point_difference",
            "points",
            "position",
        ):
            setattr(standing_orm, column, getattr(standing, column))
        if commit:
            self.session.commit()
        return standing_orm

    def replace_for_group(self, tournament_id: str, group_id: str, standings: list[Standing]) -> list[StandingORM]:
        """Rewrite all standings of a group in one transaction.

        Rows for teams missing from standings are removed.
        """
        keep = {s.team_id for s in standings}
        stale = (
            self.session.query(StandingORM)
            .filter(StandingORM.tournament_id == tournament_id, StandingORM.group_id == group_id)
            .all()
        )
        for standing_orm in stale:
            if standing_orm.team_id not in keep:
                self.session.delete(standing_orm)
        standing_orms = [self.upsert(s, commit=False) for s in standings]
        self.session.commit()
        return standing_orms
