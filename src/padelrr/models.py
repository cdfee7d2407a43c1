"""Data models for padelrr.

Domain model hierarchy:
- Tournament carries a format tag and its format-specific configuration
- Tournament contains Groups (round robin pools)
- Group contains Teams and Matches
- Match contains up to three SetScores
- Standing is derived from a Group's Matches, never edited by hand
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Union

from padelrr.errors import ValidationError

MAX_SETS = 3
SETS_TO_WIN = 2
MAX_PLAYERS_PER_TEAM = 2


class TournamentFormat(str, Enum):
    """Tournament format kind."""

    ROUND_ROBIN = "round_robin"
    AMERICANO = "americano"


class ProgressionType(str, Enum):
    """How teams leave the group stage."""

    GROUP_BASED_ELIMINATION = "group_based_elimination"
    COMBINED_ELIMINATION = "combined_elimination"


class MatchStatus(str, Enum):
    """Match status."""

    SCHEDULED = "scheduled"  # Created by fixture generation
    IN_PROGRESS = "in_progress"  # Being played
    COMPLETED = "completed"  # Declared finished by the caller
    CANCELLED = "cancelled"  # Will not be played


class MatchPhase(str, Enum):
    """Competition phase a match belongs to."""

    GROUP = "group"
    QUARTERFINAL = "quarterfinal"
    SEMIFINAL = "semifinal"
    FINAL = "final"


# ============================================================================
# Tournament (tagged variant)
# ============================================================================


@dataclass(frozen=True)
class RoundRobinConfig:
    """Configuration payload for round robin tournaments."""

    no_of_groups: int = 1
    teams_to_advance: int = 2
    progression_type: ProgressionType = ProgressionType.GROUP_BASED_ELIMINATION


@dataclass(frozen=True)
class AmericanoConfig:
    """Configuration payload for Americano tournaments."""

    max_players_per_team: int = 2
    rotation_interval: int = 1
    points_to_win: int = 32
    games_per_rotation: int = 1


FormatConfig = Union[RoundRobinConfig, AmericanoConfig]

FORMAT_CONFIG_TYPES = {
    TournamentFormat.ROUND_ROBIN: RoundRobinConfig,
    TournamentFormat.AMERICANO: AmericanoConfig,
}


def format_config_from_dict(fmt: TournamentFormat, data: Optional[dict]) -> FormatConfig:
    """Build the configuration payload matching a format tag.

    Args:
        fmt: Tournament format
        data: Raw payload (e.g. parsed JSON). Unknown keys are rejected.

    Returns:
        RoundRobinConfig or AmericanoConfig

    Raises:
        ValidationError: If the payload does not fit the format
    """
    fmt = TournamentFormat(fmt)
    config_type = FORMAT_CONFIG_TYPES[fmt]
    data = dict(data or {})
    if fmt == TournamentFormat.ROUND_ROBIN and "progression_type" in data:
        data["progression_type"] = ProgressionType(data["progression_type"])
    try:
        return config_type(**data)
    except TypeError as e:
        raise ValidationError(f"Invalid {fmt.value} configuration: {e}")


def format_config_to_dict(config: FormatConfig) -> dict:
    """Serialize a configuration payload to plain values."""
    data = asdict(config)
    if isinstance(config, RoundRobinConfig):
        data["progression_type"] = config.progression_type.value
    return data


@dataclass
class Tournament:
    """A tournament with a format tag and format-specific configuration."""

    id: Optional[str]
    name: str
    format: TournamentFormat = TournamentFormat.ROUND_ROBIN
    format_config: FormatConfig = field(default_factory=RoundRobinConfig)
    venue_id: Optional[str] = None
    max_participants: Optional[int] = None

    def __post_init__(self):
        self.format = TournamentFormat(self.format)
        expected = FORMAT_CONFIG_TYPES[self.format]
        if not isinstance(self.format_config, expected):
            raise ValidationError(
                f"Format '{self.format.value}' requires {expected.__name__}, "
                f"got {type(self.format_config).__name__}"
            )


# ============================================================================
# Group structure
# ============================================================================


@dataclass
class Group:
    """A round robin pool of teams within a tournament."""

    id: Optional[str]
    tournament_id: str
    name: str  # "Group 1", "Group 2", ...
    max_teams: int
    current_teams: int = 0
    venue_id: Optional[str] = None

    @property
    def is_full(self) -> bool:
        return self.current_teams >= self.max_teams

    def __str__(self) -> str:
        return f"{self.name} ({self.current_teams}/{self.max_teams} teams)"


@dataclass
class Team:
    """A team of one or two players.

    combined_rating is the sum of player ratings when the team was created.
    It is never recalculated afterwards.
    """

    id: Optional[str]
    tournament_id: str
    group_id: Optional[str]
    name: str
    player_uids: list[str] = field(default_factory=list)
    combined_rating: int = 0

    def __str__(self) -> str:
        return f"{self.name} [{self.combined_rating}]"


# ============================================================================
# Matches
# ============================================================================


@dataclass(frozen=True)
class SetScore:
    """Games won by each team in a single set.

    (0, 0) is the "not played yet" sentinel, never a real result.
    """

    team1_points: int
    team2_points: int

    @classmethod
    def from_pair(cls, pair) -> "SetScore":
        if isinstance(pair, SetScore):
            return pair
        team1_points, team2_points = pair
        return cls(int(team1_points), int(team2_points))

    @property
    def is_sentinel(self) -> bool:
        return self.team1_points == 0 and self.team2_points == 0

    @property
    def is_decisive(self) -> bool:
        return not self.is_sentinel

    @property
    def winner_team_num(self) -> Optional[int]:
        """Return 1 or 2 for the set winner, None if level."""
        if self.team1_points > self.team2_points:
            return 1
        elif self.team2_points > self.team1_points:
            return 2
        return None

    def as_tuple(self) -> tuple[int, int]:
        return (self.team1_points, self.team2_points)

    def __iter__(self):
        return iter(self.as_tuple())

    def __str__(self) -> str:
        return f"{self.team1_points}-{self.team2_points}"


@dataclass
class Match:
    """A match between two teams.

    sets holds only the set pairs that were entered (at most three).
    """

    id: Optional[str]
    tournament_id: str
    group_id: Optional[str]
    round: int
    team1_id: str
    team2_id: str
    phase: MatchPhase = MatchPhase.GROUP
    status: MatchStatus = MatchStatus.SCHEDULED
    sets: list[SetScore] = field(default_factory=list)
    winner_id: Optional[str] = None
    scheduled_time: Optional[datetime] = None
    venue_id: Optional[str] = None

    def __str__(self) -> str:
        score = " ".join(str(s) for s in self.sets) if self.sets else "vs"
        return f"R{self.round}: {self.team1_id} {score} {self.team2_id}"


@dataclass(frozen=True)
class MatchResult:
    """Outcome derived from a match's set scores."""

    is_complete: bool
    winner_id: Optional[str]
    team1_total: int
    team2_total: int


@dataclass(frozen=True)
class FixtureRound:
    """Pairings of one round robin round.

    bye_team_id is the team sitting out this round (odd-sized groups only).
    """

    round_number: int
    pairings: tuple[tuple[str, str], ...]
    bye_team_id: Optional[str] = None


# ============================================================================
# Standings
# ============================================================================


@dataclass
class Standing:
    """Aggregated record of one team within one group."""

    tournament_id: str
    group_id: str
    team_id: str
    matches_played: int = 0
    matches_won: int = 0
    matches_lost: int = 0
    matches_drawn: int = 0
    points_for: int = 0
    points_against: int = 0
    point_difference: int = 0
    points: int = 0
    position: Optional[int] = None

    def __str__(self) -> str:
        pos = f"#{self.position}" if self.position else "unranked"
        return (
            f"{pos} {self.team_id}: {self.points}pts "
            f"{self.matches_won}W-{self.matches_lost}L ({self.point_difference:+d})"
        )
