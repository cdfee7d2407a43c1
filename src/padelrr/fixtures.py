"""Round robin fixture generation using the circle method."""

from typing import Optional, Sequence

from padelrr.models import FixtureRound, Match, MatchPhase, MatchStatus


def _slots(team_ids: Sequence[str]) -> list[Optional[str]]:
    """Team slots for the circle, with a trailing bye (None) for odd groups."""
    slots: list[Optional[str]] = list(team_ids)
    if len(slots) % 2 != 0:
        slots.append(None)
    return slots


def round_count(num_teams: int) -> int:
    """Number of rounds needed for a group of num_teams.

    Examples:
        >>> round_count(4)
        3
        >>> round_count(5)
        5
    """
    if num_teams < 2:
        return 0
    return num_teams - 1 if num_teams % 2 == 0 else num_teams


def fixture_round(team_ids: Sequence[str], round_index: int) -> FixtureRound:
    """Compute the pairings of one round.

    The first slot stays fixed and the others rotate one position per round:
    after r rounds the slot that started last has moved to the front of the
    rotating part. Slot i plays slot N-1-i.

    For 4 teams [A, B, C, D]:
        Round 1: (A, D), (B, C)
        Round 2: (A, C), (D, B)
        Round 3: (A, B), (C, D)

    Args:
        team_ids: Ordered team identifiers of the group (at least 2)
        round_index: 0-based round index

    Returns:
        FixtureRound with 1-based round_number
    """
    if len(team_ids) < 2:
        raise ValueError(f"Need at least 2 teams for a round, got {len(team_ids)}")
    slots = _slots(team_ids)
    size = len(slots)
    if not 0 <= round_index < size - 1:
        raise ValueError(f"Round index {round_index} out of range for {len(team_ids)} teams")

    rotating = slots[1:]
    arranged = [slots[0]] + [rotating[(i - round_index) % len(rotating)] for i in range(len(rotating))]

    pairings = []
    bye_team_id = None
    for i in range(size // 2):
        home = arranged[i]
        away = arranged[size - 1 - i]
        if home is None:
            bye_team_id = away
        elif away is None:
            bye_team_id = home
        else:
            pairings.append((home, away))

    return FixtureRound(
        round_number=round_index + 1,
        pairings=tuple(pairings),
        bye_team_id=bye_team_id,
    )


def bye_team_for_round(team_ids: Sequence[str], round_index: int) -> Optional[str]:
    """Team sitting out a round, or None for even-sized groups."""
    return fixture_round(team_ids, round_index).bye_team_id


def generate_round_robin(team_ids: Sequence[str]) -> list[FixtureRound]:
    """Generate every round of a single round robin.

    Even groups play n-1 rounds of n/2 matches. Odd groups play n rounds of
    (n-1)/2 matches, with each team sitting out exactly one round.

    Args:
        team_ids: Ordered team identifiers. Fewer than 2 gives no rounds.

    Returns:
        List of FixtureRound, round 1 first
    """
    if len(set(team_ids)) != len(team_ids):
        raise ValueError("Team identifiers in a group must be unique")

    return [fixture_round(team_ids, r) for r in range(round_count(len(team_ids)))]


def build_group_matches(
    tournament_id: str,
    group_id: str,
    team_ids: Sequence[str],
    venue_id: Optional[str] = None,
) -> list[Match]:
    """Create the scheduled group-phase Match objects for a group.

    Every match gets the group's venue as a placeholder. No time slots are
    assigned and no venue overlap is checked.

    Args:
        tournament_id: Tournament identifier
        group_id: Group identifier
        team_ids: Ordered team identifiers of the group
        venue_id: Venue configured on the group

    Returns:
        List of unsaved Match objects (id is None), ordered by round
    """
    matches = []
    for fixture in generate_round_robin(team_ids):
        for team1_id, team2_id in fixture.pairings:
            matches.append(
                Match(
                    id=None,
                    tournament_id=tournament_id,
                    group_id=group_id,
                    round=fixture.round_number,
                    team1_id=team1_id,
                    team2_id=team2_id,
                    phase=MatchPhase.GROUP,
                    status=MatchStatus.SCHEDULED,
                    venue_id=venue_id,
                )
            )
    return matches
