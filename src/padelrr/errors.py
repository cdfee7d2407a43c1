"""Exceptions raised by padelrr."""


class TournamentError(Exception):
    """Base exception for all padelrr errors."""

    pass


class ValidationError(TournamentError):
    """Raised for malformed identifiers, scores or payloads."""

    pass


class NotFoundError(TournamentError):
    """Raised when a referenced tournament, group, team or match does not exist."""

    def __init__(self, kind: str, identifier: str):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind.capitalize()} not found: {identifier}")


class ConflictError(TournamentError):
    """Raised when a request collides with existing state.

    Examples: fixtures already generated for a group, group already full,
    player already on another team.
    """

    pass


class InvalidTransitionError(ConflictError):
    """Raised when a match status change is not allowed."""

    pass
