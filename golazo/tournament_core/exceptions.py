"""
Exceptions raised by the tournament engine.

Incomplete data (a group stage still being played, a tie waiting for its
second leg) is never reported through these; it is returned as an explicit
pending value so callers can branch on it.
"""

from typing import Iterable, List, Optional


class TournamentError(Exception):
    """Base class for every error raised by the tournament engine."""


class ConfigurationError(TournamentError):
    """Advancement rules or classification policies that cannot be honoured.

    All problems found in one validation pass are collected in ``problems``
    so an administrator can fix them in one go.
    """

    def __init__(self, problems: Iterable[str]):
        self.problems: List[str] = list(problems)
        super().__init__("; ".join(self.problems))


class InvalidResultError(TournamentError, ValueError):
    """A match or tie result snapshot that is internally inconsistent."""


class InvariantViolationError(TournamentError):
    """The caller asked for something the engine's contract forbids."""


class InsufficientTeamsError(InvariantViolationError):
    """Fixtures were required but fewer than two teams were supplied."""

    def __init__(self, team_count: int):
        self.team_count = team_count
        super().__init__(
            f"Cannot generate fixtures for {team_count} team(s), at least 2 are needed"
        )


class TieAlreadyResolvedError(InvariantViolationError):
    def __init__(self, tie_number: int, winner_id: int):
        self.tie_number = tie_number
        self.winner_id = winner_id
        super().__init__(
            f"Tie #{tie_number} is already resolved (winner {winner_id})"
        )


class TieNotReadyError(InvariantViolationError):
    def __init__(self, tie_number: int):
        self.tie_number = tie_number
        super().__init__(
            f"Tie #{tie_number} does not have two concrete teams yet"
        )


class UnresolvedTieError(TournamentError):
    """A knockout tie ended level and the policy offers no way to decide it."""

    def __init__(self, tie_number: Optional[int], reason: str):
        self.tie_number = tie_number
        self.reason = reason
        label = f"Tie #{tie_number}" if tie_number is not None else "Tie"
        super().__init__(f"{label} is unresolved: {reason}")
