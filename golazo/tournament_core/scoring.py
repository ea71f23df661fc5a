"""
Configurable scoring and knockout policies.

This module defines how match results are converted to table points and
how knockout ties that end level are decided.
"""

from typing import Tuple
from dataclasses import dataclass


@dataclass(frozen=True)
class ScoringSystem:
    """Defines how matches are scored in a group table."""

    win_points: int = 3
    draw_points: int = 1
    loss_points: int = 0

    def match_points(self, goals_for: int, goals_against: int) -> Tuple[int, int]:
        """
        Determine table points based on a final score.

        Args:
            goals_for: Goals scored by the first team
            goals_against: Goals scored by the second team

        Returns:
            Tuple of (first_team_points, second_team_points)
        """
        if goals_for > goals_against:
            return (self.win_points, self.loss_points)
        elif goals_for < goals_against:
            return (self.loss_points, self.win_points)
        else:
            return (self.draw_points, self.draw_points)


# Pre-defined scoring systems
FOOTBALL_SCORING = ScoringSystem()

# Older amateur leagues still award two points for a win
TWO_ONE_ZERO_SCORING = ScoringSystem(win_points=2, draw_points=1, loss_points=0)


@dataclass(frozen=True)
class KnockoutPolicy:
    """How the ties of one knockout phase are played and decided.

    Scores handed to the engine are final scores, extra time included when
    it was played. A level tie goes to the penalty shootout when
    ``allow_penalties`` is set; otherwise it cannot be decided.

    A knockout tie never ends in a draw, so there is no setting that would
    allow one: every tie produces exactly one winner.
    """

    two_legged: bool = False
    allow_penalties: bool = True
    away_goals: bool = False


SINGLE_MATCH_KNOCKOUT = KnockoutPolicy()

HOME_AND_AWAY_KNOCKOUT = KnockoutPolicy(two_legged=True)
