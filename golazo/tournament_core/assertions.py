"""
Fluent assertion interface for testing group tables and brackets.

Teams are selected by name through the Edition they were built in, so tests
read like the table they describe.
"""

from typing import Optional, Sequence
from dataclasses import dataclass

from golazo.tournament_core.bracket import bracket_champion, is_bracket_resolved, tie_state
from golazo.tournament_core.builder import name_index
from golazo.tournament_core.structure import (
    Bracket,
    Edition,
    StandingRow,
    Tie,
    TieState,
)


@dataclass
class StandingsAssertion:
    """Fluent interface for asserting a group table."""

    rows: Sequence[StandingRow]
    edition: Edition

    def _team_id(self, name: str) -> int:
        names = name_index(self.edition)
        if name not in names:
            raise AssertionError(f"Team '{name}' not found in edition")
        return names[name]

    def team(self, name: str) -> "TeamRowAssertion":
        """Select a team by name for assertions."""
        team_id = self._team_id(name)
        for row in self.rows:
            if row.team_id == team_id:
                return TeamRowAssertion(self.rows, self.edition, name, row)
        raise AssertionError(f"{name} has no row in this table")

    def order(self, *names: str) -> "StandingsAssertion":
        """Assert the complete table order, best team first."""
        actual = [self.edition.team_name(row.team_id) for row in self.rows]
        if actual != list(names):
            raise AssertionError(f"Expected table order {list(names)}, got {actual}")
        return self


@dataclass
class TeamRowAssertion(StandingsAssertion):
    """Assertions for one team's row."""

    name: str = ""
    row: Optional[StandingRow] = None

    def _check(self, label: str, expected, actual) -> "TeamRowAssertion":
        if actual != expected:
            raise AssertionError(f"{self.name} expected {expected} {label}, got {actual}")
        return self

    def position(self, expected: int) -> "TeamRowAssertion":
        return self._check("as position", expected, self.row.rank)

    def points(self, expected: int) -> "TeamRowAssertion":
        return self._check("points", expected, self.row.points)

    def played(self, expected: int) -> "TeamRowAssertion":
        return self._check("matches played", expected, self.row.played)

    def wins(self, expected: int) -> "TeamRowAssertion":
        return self._check("wins", expected, self.row.won)

    def draws(self, expected: int) -> "TeamRowAssertion":
        return self._check("draws", expected, self.row.drawn)

    def losses(self, expected: int) -> "TeamRowAssertion":
        return self._check("losses", expected, self.row.lost)

    def goals(self, scored: int, conceded: int) -> "TeamRowAssertion":
        return self._check(
            "goals (for, against)",
            (scored, conceded),
            (self.row.goals_for, self.row.goals_against),
        )

    def goal_difference(self, expected: int) -> "TeamRowAssertion":
        return self._check("goal difference", expected, self.row.goal_difference)

    def head_to_head(
        self, points: Optional[int], goals: Optional[int]
    ) -> "TeamRowAssertion":
        return self._check(
            "head-to-head (points, goals)",
            (points, goals),
            (self.row.head_to_head_points, self.row.head_to_head_goals),
        )


@dataclass
class BracketAssertion:
    """Fluent interface for asserting a knockout bracket."""

    bracket: Bracket
    edition: Edition

    def _name(self, team_id: Optional[int]) -> str:
        return "nobody" if team_id is None else self.edition.team_name(team_id)

    def tie(self, number: int) -> "TieAssertion":
        try:
            tie = self.bracket.tie(number)
        except KeyError:
            raise AssertionError(f"Tie #{number} not found in bracket")
        return TieAssertion(self.bracket, self.edition, tie)

    def champion(self, name: str) -> "BracketAssertion":
        actual = self._name(bracket_champion(self.bracket))
        if actual != name:
            raise AssertionError(f"Expected {name} to win the cup, got {actual}")
        return self

    def resolved(self, expected: bool = True) -> "BracketAssertion":
        if is_bracket_resolved(self.bracket) != expected:
            raise AssertionError(
                f"Expected bracket {'' if expected else 'not '}to be resolved"
            )
        return self


@dataclass
class TieAssertion(BracketAssertion):
    tie_: Optional[Tie] = None

    def state(self, expected: TieState) -> "TieAssertion":
        actual = tie_state(self.tie_)
        if actual != expected:
            raise AssertionError(
                f"Tie #{self.tie_.number} expected state {expected.value}, got {actual.value}"
            )
        return self

    def teams(self, team_a: str, team_b: str) -> "TieAssertion":
        actual = (self._name(self.tie_.team_a), self._name(self.tie_.team_b))
        if actual != (team_a, team_b):
            raise AssertionError(
                f"Tie #{self.tie_.number} expected {team_a} vs {team_b}, "
                f"got {actual[0]} vs {actual[1]}"
            )
        return self

    def winner(self, name: str) -> "TieAssertion":
        actual = self._name(self.tie_.winner_id)
        if actual != name:
            raise AssertionError(
                f"Tie #{self.tie_.number} expected winner {name}, got {actual}"
            )
        return self


def assert_standings(rows: Sequence[StandingRow], edition: Edition) -> StandingsAssertion:
    """Entry point for group table assertions."""
    return StandingsAssertion(rows, edition)


def assert_bracket(bracket: Bracket, edition: Edition) -> BracketAssertion:
    """Entry point for bracket assertions."""
    return BracketAssertion(bracket, edition)
