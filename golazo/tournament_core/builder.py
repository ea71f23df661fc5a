"""
Builder for creating edition snapshots with a fluent API.

Teams are referred to by name; the builder hands out integer IDs in the
order teams are first mentioned, which is also their registration order
inside their group.
"""

from typing import Dict, List, Optional, Tuple

from golazo.tournament_core.pairings import generate_round_robin
from golazo.tournament_core.structure import (
    AdvancementRule,
    ClassificationPolicy,
    Cup,
    Edition,
    Group,
    MatchResult,
    MatchState,
    Team,
    TeamId,
    played_match,
    walkover_match,
)


def parse_score(score: str) -> Tuple[int, int]:
    """Parse a score like "2-1" into (home_goals, away_goals)."""
    try:
        home, away = score.split("-")
        return (int(home), int(away))
    except ValueError:
        raise ValueError(f"Invalid score: {score!r}, expected e.g. '2-1'")


class EditionBuilder:
    """Builder for creating edition snapshots easily."""

    def __init__(self, policy: Optional[ClassificationPolicy] = None):
        self.edition = Edition()
        self._policy = policy or ClassificationPolicy()
        self._next_team_id = 1
        self._next_group_id = 1
        self._next_match_id = 1

    def policy(
        self,
        gold: int = 0,
        silver: int = 0,
        bronze: int = 0,
        best_third_place: bool = False,
    ) -> "EditionBuilder":
        """Set the classification policy for groups added afterwards."""
        self._policy = ClassificationPolicy(gold, silver, bronze, best_third_place)
        return self

    def team(self, name: str) -> "EditionBuilder":
        """Register a team that does not belong to any group (yet)."""
        self._get_or_create_team_id(name)
        return self

    def group(
        self,
        name: str,
        *team_names: str,
        policy: Optional[ClassificationPolicy] = None,
    ) -> "EditionBuilder":
        """Add a group whose teams are registered in the given order."""
        team_ids = tuple(self._get_or_create_team_id(t) for t in team_names)
        self.edition.groups.append(
            Group(self._next_group_id, name, team_ids, policy or self._policy)
        )
        self._next_group_id += 1
        return self

    def fixtures(self, group_name: str, double_round: bool = False) -> "EditionBuilder":
        """Schedule the round-robin of a group."""
        group = self.edition.group(group_name)
        for matchday in generate_round_robin(group.team_ids, double_round):
            for fixture in matchday.fixtures:
                self._add_match(
                    MatchResult(self._take_match_id(), fixture.home_id, fixture.away_id)
                )
        return self

    def result(self, home: str, away: str, score: str) -> "EditionBuilder":
        """Record a played match, completing the scheduled one if it exists."""
        home_goals, away_goals = parse_score(score)
        home_id, away_id = self._team_id(home), self._team_id(away)
        match_id = self._claim_scheduled(home_id, away_id)
        self._add_match(played_match(match_id, home_id, away_id, home_goals, away_goals))
        return self

    def walkover(self, home: str, away: str, winner: str) -> "EditionBuilder":
        """Award a match to ``winner`` without play."""
        home_id, away_id = self._team_id(home), self._team_id(away)
        match_id = self._claim_scheduled(home_id, away_id)
        self._add_match(walkover_match(match_id, home_id, away_id, self._team_id(winner)))
        return self

    def cancelled(self, home: str, away: str) -> "EditionBuilder":
        home_id, away_id = self._team_id(home), self._team_id(away)
        match_id = self._claim_scheduled(home_id, away_id)
        self._add_match(MatchResult(match_id, home_id, away_id, MatchState.CANCELLED))
        return self

    def friendly(self, home: str, away: str, score: str) -> "EditionBuilder":
        """Record a friendly; it never counts for the tables."""
        home_goals, away_goals = parse_score(score)
        self._add_match(
            played_match(
                self._take_match_id(),
                self._team_id(home),
                self._team_id(away),
                home_goals,
                away_goals,
                counts_for_standings=False,
            )
        )
        return self

    def rule(
        self,
        first_position: int,
        last_position: int,
        cup: Cup,
        slots: Optional[int] = None,
        best_placed_pool: bool = False,
    ) -> "EditionBuilder":
        """Add an advancement rule; ``slots`` defaults to the position count."""
        if slots is None:
            slots = last_position - first_position + 1
        self.edition.rules.append(
            AdvancementRule(first_position, last_position, cup, slots, best_placed_pool)
        )
        return self

    def build(self) -> Edition:
        """Build and return the edition snapshot."""
        return Edition(
            teams=dict(self.edition.teams),
            groups=list(self.edition.groups),
            matches=list(self.edition.matches),
            rules=list(self.edition.rules),
        )

    # Helper methods

    def team_ids(self, *names: str) -> List[TeamId]:
        return [self._team_id(name) for name in names]

    def _get_or_create_team_id(self, name: str) -> TeamId:
        for team in self.edition.teams.values():
            if team.name == name:
                return team.team_id
        team_id = self._next_team_id
        self._next_team_id += 1
        self.edition.teams[team_id] = Team(team_id, name)
        return team_id

    def _team_id(self, name: str) -> TeamId:
        try:
            return self.edition.team_id(name)
        except KeyError:
            raise ValueError(f"Team {name!r} not found. Add it with team() or group() first.")

    def _take_match_id(self) -> int:
        match_id = self._next_match_id
        self._next_match_id += 1
        return match_id

    def _claim_scheduled(self, home_id: TeamId, away_id: TeamId) -> int:
        """Remove the first scheduled home/away match and return its ID."""
        for i, match in enumerate(self.edition.matches):
            if (
                match.state == MatchState.SCHEDULED
                and match.home_id == home_id
                and match.away_id == away_id
            ):
                del self.edition.matches[i]
                return match.match_id
        return self._take_match_id()

    def _add_match(self, match: MatchResult) -> None:
        self.edition.matches.append(match)
        self.edition.matches.sort(key=lambda m: m.match_id)


def name_index(edition: Edition) -> Dict[str, TeamId]:
    return {team.name: team.team_id for team in edition.teams.values()}
