"""
Snapshot types for representing a football tournament edition.

This module provides the immutable values the engine works on:
- Teams and groups (with their classification policy)
- Group-stage match results
- Generated fixtures and matchdays
- Advancement rules and derived standings rows
- Knockout ties, their origins and results, and brackets

Entities refer to each other by plain integer ids; nothing here owns or
mutates anything else.
"""

from typing import Dict, List, Tuple, Optional, Union
from dataclasses import dataclass, field
from enum import Enum

from golazo.tournament_core.exceptions import InvalidResultError
from golazo.tournament_core.scoring import KnockoutPolicy, SINGLE_MATCH_KNOCKOUT


TeamId = int


class Cup(Enum):
    """Knockout competitions a group-stage team can be sent to."""

    GOLD = "gold"
    SILVER = "silver"
    BRONZE = "bronze"


class MatchState(Enum):
    """Finalization state of a group-stage match."""

    SCHEDULED = "scheduled"
    PLAYED = "played"
    WALKOVER = "walkover"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class Team:
    team_id: TeamId
    name: str


@dataclass(frozen=True)
class ClassificationPolicy:
    """How many teams of a group go to each downstream cup."""

    gold: int = 0
    silver: int = 0
    bronze: int = 0
    best_third_place: bool = False

    @property
    def total_slots(self) -> int:
        return self.gold + self.silver + self.bronze

    def slots_for(self, cup: Cup) -> int:
        return {Cup.GOLD: self.gold, Cup.SILVER: self.silver, Cup.BRONZE: self.bronze}.get(
            cup, 0
        )


@dataclass(frozen=True)
class Group:
    """A group of the group stage.

    The order of ``team_ids`` is the registration (seed) order, which is the
    final tie-break when every other criterion is level.
    """

    group_id: int
    name: str
    team_ids: Tuple[TeamId, ...]
    policy: ClassificationPolicy = field(default_factory=ClassificationPolicy)

    def __post_init__(self):
        if len(set(self.team_ids)) != len(self.team_ids):
            raise ValueError(f"Group {self.name} lists a team more than once")

    def seed_of(self, team_id: TeamId) -> int:
        """Return the 0-based registration index of a team in this group."""
        return self.team_ids.index(team_id)

    def __contains__(self, team_id: TeamId) -> bool:
        return team_id in self.team_ids


# Group-stage match outcomes


@dataclass(frozen=True)
class Score:
    """Final score of a match that was played."""

    home_goals: int
    away_goals: int

    def __post_init__(self):
        if self.home_goals < 0 or self.away_goals < 0:
            raise InvalidResultError("Goals cannot be negative")


@dataclass(frozen=True)
class Walkover:
    """A match awarded without play."""

    winner_id: TeamId


MatchOutcome = Union[Score, Walkover]


@dataclass(frozen=True)
class MatchResult:
    """A group-stage (or friendly) match between two teams."""

    match_id: int
    home_id: TeamId
    away_id: TeamId
    state: MatchState = MatchState.SCHEDULED
    outcome: Optional[MatchOutcome] = None
    counts_for_standings: bool = True

    def __post_init__(self):
        if self.home_id == self.away_id:
            raise InvalidResultError(f"Match {self.match_id}: a team cannot play itself")

        if self.state == MatchState.PLAYED:
            if not isinstance(self.outcome, Score):
                raise InvalidResultError(
                    f"Match {self.match_id}: a played match needs a final score"
                )
        elif self.state == MatchState.WALKOVER:
            if not isinstance(self.outcome, Walkover):
                raise InvalidResultError(
                    f"Match {self.match_id}: a walkover needs a designated winner"
                )
            if self.outcome.winner_id not in (self.home_id, self.away_id):
                raise InvalidResultError(
                    f"Match {self.match_id}: walkover winner {self.outcome.winner_id} "
                    "is not one of the two teams"
                )
        elif self.outcome is not None:
            raise InvalidResultError(
                f"Match {self.match_id}: a {self.state.value} match cannot carry a result"
            )

    @property
    def is_final(self) -> bool:
        return self.state in (MatchState.PLAYED, MatchState.WALKOVER)

    def involves(self, team_id: TeamId) -> bool:
        return team_id in (self.home_id, self.away_id)

    def winner_id(self) -> Optional[TeamId]:
        """Return the ID of the winner, or None if drawn or not finished."""
        if isinstance(self.outcome, Walkover):
            return self.outcome.winner_id
        if isinstance(self.outcome, Score):
            if self.outcome.home_goals > self.outcome.away_goals:
                return self.home_id
            if self.outcome.home_goals < self.outcome.away_goals:
                return self.away_id
        return None


def played_match(
    match_id: int,
    home_id: TeamId,
    away_id: TeamId,
    home_goals: int,
    away_goals: int,
    counts_for_standings: bool = True,
) -> MatchResult:
    """Create a finished match with a final score."""
    return MatchResult(
        match_id,
        home_id,
        away_id,
        MatchState.PLAYED,
        Score(home_goals, away_goals),
        counts_for_standings,
    )


def walkover_match(
    match_id: int, home_id: TeamId, away_id: TeamId, winner_id: TeamId
) -> MatchResult:
    """Create a match awarded to ``winner_id`` without play."""
    return MatchResult(
        match_id, home_id, away_id, MatchState.WALKOVER, Walkover(winner_id)
    )


# Fixtures


@dataclass(frozen=True)
class Fixture:
    home_id: TeamId
    away_id: TeamId

    def reversed(self) -> "Fixture":
        return Fixture(self.away_id, self.home_id)


@dataclass(frozen=True)
class Matchday:
    """One round of fixtures; ``resting`` is the team with the bye, if any."""

    number: int
    fixtures: Tuple[Fixture, ...] = ()
    resting: Optional[TeamId] = None

    def team_ids(self) -> List[TeamId]:
        ids = []
        for fixture in self.fixtures:
            ids.extend((fixture.home_id, fixture.away_id))
        return ids


# Standings and advancement


@dataclass(frozen=True)
class PointAdjustment:
    """Points added (fair play, etc.) or removed (sanctions) after aggregation."""

    team_id: TeamId
    bonus: int = 0
    penalty: int = 0
    reason: Optional[str] = None


@dataclass(frozen=True)
class StandingRow:
    """One line of a group table."""

    team_id: TeamId
    group_id: int
    seed: int
    played: int = 0
    won: int = 0
    drawn: int = 0
    lost: int = 0
    goals_for: int = 0
    goals_against: int = 0
    bonus_points: int = 0
    penalty_points: int = 0
    points: int = 0
    head_to_head_points: Optional[int] = None  # Only set when needed to break a tie
    head_to_head_goals: Optional[int] = None
    rank: int = 0

    @property
    def goal_difference(self) -> int:
        return self.goals_for - self.goals_against


@dataclass(frozen=True)
class AdvancementRule:
    """Sends group positions to a knockout cup.

    A fixed rule covers ``first_position``..``last_position`` of every group
    and fills ``slots`` places per group. A pooled rule (``best_placed_pool``)
    collects the team at ``first_position`` of every group, ranks them against
    each other and fills ``slots`` places in total.
    """

    first_position: int
    last_position: int
    destination: Cup
    slots: int
    best_placed_pool: bool = False
    description: Optional[str] = None

    @property
    def positions(self) -> range:
        return range(self.first_position, self.last_position + 1)


# Knockout brackets


@dataclass(frozen=True)
class TeamOrigin:
    team_id: TeamId


@dataclass(frozen=True)
class WinnerOf:
    tie_number: int


@dataclass(frozen=True)
class GroupPosition:
    group_id: int
    position: int


@dataclass(frozen=True)
class BestPlaced:
    """The ``rank``-th best team among every group's ``position``-placed team."""

    position: int
    rank: int


@dataclass(frozen=True)
class Bye:
    pass


BYE = Bye()

Origin = Union[TeamOrigin, WinnerOf, GroupPosition, BestPlaced, Bye]


@dataclass(frozen=True)
class LegScore:
    """Score of one leg, always from the point of view of side A vs side B."""

    a_goals: int
    b_goals: int

    def __post_init__(self):
        if self.a_goals < 0 or self.b_goals < 0:
            raise InvalidResultError("Goals cannot be negative")


@dataclass(frozen=True)
class Penalties:
    a_goals: int
    b_goals: int

    def __post_init__(self):
        if self.a_goals < 0 or self.b_goals < 0:
            raise InvalidResultError("Penalty goals cannot be negative")
        if self.a_goals == self.b_goals:
            raise InvalidResultError("A penalty shootout cannot end level")


@dataclass(frozen=True)
class SingleMatchResult:
    score: LegScore
    penalties: Optional[Penalties] = None


@dataclass(frozen=True)
class TwoLegResult:
    """Side A hosts the first leg, side B hosts the second."""

    first_leg: LegScore
    second_leg: Optional[LegScore] = None
    penalties: Optional[Penalties] = None

    def __post_init__(self):
        if self.second_leg is None and self.penalties is not None:
            raise InvalidResultError("Penalties can only follow the second leg")

    def aggregate(self) -> Tuple[int, int]:
        legs = [self.first_leg] + ([self.second_leg] if self.second_leg else [])
        return (sum(leg.a_goals for leg in legs), sum(leg.b_goals for leg in legs))


@dataclass(frozen=True)
class WalkoverResult:
    winner_id: TeamId


TieResult = Union[SingleMatchResult, TwoLegResult, WalkoverResult]


class TieState(Enum):
    PENDING = "pending"
    READY = "ready"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"


@dataclass(frozen=True)
class Tie:
    """One knockout matchup between side A and side B."""

    number: int
    stage: str
    origin_a: Origin
    origin_b: Origin
    result: Optional[TieResult] = None
    winner_id: Optional[TeamId] = None

    @property
    def team_a(self) -> Optional[TeamId]:
        return self.origin_a.team_id if isinstance(self.origin_a, TeamOrigin) else None

    @property
    def team_b(self) -> Optional[TeamId]:
        return self.origin_b.team_id if isinstance(self.origin_b, TeamOrigin) else None

    @property
    def loser_id(self) -> Optional[TeamId]:
        if self.winner_id is None:
            return None
        if self.winner_id == self.team_a:
            return self.team_b
        return self.team_a

    def origins(self) -> Tuple[Origin, Origin]:
        return (self.origin_a, self.origin_b)


@dataclass(frozen=True)
class Bracket:
    """Single-elimination tree for one cup; ties are ordered round by round."""

    cup: Cup
    ties: Tuple[Tie, ...]
    policy: KnockoutPolicy = SINGLE_MATCH_KNOCKOUT

    def tie(self, number: int) -> Tie:
        for tie in self.ties:
            if tie.number == number:
                return tie
        raise KeyError(f"Bracket {self.cup.value} has no tie #{number}")

    @property
    def stages(self) -> List[str]:
        stages = []
        for tie in self.ties:
            if tie.stage not in stages:
                stages.append(tie.stage)
        return stages

    def ties_in_stage(self, stage: str) -> List[Tie]:
        return [tie for tie in self.ties if tie.stage == stage]


@dataclass
class Edition:
    """Everything the engine needs about one edition/category, by id."""

    teams: Dict[TeamId, Team] = field(default_factory=dict)
    groups: List[Group] = field(default_factory=list)
    matches: List[MatchResult] = field(default_factory=list)
    rules: List[AdvancementRule] = field(default_factory=list)

    def group(self, name: str) -> Group:
        for group in self.groups:
            if group.name == name:
                return group
        raise KeyError(f"No group named {name}")

    def team_name(self, team_id: TeamId) -> str:
        team = self.teams.get(team_id)
        return team.name if team else f"ID:{team_id}"

    def team_id(self, name: str) -> TeamId:
        for team in self.teams.values():
            if team.name == name:
                return team.team_id
        raise KeyError(f"No team named {name}")
