"""
Group table calculation.

The table is always recomputed from scratch from the list of matches; the
output depends only on the set of matches, never on the order they are
given in.

Teams are ordered by, in turn:
1. Points (bonus and penalty adjustments included)
2. Goal difference
3. Goals for
4. Points in matches among the teams still level
5. Goals scored in matches among the teams still level
6. Registration order within the group
"""

from typing import Dict, Iterable, List, Optional, Sequence, Tuple
from dataclasses import dataclass, replace

from golazo.tournament_core.exceptions import ConfigurationError
from golazo.tournament_core.scoring import ScoringSystem, FOOTBALL_SCORING
from golazo.tournament_core.structure import (
    Group,
    MatchResult,
    MatchState,
    PointAdjustment,
    Score,
    StandingRow,
    TeamId,
)


@dataclass
class _Totals:
    """Running totals for one team while aggregating matches."""

    seed: int
    played: int = 0
    won: int = 0
    drawn: int = 0
    lost: int = 0
    goals_for: int = 0
    goals_against: int = 0
    match_points: int = 0
    bonus: int = 0
    penalty: int = 0

    def add(self, goals_for: int, goals_against: int, points: int, outcome: int):
        self.played += 1
        self.goals_for += goals_for
        self.goals_against += goals_against
        self.match_points += points
        if outcome > 0:
            self.won += 1
        elif outcome < 0:
            self.lost += 1
        else:
            self.drawn += 1


def counted_matches(group: Group, matches: Iterable[MatchResult]) -> List[MatchResult]:
    """Return the finished matches of ``group`` that count for its table.

    Matches involving no member of the group are ignored.

    Raises:
        ConfigurationError: If a counted match pits a member against an outsider
    """
    counted = []
    problems = []
    for match in matches:
        if not match.counts_for_standings or not match.is_final:
            continue
        home_in, away_in = match.home_id in group, match.away_id in group
        if home_in and away_in:
            counted.append(match)
        elif home_in or away_in:
            problems.append(
                f"Match {match.match_id} counts for group {group.name} but "
                f"{match.away_id if home_in else match.home_id} is not a member"
            )
    if problems:
        raise ConfigurationError(problems)
    return counted


def _points_and_goals(
    match: MatchResult, scoring: ScoringSystem
) -> Tuple[int, int, int, int]:
    """Return (home_points, away_points, home_goals, away_goals).

    A walkover gives the winner a win and the opponent a loss, no goals.
    """
    if isinstance(match.outcome, Score):
        home_goals, away_goals = match.outcome.home_goals, match.outcome.away_goals
        home_pts, away_pts = scoring.match_points(home_goals, away_goals)
        return (home_pts, away_pts, home_goals, away_goals)

    if match.winner_id() == match.home_id:
        return (scoring.win_points, scoring.loss_points, 0, 0)
    return (scoring.loss_points, scoring.win_points, 0, 0)


def calculate_standings(
    group: Group,
    matches: Iterable[MatchResult],
    adjustments: Iterable[PointAdjustment] = (),
    scoring: ScoringSystem = FOOTBALL_SCORING,
) -> Tuple[StandingRow, ...]:
    """
    Calculate the ranked table of a group.

    Args:
        group: The group, whose team order is the registration order
        matches: Match results; friendlies, unfinished and cancelled matches
            are ignored
        adjustments: Bonus/penalty points applied after aggregation
        scoring: Points per win, draw and loss

    Returns:
        Standing rows ordered by rank (1-based, every rank unique)

    Raises:
        ConfigurationError: If a match or adjustment refers to a team outside the group
    """
    counted = counted_matches(group, matches)

    totals: Dict[TeamId, _Totals] = {
        team_id: _Totals(seed=seed) for seed, team_id in enumerate(group.team_ids)
    }

    for match in counted:
        home_pts, away_pts, home_goals, away_goals = _points_and_goals(match, scoring)
        winner = match.winner_id()
        home_outcome = 0 if winner is None else (1 if winner == match.home_id else -1)
        totals[match.home_id].add(home_goals, away_goals, home_pts, home_outcome)
        totals[match.away_id].add(away_goals, home_goals, away_pts, -home_outcome)

    problems = []
    for adjustment in adjustments:
        if adjustment.team_id not in totals:
            problems.append(
                f"Point adjustment for team {adjustment.team_id} "
                f"who is not in group {group.name}"
            )
            continue
        totals[adjustment.team_id].bonus += adjustment.bonus
        totals[adjustment.team_id].penalty += adjustment.penalty
    if problems:
        raise ConfigurationError(problems)

    rows = [
        StandingRow(
            team_id=team_id,
            group_id=group.group_id,
            seed=t.seed,
            played=t.played,
            won=t.won,
            drawn=t.drawn,
            lost=t.lost,
            goals_for=t.goals_for,
            goals_against=t.goals_against,
            bonus_points=t.bonus,
            penalty_points=t.penalty,
            points=t.match_points + t.bonus - t.penalty,
        )
        for team_id, t in totals.items()
    ]

    ordered = _order_rows(rows, counted, scoring)
    return tuple(replace(row, rank=rank) for rank, row in enumerate(ordered, start=1))


def _overall_key(row: StandingRow) -> Tuple[int, int, int]:
    return (-row.points, -row.goal_difference, -row.goals_for)


def _level_blocks(rows: List[StandingRow], key) -> List[List[StandingRow]]:
    """Split sorted rows into runs that share the same ``key``."""
    blocks: List[List[StandingRow]] = []
    for row in rows:
        if blocks and key(blocks[-1][0]) == key(row):
            blocks[-1].append(row)
        else:
            blocks.append([row])
    return blocks


def _order_rows(
    rows: List[StandingRow], matches: List[MatchResult], scoring: ScoringSystem
) -> List[StandingRow]:
    rows = sorted(rows, key=lambda row: (_overall_key(row), row.seed))

    ordered: List[StandingRow] = []
    for tied in _level_blocks(rows, _overall_key):
        if len(tied) > 1:
            tied = _break_tie_head_to_head(tied, matches, scoring)
        ordered.extend(tied)
    return ordered


def _break_tie_head_to_head(
    tied: List[StandingRow], matches: List[MatchResult], scoring: ScoringSystem
) -> List[StandingRow]:
    """Order teams level on points, goal difference and goals for.

    Head-to-head figures only consider matches among ``tied`` themselves.
    When they separate some teams but not others, the figures are computed
    again over the matches among the teams still level, and so on. Teams the
    head-to-head cannot separate at all keep their registration order.
    """
    tied_ids = {row.team_id for row in tied}
    h2h_points = {team_id: 0 for team_id in tied_ids}
    h2h_goals = {team_id: 0 for team_id in tied_ids}

    for match in matches:
        if match.home_id not in tied_ids or match.away_id not in tied_ids:
            continue
        home_pts, away_pts, home_goals, away_goals = _points_and_goals(match, scoring)
        h2h_points[match.home_id] += home_pts
        h2h_points[match.away_id] += away_pts
        h2h_goals[match.home_id] += home_goals
        h2h_goals[match.away_id] += away_goals

    with_h2h = sorted(
        (
            replace(
                row,
                head_to_head_points=h2h_points[row.team_id],
                head_to_head_goals=h2h_goals[row.team_id],
            )
            for row in tied
        ),
        key=lambda row: (-row.head_to_head_points, -row.head_to_head_goals, row.seed),
    )

    ordered: List[StandingRow] = []
    for block in _level_blocks(with_h2h, lambda row: row.head_to_head_points):
        if 1 < len(block) < len(tied):
            block = _break_tie_head_to_head(block, matches, scoring)
        elif len(block) == len(tied):
            # level on head-to-head points: goals decide, then the rest again
            by_goals = []
            for sub in _level_blocks(block, lambda row: row.head_to_head_goals):
                if 1 < len(sub) < len(block):
                    sub = _break_tie_head_to_head(sub, matches, scoring)
                by_goals.extend(sub)
            block = by_goals
        ordered.extend(block)
    return ordered


def is_group_complete(group: Group, matches: Iterable[MatchResult]) -> bool:
    """Check whether every counted match of the group has been decided.

    A group of fewer than two teams is complete by definition; otherwise at
    least one match must have been finalized and none may still be scheduled.
    """
    if len(group.team_ids) < 2:
        return True

    group_matches = [
        m
        for m in matches
        if m.counts_for_standings and m.home_id in group and m.away_id in group
    ]
    if not any(m.is_final for m in group_matches):
        return False
    return all(m.state != MatchState.SCHEDULED for m in group_matches)


def rank_across_groups(
    rows_by_group: Sequence[Sequence[StandingRow]],
) -> List[StandingRow]:
    """Rank rows coming from different groups against each other.

    Teams from different groups have not met, so head-to-head does not
    apply: rows are compared on points, goal difference and goals for, then
    by group order and finally by position within the group.
    """
    indexed = []
    for group_index, rows in enumerate(rows_by_group):
        for row in rows:
            indexed.append((_overall_key(row), group_index, row.rank, row))
    indexed.sort(key=lambda item: item[:3])
    return [row for _, _, _, row in indexed]


def rank_changes(
    previous: Sequence[StandingRow], current: Sequence[StandingRow]
) -> Dict[TeamId, Tuple[Optional[int], Optional[int]]]:
    """Return (old_rank, new_rank) for every team whose rank changed.

    A team missing from one of the tables has ``None`` for that rank.
    """
    old = {row.team_id: row.rank for row in previous}
    new = {row.team_id: row.rank for row in current}
    changes = {}
    for team_id in list(old) + [t for t in new if t not in old]:
        if old.get(team_id) != new.get(team_id):
            changes[team_id] = (old.get(team_id), new.get(team_id))
    return changes
