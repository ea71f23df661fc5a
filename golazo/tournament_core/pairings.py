"""
Fixture generation for the group stage.

This module provides functionality for:
- Round-robin fixtures for a group (circle method, optional return cycle)
- Cross-group friendly rounds paired by table position
- Spreading generated matchdays over calendar dates and kickoff times
"""

from typing import Dict, List, Mapping, Optional, Sequence, Tuple
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from golazo.tournament_core.exceptions import ConfigurationError, InsufficientTeamsError
from golazo.tournament_core.structure import (
    Fixture,
    Group,
    Matchday,
    StandingRow,
    TeamId,
)


def generate_round_robin(
    team_ids: Sequence[TeamId], double_round: bool = False, strict: bool = False
) -> List[Matchday]:
    """Generate every matchday of a round-robin between ``team_ids``.

    Uses the circle method: the first team stays fixed while the others
    rotate one position after each matchday. With an odd number of teams a
    bye is added, so exactly one team rests per matchday.

    Args:
        team_ids: Team IDs in registration order; the output depends only on
            this order
        double_round: Append a second cycle with home and away reversed
        strict: Raise instead of returning an empty list for fewer than 2 teams

    Returns:
        List of matchdays numbered from 1

    Raises:
        InsufficientTeamsError: If ``strict`` and fewer than 2 teams are given
        ValueError: If a team is listed twice
    """
    teams: List[Optional[TeamId]] = list(team_ids)
    if len(teams) < 2:
        if strict:
            raise InsufficientTeamsError(len(teams))
        return []
    if len(set(teams)) != len(teams):
        raise ValueError("A team cannot appear twice in a round-robin")

    if len(teams) % 2 == 1:
        teams.append(None)  # bye

    pivot = teams[0]
    rotating = teams[1:]
    total_matchdays = len(teams) - 1

    matchdays = []
    for number in range(1, total_matchdays + 1):
        pairs = [(pivot, rotating[-1])]
        for i in range((len(rotating) - 1) // 2):
            pairs.append((rotating[i], rotating[-2 - i]))

        fixtures = []
        resting = None
        for home_id, away_id in pairs:
            if home_id is None:
                resting = away_id
            elif away_id is None:
                resting = home_id
            else:
                fixtures.append(Fixture(home_id, away_id))

        matchdays.append(Matchday(number, tuple(fixtures), resting))

        # Rotate: the last team moves to the front
        rotating = [rotating[-1]] + rotating[:-1]

    if double_round:
        return_cycle = [
            Matchday(
                md.number + total_matchdays,
                tuple(fixture.reversed() for fixture in md.fixtures),
                md.resting,
            )
            for md in matchdays
        ]
        matchdays.extend(return_cycle)

    return matchdays


@dataclass(frozen=True)
class FriendlyPairing:
    """Result of a cross-group friendly round.

    ``unpaired`` lists the teams that could not be given an opponent, in
    group order then table order. ``unranked_groups`` lists groups for which
    no standings were supplied at all.
    """

    fixtures: Tuple[Fixture, ...]
    unpaired: Tuple[TeamId, ...]
    unranked_groups: Tuple[int, ...] = ()


def generate_cross_group_friendlies(
    groups: Sequence[Group], standings: Mapping[int, Sequence[StandingRow]]
) -> FriendlyPairing:
    """Pair teams of different groups by their current table position.

    For every pair of groups (in input order), the team ranked k-th in the
    first group meets the team ranked k-th from the bottom in the second
    group (1st vs last, 2nd vs second-to-last, ...). A team is used at most
    once. When groups differ in size, pairing stops with the smaller group.

    This is a greedy best-effort matching: it does not try to maximise the
    number of fixtures, and leftover teams are reported in ``unpaired``.

    Args:
        groups: Groups taking part in the friendly round
        standings: Ranked standings rows keyed by group ID

    Returns:
        FriendlyPairing with the fixtures and the teams left without opponent

    Raises:
        ConfigurationError: If a standings row belongs to a team outside its group
    """
    ranked: List[Tuple[Group, List[TeamId]]] = []
    unranked_groups = []
    problems = []

    for group in groups:
        rows = sorted(standings.get(group.group_id, ()), key=lambda row: row.rank)
        for row in rows:
            if row.team_id not in group:
                problems.append(
                    f"Team {row.team_id} has a standings row in group {group.name} "
                    "but is not a member"
                )
        if not rows:
            unranked_groups.append(group.group_id)
        ranked.append((group, [row.team_id for row in rows]))

    if problems:
        raise ConfigurationError(problems)

    fixtures = []
    used = set()
    for i, (_, first_group) in enumerate(ranked):
        for _, second_group in ranked[i + 1 :]:
            for k in range(min(len(first_group), len(second_group))):
                home_id = first_group[k]
                away_id = second_group[len(second_group) - 1 - k]
                if home_id in used or away_id in used:
                    continue
                fixtures.append(Fixture(home_id, away_id))
                used.update((home_id, away_id))

    unpaired = []
    for group, team_ids in ranked:
        # Members without a standings row cannot be placed either
        leftovers = team_ids + [t for t in group.team_ids if t not in team_ids]
        unpaired.extend(t for t in leftovers if t not in used)

    return FriendlyPairing(tuple(fixtures), tuple(unpaired), tuple(unranked_groups))


def is_valid_friendly(
    home_id: TeamId, away_id: TeamId, groups: Sequence[Group]
) -> bool:
    """Check that two teams belong to known, different groups."""
    home_group = _group_of(home_id, groups)
    away_group = _group_of(away_id, groups)
    if home_group is None or away_group is None:
        return False
    return home_group.group_id != away_group.group_id


def friendly_opponents(team_id: TeamId, groups: Sequence[Group]) -> List[TeamId]:
    """List the teams ``team_id`` may face in a friendly round.

    A team that is not in any group may face anyone.
    """
    own_group = _group_of(team_id, groups)
    opponents = []
    for group in groups:
        if own_group is not None and group.group_id == own_group.group_id:
            continue
        opponents.extend(t for t in group.team_ids if t != team_id)
    return opponents


def _group_of(team_id: TeamId, groups: Sequence[Group]) -> Optional[Group]:
    for group in groups:
        if team_id in group:
            return group
    return None


@dataclass(frozen=True)
class ScheduledFixture:
    matchday: int
    date: date
    kickoff: time
    fixture: Fixture


def schedule_matchdays(
    matchdays: Sequence[Matchday],
    start_date: date,
    days_between: int = 7,
    first_kickoff: time = time(15, 0),
    kickoff_interval: timedelta = timedelta(hours=1),
) -> List[ScheduledFixture]:
    """Give every fixture a date and a kickoff time.

    Matchday N is played ``(N - 1) * days_between`` days after
    ``start_date``; fixtures of one matchday kick off one after another
    starting at ``first_kickoff``.
    """
    scheduled = []
    for matchday in matchdays:
        match_date = start_date + timedelta(days=(matchday.number - 1) * days_between)
        kickoff = datetime.combine(match_date, first_kickoff)
        for fixture in matchday.fixtures:
            scheduled.append(
                ScheduledFixture(matchday.number, match_date, kickoff.time(), fixture)
            )
            kickoff += kickoff_interval
    return scheduled


def count_meetings(matchdays: Sequence[Matchday]) -> Dict[frozenset, int]:
    """Count how often each unordered pair of teams meets."""
    meetings: Dict[frozenset, int] = {}
    for matchday in matchdays:
        for fixture in matchday.fixtures:
            key = frozenset((fixture.home_id, fixture.away_id))
            meetings[key] = meetings.get(key, 0) + 1
    return meetings
