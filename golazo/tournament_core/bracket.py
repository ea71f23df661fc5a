"""
Knockout bracket generation and progression.

This module provides functionality for:
- Building single-elimination brackets from seeds or from explicit crossings
- Filling group-position placeholders once the group stage is decided
- Deciding ties (single match, two legs, penalties, walkovers, byes)
- Pushing winners into the ties they feed and detecting the champion

Brackets are immutable: every operation returns a new Bracket.
"""

from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union
from dataclasses import replace
import math

from golazo.tournament_core.advancement import AdvancementResult, SlotStatus
from golazo.tournament_core.exceptions import (
    ConfigurationError,
    InsufficientTeamsError,
    InvalidResultError,
    InvariantViolationError,
    TieAlreadyResolvedError,
    TieNotReadyError,
    UnresolvedTieError,
)
from golazo.tournament_core.scoring import KnockoutPolicy, SINGLE_MATCH_KNOCKOUT
from golazo.tournament_core.structure import (
    BYE,
    BestPlaced,
    Bracket,
    Bye,
    Cup,
    GroupPosition,
    Origin,
    Penalties,
    SingleMatchResult,
    TeamId,
    TeamOrigin,
    Tie,
    TieResult,
    TieState,
    TwoLegResult,
    WalkoverResult,
    WinnerOf,
)


def validate_bracket_size(team_count: int) -> bool:
    """Check if team count is a power of 2 (a full bracket without byes)."""
    return team_count > 1 and (team_count & (team_count - 1)) == 0


def calculate_rounds_needed(team_count: int) -> int:
    """Calculate number of rounds needed for a knockout bracket, byes included."""
    if team_count < 2:
        raise InsufficientTeamsError(team_count)
    return math.ceil(math.log2(team_count))


def get_knockout_stage_name(teams_remaining: int) -> str:
    """Get the standard name for a knockout stage based on teams remaining."""
    stage_names = {
        2: "final",
        4: "semifinals",
        8: "quarterfinals",
        16: "round-of-16",
    }
    return stage_names.get(teams_remaining, f"round-of-{teams_remaining}")


def _seed_positions(size: int) -> List[int]:
    """Return 1-based seeds in bracket order so 1 and 2 can only meet in the final.

    For 8 teams: [1, 8, 4, 5, 2, 7, 3, 6].
    """
    positions = [1]
    while len(positions) < size:
        total = len(positions) * 2 + 1
        positions = [p for seed in positions for p in (seed, total - seed)]
    return positions


def generate_knockout_seedings_traditional(
    seeds: Sequence[Origin],
) -> List[Tuple[Origin, Origin]]:
    """Pair best against worst (1v8, 4v5, 2v7, 3v6) in bracket order.

    Seed lists that are not a power of 2 are padded with byes, which the
    top seeds receive.
    """
    size = 2 ** calculate_rounds_needed(len(seeds))
    padded = list(seeds) + [BYE] * (size - len(seeds))
    order = _seed_positions(size)
    return [
        (padded[order[i] - 1], padded[order[i + 1] - 1]) for i in range(0, size, 2)
    ]


def generate_knockout_seedings_adjacent(
    seeds: Sequence[Origin],
) -> List[Tuple[Origin, Origin]]:
    """Pair seeds in list order (1v2, 3v4, ...).

    When byes are needed the top seeds get one each and the remaining
    seeds are paired in order.
    """
    size = 2 ** calculate_rounds_needed(len(seeds))
    byes = size - len(seeds)
    rest = list(seeds[byes:])
    return [(seed, BYE) for seed in seeds[:byes]] + [
        (rest[i], rest[i + 1]) for i in range(0, len(rest), 2)
    ]


def _as_origin(seed: Union[Origin, TeamId]) -> Origin:
    return TeamOrigin(seed) if isinstance(seed, int) else seed


def create_bracket(
    cup: Cup,
    seeds: Sequence[Union[Origin, TeamId]],
    seeding_style: str = "traditional",
    policy: KnockoutPolicy = SINGLE_MATCH_KNOCKOUT,
) -> Bracket:
    """Create a complete single-elimination bracket.

    Args:
        cup: Cup the bracket decides
        seeds: Teams or placeholders in seeding order (1st seed first)
        seeding_style: "traditional" (1v8) or "adjacent" (1v2)
        policy: How ties are played and decided

    Returns:
        Bracket with ties numbered from 1, round by round; later rounds
        refer to earlier ties through WinnerOf placeholders
    """
    origins = [_as_origin(seed) for seed in seeds]
    if seeding_style == "traditional":
        pairings = generate_knockout_seedings_traditional(origins)
    elif seeding_style == "adjacent":
        pairings = generate_knockout_seedings_adjacent(origins)
    else:
        raise ValueError(f"Unknown seeding style: {seeding_style}")

    ties = []
    teams_remaining = len(pairings) * 2
    previous_round = []
    number = 1
    for origin_a, origin_b in pairings:
        ties.append(Tie(number, get_knockout_stage_name(teams_remaining), origin_a, origin_b))
        previous_round.append(number)
        number += 1

    while len(previous_round) > 1:
        teams_remaining //= 2
        current_round = []
        for i in range(0, len(previous_round), 2):
            ties.append(
                Tie(
                    number,
                    get_knockout_stage_name(teams_remaining),
                    WinnerOf(previous_round[i]),
                    WinnerOf(previous_round[i + 1]),
                )
            )
            current_round.append(number)
            number += 1
        previous_round = current_round

    return build_bracket(cup, ties, policy)


def build_bracket(
    cup: Cup, ties: Sequence[Tie], policy: KnockoutPolicy = SINGLE_MATCH_KNOCKOUT
) -> Bracket:
    """Validate an explicit bracket structure and settle its byes.

    Ties must be listed so that a tie only refers to ties listed before it.

    Raises:
        ConfigurationError: If the ties do not form a single-elimination tree
    """
    problems = []
    seen: Dict[int, Tie] = {}
    feeds: Dict[int, int] = {}

    for tie in ties:
        if tie.number in seen:
            problems.append(f"Tie #{tie.number} is listed twice")
            continue
        if isinstance(tie.origin_a, Bye) and isinstance(tie.origin_b, Bye):
            problems.append(f"Tie #{tie.number} has two byes")
        for origin in tie.origins():
            if not isinstance(origin, WinnerOf):
                continue
            if origin.tie_number not in seen:
                problems.append(
                    f"Tie #{tie.number} waits for tie #{origin.tie_number}, "
                    "which is not listed before it"
                )
            elif origin.tie_number in feeds:
                problems.append(
                    f"The winner of tie #{origin.tie_number} is sent to both "
                    f"#{feeds[origin.tie_number]} and #{tie.number}"
                )
            else:
                feeds[origin.tie_number] = tie.number
        seen[tie.number] = tie

    finals = [number for number in seen if number not in feeds]
    if ties and len(finals) != 1:
        problems.append(f"Bracket must have exactly one final, found {len(finals)}")
    if not ties:
        problems.append("Bracket has no ties")

    if problems:
        raise ConfigurationError(problems)

    return Bracket(cup, _propagate(list(ties)), policy)


def final_tie(bracket: Bracket) -> Tie:
    """Return the tie whose winner is not sent anywhere."""
    fed = {
        origin.tie_number
        for tie in bracket.ties
        for origin in tie.origins()
        if isinstance(origin, WinnerOf)
    }
    for tie in bracket.ties:
        if tie.number not in fed:
            return tie
    raise ConfigurationError([f"Bracket {bracket.cup.value} has no final"])


def seed_bracket(bracket: Bracket, advancement: AdvancementResult) -> Bracket:
    """Replace group-position placeholders with the teams that qualified.

    Pending slots stay placeholders; a vacant slot becomes a bye.

    Raises:
        ConfigurationError: If the bracket refers to a slot no rule fills, or
            a tie would be left with two byes
    """
    problems = []

    def fill(origin: Origin) -> Origin:
        if not isinstance(origin, (GroupPosition, BestPlaced)):
            return origin
        slot = advancement.slot_for_origin(origin)
        if slot is None:
            problems.append(f"No advancement rule fills {origin}")
            return origin
        if slot.status == SlotStatus.FILLED:
            return TeamOrigin(slot.team_id)
        if slot.status == SlotStatus.VACANT:
            return BYE
        return origin

    ties = []
    for tie in bracket.ties:
        seeded = replace(tie, origin_a=fill(tie.origin_a), origin_b=fill(tie.origin_b))
        if isinstance(seeded.origin_a, Bye) and isinstance(seeded.origin_b, Bye):
            problems.append(f"Tie #{tie.number} has no qualified team on either side")
        ties.append(seeded)

    if problems:
        raise ConfigurationError(problems)
    return replace(bracket, ties=_propagate(ties))


def tie_state(tie: Tie) -> TieState:
    if tie.winner_id is not None:
        return TieState.RESOLVED
    if tie.team_a is None or tie.team_b is None:
        return TieState.PENDING
    if tie.result is not None:
        return TieState.IN_PROGRESS
    return TieState.READY


def _decide_level(
    tie: Tie, penalties: Optional[Penalties], policy: KnockoutPolicy
) -> Optional[TeamId]:
    if not policy.allow_penalties:
        if penalties is not None:
            raise InvalidResultError(
                f"Tie #{tie.number}: penalties recorded but not allowed in this phase"
            )
        raise UnresolvedTieError(
            tie.number, "scores are level and no penalty shootout is allowed"
        )
    if penalties is None:
        return None  # waiting for the shootout
    return tie.team_a if penalties.a_goals > penalties.b_goals else tie.team_b


def resolve_tie(tie: Tie, policy: KnockoutPolicy = SINGLE_MATCH_KNOCKOUT) -> Optional[TeamId]:
    """Work out the winner of a tie from its recorded result.

    Returns:
        The winning team ID, or None while the result is not conclusive
        (no result, first leg only, shootout not yet recorded)

    Raises:
        InvalidResultError: If the result does not fit the tie or the policy
        UnresolvedTieError: If the tie is level and the policy cannot decide it
    """
    result = tie.result
    if result is None:
        return None

    if isinstance(result, WalkoverResult):
        if result.winner_id not in (tie.team_a, tie.team_b):
            raise InvalidResultError(
                f"Tie #{tie.number}: walkover winner {result.winner_id} is not in the tie"
            )
        return result.winner_id

    if isinstance(result, SingleMatchResult):
        if policy.two_legged:
            raise InvalidResultError(f"Tie #{tie.number} is played over two legs")
        a_goals, b_goals = result.score.a_goals, result.score.b_goals
        penalties = result.penalties
    else:
        if not policy.two_legged:
            raise InvalidResultError(f"Tie #{tie.number} is a single match")
        if result.second_leg is None:
            return None
        a_goals, b_goals = result.aggregate()
        penalties = result.penalties
        if a_goals == b_goals and policy.away_goals:
            # Side A plays away in the second leg, side B in the first
            a_away, b_away = result.second_leg.a_goals, result.first_leg.b_goals
            if a_away != b_away:
                a_goals, b_goals = a_away, b_away

    if a_goals != b_goals:
        if penalties is not None:
            raise InvalidResultError(
                f"Tie #{tie.number}: penalties recorded for a tie decided in play"
            )
        return tie.team_a if a_goals > b_goals else tie.team_b

    return _decide_level(tie, penalties, policy)


def _check_extends(tie: Tie, result: TieResult) -> None:
    """A new result may only complete the one already recorded, never change it.

    A walkover settles an unresolved tie whatever has been played so far,
    e.g. a team that does not turn up for the second leg.
    """
    previous = tie.result
    if previous is None or isinstance(result, WalkoverResult):
        return
    if isinstance(previous, TwoLegResult) and isinstance(result, TwoLegResult):
        if previous.first_leg == result.first_leg and (
            previous.second_leg is None or previous.second_leg == result.second_leg
        ):
            return
    elif isinstance(previous, SingleMatchResult) and isinstance(result, SingleMatchResult):
        if previous.score == result.score and previous.penalties is None:
            return
    raise InvariantViolationError(
        f"Tie #{tie.number}: the new result would overwrite the one already recorded"
    )


def record_result(bracket: Bracket, tie_number: int, result: TieResult) -> Bracket:
    """Record a result for a tie and push the winner downstream.

    Args:
        bracket: Current bracket
        tie_number: Tie the result belongs to
        result: Full result so far (a second leg is recorded by passing a
            TwoLegResult holding both legs)

    Returns:
        Updated bracket

    Raises:
        TieAlreadyResolvedError: If the tie already has a winner
        TieNotReadyError: If either side of the tie is still a placeholder
        InvariantViolationError: If the result contradicts one recorded earlier
        InvalidResultError, UnresolvedTieError: See resolve_tie
    """
    tie = bracket.tie(tie_number)
    if tie.winner_id is not None:
        raise TieAlreadyResolvedError(tie.number, tie.winner_id)
    if tie.team_a is None or tie.team_b is None:
        raise TieNotReadyError(tie.number)
    _check_extends(tie, result)

    updated = replace(tie, result=result)
    updated = replace(updated, winner_id=resolve_tie(updated, bracket.policy))

    ties = [updated if t.number == tie_number else t for t in bracket.ties]
    return replace(bracket, ties=_propagate(ties))


def _propagate(ties: List[Tie]) -> Tuple[Tie, ...]:
    """Settle byes and fill WinnerOf placeholders until nothing changes."""
    ties = list(ties)
    changed = True
    while changed:
        changed = False
        winners = {t.number: t.winner_id for t in ties if t.winner_id is not None}
        for i, tie in enumerate(ties):
            updated = tie
            for side in ("origin_a", "origin_b"):
                origin = getattr(updated, side)
                if isinstance(origin, WinnerOf) and origin.tie_number in winners:
                    updated = replace(
                        updated, **{side: TeamOrigin(winners[origin.tie_number])}
                    )
            if updated.winner_id is None:
                if isinstance(updated.origin_a, Bye) and updated.team_b is not None:
                    updated = replace(updated, winner_id=updated.team_b)
                elif isinstance(updated.origin_b, Bye) and updated.team_a is not None:
                    updated = replace(updated, winner_id=updated.team_a)
            if updated != tie:
                ties[i] = updated
                changed = True
    return tuple(ties)


def is_bracket_resolved(bracket: Bracket) -> bool:
    """A bracket is resolved once its final has a winner."""
    return final_tie(bracket).winner_id is not None


def bracket_champion(bracket: Bracket) -> Optional[TeamId]:
    return final_tie(bracket).winner_id


def eliminated_teams(bracket: Bracket) -> List[TeamId]:
    """Teams knocked out so far, in tie order."""
    return [
        tie.loser_id
        for tie in bracket.ties
        if tie.winner_id is not None and tie.loser_id is not None
    ]


def champions(brackets: Iterable[Bracket]) -> Dict[Cup, Optional[TeamId]]:
    """Return the champion (or None) of every cup."""
    return {bracket.cup: bracket_champion(bracket) for bracket in brackets}
