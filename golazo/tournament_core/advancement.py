"""
Advancement from the group stage to the knockout cups.

This module provides functionality for:
- Deriving advancement rules from a group's classification policy
- Validating rules and policies against the groups they apply to
- Mapping group tables to knockout slots, including "best placed" pools
  that rank the same position of every group against each other
"""

from typing import Collection, Dict, Iterable, List, Optional, Sequence, Tuple, Union
from dataclasses import dataclass, field
from enum import Enum

from golazo.tournament_core.exceptions import ConfigurationError
from golazo.tournament_core.scoring import ScoringSystem, FOOTBALL_SCORING
from golazo.tournament_core.standings import (
    calculate_standings,
    is_group_complete,
    rank_across_groups,
)
from golazo.tournament_core.structure import (
    AdvancementRule,
    BestPlaced,
    ClassificationPolicy,
    Cup,
    Group,
    GroupPosition,
    MatchResult,
    PointAdjustment,
    StandingRow,
    TeamId,
)


class SlotStatus(Enum):
    FILLED = "filled"
    PENDING = "pending"  # the group stage has not finished yet
    VACANT = "vacant"  # no team exists for this slot


@dataclass(frozen=True)
class Slot:
    """One qualifying place in a knockout cup."""

    cup: Cup
    number: int
    origin: Union[GroupPosition, BestPlaced]
    status: SlotStatus
    team_id: Optional[TeamId] = None


@dataclass(frozen=True)
class AdvancementResult:
    slots: Dict[Cup, Tuple[Slot, ...]] = field(default_factory=dict)
    pools: Dict[int, Tuple[StandingRow, ...]] = field(default_factory=dict)
    standings: Dict[int, Tuple[StandingRow, ...]] = field(default_factory=dict)

    def slots_for(self, cup: Cup) -> Tuple[Slot, ...]:
        return self.slots.get(cup, ())

    def teams_for(self, cup: Cup) -> List[TeamId]:
        """Return the qualified teams of a cup, in slot order."""
        return [
            slot.team_id
            for slot in self.slots_for(cup)
            if slot.status == SlotStatus.FILLED
        ]

    def slot_for_origin(self, origin: Union[GroupPosition, BestPlaced]) -> Optional[Slot]:
        for cup_slots in self.slots.values():
            for slot in cup_slots:
                if slot.origin == origin:
                    return slot
        return None

    @property
    def is_final(self) -> bool:
        """True when no slot is waiting on an unfinished group."""
        return all(
            slot.status != SlotStatus.PENDING
            for cup_slots in self.slots.values()
            for slot in cup_slots
        )


def rules_from_policy(policy: ClassificationPolicy) -> Tuple[AdvancementRule, ...]:
    """Turn a classification policy into advancement rules.

    Gold takes the top positions, then silver, then bronze. When the policy
    lets the best third place through, the next position after those is
    pooled across groups and its best team joins the gold cup.
    """
    rules = []
    position = 1
    for cup, count in (
        (Cup.GOLD, policy.gold),
        (Cup.SILVER, policy.silver),
        (Cup.BRONZE, policy.bronze),
    ):
        if count > 0:
            rules.append(AdvancementRule(position, position + count - 1, cup, count))
            position += count

    if policy.best_third_place:
        rules.append(
            AdvancementRule(
                position,
                position,
                Cup.GOLD,
                1,
                best_placed_pool=True,
                description="Best third place",
            )
        )
    return tuple(rules)


def validate_advancement(
    groups: Sequence[Group],
    rules: Sequence[AdvancementRule],
    available_cups: Optional[Collection[Cup]] = None,
) -> None:
    """Check policies and rules, reporting every problem at once.

    Raises:
        ConfigurationError: If any policy or rule cannot be honoured
    """
    problems = []

    for group in groups:
        size = len(group.team_ids)
        if group.policy.total_slots > size:
            problems.append(
                f"Group {group.name} sends {group.policy.total_slots} teams "
                f"to the cups but only has {size}"
            )

    claimed: Dict[int, AdvancementRule] = {}
    for rule in rules:
        label = f"Rule {rule.first_position}-{rule.last_position} -> {rule.destination.value}"

        if rule.first_position < 1 or rule.last_position < rule.first_position:
            problems.append(f"{label}: invalid position range")
            continue
        if rule.slots < 1:
            problems.append(f"{label}: must fill at least one slot")
        if available_cups is not None and rule.destination not in available_cups:
            problems.append(f"{label}: cup {rule.destination.value} does not exist")

        if rule.best_placed_pool:
            if rule.first_position != rule.last_position:
                problems.append(f"{label}: a pooled rule draws from a single position")
            if rule.slots > len(groups):
                problems.append(
                    f"{label}: pools {len(groups)} groups but fills {rule.slots} slots"
                )
        else:
            if rule.slots != len(rule.positions):
                problems.append(
                    f"{label}: covers {len(rule.positions)} positions per group "
                    f"but fills {rule.slots} slots"
                )
            for group in groups:
                if rule.last_position > len(group.team_ids):
                    problems.append(
                        f"{label}: group {group.name} only has {len(group.team_ids)} teams"
                    )

        for position in rule.positions:
            if position in claimed:
                problems.append(
                    f"{label}: position {position} is already sent to "
                    f"{claimed[position].destination.value}"
                )
            else:
                claimed[position] = rule

    if problems:
        raise ConfigurationError(problems)


def _shared_policy_rules(groups: Sequence[Group]) -> Tuple[AdvancementRule, ...]:
    policies = {group.policy for group in groups}
    if len(policies) > 1:
        raise ConfigurationError(
            [
                "Groups have different classification policies; "
                "explicit advancement rules are required"
            ]
        )
    if not policies:
        return ()
    return rules_from_policy(policies.pop())


def resolve_advancement(
    groups: Sequence[Group],
    matches: Iterable[MatchResult],
    rules: Optional[Sequence[AdvancementRule]] = None,
    adjustments: Iterable[PointAdjustment] = (),
    scoring: ScoringSystem = FOOTBALL_SCORING,
    available_cups: Optional[Collection[Cup]] = None,
) -> AdvancementResult:
    """Map group tables to knockout slots.

    Args:
        groups: Groups of the phase, in display order
        matches: Match results of every group
        rules: Advancement rules; derived from the groups' shared
            classification policy when omitted
        adjustments: Bonus/penalty points for any team of the phase
        scoring: Points per win, draw and loss
        available_cups: Cups that actually have a bracket, if known

    Returns:
        AdvancementResult whose slots are FILLED, PENDING while a group is
        still being played, or VACANT when a pool has too few teams

    Raises:
        ConfigurationError: If the rules or policies are inconsistent
    """
    matches = list(matches)
    adjustments = list(adjustments)
    rules = tuple(rules) if rules is not None else _shared_policy_rules(groups)
    validate_advancement(groups, rules, available_cups)

    members = {team_id for group in groups for team_id in group.team_ids}
    strays = [a.team_id for a in adjustments if a.team_id not in members]
    if strays:
        raise ConfigurationError(
            [f"Point adjustment for team {t} who is in no group" for t in strays]
        )

    tables: Dict[int, Tuple[StandingRow, ...]] = {}
    complete: Dict[int, bool] = {}
    for group in groups:
        tables[group.group_id] = calculate_standings(
            group,
            matches,
            [a for a in adjustments if a.team_id in group],
            scoring,
        )
        complete[group.group_id] = is_group_complete(group, matches)

    slots: Dict[Cup, List[Slot]] = {}
    pools: Dict[int, Tuple[StandingRow, ...]] = {}

    def add_slot(cup: Cup, origin, status: SlotStatus, team_id=None):
        cup_slots = slots.setdefault(cup, [])
        cup_slots.append(Slot(cup, len(cup_slots) + 1, origin, status, team_id))

    for rule in rules:
        if rule.best_placed_pool:
            position = rule.first_position
            candidates = [
                [tables[g.group_id][position - 1]]
                if len(tables[g.group_id]) >= position
                else []
                for g in groups
            ]
            pool_final = all(complete.values())
            ranked = rank_across_groups(candidates)
            if pool_final:
                pools[position] = tuple(ranked)

            for rank in range(1, rule.slots + 1):
                origin = BestPlaced(position, rank)
                if not pool_final:
                    add_slot(rule.destination, origin, SlotStatus.PENDING)
                elif rank <= len(ranked):
                    add_slot(
                        rule.destination, origin, SlotStatus.FILLED, ranked[rank - 1].team_id
                    )
                else:
                    add_slot(rule.destination, origin, SlotStatus.VACANT)
            continue

        for position in rule.positions:
            for group in groups:
                origin = GroupPosition(group.group_id, position)
                if complete[group.group_id]:
                    team_id = tables[group.group_id][position - 1].team_id
                    add_slot(rule.destination, origin, SlotStatus.FILLED, team_id)
                else:
                    add_slot(rule.destination, origin, SlotStatus.PENDING)

    return AdvancementResult(
        slots={cup: tuple(cup_slots) for cup, cup_slots in slots.items()},
        pools=pools,
        standings=tables,
    )
