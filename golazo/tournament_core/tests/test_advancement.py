"""
Tests for mapping group tables to gold/silver/bronze cup slots.
"""

import unittest

from golazo.tournament_core.advancement import (
    SlotStatus,
    resolve_advancement,
    rules_from_policy,
    validate_advancement,
)
from golazo.tournament_core.builder import EditionBuilder
from golazo.tournament_core.exceptions import ConfigurationError
from golazo.tournament_core.structure import (
    AdvancementRule,
    BestPlaced,
    ClassificationPolicy,
    Cup,
    GroupPosition,
    PointAdjustment,
)


def ladder(builder, a, b, c, d):
    """Each team beats every team registered after it: a 9, b 6, c 3, d 0."""
    (
        builder.group(f"Group {a[0]}", a, b, c, d)
        .result(a, b, "1-0")
        .result(a, c, "1-0")
        .result(a, d, "1-0")
        .result(b, c, "1-0")
        .result(b, d, "1-0")
        .result(c, d, "1-0")
    )
    return builder


def names(edition, team_ids):
    return [edition.team_name(team_id) for team_id in team_ids]


class PolicyTests(unittest.TestCase):
    def test_rules_from_policy(self):
        rules = rules_from_policy(ClassificationPolicy(gold=2, silver=1, bronze=0))

        self.assertEqual(
            rules,
            (
                AdvancementRule(1, 2, Cup.GOLD, 2),
                AdvancementRule(3, 3, Cup.SILVER, 1),
            ),
        )

    def test_rules_from_policy_with_best_third(self):
        rules = rules_from_policy(ClassificationPolicy(gold=2, best_third_place=True))

        self.assertEqual(len(rules), 2)
        pooled = rules[1]
        self.assertTrue(pooled.best_placed_pool)
        self.assertEqual((pooled.first_position, pooled.last_position), (3, 3))
        self.assertEqual((pooled.destination, pooled.slots), (Cup.GOLD, 1))

    def test_every_cup_reachable_from_a_policy(self):
        rules = rules_from_policy(ClassificationPolicy(gold=1, silver=1, bronze=1))

        self.assertEqual([rule.destination for rule in rules], list(Cup))
        self.assertEqual(list(Cup), [Cup.GOLD, Cup.SILVER, Cup.BRONZE])

    def test_empty_policy_has_no_rules(self):
        self.assertEqual(rules_from_policy(ClassificationPolicy()), ())

    def test_policy_larger_than_group_rejected(self):
        """2 gold + 2 silver + 1 bronze cannot come out of a group of 4."""
        edition = (
            EditionBuilder()
            .policy(gold=2, silver=2, bronze=1)
            .group("A", "One", "Two", "Three", "Four")
            .build()
        )

        with self.assertRaises(ConfigurationError) as ctx:
            resolve_advancement(edition.groups, edition.matches)
        self.assertIn("Group A sends 5 teams", str(ctx.exception))

    def test_groups_with_different_policies_need_explicit_rules(self):
        edition = (
            EditionBuilder()
            .group("A", "One", "Two", policy=ClassificationPolicy(gold=1))
            .group("B", "Three", "Four", policy=ClassificationPolicy(gold=2))
            .build()
        )

        with self.assertRaises(ConfigurationError):
            resolve_advancement(edition.groups, edition.matches)

        # Explicit rules take over from the policies
        result = resolve_advancement(
            edition.groups, edition.matches, rules=[AdvancementRule(1, 1, Cup.GOLD, 1)]
        )
        self.assertEqual(len(result.slots_for(Cup.GOLD)), 2)


class ValidationTests(unittest.TestCase):
    def setUp(self):
        self.edition = (
            EditionBuilder()
            .group("A", "One", "Two", "Three")
            .group("B", "Four", "Five", "Six")
            .build()
        )

    def problems(self, rules, available_cups=None):
        with self.assertRaises(ConfigurationError) as ctx:
            validate_advancement(self.edition.groups, rules, available_cups)
        return ctx.exception.problems

    def test_valid_rules_pass(self):
        validate_advancement(
            self.edition.groups,
            [
                AdvancementRule(1, 1, Cup.GOLD, 1),
                AdvancementRule(2, 2, Cup.GOLD, 1, best_placed_pool=True),
                AdvancementRule(3, 3, Cup.SILVER, 1),
            ],
            available_cups={Cup.GOLD, Cup.SILVER},
        )

    def test_overlapping_positions(self):
        problems = self.problems(
            [AdvancementRule(1, 2, Cup.GOLD, 2), AdvancementRule(2, 3, Cup.SILVER, 2)]
        )
        self.assertEqual(len(problems), 1)
        self.assertIn("position 2 is already sent to gold", problems[0])

    def test_all_problems_reported_together(self):
        problems = self.problems(
            [
                AdvancementRule(1, 2, Cup.GOLD, 3),
                AdvancementRule(3, 3, Cup.BRONZE, 1),
                AdvancementRule(4, 4, Cup.SILVER, 1),
            ],
            available_cups={Cup.GOLD, Cup.SILVER},
        )
        self.assertEqual(len(problems), 4)

    def test_pool_larger_than_group_count(self):
        problems = self.problems([AdvancementRule(3, 3, Cup.SILVER, 3, best_placed_pool=True)])
        self.assertIn("pools 2 groups but fills 3 slots", problems[0])

    def test_invalid_range(self):
        problems = self.problems([AdvancementRule(2, 1, Cup.GOLD, 1)])
        self.assertIn("invalid position range", problems[0])


class ResolveAdvancementTests(unittest.TestCase):
    def test_policy_based_advancement(self):
        builder = EditionBuilder().policy(gold=2, silver=1)
        ladder(builder, "A1", "A2", "A3", "A4")
        ladder(builder, "B1", "B2", "B3", "B4")
        edition = builder.build()

        result = resolve_advancement(edition.groups, edition.matches)

        self.assertTrue(result.is_final)
        self.assertEqual(names(edition, result.teams_for(Cup.GOLD)), ["A1", "B1", "A2", "B2"])
        self.assertEqual(names(edition, result.teams_for(Cup.SILVER)), ["A3", "B3"])
        self.assertEqual(result.teams_for(Cup.BRONZE), [])

        gold = result.slots_for(Cup.GOLD)
        self.assertEqual([slot.number for slot in gold], [1, 2, 3, 4])
        group_b = edition.group("Group B").group_id
        slot = result.slot_for_origin(GroupPosition(group_b, 2))
        self.assertEqual((slot.cup, slot.number), (Cup.GOLD, 4))

    def test_best_third_place_pool(self):
        """Three groups of four: top two to gold, best third to silver."""
        builder = EditionBuilder()
        ladder(builder, "A1", "A2", "A3", "A4")
        ladder(builder, "B1", "B2", "B3", "B4")
        (
            builder.group("Group C", "C1", "C2", "C3", "C4")
            .result("C1", "C3", "0-0")
            .result("C1", "C2", "1-0")
            .result("C1", "C4", "1-0")
            .result("C2", "C3", "1-0")
            .result("C2", "C4", "1-0")
            .result("C3", "C4", "1-0")
        )
        builder.rule(1, 2, Cup.GOLD).rule(3, 3, Cup.SILVER, slots=1, best_placed_pool=True)
        edition = builder.build()

        result = resolve_advancement(edition.groups, edition.matches, edition.rules)

        self.assertEqual(
            names(edition, result.teams_for(Cup.GOLD)), ["A1", "B1", "C1", "A2", "B2", "C2"]
        )
        # C3 has 4 points, A3 and B3 only 3
        self.assertEqual(names(edition, result.teams_for(Cup.SILVER)), ["C3"])
        self.assertEqual(result.slots_for(Cup.SILVER)[0].origin, BestPlaced(3, 1))
        self.assertEqual(
            names(edition, [row.team_id for row in result.pools[3]]), ["C3", "A3", "B3"]
        )

    def test_unfinished_group_leaves_slots_pending(self):
        builder = EditionBuilder()
        ladder(builder, "A1", "A2", "A3", "A4")
        builder.group("Group B", "B1", "B2", "B3", "B4").fixtures("Group B")
        builder.result("B1", "B4", "2-0")
        builder.rule(1, 1, Cup.GOLD).rule(2, 2, Cup.GOLD, slots=1, best_placed_pool=True)
        edition = builder.build()

        result = resolve_advancement(edition.groups, edition.matches, edition.rules)

        self.assertFalse(result.is_final)
        statuses = [slot.status for slot in result.slots_for(Cup.GOLD)]
        self.assertEqual(statuses, [SlotStatus.FILLED, SlotStatus.PENDING, SlotStatus.PENDING])
        self.assertEqual(names(edition, result.teams_for(Cup.GOLD)), ["A1"])
        self.assertEqual(result.pools, {})
        # The provisional table is still available
        self.assertEqual(result.standings[edition.group("Group B").group_id][0].points, 3)

    def test_pool_with_too_few_candidates_is_vacant(self):
        builder = EditionBuilder()
        ladder(builder, "A1", "A2", "A3", "A4")
        builder.group("Group B", "B1", "B2").result("B1", "B2", "1-0")
        builder.rule(1, 2, Cup.GOLD).rule(3, 3, Cup.SILVER, slots=2, best_placed_pool=True)
        edition = builder.build()

        result = resolve_advancement(edition.groups, edition.matches, edition.rules)

        silver = result.slots_for(Cup.SILVER)
        self.assertEqual([slot.status for slot in silver], [SlotStatus.FILLED, SlotStatus.VACANT])
        self.assertEqual(names(edition, result.teams_for(Cup.SILVER)), ["A3"])
        self.assertTrue(result.is_final)

    def test_adjustments_change_who_advances(self):
        builder = EditionBuilder().policy(gold=1)
        ladder(builder, "A1", "A2", "A3", "A4")
        edition = builder.build()
        a1 = edition.team_id("A1")

        result = resolve_advancement(
            edition.groups, edition.matches, adjustments=[PointAdjustment(a1, penalty=9)]
        )

        self.assertEqual(names(edition, result.teams_for(Cup.GOLD)), ["A2"])

    def test_adjustment_for_team_outside_phase(self):
        builder = EditionBuilder().policy(gold=1)
        ladder(builder, "A1", "A2", "A3", "A4")
        edition = builder.team("Guest").build()

        with self.assertRaises(ConfigurationError):
            resolve_advancement(
                edition.groups,
                edition.matches,
                adjustments=[PointAdjustment(edition.team_id("Guest"), bonus=3)],
            )

    def test_unavailable_cup(self):
        builder = EditionBuilder().policy(gold=1, bronze=1)
        ladder(builder, "A1", "A2", "A3", "A4")
        edition = builder.build()

        with self.assertRaises(ConfigurationError):
            resolve_advancement(
                edition.groups, edition.matches, available_cups={Cup.GOLD, Cup.SILVER}
            )


if __name__ == "__main__":
    unittest.main()
