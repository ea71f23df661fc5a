"""
Tests for group tables using the edition builder and fluent assertions.
"""

import random
import unittest

from golazo.tournament_core.assertions import assert_standings
from golazo.tournament_core.builder import EditionBuilder
from golazo.tournament_core.exceptions import ConfigurationError
from golazo.tournament_core.scoring import TWO_ONE_ZERO_SCORING
from golazo.tournament_core.standings import (
    calculate_standings,
    is_group_complete,
    rank_across_groups,
    rank_changes,
)
from golazo.tournament_core.structure import Group, PointAdjustment, played_match


def table(edition, group_name="A", **kwargs):
    group = edition.group(group_name)
    return calculate_standings(group, edition.matches, **kwargs)


class StandingsTests(unittest.TestCase):
    """Test table aggregation and ordering."""

    def test_three_team_cycle(self):
        """Each team wins once: goal difference separates them."""
        edition = (
            EditionBuilder()
            .group("A", "Atlas", "Boca", "Colo")
            .result("Atlas", "Boca", "2-0")
            .result("Boca", "Colo", "1-0")
            .result("Colo", "Atlas", "1-0")
            .build()
        )

        rows = table(edition)

        assert_standings(rows, edition).order("Atlas", "Colo", "Boca")
        (
            assert_standings(rows, edition)
            .team("Atlas")
            .position(1)
            .points(3)
            .played(2)
            .wins(1)
            .losses(1)
            .goals(2, 1)
            .goal_difference(1)
            .head_to_head(None, None)
        )
        assert_standings(rows, edition).team("Colo").position(2).goals(1, 1)
        assert_standings(rows, edition).team("Boca").position(3).goal_difference(-1)

    def test_head_to_head_points_break_tie(self):
        edition = (
            EditionBuilder()
            .group("A", "Wanderers", "Xeneize", "Ynys", "Zagreb")
            .result("Ynys", "Xeneize", "1-0")
            .result("Xeneize", "Zagreb", "1-0")
            .result("Xeneize", "Wanderers", "1-1")
            .result("Ynys", "Zagreb", "1-1")
            .result("Wanderers", "Ynys", "1-0")
            .result("Wanderers", "Zagreb", "2-0")
            .build()
        )

        rows = table(edition)

        # Xeneize and Ynys: 4 points, 2:2 each. Ynys won their match.
        assert_standings(rows, edition).order("Wanderers", "Ynys", "Xeneize", "Zagreb")
        assert_standings(rows, edition).team("Ynys").points(4).goals(2, 2).head_to_head(3, 1)
        assert_standings(rows, edition).team("Xeneize").points(4).goals(2, 2).head_to_head(0, 0)
        assert_standings(rows, edition).team("Wanderers").points(7).head_to_head(None, None)

    def test_head_to_head_goals_break_three_way_tie(self):
        """Three teams beat each other in a cycle and all lose to the leader."""
        edition = (
            EditionBuilder()
            .group("A", "Zenit", "Yverdon", "Xamax", "Wolves")
            .result("Xamax", "Yverdon", "3-2")
            .result("Yverdon", "Zenit", "1-0")
            .result("Zenit", "Xamax", "2-1")
            .result("Wolves", "Xamax", "1-0")
            .result("Wolves", "Yverdon", "2-1")
            .result("Wolves", "Zenit", "3-2")
            .build()
        )

        rows = table(edition)

        assert_standings(rows, edition).order("Wolves", "Xamax", "Yverdon", "Zenit")
        for name in ("Xamax", "Yverdon", "Zenit"):
            assert_standings(rows, edition).team(name).points(3).goals(4, 5)
        assert_standings(rows, edition).team("Xamax").head_to_head(3, 4)
        assert_standings(rows, edition).team("Yverdon").head_to_head(3, 3)
        assert_standings(rows, edition).team("Zenit").head_to_head(3, 2)

    def test_head_to_head_recomputed_for_teams_still_level(self):
        """Xativa leads the mini-table; Yecla and Zamora only count their own draw."""
        builder = (
            EditionBuilder()
            .group("A", "Xativa", "Zamora", "Yecla", "Wigan")
            .result("Xativa", "Yecla", "5-4")
            .result("Xativa", "Zamora", "1-0")
            .result("Yecla", "Zamora", "0-0")
            .result("Xativa", "Wigan", "0-1")
            .result("Yecla", "Wigan", "2-0")
            .result("Zamora", "Wigan", "6-4")
        )
        edition = builder.build()
        yecla, zamora = builder.team_ids("Yecla", "Zamora")

        rows = table(
            edition,
            adjustments=[PointAdjustment(yecla, bonus=2), PointAdjustment(zamora, bonus=2)],
        )

        assert_standings(rows, edition).order("Xativa", "Zamora", "Yecla", "Wigan")
        for name in ("Xativa", "Zamora", "Yecla"):
            assert_standings(rows, edition).team(name).points(6).goals(6, 5)
        assert_standings(rows, edition).team("Xativa").head_to_head(6, 6)
        assert_standings(rows, edition).team("Zamora").head_to_head(1, 0)
        assert_standings(rows, edition).team("Yecla").head_to_head(1, 0)

    def test_registration_order_is_last_resort(self):
        edition = (
            EditionBuilder()
            .group("A", "Rovers", "United")
            .result("United", "Rovers", "1-1")
            .build()
        )
        assert_standings(table(edition), edition).order("Rovers", "United")

        edition = (
            EditionBuilder()
            .group("A", "United", "Rovers")
            .result("United", "Rovers", "1-1")
            .build()
        )
        rows = table(edition)
        assert_standings(rows, edition).order("United", "Rovers")
        assert_standings(rows, edition).team("Rovers").draws(1).head_to_head(1, 1)

    def test_teams_without_matches_keep_registration_order(self):
        edition = EditionBuilder().group("A", "North", "South", "East", "West").build()

        rows = table(edition)

        assert_standings(rows, edition).order("North", "South", "East", "West")
        self.assertEqual([row.rank for row in rows], [1, 2, 3, 4])
        self.assertTrue(all(row.played == 0 and row.points == 0 for row in rows))

    def test_team_that_has_not_played_yet(self):
        edition = (
            EditionBuilder()
            .group("A", "North", "South", "East")
            .result("South", "East", "0-2")
            .build()
        )

        rows = table(edition)

        assert_standings(rows, edition).order("East", "North", "South")
        assert_standings(rows, edition).team("North").played(0).points(0).position(2)

    def test_walkover_gives_points_but_no_goals(self):
        edition = (
            EditionBuilder()
            .group("A", "Home", "Away")
            .walkover("Home", "Away", winner="Away")
            .build()
        )

        rows = table(edition)

        assert_standings(rows, edition).team("Away").position(1).points(3).wins(1).goals(0, 0)
        assert_standings(rows, edition).team("Home").played(1).losses(1).points(0)

    def test_unfinished_cancelled_and_friendly_matches_ignored(self):
        edition = (
            EditionBuilder()
            .group("A", "Alpha", "Beta", "Gamma")
            .group("B", "Delta")
            .fixtures("A")
            .result("Alpha", "Beta", "1-0")
            .cancelled("Beta", "Gamma")
            .friendly("Gamma", "Delta", "5-0")
            .friendly("Gamma", "Alpha", "4-0")
            .build()
        )

        rows = table(edition)

        assert_standings(rows, edition).order("Alpha", "Gamma", "Beta")
        assert_standings(rows, edition).team("Gamma").played(0).goals(0, 0)
        assert_standings(rows, edition).team("Alpha").played(1)

    def test_point_adjustments(self):
        builder = (
            EditionBuilder()
            .group("A", "Clean", "Dirty", "Middle")
            .result("Dirty", "Clean", "1-0")
            .result("Dirty", "Middle", "1-0")
            .result("Middle", "Clean", "0-0")
        )
        edition = builder.build()
        clean, dirty = builder.team_ids("Clean", "Dirty")

        rows = table(
            edition,
            adjustments=[
                PointAdjustment(dirty, penalty=6, reason="Ineligible player"),
                PointAdjustment(clean, bonus=1, reason="Fair play"),
            ],
        )

        assert_standings(rows, edition).order("Clean", "Middle", "Dirty")
        assert_standings(rows, edition).team("Clean").points(2)
        assert_standings(rows, edition).team("Dirty").points(0).wins(2)
        dirty_row = rows[2]
        self.assertEqual((dirty_row.bonus_points, dirty_row.penalty_points), (0, 6))

    def test_adjustment_for_outsider_rejected(self):
        edition = EditionBuilder().group("A", "One", "Two").team("Other").build()

        with self.assertRaises(ConfigurationError) as ctx:
            table(edition, adjustments=[PointAdjustment(edition.team_id("Other"), bonus=1)])
        self.assertEqual(len(ctx.exception.problems), 1)

    def test_match_against_outsider_rejected(self):
        edition = (
            EditionBuilder()
            .group("A", "One", "Two")
            .team("Stranger")
            .result("One", "Stranger", "2-0")
            .build()
        )

        with self.assertRaises(ConfigurationError):
            table(edition)

    def test_matches_of_other_groups_ignored(self):
        edition = (
            EditionBuilder()
            .group("A", "One", "Two")
            .group("B", "Three", "Four")
            .result("Three", "Four", "3-3")
            .result("Two", "One", "1-0")
            .build()
        )

        rows = table(edition)

        assert_standings(rows, edition).order("Two", "One")
        self.assertTrue(all(row.group_id == edition.group("A").group_id for row in rows))

    def test_alternative_scoring(self):
        edition = (
            EditionBuilder()
            .group("A", "One", "Two", "Three")
            .result("One", "Two", "1-0")
            .result("Two", "Three", "0-0")
            .build()
        )

        rows = table(edition, scoring=TWO_ONE_ZERO_SCORING)

        assert_standings(rows, edition).team("One").points(2)
        assert_standings(rows, edition).team("Two").points(1)

    def test_result_independent_of_match_order(self):
        builder = EditionBuilder().group("A", "P", "Q", "R", "S", "T")
        rng = random.Random(4545)
        for matchday_home, matchday_away in [
            ("P", "Q"), ("P", "R"), ("P", "S"), ("P", "T"), ("Q", "R"),
            ("Q", "S"), ("Q", "T"), ("R", "S"), ("R", "T"), ("S", "T"),
        ]:
            builder.result(matchday_home, matchday_away, f"{rng.randint(0, 2)}-{rng.randint(0, 2)}")
        edition = builder.build()
        group = edition.group("A")

        expected = calculate_standings(group, edition.matches)
        for _ in range(10):
            shuffled = list(edition.matches)
            rng.shuffle(shuffled)
            self.assertEqual(calculate_standings(group, shuffled), expected)

        # Repeated calls give byte-identical output
        self.assertEqual(repr(calculate_standings(group, edition.matches)), repr(expected))

    def test_ranks_are_unique_and_consecutive(self):
        edition = (
            EditionBuilder()
            .group("A", "One", "Two", "Three", "Four")
            .result("One", "Two", "0-0")
            .result("Three", "Four", "0-0")
            .build()
        )

        rows = table(edition)

        self.assertEqual([row.rank for row in rows], [1, 2, 3, 4])


class GroupCompletionTests(unittest.TestCase):
    def test_group_complete_when_no_match_left(self):
        builder = EditionBuilder().group("A", "One", "Two", "Three").fixtures("A")
        self.assertFalse(is_group_complete(builder.edition.group("A"), builder.edition.matches))

        builder.result("One", "Three", "1-0").result("One", "Two", "2-2")
        self.assertFalse(is_group_complete(builder.edition.group("A"), builder.edition.matches))

        builder.cancelled("Two", "Three")
        edition = builder.build()
        self.assertTrue(is_group_complete(edition.group("A"), edition.matches))

    def test_group_without_any_result_is_not_complete(self):
        group = Group(1, "A", (1, 2))
        self.assertFalse(is_group_complete(group, []))

    def test_single_team_group_is_complete(self):
        self.assertTrue(is_group_complete(Group(1, "A", (1,)), []))

    def test_friendlies_do_not_affect_completion(self):
        group = Group(1, "A", (1, 2))
        matches = [
            played_match(1, 1, 2, 1, 0),
            played_match(2, 2, 1, 0, 0, counts_for_standings=False),
        ]
        self.assertTrue(is_group_complete(group, matches))


class CrossGroupRankingTests(unittest.TestCase):
    def test_rank_across_groups(self):
        edition = (
            EditionBuilder()
            .group("A", "A1", "A2")
            .group("B", "B1", "B2")
            .group("C", "C1", "C2")
            .result("A1", "A2", "1-0")
            .result("B1", "B2", "3-0")
            .result("C1", "C2", "1-0")
            .build()
        )
        winners = [
            table(edition, name)[:1] for name in ("A", "B", "C")
        ]

        ranked = rank_across_groups(winners)

        # B1 has the best goal difference; A1 and C1 are level so group order decides
        self.assertEqual(
            [edition.team_name(row.team_id) for row in ranked], ["B1", "A1", "C1"]
        )

    def test_rank_changes(self):
        builder = EditionBuilder().group("A", "One", "Two", "Three")
        before = table(builder.build())

        builder.result("Three", "One", "1-0")
        after = table(builder.build())

        one, three = builder.team_ids("One", "Three")
        self.assertEqual(
            rank_changes(before, after), {one: (1, 3), three: (3, 1)}
        )
        self.assertEqual(rank_changes(after, after), {})


if __name__ == "__main__":
    unittest.main()
