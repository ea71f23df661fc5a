"""
Management command to simulate a whole edition without touching a database:
- Groups of randomly named teams play their round-robin with random scores
- Group tables and advancement to the gold/silver/bronze cups are calculated
- Every cup bracket is played out until it has a champion
"""

import logging
import random

from django.core.management.base import BaseCommand, CommandError
from faker import Faker

from golazo.tournament_core.advancement import resolve_advancement
from golazo.tournament_core.bracket import (
    bracket_champion,
    create_bracket,
    is_bracket_resolved,
    record_result,
    tie_state,
)
from golazo.tournament_core.builder import EditionBuilder
from golazo.tournament_core.exceptions import ConfigurationError
from golazo.tournament_core.scoring import KnockoutPolicy
from golazo.tournament_core.structure import (
    Bracket,
    Edition,
    LegScore,
    MatchState,
    Penalties,
    SingleMatchResult,
    TieState,
    TwoLegResult,
)


logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Simulate a full edition: group stage, advancement and knockout cups"

    def add_arguments(self, parser):
        from django.conf import settings

        parser.add_argument(
            "--groups", type=int, default=3, help="Number of groups (default: 3)"
        )
        parser.add_argument(
            "--teams-per-group",
            type=int,
            default=4,
            help="Teams in every group (default: 4)",
        )
        parser.add_argument(
            "--gold", type=int, default=2, help="Teams per group sent to the gold cup"
        )
        parser.add_argument(
            "--silver", type=int, default=1, help="Teams per group sent to the silver cup"
        )
        parser.add_argument(
            "--bronze", type=int, default=0, help="Teams per group sent to the bronze cup"
        )
        parser.add_argument(
            "--best-third",
            action="store_true",
            help="Let the best team after the cup places join the gold cup",
        )
        parser.add_argument(
            "--double-round",
            action="store_true",
            help="Play the group round-robin home and away",
        )
        parser.add_argument(
            "--two-legged",
            action="store_true",
            help="Play knockout ties over two legs",
        )
        parser.add_argument(
            "--seed", type=int, default=None, help="Random seed for a repeatable run"
        )
        parser.add_argument(
            "--seeding-style",
            choices=["traditional", "adjacent"],
            default=getattr(settings, "GOLAZO_DEFAULT_SEEDING", "traditional"),
            help="Bracket seeding: traditional (1v8...) or adjacent (1v2...)",
        )

    def handle(self, *args, **options):
        groups = options["groups"]
        teams_per_group = options["teams_per_group"]
        if groups < 1:
            raise CommandError("At least one group is needed")
        if teams_per_group < 2:
            raise CommandError("Groups need at least 2 teams")

        rng = random.Random(options["seed"])
        fake = Faker()
        if options["seed"] is not None:
            fake.seed_instance(options["seed"])

        builder = EditionBuilder().policy(
            options["gold"], options["silver"], options["bronze"], options["best_third"]
        )
        for g in range(groups):
            group_name = f"Group {chr(ord('A') + g)}"
            names = [f"{fake.unique.city()} FC" for _ in range(teams_per_group)]
            builder.group(group_name, *names).fixtures(
                group_name, options["double_round"]
            )

        edition = self._play_group_stage(builder, rng)

        try:
            advancement = resolve_advancement(edition.groups, edition.matches)
        except ConfigurationError as e:
            raise CommandError(str(e))
        for cup, slots in advancement.slots.items():
            logger.debug("%s cup: %d slots", cup.value, len(slots))

        for group in edition.groups:
            self.stdout.write(self.style.WARNING(group.name))
            for row in advancement.standings[group.group_id]:
                self.stdout.write(
                    f"  {row.rank}. {edition.team_name(row.team_id):<28} "
                    f"P{row.played} W{row.won} D{row.drawn} L{row.lost} "
                    f"{row.goals_for}:{row.goals_against} {row.points} pts"
                )

        policy = KnockoutPolicy(two_legged=options["two_legged"])
        for cup in advancement.slots:
            seeds = advancement.teams_for(cup)
            if len(seeds) < 2:
                self.stdout.write(f"{cup.value.title()} cup: not enough teams")
                continue
            bracket = create_bracket(cup, seeds, options["seeding_style"], policy)
            bracket = self._play_bracket(bracket, rng)
            champion = edition.team_name(bracket_champion(bracket))
            self.stdout.write(
                self.style.SUCCESS(
                    f"{cup.value.title()} cup ({len(seeds)} teams): {champion}"
                )
            )

    def _play_group_stage(self, builder: EditionBuilder, rng: random.Random) -> Edition:
        scheduled = [
            m for m in builder.edition.matches if m.state == MatchState.SCHEDULED
        ]
        for match in scheduled:
            home = builder.edition.team_name(match.home_id)
            away = builder.edition.team_name(match.away_id)
            if rng.random() < 0.03:
                builder.walkover(home, away, rng.choice([home, away]))
            else:
                builder.result(home, away, f"{rng.randint(0, 4)}-{rng.randint(0, 4)}")
        logger.debug("Played %d group matches", len(scheduled))
        return builder.build()

    def _play_bracket(self, bracket: Bracket, rng: random.Random) -> Bracket:
        while not is_bracket_resolved(bracket):
            ready = [t for t in bracket.ties if tie_state(t) == TieState.READY]
            if not ready:
                raise CommandError(f"{bracket.cup.value} bracket is stuck")
            for tie in ready:
                first = LegScore(rng.randint(0, 3), rng.randint(0, 3))
                if bracket.policy.two_legged:
                    second = LegScore(rng.randint(0, 3), rng.randint(0, 3))
                    result = TwoLegResult(first, second)
                    level = result.aggregate()[0] == result.aggregate()[1]
                    if level:
                        result = TwoLegResult(first, second, self._shootout(rng))
                else:
                    result = SingleMatchResult(first)
                    if first.a_goals == first.b_goals:
                        result = SingleMatchResult(first, self._shootout(rng))
                bracket = record_result(bracket, tie.number, result)
                logger.debug(
                    "Recorded result for tie #%d of %s cup (winner: %s)",
                    tie.number,
                    bracket.cup.value,
                    bracket.tie(tie.number).winner_id,
                )
        return bracket

    def _shootout(self, rng: random.Random) -> Penalties:
        a_goals = rng.randint(2, 5)
        return Penalties(a_goals, a_goals + rng.choice([-1, 1]))
