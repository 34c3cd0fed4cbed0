from __future__ import annotations

import argparse
import logging
import random
from typing import Sequence

from .career import CareerLedger
from .config import PROVINCE_PROFILES, Tuning
from .models import Competitor, KnowledgeTag, Medal, PracticeLevel, ProvinceTier
from .names import NameGenerator
from .randomness import clamp, normal, uniform_int
from .season import ContestOutcome, PracticeOutcome, SeasonSession


def _sample_axis(rng: random.Random, province: ProvinceTier) -> float:
    profile = PROVINCE_PROFILES[province]
    mean = (profile.min_ability + profile.max_ability) / 2.0
    spread = profile.max_ability - profile.min_ability
    return clamp(normal(rng, mean, spread), 0.0, 100.0)


def build_default_roster(
    count: int = 6,
    province: ProvinceTier | str = ProvinceTier.NORMAL,
    seed: int | None = 7,
) -> list[Competitor]:
    province = ProvinceTier(province)
    rng = random.Random(f"roster:{province.value}:{seed}")
    name_gen = NameGenerator(seed=seed)
    roster: list[Competitor] = []
    for _idx in range(max(0, count)):
        # Newcomers know a little of everything; stronger provinces start further along.
        knowledge_ceiling = int(PROVINCE_PROFILES[province].min_ability // 5)
        roster.append(
            Competitor(
                name=name_gen.next_name(),
                thinking=_sample_axis(rng, province),
                coding=_sample_axis(rng, province),
                mental=_sample_axis(rng, province),
                knowledge={tag: uniform_int(rng, 0, knowledge_ceiling) for tag in KnowledgeTag},
            )
        )
    return roster


def random_problem_tags(rng: random.Random, count: int) -> list[tuple[KnowledgeTag, ...]]:
    pool = list(KnowledgeTag)
    return [tuple(rng.sample(pool, uniform_int(rng, 1, 3))) for _ in range(count)]


def format_roster(roster: Sequence[Competitor]) -> str:
    lines = ["Name                  Think Code Ment Press  Know"]
    for competitor in roster:
        lines.append(
            f"{competitor.name:<20} {competitor.thinking:>6.1f} {competitor.coding:>4.0f} {competitor.mental:>4.0f}"
            f" {competitor.pressure:>5.0f} {competitor.knowledge_avg:>5.1f}"
        )
    return "\n".join(lines)


def format_contest_outcome(outcome: ContestOutcome) -> str:
    title = f"Week {outcome.definition.week:>2}  {outcome.definition.name}"
    if outcome.ending_triggered:
        return f"{title}: season over ({outcome.ending_reason})"
    if outcome.skipped:
        return f"{title}: skipped, nobody qualified"
    lines = [f"{title}  pass line {outcome.pass_line or 0:.0f}  funding {outcome.funding_issued}"]
    for rank, result in enumerate(outcome.participants, start=1):
        medal = "" if result.medal is Medal.NONE else f" [{result.medal.value}]"
        status = "PASS" if result.passed else "fail"
        lines.append(f"{rank:>3} {result.name:<20} {result.total_score:>4} {status}{medal} {result.remark}".rstrip())
    sitting_out = len(outcome.results) - len(outcome.participants)
    if sitting_out:
        lines.append(f"    {sitting_out} competitor(s) did not qualify")
    return "\n".join(lines)


def format_practice_outcome(outcome: PracticeOutcome) -> str:
    lines = [f"{outcome.definition.name} (week {outcome.definition.week})"]
    lines.extend(f"  {row}" for row in outcome.summary())
    return "\n".join(lines)


def format_career(ledger: CareerLedger) -> str:
    lines = ["Week Contest               Passed"]
    for entry in ledger:
        lines.append(f"{entry.week:>4} {entry.contest_name:<21} {entry.passed_count:>2}/{entry.participant_count}")
    return "\n".join(lines)


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Play one olympiad coaching season")
    parser.add_argument("--students", type=int, default=6, help="Roster size")
    parser.add_argument(
        "--province",
        choices=[tier.value for tier in ProvinceTier],
        default=ProvinceTier.NORMAL.value,
    )
    parser.add_argument("--seed", type=int, default=None, help="Seed for a reproducible season")
    parser.add_argument(
        "--practice-level",
        choices=[level.value for level in PracticeLevel],
        default=None,
        help="Hold a practice contest at this level every --practice-every weeks",
    )
    parser.add_argument("--practice-every", type=int, default=2)
    parser.add_argument("--verbose", "-v", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    roster = build_default_roster(args.students, args.province, args.seed)
    session = SeasonSession(roster, province=args.province, tuning=Tuning(), seed=args.seed)
    practice_rng = random.Random(args.seed)
    print(format_roster(session.roster))

    while True:
        due = session.due_contest()
        if due is not None:
            print(format_contest_outcome(session.resolve_contest(due)))
        elif args.practice_level and session.week % max(1, args.practice_every) == 0:
            tags = random_problem_tags(practice_rng, 4)
            print(format_practice_outcome(session.hold_practice_contest(args.practice_level, tags)))
        if session.is_complete():
            break
        session.advance(1)

    print()
    print(format_career(session.career))
    print(f"Budget: {session.budget}")
    print(f"Ending: {session.final_ending()}")
    print(format_roster(session.roster))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
