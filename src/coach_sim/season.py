from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field, replace
from typing import Iterable, Mapping, Sequence

from .career import NOT_PARTICIPATED_REMARK, CareerEntry, CareerLedger, CareerOutcome
from .config import PROVINCE_PROFILES, Tuning
from .engine import build_problems, score_competitor
from .errors import ContestDefinitionError, RosterError
from .gains import CompetitorDeltas, GainCaps, ProblemPerformance, apply_gains, gain_caps, gain_ratio_for
from .models import (
    Competitor,
    CompetitorScore,
    ContestDefinition,
    ContestResult,
    ContestStage,
    KnowledgeTag,
    Medal,
    PracticeLevel,
    Problem,
    ProvinceTier,
)
from .passline import calculate_pass_line, medal_for, pass_rate_for
from .qualification import QualificationLedger, half_season_index
from .rewards import FundingLedger, apply_feedback, compute_feedback, occurrence_key
from .schedule import build_season_schedule, practice_definition

logger = logging.getLogger(__name__)

CHAIN_FAILURE = "chain-failure"
BUDGET_EXHAUSTED = "budget-exhausted"
MENTAL_COLLAPSE = "mental-collapse"
GLORY = "glory"
EXCELLENT = "excellent"
ORDINARY = "ordinary"

# Share of the starting roster that must stay active for the season to go on.
COLLAPSE_SHARE = 0.5


def season_ending(
    budget: int,
    active_count: int,
    initial_count: int,
    terminal_medals: Iterable[Medal] = (),
) -> str:
    """Ending for a season that did not break its qualification chain.

    Failures win over results: an empty purse or a roster that has shrunk below
    half its starting size ends the season whatever the final contest produced.
    """
    if budget <= 0:
        return BUDGET_EXHAUSTED
    if active_count < initial_count * COLLAPSE_SHARE:
        return MENTAL_COLLAPSE
    medals = set(terminal_medals)
    if Medal.GOLD in medals:
        return GLORY
    if medals & {Medal.SILVER, Medal.BRONZE}:
        return EXCELLENT
    return ORDINARY


@dataclass(slots=True)
class ContestOutcome:
    definition: ContestDefinition
    half: int
    key: str
    results: list[ContestResult] = field(default_factory=list)
    career_entry: CareerEntry | None = None
    funding_issued: int = 0
    pass_line: float | None = None
    ending_triggered: bool = False
    ending_reason: str | None = None
    skipped: bool = False
    duplicate: bool = False

    @property
    def participants(self) -> list[ContestResult]:
        return [r for r in self.results if r.participated]

    @property
    def passed_names(self) -> list[str]:
        return [r.name for r in self.results if r.passed]

    def medal_counts(self) -> dict[Medal, int]:
        counts = {medal: 0 for medal in (Medal.GOLD, Medal.SILVER, Medal.BRONZE)}
        for result in self.results:
            if result.medal in counts:
                counts[result.medal] += 1
        return counts


@dataclass(slots=True)
class PracticeRow:
    name: str
    problem_scores: list[int]
    total: int
    deltas: CompetitorDeltas


@dataclass(slots=True)
class PracticeOutcome:
    definition: ContestDefinition
    problems: list[Problem]
    caps: GainCaps
    rows: list[PracticeRow] = field(default_factory=list)

    def summary(self) -> list[str]:
        return [f"{row.total:>4}  {row.deltas.describe()}" for row in self.rows]


class SeasonSession:
    """One coaching season: the roster, the calendar and the per-half contest ledgers.

    Contests are resolved one at a time. Every state change produced by a formal
    contest (psychology, qualification, funding, career) lands together or not at all.
    """

    def __init__(
        self,
        roster: Iterable[Competitor] | None,
        province: ProvinceTier | str = ProvinceTier.NORMAL,
        tuning: Tuning | Mapping[str, float] | None = None,
        seed: int | None = None,
        week: int = 1,
        budget: int | None = None,
    ) -> None:
        if roster is None:
            raise RosterError("A season needs a roster.")
        self.roster: list[Competitor] = list(roster)
        self.province = ProvinceTier(province)
        self.tuning = tuning if isinstance(tuning, Tuning) else Tuning(tuning)
        self.seed = seed
        self._rng = random.Random(seed)
        self.week = max(1, int(week))
        self.budget = PROVINCE_PROFILES[self.province].budget if budget is None else int(budget)
        self.qualification = QualificationLedger()
        self.career = CareerLedger()
        self.funding = FundingLedger()
        self.ending_reason: str | None = None
        self.schedule: list[ContestDefinition] = build_season_schedule(self.tuning.weeks_per_half)
        self.initial_roster_size = len(self.roster)
        self._terminal_medals: list[Medal] = []
        self._outcomes: dict[str, ContestOutcome] = {}
        self._resolving = False

    @property
    def boundary(self) -> int:
        return self.tuning.weeks_per_half

    @property
    def half_season(self) -> int:
        return half_season_index(self.week, self.boundary)

    @property
    def ended(self) -> bool:
        return self.ending_reason is not None

    def is_complete(self) -> bool:
        return self._check_failure() is not None or self.week >= self.tuning.season_weeks

    def _check_failure(self) -> str | None:
        if self.ending_reason is None:
            reason = season_ending(self.budget, len(self.active_competitors()), self.initial_roster_size)
            if reason in (BUDGET_EXHAUSTED, MENTAL_COLLAPSE):
                self.ending_reason = reason
                logger.warning("Season over in week %d: %s", self.week, reason)
        return self.ending_reason

    def final_ending(self) -> str:
        """How the season ends, judged on the current state."""
        reason = self._check_failure()
        if reason is not None:
            return reason
        return season_ending(
            self.budget,
            len(self.active_competitors()),
            self.initial_roster_size,
            self._terminal_medals,
        )

    def active_competitors(self) -> list[Competitor]:
        return [c for c in self.roster if c.active]

    def eligible_competitors(self, stage: ContestStage) -> list[Competitor]:
        eligible, _ = self.qualification.split_eligible(self.roster, self.half_season, stage)
        return eligible

    def qualification_view(self) -> dict[str, dict[str, list[str]]]:
        return self.qualification.snapshot()

    def _key_for(self, definition: ContestDefinition) -> str:
        occurrence_week = definition.week or self.week
        half = half_season_index(occurrence_week, self.boundary)
        stage_name = definition.stage.value if definition.stage is not None else definition.name
        return occurrence_key(half, stage_name, occurrence_week)

    def due_contest(self) -> ContestDefinition | None:
        for definition in self.schedule:
            if definition.week == self.week and self._key_for(definition) not in self._outcomes:
                return definition
        return None

    def next_contest(self) -> ContestDefinition | None:
        for definition in self.schedule:
            if definition.week >= self.week and self._key_for(definition) not in self._outcomes:
                return definition
        return None

    def advance(self, weeks: int = 1) -> ContestDefinition | None:
        """Move the calendar forward, stopping early on a week with a contest due."""
        if weeks < 1:
            raise ValueError("weeks must be at least 1")
        if self._check_failure() is not None:
            return None
        pending = self.due_contest()
        if pending is not None:
            logger.info("Week %d: %s is still unresolved", self.week, pending.name)
            return pending
        for _ in range(weeks):
            if self.is_complete():
                break
            self.week += 1
            due = self.due_contest()
            if due is not None:
                logger.info("Week %d: %s is due", self.week, due.name)
                return due
        return None

    def run_season(self) -> list[ContestOutcome]:
        outcomes: list[ContestOutcome] = []
        while True:
            due = self.due_contest()
            if due is not None:
                outcomes.append(self.resolve_contest(due))
            if self.is_complete():
                break
            self.advance(self.tuning.season_weeks)
        return outcomes

    def _snapshot_psychology(self, competitors: Sequence[Competitor]) -> dict[str, tuple[float, float]]:
        return {c.competitor_id: (c.pressure, c.mental) for c in competitors}

    def _restore_psychology(
        self, competitors: Sequence[Competitor], snapshot: dict[str, tuple[float, float]]
    ) -> None:
        for competitor in competitors:
            saved = snapshot.get(competitor.competitor_id)
            if saved is None:
                continue
            competitor.pressure, competitor.mental = saved

    def _store(self, outcome: ContestOutcome) -> ContestOutcome:
        self._outcomes[outcome.key] = outcome
        return outcome

    def _end_season(
        self,
        definition: ContestDefinition,
        half: int,
        key: str,
        reason: str,
        results: list[ContestResult] | None = None,
        pass_line: float | None = None,
    ) -> ContestOutcome:
        self.ending_reason = CHAIN_FAILURE
        logger.warning("Season over after %s (half %d): %s", definition.name, half, reason)
        return self._store(
            ContestOutcome(
                definition=definition,
                half=half,
                key=key,
                results=results or [],
                pass_line=pass_line,
                ending_triggered=True,
                ending_reason=CHAIN_FAILURE,
            )
        )

    def _skip_contest(
        self, definition: ContestDefinition, half: int, key: str, ineligible: list[Competitor], week: int
    ) -> ContestOutcome:
        logger.warning("%s skipped in half %d: nobody qualified", definition.name, half)
        entry = self.career.append(
            CareerEntry(
                week=week,
                contest_name=definition.name,
                passed_count=0,
                participant_count=0,
                outcomes=tuple(
                    CareerOutcome(
                        name=c.name,
                        rank=None,
                        score=None,
                        passed=False,
                        remark=NOT_PARTICIPATED_REMARK,
                        eligible=False,
                    )
                    for c in ineligible
                ),
            )
        )
        results = [
            ContestResult(name=c.name, total_score=None, remark=NOT_PARTICIPATED_REMARK, participated=False)
            for c in ineligible
        ]
        return self._store(
            ContestOutcome(
                definition=definition,
                half=half,
                key=key,
                results=results,
                career_entry=entry,
                skipped=True,
            )
        )

    def resolve_contest(
        self,
        definition: ContestDefinition,
        roster: Iterable[Competitor] | None = None,
    ) -> ContestOutcome:
        """Run one formal contest and apply its consequences to the session.

        Resolving the same occurrence again returns the stored outcome with no
        funding attached. Once the qualification chain has broken, every later
        formal contest reports the ending instead of running.
        """
        competitors = self.roster if roster is None else list(roster)
        if not competitors:
            raise RosterError("Roster is empty; cannot resolve a contest.")
        definition.validate()
        if not definition.is_formal or definition.stage is None:
            raise ContestDefinitionError(
                f"'{definition.name}' is not a formal contest; use hold_practice_contest instead."
            )
        if self._resolving:
            raise RuntimeError("Another contest is already being resolved.")

        stage = definition.stage
        # The current week decides the half-season, whatever week the definition names.
        week = self.week
        half = self.half_season
        key = occurrence_key(half, stage.value, week)

        previous = self._outcomes.get(key)
        if previous is not None:
            logger.info("%s already resolved; returning the recorded outcome", key)
            return replace(previous, funding_issued=0, duplicate=True)
        if self._check_failure() is not None:
            logger.info("Season has ended (%s); %s does not run", self.ending_reason, definition.name)
            return ContestOutcome(
                definition=definition,
                half=half,
                key=key,
                ending_triggered=True,
                ending_reason=self.ending_reason,
                skipped=True,
            )

        self._resolving = True
        try:
            return self._resolve(definition, stage, competitors, half, week, key)
        finally:
            self._resolving = False

    def _resolve(
        self,
        definition: ContestDefinition,
        stage: ContestStage,
        competitors: list[Competitor],
        half: int,
        week: int,
        key: str,
    ) -> ContestOutcome:
        logger.info("Resolving %s (half %d, week %d)", definition.name, half, week)
        eligible, ineligible = self.qualification.split_eligible(competitors, half, stage)
        if not eligible:
            if half == 1:
                return self._end_season(definition, half, key, "no eligible competitors")
            return self._skip_contest(definition, half, key, ineligible, week)

        problems = build_problems(definition, self._rng)
        scored: list[CompetitorScore] = [score_competitor(c, problems, self._rng) for c in eligible]
        scored.sort(key=lambda entry: entry.total, reverse=True)
        total_max = sum(problem.max_score for problem in problems)
        pass_rate = pass_rate_for(stage, self.province, self.tuning)
        pass_line = calculate_pass_line(
            [entry.total for entry in scored],
            pass_rate,
            total_max,
            stage,
            self.tuning["pass_line_multiplier"],
        )
        logger.info(
            "%s: %d participants, pass rate %.2f, pass line %.1f", definition.name, len(scored), pass_rate, pass_line
        )

        pressure_multiplier = self.tuning["pressure_increase_multiplier"]
        feedback = compute_feedback(scored, pass_line, total_max, pressure_multiplier)
        passed_names = [delta.name for delta in feedback if delta.passed]

        if half == 1 and not passed_names:
            raw_results = [
                ContestResult(
                    name=entry.competitor.name,
                    total_score=entry.total,
                    problem_scores=tuple(entry.problem_scores),
                )
                for entry in scored
            ]
            return self._end_season(definition, half, key, "nobody passed", raw_results, pass_line)

        touched = [entry.competitor for entry in scored]
        snapshot = self._snapshot_psychology(touched)
        try:
            results: list[ContestResult] = []
            for entry, delta in zip(scored, feedback):
                applied = apply_feedback(entry.competitor, delta, pressure_multiplier)
                results.append(
                    ContestResult(
                        name=entry.competitor.name,
                        total_score=entry.total,
                        problem_scores=tuple(entry.problem_scores),
                        passed=delta.passed,
                        medal=medal_for(entry.total, pass_line) if stage.is_terminal else Medal.NONE,
                        pressure_delta=applied,
                        extra_pressure=delta.extra_pressure,
                        remark=delta.remark,
                    )
                )
        except Exception:
            self._restore_psychology(touched, snapshot)
            raise

        funding = self.funding.issue(half, stage, week, len(passed_names), self._rng, self.tuning)
        self.budget += funding
        self.qualification.record_passes(half, stage, passed_names)
        if stage.is_terminal:
            self._terminal_medals.extend(result.medal for result in results)

        for competitor in ineligible:
            results.append(
                ContestResult(
                    name=competitor.name,
                    total_score=None,
                    remark=NOT_PARTICIPATED_REMARK,
                    participated=False,
                )
            )
        entry = self.career.append(
            CareerEntry(
                week=week,
                contest_name=definition.name,
                passed_count=len(passed_names),
                participant_count=len(scored),
                outcomes=tuple(
                    CareerOutcome(
                        name=result.name,
                        rank=rank,
                        score=result.total_score,
                        passed=result.passed,
                        medal=result.medal,
                        remark=result.remark,
                    )
                    for rank, result in enumerate(results[: len(scored)], start=1)
                ),
            )
        )
        logger.info("%s: %d/%d passed, funding %d", definition.name, len(passed_names), len(scored), funding)
        return self._store(
            ContestOutcome(
                definition=definition,
                half=half,
                key=key,
                results=results,
                career_entry=entry,
                funding_issued=funding,
                pass_line=pass_line,
            )
        )

    def apply_gains(
        self,
        competitor: Competitor,
        performances: Sequence[ProblemPerformance],
        caps: GainCaps,
        session_min_score: float | None = None,
    ) -> CompetitorDeltas:
        return apply_gains(competitor, performances, caps, session_min_score)

    def hold_practice_contest(
        self,
        level: PracticeLevel | str,
        problem_tags: Sequence[Sequence[KnowledgeTag | str]],
        *,
        purchased: bool = False,
        online: bool = False,
    ) -> PracticeOutcome:
        """Practice and online rounds grow skills; they never touch qualification or funding."""
        if not self.roster:
            raise RosterError("Roster is empty; cannot hold a practice contest.")
        participants = self.active_competitors()
        if not participants:
            raise RosterError("No active competitors for a practice contest.")

        level = PracticeLevel(level)
        definition = practice_definition(level, problem_tags, online=online, week=self.week)
        problems = build_problems(definition, self._rng)
        scored = [score_competitor(c, problems, self._rng, practice=True) for c in participants]
        session_min = min(entry.total for entry in scored)

        ratio = gain_ratio_for(definition.contest_type, definition.difficulty, None if online else level)
        caps = gain_caps(self.tuning, ratio, purchased)
        outcome = PracticeOutcome(definition=definition, problems=problems, caps=caps)
        for entry in scored:
            performances = [
                ProblemPerformance(
                    actual_score=score,
                    max_score=problem.max_score,
                    difficulty=problem.difficulty,
                    tags=problem.tags,
                )
                for problem, score in zip(problems, entry.problem_scores)
            ]
            deltas = self.apply_gains(entry.competitor, performances, caps, session_min)
            outcome.rows.append(
                PracticeRow(
                    name=entry.competitor.name,
                    problem_scores=list(entry.problem_scores),
                    total=entry.total,
                    deltas=deltas,
                )
            )
        outcome.rows.sort(key=lambda row: row.total, reverse=True)
        logger.info("%s held with %d competitors", definition.name, len(outcome.rows))
        return outcome
