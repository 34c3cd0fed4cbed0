from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass
from typing import Iterable, Mapping, Sequence

from .config import STAGE_RULES
from .models import Competitor, CompetitorScore, ContestStage
from .randomness import uniform_int

logger = logging.getLogger(__name__)

PASS_PRESSURE_RELIEF = 10.0
PASS_MENTAL_GAIN = 3.0
FAIL_PRESSURE_GAIN = 15.0
FAIL_MENTAL_LOSS = 5.0
EXTRA_PRESSURE_CAP = 15
EXTRA_PRESSURE_FACTOR = 2.0


@dataclass(slots=True, frozen=True)
class FeedbackDelta:
    name: str
    score: int
    passed: bool
    pressure_delta: float
    mental_delta: float
    extra_pressure: int = 0
    remark: str = ""

    def total_pressure_delta(self, pressure_multiplier: float) -> float:
        return self.pressure_delta + self.extra_pressure * EXTRA_PRESSURE_FACTOR * pressure_multiplier


def extra_pressure_for(score: float, total_max: float) -> int:
    if total_max <= 0:
        return 0
    midpoint = total_max / 2.0
    shortfall = max(0.0, midpoint - score)
    unit = max(1.0, total_max / 20.0)
    return min(EXTRA_PRESSURE_CAP, math.ceil(shortfall / unit))


def compute_feedback(
    entries: Sequence[CompetitorScore],
    pass_line: float,
    total_max: float,
    pressure_multiplier: float = 1.0,
) -> list[FeedbackDelta]:
    """First pass: derive every competitor's deltas without touching any state."""
    if not entries:
        return []
    midpoint = total_max / 2.0 if total_max > 0 else 0.0
    min_score = min(entry.total for entry in entries)
    deltas: list[FeedbackDelta] = []
    for entry in entries:
        score = entry.total
        passed = score >= pass_line
        if passed:
            pressure_delta, mental_delta = -PASS_PRESSURE_RELIEF, PASS_MENTAL_GAIN
        else:
            pressure_delta, mental_delta = FAIL_PRESSURE_GAIN * pressure_multiplier, -FAIL_MENTAL_LOSS

        extra = extra_pressure_for(score, total_max)
        poor_showing = not passed or (midpoint > 0 and score < midpoint) or score == min_score
        if not (poor_showing and extra > 0):
            extra = 0
        deltas.append(
            FeedbackDelta(
                name=entry.competitor.name,
                score=score,
                passed=passed,
                pressure_delta=pressure_delta,
                mental_delta=mental_delta,
                extra_pressure=extra,
                remark=f"Poor showing, pressure +{extra}" if extra else "",
            )
        )
    return deltas


def apply_feedback(competitor: Competitor, delta: FeedbackDelta, pressure_multiplier: float = 1.0) -> float:
    """Second pass: apply one competitor's deltas exactly once, returning the pressure change."""
    before = competitor.pressure
    competitor.pressure += delta.pressure_delta
    competitor.mental += delta.mental_delta
    competitor.clamp_axes()
    if delta.extra_pressure > 0:
        competitor.pressure += delta.extra_pressure * EXTRA_PRESSURE_FACTOR * pressure_multiplier
        competitor.clamp_axes()
        logger.info("%s takes extra contest pressure (recorded %d)", competitor.name, delta.extra_pressure)
    return competitor.pressure - before


def roll_rewards(passed_count: int, stage: ContestStage, rng: random.Random, tuning: Mapping[str, float]) -> int:
    reward_keys = STAGE_RULES[stage].reward_keys
    if reward_keys is None or passed_count <= 0:
        return 0
    low = int(tuning[reward_keys[0]])
    high = int(tuning[reward_keys[1]])
    if high < low:
        low, high = high, low
    return sum(uniform_int(rng, low, high) for _ in range(passed_count))


def occurrence_key(half: int, stage_name: str, week: int) -> str:
    return f"{half}_{stage_name}_{week}"


class FundingLedger:
    """Funding is issued at most once per contest occurrence."""

    def __init__(self, issued: Iterable[str] = ()) -> None:
        self._issued: set[str] = set(issued)

    def __contains__(self, key: object) -> bool:
        return key in self._issued

    @property
    def issued_keys(self) -> frozenset[str]:
        return frozenset(self._issued)

    def issue(
        self,
        half: int,
        stage: ContestStage,
        week: int,
        passed_count: int,
        rng: random.Random,
        tuning: Mapping[str, float],
    ) -> int:
        key = occurrence_key(half, stage.value, week)
        if key in self._issued:
            logger.info("Funding already issued for %s", key)
            return 0
        total = roll_rewards(passed_count, stage, rng, tuning)
        self._issued.add(key)
        if total > 0:
            logger.info("Funding: %s reward %d", stage.value, total)
        return total
