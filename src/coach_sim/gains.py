"""Split a capped per-contest growth budget across the problems a competitor solved.

Knowledge is a discrete currency: floored per-problem shares are topped up so the
total always equals ``floor(cap)``, with the remainder going to the best-scored
problem. Thinking and coding are continuous and only rounded to one decimal.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Mapping, Sequence

from .config import GAIN_RATIOS, PRACTICE_LEVEL_RATIO_KEY
from .models import Competitor, ContestType, KnowledgeTag, PracticeLevel

DEFAULT_DIFFICULTY_PROXY = 50.0
STRONG_SHOWING_RATIO = 0.7
WEAK_SHOWING_RATIO = 0.5


class GainKind(StrEnum):
    KNOWLEDGE = "knowledge"
    THINKING = "thinking"
    CODING = "coding"

    @property
    def is_discrete(self) -> bool:
        return self is GainKind.KNOWLEDGE


@dataclass(slots=True, frozen=True)
class ProblemPerformance:
    actual_score: float
    max_score: float
    difficulty: float | None = None
    tags: tuple[KnowledgeTag, ...] = ()


@dataclass(slots=True, frozen=True)
class GainCaps:
    knowledge: float
    thinking: float
    coding: float


@dataclass(slots=True)
class CompetitorDeltas:
    name: str
    thinking: float = 0.0
    coding: float = 0.0
    mental: float = 0.0
    pressure: float = 0.0
    knowledge: dict[KnowledgeTag, int] = field(default_factory=dict)

    @property
    def has_changes(self) -> bool:
        return any((self.thinking, self.coding, self.mental, self.pressure)) or any(self.knowledge.values())

    def describe(self) -> str:
        parts: list[str] = []
        for label, value in (
            ("thinking", self.thinking),
            ("coding", self.coding),
            ("mental", self.mental),
            ("pressure", self.pressure),
        ):
            if value:
                parts.append(f"{label} {value:+.0f}")
        for tag in KnowledgeTag:
            amount = self.knowledge.get(tag, 0)
            if amount:
                parts.append(f"{tag.value} {amount:+d}")
        if not parts:
            return f"{self.name}: no notable change"
        return f"{self.name}: " + ", ".join(parts)


def _round_half_up(value: float, digits: int = 1) -> float:
    scale = 10 ** digits
    return math.floor(value * scale + 0.5) / scale


def distribute_contest_gains(
    total_cap: float,
    problems: Sequence[ProblemPerformance],
    kind: GainKind = GainKind.KNOWLEDGE,
) -> list[float]:
    if not problems:
        return []

    weights: list[float] = []
    for prob in problems:
        score_ratio = prob.actual_score / max(1.0, prob.max_score) if prob.actual_score > 0 else 0.0
        difficulty = prob.difficulty if prob.difficulty else DEFAULT_DIFFICULTY_PROXY
        weights.append(score_ratio * max(1.0, difficulty))

    total_weight = sum(weights)
    if total_weight <= 0:
        return [0 if kind.is_discrete else 0.0 for _ in problems]

    raw_gains = [(w / total_weight) * total_cap for w in weights]
    if not kind.is_discrete:
        return [_round_half_up(raw) for raw in raw_gains]

    gains = [math.floor(raw) for raw in raw_gains]
    deficit = math.floor(total_cap) - sum(gains)
    if deficit > 0:
        best_idx = 0
        best_score = problems[0].actual_score
        for idx, prob in enumerate(problems[1:], start=1):
            if prob.actual_score > best_score:
                best_score = prob.actual_score
                best_idx = idx
        gains[best_idx] += deficit
    return gains


def gain_ratio_for(
    contest_type: ContestType,
    difficulty: float,
    level: PracticeLevel | None = None,
    ratios: Mapping[str, tuple[float, float, float]] = GAIN_RATIOS,
) -> tuple[float, float, float]:
    fallback = ratios["default"]
    if contest_type is ContestType.ONLINE:
        if difficulty < 150:
            return ratios.get("online_low", fallback)
        if difficulty <= 300:
            return ratios.get("online_medium", fallback)
        return ratios.get("online_high", fallback)
    if level is None:
        return fallback
    return ratios.get(PRACTICE_LEVEL_RATIO_KEY[level], fallback)


def gain_caps(tuning: Mapping[str, float], ratio: tuple[float, float, float], purchased: bool = False) -> GainCaps:
    multiplier = tuning["mock_contest_gain_multiplier_purchased"] if purchased else 1.0
    knowledge_ratio, thinking_ratio, coding_ratio = ratio
    return GainCaps(
        knowledge=tuning["contest_max_total_knowledge_gain"] * knowledge_ratio * multiplier,
        thinking=tuning["contest_max_total_thinking_gain"] * thinking_ratio * multiplier,
        coding=tuning["contest_max_total_coding_gain"] * coding_ratio * multiplier,
    )


def apply_gains(
    competitor: Competitor,
    problems: Sequence[ProblemPerformance],
    caps: GainCaps,
    session_min_score: float | None = None,
) -> CompetitorDeltas:
    before_thinking = competitor.thinking
    before_coding = competitor.coding
    before_mental = competitor.mental
    before_pressure = competitor.pressure
    before_knowledge = dict(competitor.knowledge)

    knowledge_gains = distribute_contest_gains(caps.knowledge, problems, GainKind.KNOWLEDGE)
    for prob, gain in zip(problems, knowledge_gains):
        if gain <= 0 or not prob.tags:
            continue
        per_tag = int(gain) // len(prob.tags)
        if per_tag <= 0:
            continue
        for tag in prob.tags:
            competitor.add_knowledge(tag, per_tag)

    thinking_total = sum(distribute_contest_gains(caps.thinking, problems, GainKind.THINKING))
    coding_total = sum(distribute_contest_gains(caps.coding, problems, GainKind.CODING))
    if thinking_total > 0:
        competitor.thinking += thinking_total
    if coding_total > 0:
        competitor.coding += coding_total

    total_score = sum(prob.actual_score for prob in problems)
    total_max = sum(prob.max_score for prob in problems) or 1
    ratio = total_score / total_max
    if ratio >= STRONG_SHOWING_RATIO:
        competitor.mental += 2
        competitor.pressure -= 3
    elif ratio < WEAK_SHOWING_RATIO or (session_min_score is not None and total_score == session_min_score):
        competitor.pressure += 20
    competitor.clamp_axes()

    return CompetitorDeltas(
        name=competitor.name,
        thinking=competitor.thinking - before_thinking,
        coding=competitor.coding - before_coding,
        mental=competitor.mental - before_mental,
        pressure=competitor.pressure - before_pressure,
        knowledge={
            tag: competitor.knowledge.get(tag, 0) - before_knowledge.get(tag, 0)
            for tag in KnowledgeTag
            if competitor.knowledge.get(tag, 0) != before_knowledge.get(tag, 0)
        },
    )
