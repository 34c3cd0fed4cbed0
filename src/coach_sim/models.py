from __future__ import annotations

import random
from dataclasses import dataclass, field
from enum import StrEnum
from typing import ClassVar, Iterable
from uuid import uuid4

from .errors import ContestDefinitionError
from .randomness import clamp, normal

ABILITY_WEIGHT = 0.6
KNOWLEDGE_WEIGHT = 0.4
# Stress coefficient applied to pressure when deriving the mental index.
STRESS_COEFFICIENT = 28.0
MENTAL_NOISE_SIGMA = 3.0


class KnowledgeTag(StrEnum):
    DATA_STRUCTURES = "data_structures"
    GRAPH = "graph"
    STRING = "string"
    MATH = "math"
    DP = "dp"


class ContestStage(StrEnum):
    CSP_S1 = "CSP-S1"
    CSP_S2 = "CSP-S2"
    NOIP = "NOIP"
    PROVINCIAL = "Provincial Selection"
    NOI = "NOI"

    @property
    def order(self) -> int:
        return STAGE_ORDER.index(self)

    @property
    def previous(self) -> ContestStage | None:
        idx = self.order
        return STAGE_ORDER[idx - 1] if idx > 0 else None

    @property
    def next(self) -> ContestStage | None:
        idx = self.order
        return STAGE_ORDER[idx + 1] if idx + 1 < len(STAGE_ORDER) else None

    @property
    def is_terminal(self) -> bool:
        return self is STAGE_ORDER[-1]


STAGE_ORDER: tuple[ContestStage, ...] = (
    ContestStage.CSP_S1,
    ContestStage.CSP_S2,
    ContestStage.NOIP,
    ContestStage.PROVINCIAL,
    ContestStage.NOI,
)


class ContestType(StrEnum):
    FORMAL = "formal"
    PRACTICE = "practice"
    ONLINE = "online"


class ProvinceTier(StrEnum):
    STRONG = "strong"
    NORMAL = "normal"
    WEAK = "weak"


class PracticeLevel(StrEnum):
    INTRO = "intro"
    POPULAR = "popular"
    NOIP = "noip"
    PROVINCIAL = "provincial"
    NOI = "noi"


class Medal(StrEnum):
    GOLD = "gold"
    SILVER = "silver"
    BRONZE = "bronze"
    NONE = "none"


def _empty_knowledge() -> dict[KnowledgeTag, int]:
    return {tag: 0 for tag in KnowledgeTag}


@dataclass(slots=True)
class Competitor:
    name: str
    thinking: float
    coding: float
    mental: float
    knowledge: dict[KnowledgeTag, int] = field(default_factory=_empty_knowledge)
    pressure: float = 20.0
    comfort: float = 50.0
    active: bool = True
    competitor_id: str = field(default_factory=lambda: uuid4().hex)

    AXIS_MIN: ClassVar[float] = 0.0
    AXIS_MAX: ClassVar[float] = 100.0

    def __post_init__(self) -> None:
        for tag in KnowledgeTag:
            self.knowledge.setdefault(tag, 0)
        self.clamp_axes()

    def clamp_axes(self) -> None:
        self.thinking = clamp(self.thinking, self.AXIS_MIN, self.AXIS_MAX)
        self.coding = clamp(self.coding, self.AXIS_MIN, self.AXIS_MAX)
        self.mental = clamp(self.mental, self.AXIS_MIN, self.AXIS_MAX)
        self.pressure = clamp(self.pressure, self.AXIS_MIN, self.AXIS_MAX)
        self.comfort = clamp(self.comfort, self.AXIS_MIN, self.AXIS_MAX)
        for tag, value in self.knowledge.items():
            if value < 0:
                self.knowledge[tag] = 0

    @property
    def ability_avg(self) -> float:
        return (self.thinking + self.coding + self.mental) / 3.0

    @property
    def knowledge_avg(self) -> float:
        return sum(self.knowledge.values()) / len(KnowledgeTag)

    @property
    def composite_ability(self) -> float:
        return ABILITY_WEIGHT * self.ability_avg + KNOWLEDGE_WEIGHT * self.knowledge_avg

    def knowledge_for(self, tags: Iterable[KnowledgeTag]) -> int:
        tag_list = list(tags)
        if not tag_list:
            return 0
        total = sum(self.knowledge.get(tag, 0) for tag in tag_list)
        return total // len(tag_list)

    def add_knowledge(self, tag: KnowledgeTag, amount: int) -> None:
        self.knowledge[tag] = max(0, self.knowledge.get(tag, 0) + int(amount))

    def mental_index(self, rng: random.Random) -> float:
        """Mental resilience under current stress, with a small per-draw noise."""
        stress = STRESS_COEFFICIENT * (self.pressure / 100.0) * (1.0 - self.comfort / 100.0)
        return clamp(self.mental - stress + normal(rng, 0.0, MENTAL_NOISE_SIGMA), 0.0, 100.0)


@dataclass(slots=True, frozen=True)
class Problem:
    tags: tuple[KnowledgeTag, ...]
    difficulty: float
    max_score: int = 100

    def __post_init__(self) -> None:
        if not 1 <= len(self.tags) <= 3:
            raise ContestDefinitionError(f"Problem must carry 1-3 knowledge tags, got {len(self.tags)}.")


@dataclass(slots=True)
class ContestDefinition:
    name: str
    difficulty: float
    num_problems: int
    week: int = 0
    stage: ContestStage | None = None
    max_score_per_problem: int = 100
    contest_type: ContestType = ContestType.FORMAL
    problem_tags: list[tuple[KnowledgeTag, ...]] | None = None

    MAX_PROBLEMS: ClassVar[int] = 8

    @property
    def is_formal(self) -> bool:
        return self.contest_type is ContestType.FORMAL

    @property
    def total_max(self) -> int:
        return self.num_problems * self.max_score_per_problem

    def validate(self) -> None:
        if self.is_formal and self.stage is None:
            raise ContestDefinitionError(f"Formal contest '{self.name}' is not a member of the stage chain.")
        if not 1 <= self.num_problems <= self.MAX_PROBLEMS:
            raise ContestDefinitionError(
                f"Contest '{self.name}' must have 1-{self.MAX_PROBLEMS} problems, got {self.num_problems}."
            )
        if self.difficulty <= 0:
            raise ContestDefinitionError(f"Contest '{self.name}' difficulty must be positive.")
        if self.max_score_per_problem <= 0:
            raise ContestDefinitionError(f"Contest '{self.name}' max score per problem must be positive.")
        if self.problem_tags is not None and len(self.problem_tags) != self.num_problems:
            raise ContestDefinitionError(
                f"Contest '{self.name}' lists tags for {len(self.problem_tags)} problems, expected {self.num_problems}."
            )


@dataclass(slots=True)
class CompetitorScore:
    competitor: Competitor
    problem_scores: list[int]

    @property
    def total(self) -> int:
        return sum(self.problem_scores)


@dataclass(slots=True, frozen=True)
class ContestResult:
    name: str
    total_score: int | None
    problem_scores: tuple[int, ...] = ()
    passed: bool = False
    medal: Medal = Medal.NONE
    pressure_delta: float = 0.0
    extra_pressure: int = 0
    remark: str = ""
    participated: bool = True
