from __future__ import annotations

import math
import random
from typing import Sequence

from .models import Competitor, CompetitorScore, ContestDefinition, KnowledgeTag, Problem
from .randomness import clamp, normal, sigmoid, uniform, uniform_int

# Knowledge counts for more in practice rounds so multi-tag sets feel rewarding.
FORMAL_KNOWLEDGE_MULTIPLIER = 2.0
PRACTICE_KNOWLEDGE_MULTIPLIER = 3.5
PERFORMANCE_SCALE = 10.0
BASE_PERFORMANCE_NOISE = 0.05
SCORE_STEP = 10


def performance_score(
    competitor: Competitor,
    difficulty: float,
    max_score: int,
    knowledge_value: float,
    rng: random.Random,
    *,
    practice: bool = False,
) -> int:
    mental_idx = competitor.mental_index(rng)
    multiplier = PRACTICE_KNOWLEDGE_MULTIPLIER if practice else FORMAL_KNOWLEDGE_MULTIPLIER
    effective_ability = competitor.composite_ability + knowledge_value * multiplier
    base_ratio = sigmoid((effective_ability - difficulty) / PERFORMANCE_SCALE)
    stability = mental_idx / 100.0

    # Shakier competitors swing further either way.
    sigma = (100.0 - mental_idx) / 200.0 + BASE_PERFORMANCE_NOISE
    noise = normal(rng, 0.0, sigma)
    final_ratio = clamp(base_ratio * stability * (1.0 + noise), 0.0, 1.0)

    raw = math.floor(final_ratio * max_score)
    stepped = (raw // SCORE_STEP) * SCORE_STEP
    return int(clamp(stepped, 0, max_score))


def score_competitor(
    competitor: Competitor,
    problems: Sequence[Problem],
    rng: random.Random,
    *,
    practice: bool = False,
) -> CompetitorScore:
    scores = [
        performance_score(
            competitor,
            problem.difficulty,
            problem.max_score,
            competitor.knowledge_for(problem.tags),
            rng,
            practice=practice,
        )
        for problem in problems
    ]
    return CompetitorScore(competitor=competitor, problem_scores=scores)


def _random_tags(rng: random.Random) -> tuple[KnowledgeTag, ...]:
    pool = list(KnowledgeTag)
    count = uniform_int(rng, 1, 3)
    selected: list[KnowledgeTag] = []
    while len(selected) < count:
        tag = pool[uniform_int(rng, 0, len(pool) - 1)]
        if tag not in selected:
            selected.append(tag)
    return tuple(selected)


def build_problems(definition: ContestDefinition, rng: random.Random) -> list[Problem]:
    definition.validate()
    problems: list[Problem] = []
    for idx in range(definition.num_problems):
        # Later problems sit in a harder band.
        low = definition.difficulty * (0.6 + 0.2 * idx)
        high = definition.difficulty * (0.8 + 0.2 * idx)
        if definition.problem_tags is not None:
            tags = tuple(definition.problem_tags[idx])
        else:
            tags = _random_tags(rng)
        problems.append(
            Problem(
                tags=tags,
                difficulty=uniform(rng, low, high),
                max_score=definition.max_score_per_problem,
            )
        )
    return problems
