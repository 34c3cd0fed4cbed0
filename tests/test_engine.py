import random

import pytest

from coach_sim.engine import build_problems, performance_score, score_competitor
from coach_sim.errors import ContestDefinitionError
from coach_sim.models import Competitor, ContestDefinition, ContestStage, ContestType, KnowledgeTag, Problem


def test_scores_are_stepped_and_bounded() -> None:
    rng = random.Random(21)
    competitor = Competitor(name="Mid", thinking=55, coding=50, mental=60)
    for difficulty in (20, 60, 120, 300):
        for _ in range(50):
            score = performance_score(competitor, difficulty, 100, 10, rng)
            assert 0 <= score <= 100
            assert score % 10 == 0


def test_stronger_competitor_scores_higher_on_average() -> None:
    rng = random.Random(4)
    strong = Competitor(name="S", thinking=90, coding=90, mental=85)
    weak = Competitor(name="W", thinking=25, coding=25, mental=30)
    strong_total = sum(performance_score(strong, 80, 100, 20, rng) for _ in range(200))
    weak_total = sum(performance_score(weak, 80, 100, 0, rng) for _ in range(200))
    assert strong_total > weak_total


def test_problem_difficulty_climbs_by_index() -> None:
    rng = random.Random(8)
    definition = ContestDefinition(name="NOIP", difficulty=100, num_problems=4, stage=ContestStage.NOIP)
    problems = build_problems(definition, rng)
    assert len(problems) == 4
    for idx, problem in enumerate(problems):
        assert 100 * (0.6 + 0.2 * idx) - 1e-9 <= problem.difficulty <= 100 * (0.8 + 0.2 * idx) + 1e-9
        assert 1 <= len(problem.tags) <= 3
        assert len(set(problem.tags)) == len(problem.tags)


def test_fixed_problem_tags_are_kept() -> None:
    definition = ContestDefinition(
        name="Drill",
        difficulty=50,
        num_problems=2,
        contest_type=ContestType.PRACTICE,
        problem_tags=[(KnowledgeTag.STRING,), (KnowledgeTag.GRAPH, KnowledgeTag.DP)],
    )
    problems = build_problems(definition, random.Random(1))
    assert [p.tags for p in problems] == [(KnowledgeTag.STRING,), (KnowledgeTag.GRAPH, KnowledgeTag.DP)]


def test_score_competitor_draws_each_problem() -> None:
    problems = [Problem(tags=(KnowledgeTag.MATH,), difficulty=30.0) for _ in range(3)]
    entry = score_competitor(Competitor(name="A", thinking=60, coding=60, mental=60), problems, random.Random(2))
    assert len(entry.problem_scores) == 3
    assert entry.total == sum(entry.problem_scores)


def test_malformed_definitions_are_rejected() -> None:
    with pytest.raises(ContestDefinitionError):
        build_problems(ContestDefinition(name="Loose", difficulty=50, num_problems=2), random.Random(1))
    with pytest.raises(ContestDefinitionError):
        ContestDefinition(name="Empty", difficulty=50, num_problems=0, stage=ContestStage.CSP_S1).validate()
    with pytest.raises(ContestDefinitionError):
        Problem(tags=(), difficulty=10.0)
