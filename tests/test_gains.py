import math
import random

import pytest

from coach_sim.config import Tuning
from coach_sim.gains import (
    GainCaps,
    GainKind,
    ProblemPerformance,
    apply_gains,
    distribute_contest_gains,
    gain_caps,
    gain_ratio_for,
)
from coach_sim.models import Competitor, ContestType, KnowledgeTag, PracticeLevel


def _perf(score: float, difficulty: float | None = 50.0, tags=(KnowledgeTag.GRAPH,)) -> ProblemPerformance:
    return ProblemPerformance(actual_score=score, max_score=100, difficulty=difficulty, tags=tuple(tags))


def test_discrete_gains_sum_to_floored_cap() -> None:
    gains = distribute_contest_gains(10, [_perf(100), _perf(100), _perf(100)])
    assert gains == [4, 3, 3]
    assert sum(gains) == 10


def test_rounding_deficit_goes_to_first_best_scorer() -> None:
    gains = distribute_contest_gains(10, [_perf(60), _perf(80), _perf(80)])
    assert gains == [2, 5, 3]


def test_zero_scores_yield_zero_gains() -> None:
    assert distribute_contest_gains(12, [_perf(0), _perf(0)]) == [0, 0]
    assert distribute_contest_gains(10.0, [_perf(0)], GainKind.THINKING) == [0.0]


def test_no_problems_yield_no_gains() -> None:
    assert distribute_contest_gains(12, []) == []


def test_continuous_gains_round_to_one_decimal() -> None:
    gains = distribute_contest_gains(10.0, [_perf(100), _perf(50)], GainKind.CODING)
    assert gains == [pytest.approx(6.7), pytest.approx(3.3)]


def test_missing_difficulty_uses_proxy() -> None:
    gains = distribute_contest_gains(12, [_perf(100, difficulty=None), _perf(100, difficulty=150.0)])
    assert gains == [3, 9]


def test_gain_ratio_selection() -> None:
    assert gain_ratio_for(ContestType.ONLINE, 100) == (0.5, 0.5, 0.5)
    assert gain_ratio_for(ContestType.ONLINE, 300) == (0.7, 0.7, 0.7)
    assert gain_ratio_for(ContestType.ONLINE, 301) == (0.9, 0.9, 0.9)
    assert gain_ratio_for(ContestType.PRACTICE, 420, PracticeLevel.NOI) == (1.0, 1.0, 1.0)
    assert gain_ratio_for(ContestType.PRACTICE, 30) == (0.6, 0.6, 0.6)


def test_purchased_contest_scales_caps() -> None:
    caps = gain_caps(Tuning(), (0.4, 0.4, 0.4), purchased=True)
    assert caps.knowledge == pytest.approx(12 * 0.4 * 1.8)
    assert caps.thinking == pytest.approx(10 * 0.4 * 1.8)


def test_apply_gains_splits_knowledge_across_tags() -> None:
    competitor = Competitor(name="A", thinking=40, coding=40, mental=50)
    problems = [
        _perf(100, tags=(KnowledgeTag.GRAPH, KnowledgeTag.DP)),
        _perf(0, tags=(KnowledgeTag.MATH,)),
    ]
    deltas = apply_gains(competitor, problems, GainCaps(knowledge=12, thinking=10.0, coding=10.0))

    assert competitor.knowledge[KnowledgeTag.GRAPH] == 6
    assert competitor.knowledge[KnowledgeTag.DP] == 6
    assert competitor.knowledge[KnowledgeTag.MATH] == 0
    assert deltas.thinking == pytest.approx(10.0)
    assert deltas.coding == pytest.approx(10.0)
    assert deltas.pressure == 0
    assert deltas.has_changes


def test_poor_practice_showing_raises_pressure() -> None:
    competitor = Competitor(name="B", thinking=40, coding=40, mental=50)
    deltas = apply_gains(competitor, [_perf(0), _perf(0)], GainCaps(knowledge=12, thinking=10.0, coding=10.0))
    assert competitor.pressure == 40
    assert deltas.knowledge == {}
    assert deltas.thinking == 0


def test_strong_practice_showing_settles_nerves() -> None:
    competitor = Competitor(name="C", thinking=40, coding=40, mental=50)
    apply_gains(competitor, [_perf(100), _perf(80)], GainCaps(knowledge=0, thinking=0.0, coding=0.0))
    assert competitor.mental == 52
    assert competitor.pressure == 17


@pytest.mark.regression
def test_discrete_gains_always_sum_to_floored_cap() -> None:
    rng = random.Random(2024)
    for _ in range(2000):
        count = rng.randint(1, 8)
        problems = [
            _perf(10 * rng.randint(0, 10), difficulty=rng.choice([None, rng.uniform(1, 500)]))
            for _ in range(count)
        ]
        cap = rng.choice([4.8, 12.96, 17.28, 12, 21.6, rng.uniform(0, 30)])
        gains = distribute_contest_gains(cap, problems)

        assert all(g >= 0 for g in gains)
        if all(p.actual_score == 0 for p in problems):
            assert gains == [0] * count
        else:
            assert sum(gains) == math.floor(cap)

        continuous = distribute_contest_gains(cap, problems, GainKind.THINKING)
        if any(p.actual_score > 0 for p in problems):
            assert abs(sum(continuous) - cap) <= count * 0.05 + 1e-6
