import random

import pytest

from coach_sim.config import Tuning
from coach_sim.models import Competitor, CompetitorScore, ContestStage
from coach_sim.rewards import (
    FundingLedger,
    apply_feedback,
    compute_feedback,
    extra_pressure_for,
    roll_rewards,
)


def _entry(name: str, score: int) -> CompetitorScore:
    return CompetitorScore(Competitor(name=name, thinking=50, coding=50, mental=50), [score])


def test_extra_pressure_scales_with_shortfall() -> None:
    assert extra_pressure_for(0, 100) == 10
    assert extra_pressure_for(30, 100) == 4
    assert extra_pressure_for(50, 100) == 0


def test_midpoint_score_is_not_flagged() -> None:
    deltas = compute_feedback([_entry("A", 80), _entry("B", 50)], pass_line=60, total_max=100)
    assert deltas[1].passed is False
    assert deltas[1].extra_pressure == 0
    assert deltas[1].remark == ""


def test_feedback_computation_does_not_touch_competitors() -> None:
    entries = [_entry("A", 90), _entry("B", 0)]
    compute_feedback(entries, pass_line=50, total_max=100)
    assert [e.competitor.pressure for e in entries] == [20, 20]
    assert [e.competitor.mental for e in entries] == [50, 50]


@pytest.mark.regression
def test_extra_pressure_applied_once() -> None:
    entries = [_entry("A", 90), _entry("B", 0)]
    passed, failed = compute_feedback(entries, pass_line=50, total_max=100)
    apply_feedback(entries[0].competitor, passed)
    change = apply_feedback(entries[1].competitor, failed)
    assert entries[0].competitor.pressure == 10
    assert entries[0].competitor.mental == 53
    assert failed.remark == "Poor showing, pressure +10"
    assert change == 35
    assert entries[1].competitor.pressure == 55
    assert entries[1].competitor.mental == 45


def test_rewards_roll_per_passing_competitor() -> None:
    rng = random.Random(3)
    tuning = Tuning()
    total = roll_rewards(3, ContestStage.CSP_S1, rng, tuning)
    assert 6000 <= total <= 15000
    assert roll_rewards(0, ContestStage.NOI, rng, tuning) == 0
    assert roll_rewards(4, ContestStage.PROVINCIAL, rng, tuning) == 0


@pytest.mark.regression
def test_funding_is_issued_once_per_occurrence() -> None:
    ledger = FundingLedger()
    rng = random.Random(11)
    tuning = Tuning()
    first = ledger.issue(0, ContestStage.NOIP, 12, 2, rng, tuning)
    second = ledger.issue(0, ContestStage.NOIP, 12, 2, rng, tuning)
    assert 20000 <= first <= 40000
    assert second == 0
    assert "0_NOIP_12" in ledger
    assert ledger.issue(1, ContestStage.NOIP, 38, 1, rng, tuning) > 0


def test_zero_reward_stage_still_marks_occurrence() -> None:
    ledger = FundingLedger()
    assert ledger.issue(0, ContestStage.PROVINCIAL, 18, 3, random.Random(1), Tuning()) == 0
    assert ledger.issued_keys == frozenset({"0_Provincial Selection_18"})
