import math
import random

import pytest

from coach_sim.config import Tuning
from coach_sim.models import STAGE_ORDER, ContestStage, Medal, ProvinceTier
from coach_sim.passline import calculate_pass_line, medal_for, pass_rate_for


def test_pass_line_uses_quota_score() -> None:
    assert calculate_pass_line([300, 200, 100], 0.5, 400, ContestStage.NOIP) == 300.0
    scores = [390, 350, 310, 280, 260, 240, 220, 200, 180, 160]
    assert calculate_pass_line(scores, 0.5, 400, ContestStage.NOIP) == 260.0


def test_pass_line_is_held_to_stage_bounds() -> None:
    assert calculate_pass_line([90, 60, 30], 0.5, 400, ContestStage.CSP_S2) == 120.0
    assert calculate_pass_line([400, 390], 0.5, 400, ContestStage.CSP_S2) == 360.0


def test_terminal_stage_has_high_floor() -> None:
    assert calculate_pass_line([200, 100], 0.5, 400, ContestStage.NOI) == 320.0
    assert calculate_pass_line([400, 100], 0.5, 400, ContestStage.NOI) == 400.0


def test_pass_line_multiplier() -> None:
    assert calculate_pass_line([300, 200, 100], 0.5, 400, ContestStage.NOIP, multiplier=1.1) == pytest.approx(330.0)


def test_empty_scores_give_zero_line() -> None:
    assert calculate_pass_line([], 0.5, 400, ContestStage.NOIP) == 0.0


def test_pass_rate_includes_stage_bonus() -> None:
    tuning = Tuning()
    assert pass_rate_for(ContestStage.NOIP, ProvinceTier.STRONG, tuning) == pytest.approx(0.65)
    assert pass_rate_for(ContestStage.PROVINCIAL, ProvinceTier.WEAK, tuning) == pytest.approx(0.6)


def test_medal_thresholds_are_inclusive() -> None:
    assert medal_for(100, 100) is Medal.GOLD
    assert medal_for(70, 100) is Medal.SILVER
    assert medal_for(50, 100) is Medal.BRONZE
    assert medal_for(49, 100) is Medal.NONE


def test_pass_line_stays_inside_stage_bounds() -> None:
    rng = random.Random(77)
    for _ in range(1000):
        stage = rng.choice(STAGE_ORDER)
        total = rng.choice([100, 300, 400, 600])
        scores = sorted((rng.randint(0, total) for _ in range(rng.randint(1, 30))), reverse=True)
        line = calculate_pass_line(scores, rng.uniform(0.05, 1.0), total, stage)

        if stage.is_terminal:
            assert line >= 0.8 * total
        else:
            assert 0.3 * total <= line <= 0.9 * total
