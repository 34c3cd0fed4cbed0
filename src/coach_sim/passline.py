from __future__ import annotations

import math
from typing import Mapping, Sequence

from .config import PROVINCE_PROFILES, STAGE_RULES
from .models import ContestStage, Medal, ProvinceTier

TERMINAL_MIN_SHARE = 0.8
STAGE_MIN_SHARE = 0.3
STAGE_MAX_SHARE = 0.9

# Medal thresholds are shares of the pass line, not of the maximum score.
MEDAL_THRESHOLDS: tuple[tuple[Medal, float], ...] = (
    (Medal.GOLD, 1.0),
    (Medal.SILVER, 0.7),
    (Medal.BRONZE, 0.5),
)


def pass_rate_for(stage: ContestStage, province: ProvinceTier, tuning: Mapping[str, float]) -> float:
    rate = tuning[PROVINCE_PROFILES[province].pass_rate_key]
    bonus_key = STAGE_RULES[stage].pass_rate_bonus_key
    if bonus_key is not None:
        rate += tuning[bonus_key]
    return rate


def calculate_pass_line(
    sorted_scores: Sequence[float],
    pass_rate: float,
    total_max: float,
    stage: ContestStage,
    multiplier: float = 1.0,
) -> float:
    """Score of the last competitor inside the pass quota, held to stage bounds.

    ``sorted_scores`` must be in descending order.
    """
    if not sorted_scores:
        return 0.0
    pass_count = max(1, math.floor(len(sorted_scores) * pass_rate))
    pass_count = min(pass_count, len(sorted_scores))
    base_line = float(sorted_scores[pass_count - 1])

    if total_max and math.isfinite(total_max) and total_max > 0:
        if stage.is_terminal:
            base_line = max(base_line, total_max * TERMINAL_MIN_SHARE)
        else:
            base_line = max(base_line, total_max * STAGE_MIN_SHARE)
            base_line = min(base_line, total_max * STAGE_MAX_SHARE)
    return base_line * multiplier


def medal_for(score: float, pass_line: float) -> Medal:
    for medal, share in MEDAL_THRESHOLDS:
        if score >= pass_line * share:
            return medal
    return Medal.NONE
