"""Static season configuration tables and the tunable constant surface."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterator, Mapping

from .models import ContestStage, PracticeLevel, ProvinceTier


@dataclass(slots=True, frozen=True)
class StageRule:
    week_offset: int
    difficulty: float
    num_problems: int
    reward_keys: tuple[str, str] | None
    pass_rate_bonus_key: str | None = None


# Week offsets are counted from the start of each half-season.
STAGE_RULES: Mapping[ContestStage, StageRule] = MappingProxyType(
    {
        ContestStage.CSP_S1: StageRule(4, 25.0, 1, ("csp_s1_reward_min", "csp_s1_reward_max")),
        ContestStage.CSP_S2: StageRule(8, 75.0, 4, ("csp_s2_reward_min", "csp_s2_reward_max")),
        ContestStage.NOIP: StageRule(12, 125.0, 4, ("noip_reward_min", "noip_reward_max")),
        ContestStage.PROVINCIAL: StageRule(18, 200.0, 4, None, "provincial_selection_bonus"),
        ContestStage.NOI: StageRule(24, 300.0, 4, ("noi_reward_min", "noi_reward_max")),
    }
)


@dataclass(slots=True, frozen=True)
class ProvinceProfile:
    pass_rate_key: str
    min_ability: float
    max_ability: float
    budget: int


PROVINCE_PROFILES: Mapping[ProvinceTier, ProvinceProfile] = MappingProxyType(
    {
        ProvinceTier.STRONG: ProvinceProfile("strong_province_base_pass_rate", 50.0, 70.0, 200000),
        ProvinceTier.NORMAL: ProvinceProfile("normal_province_base_pass_rate", 30.0, 55.0, 100000),
        ProvinceTier.WEAK: ProvinceProfile("weak_province_base_pass_rate", 20.0, 45.0, 40000),
    }
)

PRACTICE_DIFFICULTY: Mapping[PracticeLevel, float] = MappingProxyType(
    {
        PracticeLevel.INTRO: 30.0,
        PracticeLevel.POPULAR: 50.0,
        PracticeLevel.NOIP: 120.0,
        PracticeLevel.PROVINCIAL: 360.0,
        PracticeLevel.NOI: 420.0,
    }
)

# (knowledge, thinking, coding) share of the per-contest gain caps.
GAIN_RATIOS: Mapping[str, tuple[float, float, float]] = MappingProxyType(
    {
        "default": (0.6, 0.6, 0.6),
        "CSP-S1": (0.4, 0.4, 0.4),
        "CSP-S2": (0.6, 0.6, 0.6),
        "NOIP": (0.8, 0.8, 0.8),
        "Provincial Selection": (1.0, 1.0, 1.0),
        "online_low": (0.5, 0.5, 0.5),
        "online_medium": (0.7, 0.7, 0.7),
        "online_high": (0.9, 0.9, 0.9),
    }
)

PRACTICE_LEVEL_RATIO_KEY: Mapping[PracticeLevel, str] = MappingProxyType(
    {
        PracticeLevel.INTRO: "CSP-S1",
        PracticeLevel.POPULAR: "CSP-S2",
        PracticeLevel.NOIP: "NOIP",
        PracticeLevel.PROVINCIAL: "Provincial Selection",
        PracticeLevel.NOI: "Provincial Selection",
    }
)

DEFAULT_TUNING: Mapping[str, float] = MappingProxyType(
    {
        "season_weeks": 52,
        "strong_province_base_pass_rate": 0.65,
        "normal_province_base_pass_rate": 0.5,
        "weak_province_base_pass_rate": 0.4,
        "provincial_selection_bonus": 0.2,
        "csp_s1_reward_min": 2000,
        "csp_s1_reward_max": 5000,
        "csp_s2_reward_min": 4000,
        "csp_s2_reward_max": 8000,
        "noip_reward_min": 10000,
        "noip_reward_max": 20000,
        "noi_reward_min": 30000,
        "noi_reward_max": 50000,
        "pass_line_multiplier": 1.0,
        "pressure_increase_multiplier": 1.0,
        "contest_max_total_knowledge_gain": 12,
        "contest_max_total_thinking_gain": 10.0,
        "contest_max_total_coding_gain": 10.0,
        "mock_contest_gain_multiplier_purchased": 1.8,
    }
)


class Tuning(Mapping[str, float]):
    """Read-only view of the tunable constants.

    Overrides replace individual defaults; names outside ``DEFAULT_TUNING`` are
    rejected so a typo in a caller's config cannot silently fall back to a default.
    """

    def __init__(self, overrides: Mapping[str, float] | None = None) -> None:
        values = dict(DEFAULT_TUNING)
        for key, value in (overrides or {}).items():
            if key not in DEFAULT_TUNING:
                raise KeyError(f"Unknown tuning constant '{key}'")
            values[key] = float(value)
        self._values = MappingProxyType(values)

    def __getitem__(self, key: str) -> float:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    @property
    def season_weeks(self) -> int:
        # Each half needs a distinct week for every stage.
        return max(10, int(self["season_weeks"]))

    @property
    def weeks_per_half(self) -> int:
        return self.season_weeks // 2
