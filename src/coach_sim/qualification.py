from __future__ import annotations

import logging
from typing import Iterable

from .models import STAGE_ORDER, Competitor, ContestStage

logger = logging.getLogger(__name__)

HALF_SEASONS = (0, 1)


def half_season_index(week: int, boundary: int) -> int:
    return 1 if week > boundary else 0


class QualificationLedger:
    """Who passed which stage, per half-season.

    Competitors are keyed by name, so two active competitors sharing a name share
    qualification status. Rosters are expected to keep names unique.
    """

    def __init__(self) -> None:
        self._passed: dict[int, dict[ContestStage, set[str]]] = {}

    def _check_half(self, half: int) -> None:
        if half not in HALF_SEASONS:
            raise ValueError(f"Half-season index must be 0 or 1, got {half}.")

    def qualified(self, half: int, stage: ContestStage) -> frozenset[str]:
        self._check_half(half)
        return frozenset(self._passed.get(half, {}).get(stage, ()))

    def is_eligible(self, name: str, half: int, stage: ContestStage) -> bool:
        previous = stage.previous
        if previous is None:
            return True
        return name in self.qualified(half, previous)

    def split_eligible(
        self,
        roster: Iterable[Competitor],
        half: int,
        stage: ContestStage,
    ) -> tuple[list[Competitor], list[Competitor]]:
        eligible: list[Competitor] = []
        ineligible: list[Competitor] = []
        for competitor in roster:
            if not competitor.active:
                continue
            if self.is_eligible(competitor.name, half, stage):
                eligible.append(competitor)
                logger.debug("%s is eligible for %s (half %d)", competitor.name, stage.value, half)
            else:
                ineligible.append(competitor)
                logger.debug(
                    "%s did not pass %s and sits out %s (half %d)",
                    competitor.name,
                    stage.previous.value if stage.previous else "-",
                    stage.value,
                    half,
                )
        return eligible, ineligible

    def record_passes(self, half: int, stage: ContestStage, names: Iterable[str]) -> int:
        self._check_half(half)
        passed = self._passed.setdefault(half, {}).setdefault(stage, set())
        passed.update(names)
        logger.info("Half %d %s: %d qualified", half, stage.value, len(passed))
        if stage.next is not None:
            logger.info("%d competitor(s) may enter %s", len(passed), stage.next.value)
        return len(passed)

    def snapshot(self) -> dict[str, dict[str, list[str]]]:
        view: dict[str, dict[str, list[str]]] = {}
        for half in sorted(self._passed):
            stages = self._passed[half]
            view[str(half)] = {stage.value: sorted(stages[stage]) for stage in STAGE_ORDER if stage in stages}
        return view
