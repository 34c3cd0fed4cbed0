from __future__ import annotations

from typing import Sequence

from .config import PRACTICE_DIFFICULTY, STAGE_RULES
from .models import STAGE_ORDER, ContestDefinition, ContestStage, ContestType, KnowledgeTag, PracticeLevel

# Stage week offsets are tuned for a 26-week half-season and scaled otherwise.
REFERENCE_HALF_WEEKS = 26


def _stage_offsets(weeks_per_half: int) -> dict[ContestStage, int]:
    offsets: dict[ContestStage, int] = {}
    previous = 0
    for stage in STAGE_ORDER:
        scaled = round(STAGE_RULES[stage].week_offset * weeks_per_half / REFERENCE_HALF_WEEKS)
        # Keep one contest per week, in chain order.
        week = max(previous + 1, min(weeks_per_half, max(1, scaled)))
        offsets[stage] = week
        previous = week
    return offsets


def stage_week(stage: ContestStage, half: int, weeks_per_half: int) -> int:
    return half * weeks_per_half + _stage_offsets(weeks_per_half)[stage]


def stage_definition(stage: ContestStage, week: int) -> ContestDefinition:
    rule = STAGE_RULES[stage]
    return ContestDefinition(
        name=stage.value,
        difficulty=rule.difficulty,
        num_problems=rule.num_problems,
        week=week,
        stage=stage,
    )


def build_season_schedule(weeks_per_half: int) -> list[ContestDefinition]:
    schedule = [
        stage_definition(stage, stage_week(stage, half, weeks_per_half))
        for half in (0, 1)
        for stage in STAGE_ORDER
    ]
    schedule.sort(key=lambda definition: definition.week)
    return schedule


def practice_definition(
    level: PracticeLevel,
    problem_tags: Sequence[Sequence[KnowledgeTag]],
    *,
    online: bool = False,
    week: int = 0,
) -> ContestDefinition:
    contest_type = ContestType.ONLINE if online else ContestType.PRACTICE
    label = "Online round" if online else "Practice contest"
    return ContestDefinition(
        name=f"{label} ({level.value})",
        difficulty=PRACTICE_DIFFICULTY[level],
        num_problems=len(problem_tags),
        week=week,
        contest_type=contest_type,
        problem_tags=[tuple(KnowledgeTag(tag) for tag in tags) for tags in problem_tags],
    )
