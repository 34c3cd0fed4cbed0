import pytest

from coach_sim.config import Tuning
from coach_sim.models import STAGE_ORDER, ContestType, KnowledgeTag, PracticeLevel
from coach_sim.schedule import build_season_schedule, practice_definition, stage_week


def test_each_half_runs_the_full_chain() -> None:
    schedule = build_season_schedule(26)
    assert [d.week for d in schedule] == [4, 8, 12, 18, 24, 30, 34, 38, 44, 50]
    assert [d.stage for d in schedule] == list(STAGE_ORDER) * 2
    assert schedule[3].name == "Provincial Selection"
    assert schedule[3].num_problems == 4
    assert schedule[0].num_problems == 1


def test_short_halves_keep_stage_order() -> None:
    weeks = [stage_week(stage, 0, 5) for stage in STAGE_ORDER]
    assert weeks == [1, 2, 3, 4, 5]
    assert stage_week(STAGE_ORDER[0], 1, 5) == 6


def test_practice_definition() -> None:
    definition = practice_definition(PracticeLevel.PROVINCIAL, [["graph"], [KnowledgeTag.DP]])
    assert definition.name == "Practice contest (provincial)"
    assert definition.contest_type is ContestType.PRACTICE
    assert definition.difficulty == 360
    assert definition.problem_tags == [(KnowledgeTag.GRAPH,), (KnowledgeTag.DP,)]
    assert definition.stage is None


def test_tuning_overrides_and_rejects_unknown_keys() -> None:
    tuning = Tuning({"season_weeks": 40, "pass_line_multiplier": 0.9})
    assert tuning.weeks_per_half == 20
    assert tuning["pass_line_multiplier"] == 0.9
    assert Tuning({"season_weeks": 4}).season_weeks == 10
    with pytest.raises(KeyError):
        Tuning({"pass_line_multipler": 1.0})
