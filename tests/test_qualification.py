import pytest

from coach_sim.models import Competitor, ContestStage
from coach_sim.qualification import QualificationLedger, half_season_index


def _competitor(name: str, active: bool = True) -> Competitor:
    return Competitor(name=name, thinking=40, coding=40, mental=40, active=active)


def test_first_stage_has_no_prerequisite() -> None:
    ledger = QualificationLedger()
    assert ledger.is_eligible("Anyone", 0, ContestStage.CSP_S1)
    assert not ledger.is_eligible("Anyone", 0, ContestStage.CSP_S2)


def test_eligibility_follows_previous_stage_in_same_half() -> None:
    ledger = QualificationLedger()
    ledger.record_passes(0, ContestStage.CSP_S1, ["Li Hao"])
    assert ledger.is_eligible("Li Hao", 0, ContestStage.CSP_S2)
    assert not ledger.is_eligible("Li Hao", 0, ContestStage.NOIP)
    assert not ledger.is_eligible("Li Hao", 1, ContestStage.CSP_S2)


def test_split_eligible_skips_inactive_competitors() -> None:
    ledger = QualificationLedger()
    ledger.record_passes(1, ContestStage.CSP_S1, ["A", "C"])
    roster = [_competitor("A"), _competitor("B"), _competitor("C", active=False)]
    eligible, ineligible = ledger.split_eligible(roster, 1, ContestStage.CSP_S2)
    assert [c.name for c in eligible] == ["A"]
    assert [c.name for c in ineligible] == ["B"]


def test_snapshot_lists_names_per_half() -> None:
    ledger = QualificationLedger()
    ledger.record_passes(0, ContestStage.CSP_S1, ["B", "A"])
    ledger.record_passes(0, ContestStage.CSP_S2, ["A"])
    assert ledger.snapshot() == {"0": {"CSP-S1": ["A", "B"], "CSP-S2": ["A"]}}


def test_invalid_half_is_rejected() -> None:
    with pytest.raises(ValueError):
        QualificationLedger().qualified(2, ContestStage.CSP_S1)


def test_half_season_boundary() -> None:
    assert half_season_index(26, 26) == 0
    assert half_season_index(27, 26) == 1
