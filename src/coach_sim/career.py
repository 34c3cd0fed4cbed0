from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator

from .models import Medal

NOT_PARTICIPATED_REMARK = "Not qualified, did not participate"


@dataclass(slots=True, frozen=True)
class CareerOutcome:
    name: str
    rank: int | None
    score: int | None
    passed: bool
    medal: Medal = Medal.NONE
    remark: str = ""
    eligible: bool = True


@dataclass(slots=True, frozen=True)
class CareerEntry:
    week: int
    contest_name: str
    passed_count: int
    participant_count: int
    outcomes: tuple[CareerOutcome, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "week": self.week,
            "name": self.contest_name,
            "passed_count": self.passed_count,
            "total_students": self.participant_count,
            "entries": [
                {
                    "name": o.name,
                    "rank": o.rank,
                    "score": o.score,
                    "passed": o.passed,
                    "medal": None if o.medal is Medal.NONE else o.medal.value,
                    "remark": o.remark,
                    "eligible": o.eligible,
                }
                for o in self.outcomes
            ],
        }


class CareerLedger:
    """Append-only record of contest outcomes."""

    def __init__(self) -> None:
        self._entries: list[CareerEntry] = []

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[CareerEntry]:
        return iter(tuple(self._entries))

    @property
    def entries(self) -> tuple[CareerEntry, ...]:
        return tuple(self._entries)

    def append(self, entry: CareerEntry) -> CareerEntry:
        self._entries.append(entry)
        return entry

    def for_competitor(self, name: str) -> list[tuple[CareerEntry, CareerOutcome]]:
        rows: list[tuple[CareerEntry, CareerOutcome]] = []
        for entry in self._entries:
            for outcome in entry.outcomes:
                if outcome.name == name:
                    rows.append((entry, outcome))
        return rows

    def to_list(self) -> list[dict[str, Any]]:
        return [entry.to_dict() for entry in self._entries]
