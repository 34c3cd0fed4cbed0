from __future__ import annotations

import logging
import random
from threading import Lock
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from .app import build_default_roster, random_problem_tags
from .config import Tuning
from .models import STAGE_ORDER, Competitor, ContestResult, ContestStage, Medal, PracticeLevel, ProvinceTier
from .schedule import stage_definition
from .season import ContestOutcome, PracticeOutcome, SeasonSession

logger = logging.getLogger(__name__)


class AdvanceSelection(BaseModel):
    weeks: int = 1


class ContestSelection(BaseModel):
    stage: str | None = None


class PracticeSelection(BaseModel):
    level: str = PracticeLevel.POPULAR.value
    problem_tags: list[list[str]] | None = None
    problem_count: int = 4
    purchased: bool = False
    online: bool = False


class ResetSelection(BaseModel):
    province: str = ProvinceTier.NORMAL.value
    students: int = 6
    seed: int | None = None
    tuning: dict[str, float] = {}


def _competitor_row(competitor: Competitor) -> dict[str, Any]:
    return {
        "id": competitor.competitor_id,
        "name": competitor.name,
        "active": competitor.active,
        "thinking": round(competitor.thinking, 1),
        "coding": round(competitor.coding, 1),
        "mental": round(competitor.mental, 1),
        "pressure": round(competitor.pressure, 1),
        "comfort": round(competitor.comfort, 1),
        "knowledge": {tag.value: amount for tag, amount in competitor.knowledge.items()},
    }


def _result_row(result: ContestResult) -> dict[str, Any]:
    return {
        "name": result.name,
        "score": result.total_score,
        "problem_scores": list(result.problem_scores),
        "passed": result.passed,
        "medal": None if result.medal is Medal.NONE else result.medal.value,
        "pressure_delta": round(result.pressure_delta, 1),
        "extra_pressure": result.extra_pressure,
        "remark": result.remark,
        "participated": result.participated,
    }


class SimService:
    def __init__(self) -> None:
        self._init_fresh_state()
        self._lock = Lock()

    def _init_fresh_state(
        self,
        province: ProvinceTier = ProvinceTier.NORMAL,
        students: int = 6,
        seed: int | None = None,
        tuning: dict[str, float] | None = None,
    ) -> None:
        self.session = SeasonSession(
            build_default_roster(students, province, seed),
            province=province,
            tuning=Tuning(tuning),
            seed=seed,
        )
        self._practice_rng = random.Random(seed)

    def meta(self) -> dict[str, Any]:
        session = self.session
        upcoming = session.next_contest()
        due = session.due_contest()
        return {
            "week": session.week,
            "season_weeks": session.tuning.season_weeks,
            "half_season": session.half_season,
            "province": session.province.value,
            "budget": session.budget,
            "ended": session.ended,
            "ending_reason": session.ending_reason,
            "final_ending": session.final_ending() if session.is_complete() else None,
            "due_contest": due.name if due is not None else None,
            "next_contest": {"name": upcoming.name, "week": upcoming.week} if upcoming else None,
            "stages": [stage.value for stage in STAGE_ORDER],
            "practice_levels": [level.value for level in PracticeLevel],
            "provinces": [tier.value for tier in ProvinceTier],
        }

    def roster(self) -> list[dict[str, Any]]:
        return [_competitor_row(c) for c in self.session.roster]

    def career(self) -> list[dict[str, Any]]:
        return self.session.career.to_list()

    def qualification(self) -> dict[str, Any]:
        return {
            "half_season": self.session.half_season,
            "qualified": self.session.qualification_view(),
        }

    def advance(self, weeks: int) -> dict[str, Any]:
        if weeks < 1:
            raise HTTPException(status_code=400, detail="weeks must be at least 1")
        due = self.session.advance(weeks)
        payload = self.meta()
        payload["stopped_for"] = due.name if due is not None else None
        return payload

    def resolve(self, stage_name: str | None) -> dict[str, Any]:
        if stage_name is None:
            definition = self.session.due_contest()
            if definition is None:
                raise HTTPException(status_code=400, detail=f"No contest is due in week {self.session.week}")
        else:
            try:
                stage = ContestStage(stage_name)
            except ValueError:
                raise HTTPException(status_code=404, detail=f"Unknown contest stage '{stage_name}'") from None
            definition = stage_definition(stage, self.session.week)
        try:
            outcome = self.session.resolve_contest(definition)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return self._outcome_payload(outcome)

    def practice(self, payload: PracticeSelection) -> dict[str, Any]:
        tags = payload.problem_tags
        if tags is None:
            tags = random_problem_tags(self._practice_rng, payload.problem_count)
        try:
            outcome = self.session.hold_practice_contest(
                payload.level,
                tags,
                purchased=payload.purchased,
                online=payload.online,
            )
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return self._practice_payload(outcome)

    def reset(self, payload: ResetSelection) -> dict[str, Any]:
        try:
            province = ProvinceTier(payload.province)
            self._init_fresh_state(province, payload.students, payload.seed, payload.tuning)
        except (KeyError, ValueError) as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        logger.info("Season reset: %s province, %d students", province.value, payload.students)
        return self.meta()

    def _outcome_payload(self, outcome: ContestOutcome) -> dict[str, Any]:
        return {
            "contest": outcome.definition.name,
            "week": self.session.week,
            "half_season": outcome.half,
            "pass_line": outcome.pass_line,
            "funding_issued": outcome.funding_issued,
            "budget": self.session.budget,
            "skipped": outcome.skipped,
            "duplicate": outcome.duplicate,
            "ending_triggered": outcome.ending_triggered,
            "ending_reason": outcome.ending_reason,
            "results": [_result_row(r) for r in outcome.results],
            "career_entry": outcome.career_entry.to_dict() if outcome.career_entry is not None else None,
        }

    def _practice_payload(self, outcome: PracticeOutcome) -> dict[str, Any]:
        return {
            "contest": outcome.definition.name,
            "difficulty": outcome.definition.difficulty,
            "problems": [
                {"tags": [tag.value for tag in problem.tags], "difficulty": round(problem.difficulty, 1)}
                for problem in outcome.problems
            ],
            "rows": [
                {
                    "name": row.name,
                    "problem_scores": row.problem_scores,
                    "total": row.total,
                    "summary": row.deltas.describe(),
                    "knowledge": {tag.value: amount for tag, amount in row.deltas.knowledge.items()},
                    "thinking": round(row.deltas.thinking, 1),
                    "coding": round(row.deltas.coding, 1),
                    "mental": round(row.deltas.mental, 1),
                    "pressure": round(row.deltas.pressure, 1),
                }
                for row in outcome.rows
            ],
        }


service = SimService()
app = FastAPI(title="Olympiad Coach API", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/api/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/api/meta")
def meta() -> dict[str, Any]:
    with service._lock:
        return service.meta()


@app.get("/api/roster")
def roster() -> list[dict[str, Any]]:
    with service._lock:
        return service.roster()


@app.get("/api/qualification")
def qualification() -> dict[str, Any]:
    with service._lock:
        return service.qualification()


@app.get("/api/career")
def career() -> list[dict[str, Any]]:
    with service._lock:
        return service.career()


@app.post("/api/advance")
def advance(payload: AdvanceSelection) -> dict[str, Any]:
    with service._lock:
        return service.advance(payload.weeks)


@app.post("/api/contests/resolve")
def resolve_contest(payload: ContestSelection) -> dict[str, Any]:
    with service._lock:
        return service.resolve(payload.stage)


@app.post("/api/practice")
def practice(payload: PracticeSelection) -> dict[str, Any]:
    with service._lock:
        return service.practice(payload)


@app.post("/api/reset")
def reset(payload: ResetSelection) -> dict[str, Any]:
    with service._lock:
        return service.reset(payload)
