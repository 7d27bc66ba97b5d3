from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, HTTPException

from truss_solver_backend.schemas.hoist import HoistAssignment, HoistSuggestRequest
from truss_solver_backend.schemas.plan import RiggingPlan, RiggingPlanRequest
from truss_solver_backend.schemas.truss import SolveResult, TrussSolveRequest
from truss_solver_backend.solver.errors import SolveError
from truss_solver_backend.solver.hoists import suggest_hoists
from truss_solver_backend.solver.planner import plan_truss
from truss_solver_backend.solver.truss_solver import try_solve

logger = logging.getLogger(__name__)

router = APIRouter()


def _solve_error(exc: SolveError) -> HTTPException:
    logger.info("Rejected truss model: %s", exc)
    return HTTPException(status_code=400, detail={"error": exc.kind.value, "message": str(exc)})


@router.post("/truss/solve", response_model=SolveResult)
async def solve(payload: TrussSolveRequest) -> SolveResult:
    """Solve support reactions, moments and deflections for one truss."""
    outcome = try_solve(payload.truss, payload.load_case, payload.options)
    if not outcome.ok:
        raise _solve_error(outcome.error)
    return outcome.result


@router.post("/hoists/suggest", response_model=List[HoistAssignment])
async def hoists(payload: HoistSuggestRequest) -> List[HoistAssignment]:
    return suggest_hoists(payload.reactions_kg, payload.catalog, labels=payload.labels)


@router.post("/rigging/plan", response_model=RiggingPlan)
async def rigging_plan(payload: RiggingPlanRequest) -> RiggingPlan:
    """Solve a truss and pick a hoist for every rigging point."""
    try:
        return plan_truss(payload.truss, payload.load_case, payload.options, payload.catalog)
    except SolveError as exc:
        raise _solve_error(exc) from exc
