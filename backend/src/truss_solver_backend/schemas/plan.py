from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from truss_solver_backend.schemas.hoist import HoistAssignment, HoistType
from truss_solver_backend.schemas.truss import SolveResult, TrussSolveRequest

Severity = Literal["warn", "error"]


class RiggingAdvisory(BaseModel):
    severity: Severity
    message: str


class RiggingPlanRequest(TrussSolveRequest):
    catalog: List[HoistType] = Field(min_length=1)


class RiggingPlan(BaseModel):
    result: SolveResult
    hoists: List[HoistAssignment]
    advisory: Optional[RiggingAdvisory] = None
