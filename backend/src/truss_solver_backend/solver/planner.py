from __future__ import annotations

from typing import List, Optional, Sequence

from truss_solver_backend.schemas.hoist import HoistAssignment, HoistType
from truss_solver_backend.schemas.plan import RiggingAdvisory, RiggingPlan
from truss_solver_backend.schemas.truss import LoadCase, SolveOptions, SolveResult, TrussModel
from truss_solver_backend.solver.hoists import suggest_hoists
from truss_solver_backend.solver.truss_solver import solve_truss

INSUFFICIENT_TRUSS_MESSAGE = (
    "Truss model may be insufficient (moment/deflection). Consider upgrading model or adding supports."
)


def _advisory(result: SolveResult, hoists: List[HoistAssignment]) -> Optional[RiggingAdvisory]:
    overloaded = [assignment for assignment in hoists if assignment.under_capacity]
    if overloaded:
        worst = max(overloaded, key=lambda assignment: assignment.required_kg)
        largest = f"{worst.hoist.wll_kg:g} kg" if worst.hoist is not None else "none"
        return RiggingAdvisory(
            severity="error",
            message=(
                f"Required load at {worst.support} ({worst.required_kg} kg) exceeds the largest "
                f"hoist WLL ({largest}). Add rigging points or use a stronger hoist."
            ),
        )

    checks = result.ok_against_allowables
    if checks.moment is False or checks.deflection is False:
        return RiggingAdvisory(severity="warn", message=INSUFFICIENT_TRUSS_MESSAGE)

    return None


def plan_truss(
    truss: TrussModel,
    load_case: LoadCase,
    options: SolveOptions,
    catalog: Sequence[HoistType],
) -> RiggingPlan:
    """Solve a truss, pick a hoist per rigging point and flag anything unsafe."""
    result = solve_truss(truss, load_case, options)
    hoists = suggest_hoists(result.support_reactions_kg, catalog, labels=result.support_labels)
    return RiggingPlan(result=result, hoists=hoists, advisory=_advisory(result, hoists))
