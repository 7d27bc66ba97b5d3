from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from time import perf_counter
from typing import List, Optional, Sequence, Tuple

import numpy as np

from truss_solver_backend.schemas.truss import (
    LoadCase,
    SolveMeta,
    SolveOptions,
    SolveResult,
    TrussModel,
)
from truss_solver_backend.solver.assembly import assemble
from truss_solver_backend.solver.cholesky import cholesky_solve
from truss_solver_backend.solver.constraints import Partition, partition_supports
from truss_solver_backend.solver.elements import line_load, smeared_motor_load
from truss_solver_backend.solver.errors import (
    InvalidModelError,
    SingularSystemError,
    SolveError,
    SolveErrorKind,
)
from truss_solver_backend.solver.mesh import MIN_ELEMENTS, build_mesh
from truss_solver_backend.solver.postprocess import check_allowables, recover_response

logger = logging.getLogger(__name__)

SPAN_TOL = 1e-9


@dataclass(frozen=True)
class SolveOutcome:
    """Either a ``SolveResult`` or the ``SolveError`` that prevented one."""

    result: Optional[SolveResult] = None
    error: Optional[SolveError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def kind(self) -> Optional[SolveErrorKind]:
        return self.error.kind if self.error is not None else None


def support_labels(options: SolveOptions) -> List[str]:
    return [support.label or f"H{index + 1}" for index, support in enumerate(options.supports)]


def _require_finite(values: Sequence[Tuple[str, float]]) -> None:
    for name, value in values:
        if not math.isfinite(value):
            raise InvalidModelError(f"{name} must be a finite number, got {value}.")


def _validate(truss: TrussModel, load_case: LoadCase, options: SolveOptions) -> None:
    _require_finite(
        [
            ("Truss EI", truss.ei_nm2),
            ("Truss length", truss.length_m),
            ("Truss self-weight", truss.self_weight_kgm),
            ("Gravity", load_case.gravity),
            ("Dynamic factor", load_case.dynamic_factor),
            ("Motor weight", load_case.motor_weight_kg_each),
            ("Tilt angle", options.tilt_deg),
        ]
    )
    if truss.ei_nm2 <= 0:
        raise InvalidModelError("Truss EI must be > 0 (from datasheet).")
    if truss.length_m <= 0:
        raise InvalidModelError("Truss length must be > 0.")
    if options.n_elements < 1:
        raise InvalidModelError("Element count must be at least 1.")

    length = truss.length_m
    for fixture in load_case.fixtures:
        _require_finite([("Fixture weight", fixture.weight_kg)])
        if not -SPAN_TOL <= fixture.position_m <= length + SPAN_TOL:
            raise InvalidModelError(f"Fixture at {fixture.position_m} m lies outside the {length} m span.")
    for support in options.supports:
        if not -SPAN_TOL <= support.position_m <= length + SPAN_TOL:
            raise InvalidModelError(f"Rigging point at {support.position_m} m lies outside the {length} m span.")


def _require_two_support_nodes(partition: Partition) -> None:
    # fewer than two distinct vertical restraints leave a rigid-body mode
    if len(partition.constrained) < 2:
        raise SingularSystemError(
            "At least two rigging points on distinct mesh nodes are required; check your support configuration."
        )


def _recover_reactions(
    partition: Partition,
    stiffness: np.ndarray,
    loads: np.ndarray,
    free_displacements: np.ndarray,
) -> np.ndarray:
    _, _, k_cf, k_cc, _, f_c = partition.blocks(stiffness, loads)
    node_reactions = k_cf @ free_displacements + k_cc @ partition.prescribed - f_c

    # supports snapped to the same node split that node's reaction
    shares = np.bincount(partition.support_slots, minlength=len(partition.constrained))
    return np.array([node_reactions[slot] / shares[slot] for slot in partition.support_slots], dtype=float)


def _shared_node_warnings(partition: Partition, labels: List[str]) -> List[str]:
    warnings = []
    for node, indices in partition.shared_nodes().items():
        names = ", ".join(labels[index] for index in indices)
        warnings.append(f"Rigging points {names} share mesh node {node}; their reaction is split evenly.")
    return warnings


def solve_truss(truss: TrussModel, load_case: LoadCase, options: SolveOptions) -> SolveResult:
    """Solve the truss with prescribed support settlements (tilt) in SI units."""
    start_time = perf_counter()
    _validate(truss, load_case, options)

    warnings: List[str] = []
    n_elements = max(MIN_ELEMENTS, options.n_elements)
    if n_elements != options.n_elements:
        warnings.append(f"Element count raised from {options.n_elements} to {n_elements}.")

    gravity = load_case.gravity
    mesh = build_mesh(truss.length_m, n_elements)
    smeared = smeared_motor_load(load_case, len(options.supports), truss.length_m)
    q = line_load(truss.self_weight_kgm, gravity, smeared)
    logger.debug("Solving %s: %d elements, q=%.3f N/m, %d supports", truss.id, n_elements, q, len(options.supports))

    system = assemble(mesh, truss.ei_nm2, q, load_case.fixtures, gravity, load_case.dynamic_factor)
    partition = partition_supports(mesh, options.supports, options.tilt_deg)
    k_ff, k_fc, _, _, f_f, _ = partition.blocks(system.stiffness, system.loads)

    try:
        _require_two_support_nodes(partition)
        free_displacements = cholesky_solve(k_ff, f_f - k_fc @ partition.prescribed)
    except SingularSystemError:
        logger.warning("Singular stiffness for %s with %d supports", truss.id, len(options.supports))
        raise

    reactions_n = _recover_reactions(partition, system.stiffness, system.loads, free_displacements)
    displacements = partition.full_displacements(mesh.ndof, free_displacements)
    response = recover_response(mesh, truss.ei_nm2, q, displacements)

    labels = support_labels(options)
    warnings.extend(_shared_node_warnings(partition, labels))

    duration_ms = (perf_counter() - start_time) * 1000.0
    logger.debug("Solved %s in %.3f ms", truss.id, duration_ms)

    return SolveResult(
        support_reactions_n=[float(value) for value in reactions_n],
        support_reactions_kg=[float(value / gravity) for value in reactions_n],
        support_labels=labels,
        max_moment_nm=response.max_moment_nm,
        max_deflection_m=response.max_deflection_m,
        deflections_m=response.deflections_m,
        x_nodes_m=[float(value) for value in mesh.x_nodes],
        ok_against_allowables=check_allowables(truss, response),
        meta=SolveMeta(
            solve_time_ms=duration_ms,
            n_elements=n_elements,
            validation_warnings=warnings,
        ),
    )


def try_solve(truss: TrussModel, load_case: LoadCase, options: SolveOptions) -> SolveOutcome:
    """Run ``solve_truss`` and return its failure as a value instead of raising."""
    try:
        return SolveOutcome(result=solve_truss(truss, load_case, options))
    except SolveError as exc:
        return SolveOutcome(error=exc)
