from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from truss_solver_backend.schemas.truss import AllowableChecks, TrussModel
from truss_solver_backend.solver.elements import beam_stiffness, udl_load_vector
from truss_solver_backend.solver.mesh import Mesh


@dataclass
class BeamResponse:
    max_moment_nm: float
    max_deflection_m: float
    deflections_m: List[float]


def hermite_midspan(le: float) -> np.ndarray:
    """Cubic Hermite shape functions evaluated at xi = 0.5."""
    xi = 0.5
    return np.array(
        [
            1.0 - 3.0 * xi**2 + 2.0 * xi**3,
            le * (xi - 2.0 * xi**2 + xi**3),
            3.0 * xi**2 - 2.0 * xi**3,
            le * (-(xi**2) + xi**3),
        ],
        dtype=float,
    )


def element_end_forces(ei: float, le: float, q: float, element_displacements: np.ndarray) -> np.ndarray:
    """Internal end forces ``k @ d - f`` net of the fixed-end UDL correction."""
    return beam_stiffness(ei, le) @ element_displacements - udl_load_vector(-q, le)


def recover_response(mesh: Mesh, ei: float, q: float, displacements: np.ndarray) -> BeamResponse:
    """Walk every element and keep the worst absolute moment and deflection."""
    max_moment = 0.0
    max_deflection = 0.0

    for element in range(mesh.n_elements):
        le = mesh.element_length(element)
        de = displacements[mesh.element_dofs(element)]

        end_forces = element_end_forces(ei, le, q, de)
        midspan_udl = q * le**2 / 8.0
        max_moment = max(max_moment, abs(end_forces[1]), abs(end_forces[3]), abs(midspan_udl))

        w_mid = float(hermite_midspan(le) @ de)
        max_deflection = max(max_deflection, abs(de[0]), abs(de[2]), abs(w_mid))

    deflections = displacements[0::2]
    return BeamResponse(
        max_moment_nm=float(max_moment),
        max_deflection_m=float(max_deflection),
        deflections_m=[float(value) for value in deflections],
    )


def _within(value: float, allowable: Optional[float]) -> Optional[bool]:
    if allowable is None:
        return None
    return value <= allowable


def check_allowables(truss: TrussModel, response: BeamResponse) -> AllowableChecks:
    return AllowableChecks(
        moment=_within(response.max_moment_nm, truss.allowable_moment_nm),
        deflection=_within(response.max_deflection_m, truss.allowable_deflection_m),
    )
