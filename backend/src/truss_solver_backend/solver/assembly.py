from __future__ import annotations

from typing import Sequence

import numpy as np

from truss_solver_backend.schemas.truss import Fixture
from truss_solver_backend.solver.elements import beam_stiffness, udl_load_vector
from truss_solver_backend.solver.mesh import Mesh, nearest_node


class GlobalSystem:
    """Dense global stiffness matrix and load vector for one solve call."""

    def __init__(self, ndof: int) -> None:
        self.stiffness = np.zeros((ndof, ndof), dtype=float)
        self.loads = np.zeros(ndof, dtype=float)

    @property
    def ndof(self) -> int:
        return int(self.loads.size)

    def add_element(self, dofs: Sequence[int], k: np.ndarray, f: np.ndarray) -> None:
        self.stiffness[np.ix_(dofs, dofs)] += k
        self.loads[dofs] += f

    def add_point_load(self, node: int, force: float) -> None:
        # vertical DOF only, +y up
        self.loads[2 * node] += force


def point_load(fixture: Fixture, gravity: float, dynamic_factor: float) -> float:
    """Downward force of a fixture row in newtons, amplified by the dynamic factor."""
    return fixture.quantity * fixture.weight_kg * gravity * dynamic_factor


def assemble(
    mesh: Mesh,
    ei: float,
    q: float,
    fixtures: Sequence[Fixture],
    gravity: float,
    dynamic_factor: float,
) -> GlobalSystem:
    """Scatter every element, then snap fixtures to their nearest node.

    ``q`` is the downward line load magnitude (N/m) applied to every element.
    """
    system = GlobalSystem(mesh.ndof)

    for element in range(mesh.n_elements):
        le = mesh.element_length(element)
        system.add_element(
            mesh.element_dofs(element),
            beam_stiffness(ei, le),
            udl_load_vector(-q, le),
        )

    for fixture in fixtures:
        node = nearest_node(mesh.x_nodes, fixture.position_m)
        system.add_point_load(node, -point_load(fixture, gravity, dynamic_factor))

    return system
