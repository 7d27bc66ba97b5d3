from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

import numpy as np

from truss_solver_backend.schemas.truss import Support
from truss_solver_backend.solver.mesh import Mesh, nearest_node

Blocks = Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray, np.ndarray, np.ndarray]


@dataclass
class Partition:
    """Free/prescribed DOF split for a set of supports.

    ``constrained`` holds one vertical DOF per distinct support node, in order of
    first appearance; ``support_slots[i]`` is the row of ``constrained`` used by
    support ``i``.
    """

    free: List[int]
    constrained: List[int]
    prescribed: np.ndarray
    support_nodes: List[int]
    support_slots: List[int]

    def blocks(self, stiffness: np.ndarray, loads: np.ndarray) -> Blocks:
        """Return ``Kff, Kfc, Kcf, Kcc, Ff, Fc``."""
        free, constrained = self.free, self.constrained
        return (
            stiffness[np.ix_(free, free)],
            stiffness[np.ix_(free, constrained)],
            stiffness[np.ix_(constrained, free)],
            stiffness[np.ix_(constrained, constrained)],
            loads[free],
            loads[constrained],
        )

    def full_displacements(self, ndof: int, free_values: np.ndarray) -> np.ndarray:
        displacements = np.zeros(ndof, dtype=float)
        displacements[self.free] = free_values
        displacements[self.constrained] = self.prescribed
        return displacements

    def shared_nodes(self) -> Dict[int, List[int]]:
        """Map each node carrying more than one support to those support indices."""
        grouped: Dict[int, List[int]] = {}
        for index, node in enumerate(self.support_nodes):
            grouped.setdefault(node, []).append(index)
        return {node: indices for node, indices in grouped.items() if len(indices) > 1}


def partition_supports(mesh: Mesh, supports: Sequence[Support], tilt_deg: float) -> Partition:
    """Prescribe the vertical DOF of each support node on a line tilted about the first support."""
    support_nodes = [nearest_node(mesh.x_nodes, support.position_m) for support in supports]
    slope = math.tan(math.radians(tilt_deg))
    pivot_x = float(mesh.x_nodes[support_nodes[0]]) if support_nodes else 0.0

    constrained: List[int] = []
    prescribed: List[float] = []
    support_slots: List[int] = []
    for node in support_nodes:
        dof = 2 * node
        if dof not in constrained:
            constrained.append(dof)
            prescribed.append(slope * (float(mesh.x_nodes[node]) - pivot_x))
        support_slots.append(constrained.index(dof))

    constrained_set = set(constrained)
    free = [dof for dof in range(mesh.ndof) if dof not in constrained_set]

    return Partition(
        free=free,
        constrained=constrained,
        prescribed=np.array(prescribed, dtype=float),
        support_nodes=support_nodes,
        support_slots=support_slots,
    )
