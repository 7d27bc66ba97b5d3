from __future__ import annotations

from dataclasses import dataclass

import numpy as np

DEFAULT_ELEMENTS = 24
MIN_ELEMENTS = 8
DOFS_PER_NODE = 2  # [w, theta]


@dataclass(frozen=True)
class Mesh:
    x_nodes: np.ndarray

    @property
    def n_nodes(self) -> int:
        return int(self.x_nodes.size)

    @property
    def n_elements(self) -> int:
        return self.n_nodes - 1

    @property
    def ndof(self) -> int:
        return DOFS_PER_NODE * self.n_nodes

    def element_length(self, element: int) -> float:
        return float(self.x_nodes[element + 1] - self.x_nodes[element])

    def element_dofs(self, element: int) -> list[int]:
        base = DOFS_PER_NODE * element
        return [base, base + 1, base + 2, base + 3]


def build_mesh(length: float, n_elements: int) -> Mesh:
    """Split the span into ``n_elements`` equal elements."""
    return Mesh(x_nodes=np.linspace(0.0, length, num=n_elements + 1, dtype=float))


def nearest_node(x_nodes: np.ndarray, position: float) -> int:
    # argmin keeps the lowest index on ties
    return int(np.argmin(np.abs(x_nodes - position)))
