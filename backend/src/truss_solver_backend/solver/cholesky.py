from __future__ import annotations

import numpy as np

from truss_solver_backend.solver.errors import SingularSystemError

SINGULAR_MESSAGE = "Stiffness matrix is not positive definite; check your support configuration."


def cholesky_factor(matrix: np.ndarray) -> np.ndarray:
    """Return the lower factor ``L`` with ``matrix = L @ L.T``.

    Raises ``SingularSystemError`` when a pivot is non-positive, lost in round-off
    (below ``n * eps`` of its diagonal) or not finite.
    """
    if not np.all(np.isfinite(matrix)):
        raise SingularSystemError("Stiffness matrix has non-finite entries; check the truss data.")

    try:
        lower = np.linalg.cholesky(matrix)
    except np.linalg.LinAlgError as exc:
        raise SingularSystemError(SINGULAR_MESSAGE) from exc

    n = matrix.shape[0]
    pivots = np.diag(lower) ** 2
    threshold = n * np.finfo(float).eps * np.diag(matrix)
    # written as "not >" so NaN pivots fail too
    failing = np.flatnonzero(~(pivots > threshold))
    if failing.size:
        raise SingularSystemError(SINGULAR_MESSAGE, pivot_index=int(failing[0]))

    return lower


def cholesky_solve(matrix: np.ndarray, rhs: np.ndarray) -> np.ndarray:
    """Solve ``matrix @ x = rhs`` for a symmetric positive definite matrix."""
    lower = cholesky_factor(matrix)
    n = lower.shape[0]

    forward = np.zeros(n, dtype=float)
    for i in range(n):
        forward[i] = (rhs[i] - float(lower[i, :i] @ forward[:i])) / lower[i, i]

    solution = np.zeros(n, dtype=float)
    for i in range(n - 1, -1, -1):
        solution[i] = (forward[i] - float(lower[i + 1 :, i] @ solution[i + 1 :])) / lower[i, i]

    return solution
