from __future__ import annotations

import numpy as np

from truss_solver_backend.schemas.truss import LoadCase


def beam_stiffness(ei: float, le: float) -> np.ndarray:
    """Local stiffness of a 2-node Euler-Bernoulli element, DOFs [w1, t1, w2, t2]."""
    a = 12.0 * ei / le**3
    b = 6.0 * ei / le**2
    c = 4.0 * ei / le
    d = 2.0 * ei / le
    return np.array(
        [
            [a, b, -a, b],
            [b, c, -b, d],
            [-a, -b, a, -b],
            [b, d, -b, c],
        ],
        dtype=float,
    )


def udl_load_vector(w: float, le: float) -> np.ndarray:
    """Fixed-end equivalent nodal loads for a line load ``w`` (N/m, +y up)."""
    half = w * le / 2.0
    end_moment = w * le**2 / 12.0
    return np.array([half, end_moment, half, -end_moment], dtype=float)


def smeared_motor_load(load_case: LoadCase, support_count: int, length: float) -> float:
    """Motor self-weight spread evenly over the span, one motor per support (N/m)."""
    if not (load_case.include_motor_weight and load_case.motor_weight_kg_each and support_count):
        return 0.0
    return load_case.motor_weight_kg_each * support_count * load_case.gravity / length


def line_load(self_weight_kgm: float, gravity: float, smeared: float = 0.0) -> float:
    """Downward line load magnitude acting on every element (N/m)."""
    return self_weight_kgm * gravity + smeared
