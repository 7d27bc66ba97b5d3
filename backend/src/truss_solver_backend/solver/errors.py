from __future__ import annotations

from enum import Enum
from typing import Optional


class SolveErrorKind(str, Enum):
    INVALID_MODEL = "invalid_model"
    SINGULAR_SYSTEM = "singular_system"


class SolveError(ValueError):
    """Base class for failures raised while solving a truss model."""

    kind: SolveErrorKind


class InvalidModelError(SolveError):
    """The truss, load case or options are not a valid model (e.g. EI <= 0)."""

    kind = SolveErrorKind.INVALID_MODEL


class SingularSystemError(SolveError):
    """The free-free stiffness block is not SPD; supports leave a rigid-body mode."""

    kind = SolveErrorKind.SINGULAR_SYSTEM

    def __init__(self, message: str, pivot_index: Optional[int] = None) -> None:
        super().__init__(message)
        self.pivot_index = pivot_index
