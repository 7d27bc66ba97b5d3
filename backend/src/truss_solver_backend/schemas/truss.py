from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, model_validator

from truss_solver_backend.solver.mesh import DEFAULT_ELEMENTS

DEFAULT_GRAVITY = 9.81
DEFAULT_DYNAMIC_FACTOR = 1.2


class TrussModel(BaseModel):
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    id: str = Field(default="truss", min_length=1)
    name: str = Field(default="")
    length_m: float = Field(gt=0, description="Span in metres")
    ei_nm2: float = Field(description="Flexural rigidity E*I in N*m^2 (datasheet value)")
    self_weight_kgm: float = Field(default=0.0, ge=0, description="Self-weight in kg/m")
    allowable_moment_nm: Optional[float] = Field(default=None, gt=0, description="Allowable bending moment in N*m")
    allowable_deflection_m: Optional[float] = Field(default=None, gt=0, description="Allowable deflection in metres")


class Fixture(BaseModel):
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    position_m: float = Field(ge=0, description="Distance from the left end in metres")
    weight_kg: float = Field(ge=0, description="Unit weight in kg")
    quantity: int = Field(default=1, ge=0)
    name: Optional[str] = None


class Support(BaseModel):
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    position_m: float = Field(ge=0, description="Rigging point position in metres")
    label: Optional[str] = None


class LoadCase(BaseModel):
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    fixtures: List[Fixture] = Field(default_factory=list)
    gravity: float = Field(default=DEFAULT_GRAVITY, gt=0, description="Gravitational acceleration in m/s^2")
    dynamic_factor: float = Field(default=DEFAULT_DYNAMIC_FACTOR, gt=0, description="Amplification applied to point loads")
    include_motor_weight: bool = Field(default=False, description="Smear hoist motor weight over the span")
    motor_weight_kg_each: float = Field(default=0.0, ge=0, description="Self-weight of one hoist motor in kg")


class SolveOptions(BaseModel):
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    supports: List[Support] = Field(default_factory=list)
    n_elements: int = Field(default=DEFAULT_ELEMENTS, description="Element count, raised to the mesh floor when lower")
    tilt_deg: float = Field(default=0.0, gt=-90.0, lt=90.0, description="Positive raises supports right of the first one")


class TrussSolveRequest(BaseModel):
    truss: TrussModel
    load_case: LoadCase = Field(default_factory=LoadCase)
    options: SolveOptions = Field(default_factory=SolveOptions)

    @model_validator(mode="after")
    def validate_domain(self, info: ValidationInfo) -> "TrussSolveRequest":
        """Reject fixtures and rigging points placed off the truss."""
        length = self.truss.length_m

        for fixture in self.load_case.fixtures:
            if not 0 <= fixture.position_m <= length:
                raise ValueError("Fixture must be located on the truss span.")

        for support in self.options.supports:
            if not 0 <= support.position_m <= length:
                raise ValueError("Rigging point must be located on the truss span.")

        return self


class AllowableChecks(BaseModel):
    moment: Optional[bool] = None
    deflection: Optional[bool] = None


class SolveMeta(BaseModel):
    solve_time_ms: float
    n_elements: int
    validation_warnings: List[str] = Field(default_factory=list)


class SolveResult(BaseModel):
    support_reactions_n: List[float]
    support_reactions_kg: List[float]
    support_labels: List[str]
    max_moment_nm: float
    max_deflection_m: float
    deflections_m: List[float]
    x_nodes_m: List[float]
    ok_against_allowables: AllowableChecks
    meta: SolveMeta
