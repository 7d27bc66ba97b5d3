from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, model_validator


class HoistType(BaseModel):
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    id: str = Field(min_length=1)
    name: str = Field(description="Catalog name, e.g. 'CM 500 kg D8+'")
    wll_kg: float = Field(gt=0, description="Working load limit in kg")
    self_weight_kg: Optional[float] = Field(default=None, ge=0)


class HoistAssignment(BaseModel):
    support: str
    required_kg: int
    hoist: Optional[HoistType] = None
    under_capacity: bool = False


class HoistSuggestRequest(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    reactions_kg: List[float] = Field(default_factory=list)
    catalog: List[HoistType] = Field(min_length=1)
    labels: Optional[List[str]] = None

    @model_validator(mode="after")
    def validate_labels(self, info: ValidationInfo) -> "HoistSuggestRequest":
        if self.labels is not None and len(self.labels) != len(self.reactions_kg):
            raise ValueError("One label is required per reaction.")
        return self
