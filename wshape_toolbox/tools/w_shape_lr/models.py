from __future__ import annotations

from typing import Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator

from wshape_toolbox.blocks.steel_materials import DEFAULT_GRADE, E_KSI

GradeName = Literal["A36", "A572 Gr 50", "A992", "A913 Gr 65"]


class InputModel(BaseModel):
    # ---- Section selection ----
    shape: str = Field(default="W12X26", description="W-shape designation from the shapes catalog.")

    # ---- Material ----
    material_grade: GradeName = Field(default=DEFAULT_GRADE, description="Steel grade preset supplying Fy.")
    Fy_override: Optional[Union[float, str]] = Field(
        default=None,
        title="Custom Fy (ksi)",
        description="When given, used instead of the grade's Fy. Must parse as a positive number.",
    )
    E_ksi: float = Field(default=E_KSI, gt=0.0, title="E (ksi)", description="Modulus of elasticity E (ksi).")

    include_trace: bool = Field(default=True, description="Return the step-by-step calculation trace.")

    @field_validator("shape")
    @classmethod
    def _strip_shape(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("shape must not be empty")
        return v
