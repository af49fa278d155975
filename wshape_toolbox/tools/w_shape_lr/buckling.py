from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from wshape_toolbox.blocks.steel_materials import E_KSI, SteelGrade, get_grade

from .errors import DegenerateSectionError, InvalidElasticModulusError, InvalidYieldStrengthError
from .section_props import DerivedProperties


@dataclass(frozen=True)
class BucklingResult:
    Lr_in: float
    term1: float
    term2: float
    term3: float
    term4: float
    term5: float
    Fy_ksi: float
    E_ksi: float

    @property
    def Lr_ft(self) -> float:
        return self.Lr_in / 12.0

    def as_dict(self) -> Dict[str, float]:
        return {
            "Lr_in": self.Lr_in,
            "Lr_ft": self.Lr_ft,
            "term1": self.term1,
            "term2": self.term2,
            "term3": self.term3,
            "term4": self.term4,
            "term5": self.term5,
            "Fy_ksi": self.Fy_ksi,
            "E_ksi": self.E_ksi,
        }


def _positive_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        try:
            x = float(s)
        except ValueError:
            return None
    elif isinstance(value, (int, float)):
        x = float(value)
    else:
        return None
    if not math.isfinite(x) or x <= 0.0:
        return None
    return x


def resolve_fy(grade: Union[str, SteelGrade, None], override: Any = None) -> float:
    """
    Effective Fy (ksi). A supplied override always wins over the grade, and an
    unusable override is an error, never a silent fall back to the grade.
    """
    if override is not None:
        fy = _positive_number(override)
        if fy is None:
            raise InvalidYieldStrengthError(f"Custom Fy must be a positive number, got {override!r}.")
        return fy
    if isinstance(grade, SteelGrade):
        return grade.Fy_ksi
    if grade is None:
        raise InvalidYieldStrengthError("No steel grade selected and no custom Fy given.")
    try:
        return get_grade(grade).Fy_ksi
    except KeyError:
        raise InvalidYieldStrengthError(f"Unknown steel grade {grade!r}.") from None


def compute_lr(
    props: DerivedProperties,
    Fy: Union[float, SteelGrade],
    E: float = E_KSI,
) -> BucklingResult:
    """
    Limiting unbraced length for inelastic lateral-torsional buckling (AISC F2-6, c = 1),
    written as the product of five terms:

        Lr = 1.95 rts * E/(0.7 Fy) * sqrt(J/(Sx ho)) * sqrt(1 + sqrt(1 + 6.76 (0.7 Fy Sx ho / (E J))^2))
    """
    fy = Fy.Fy_ksi if isinstance(Fy, SteelGrade) else _positive_number(Fy)
    if fy is None or not fy > 0.0:
        raise InvalidYieldStrengthError(f"Fy must be a positive number, got {Fy!r}.")
    e = _positive_number(E)
    if e is None:
        raise InvalidElasticModulusError(f"E must be a positive number, got {E!r}.")

    J = props.J
    sx_ho = props.Sx * props.ho
    if J == 0.0 or sx_ho == 0.0:
        raise DegenerateSectionError(f"Lr undefined: J={J}, Sx*ho={sx_ho}.")
    if J / sx_ho < 0.0:
        raise DegenerateSectionError(f"Lr undefined: J/(Sx*ho) is negative (J={J}, Sx*ho={sx_ho}).")

    term1 = 1.95 * props.rts
    term2 = e / (0.7 * fy)
    term3 = math.sqrt(J / sx_ho)
    term4 = 6.76 * ((0.7 * fy * sx_ho) / (e * J)) ** 2
    term5 = math.sqrt(1.0 + math.sqrt(1.0 + term4))
    Lr = term1 * term2 * term3 * term5

    return BucklingResult(
        Lr_in=Lr,
        term1=term1,
        term2=term2,
        term3=term3,
        term4=term4,
        term5=term5,
        Fy_ksi=fy,
        E_ksi=e,
    )
