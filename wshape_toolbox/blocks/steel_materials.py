from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List

# Modulus of elasticity for structural steel (ksi).
E_KSI = 29000.0


@dataclass(frozen=True)
class SteelGrade:
    name: str
    Fy_ksi: float


_GRADE_PRESETS: Dict[str, float] = {
    "A36": 36.0,
    "A572 Gr 50": 50.0,
    "A992": 50.0,
    "A913 Gr 65": 65.0,
}

STEEL_GRADES: Dict[str, SteelGrade] = {
    name: SteelGrade(name=name, Fy_ksi=fy) for name, fy in _GRADE_PRESETS.items()
}

DEFAULT_GRADE = "A992"


def grade_names() -> List[str]:
    return list(STEEL_GRADES.keys())


def get_grade(name: str) -> SteelGrade:
    """Look up a preset grade; raises KeyError for names outside the fixed set."""
    key = (name or "").strip()
    if key in STEEL_GRADES:
        return STEEL_GRADES[key]
    # Accept "A572 Grade 50" / "a992" style spellings.
    canon = key.upper().replace("GRADE", "GR").replace(" ", "")
    for grade in STEEL_GRADES.values():
        if grade.name.upper().replace(" ", "") == canon:
            return grade
    raise KeyError(name)
