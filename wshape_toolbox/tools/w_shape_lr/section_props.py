from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

from .errors import DegenerateSectionError, MissingDimensionError
from .shapes_db import PRIMITIVE_SYMBOLS, ShapeRecord

CATALOG = "catalog"
COMPUTED = "computed"


@dataclass(frozen=True)
class DerivedProperties:
    Ix: float
    Sx: float
    Iy: float
    J: float
    ho: float
    rts: float
    h: float
    sources: Mapping[str, str] = field(default_factory=dict)

    def as_dict(self) -> Dict[str, float]:
        return {
            "Ix": self.Ix,
            "Sx": self.Sx,
            "Iy": self.Iy,
            "J": self.J,
            "ho": self.ho,
            "rts": self.rts,
            "h": self.h,
        }


def _dims(shape: ShapeRecord) -> tuple[float, float, float, float]:
    missing: List[str] = []
    vals: List[float] = []
    for sym in PRIMITIVE_SYMBOLS:
        v = shape.get(sym)
        if v is None or not v > 0.0:
            missing.append(sym)
        else:
            vals.append(float(v))
    if missing:
        raise MissingDimensionError(shape.name, missing)
    d, bf, tf, tw = vals
    return d, bf, tf, tw


def _tabulated(shape: ShapeRecord, symbol: str) -> Optional[float]:
    v = shape.get(symbol)
    if v is None or not v > 0.0:
        return None
    return float(v)


def strong_axis_inertia(d: float, bf: float, tw: float, h: float) -> float:
    # Full rectangle less the two voids beside the web
    return bf * d**3 / 12.0 - (bf - tw) * h**3 / 12.0


def weak_axis_inertia(bf: float, tf: float, tw: float, h: float) -> float:
    return 2.0 * tf * bf**3 / 12.0 + h * tw**3 / 12.0


def torsional_constant(bf: float, tf: float, tw: float, h: float) -> float:
    # Open thin-walled section: sum of b*t^3/3 over flanges and web
    return (2.0 * bf * tf**3 + h * tw**3) / 3.0


def effective_radius_of_gyration(Iy: float, J: float, Sx: float) -> float:
    if Sx <= 0.0:
        raise DegenerateSectionError(f"rts undefined: Sx must be positive (Sx={Sx}).")
    if Iy * J < 0.0:
        raise DegenerateSectionError(f"rts undefined: Iy*J must be non-negative (Iy={Iy}, J={J}).")
    return math.sqrt(math.sqrt(Iy * J) / Sx)


def derive(shape: ShapeRecord) -> DerivedProperties:
    """
    Section properties needed for Lr.

    Tabulated Ix, Sx and Iy are used as-is when the catalog has them and are
    computed from d, bf, tf, tw otherwise. J, ho and rts are always computed.
    """
    d, bf, tf, tw = _dims(shape)
    h = d - 2.0 * tf
    if h <= 0.0:
        raise DegenerateSectionError(
            f"Section '{shape.name}': clear web depth d - 2*tf = {h:.4g} in is not positive."
        )

    sources: Dict[str, str] = {}

    Ix = _tabulated(shape, "Ix")
    sources["Ix"] = CATALOG if Ix is not None else COMPUTED
    if Ix is None:
        Ix = strong_axis_inertia(d, bf, tw, h)

    Sx = _tabulated(shape, "Sx")
    sources["Sx"] = CATALOG if Sx is not None else COMPUTED
    if Sx is None:
        Sx = Ix / (d / 2.0)

    Iy = _tabulated(shape, "Iy")
    sources["Iy"] = CATALOG if Iy is not None else COMPUTED
    if Iy is None:
        Iy = weak_axis_inertia(bf, tf, tw, h)

    J = torsional_constant(bf, tf, tw, h)
    ho = d - tf
    rts = effective_radius_of_gyration(Iy, J, Sx)
    sources.update({"J": COMPUTED, "ho": COMPUTED, "rts": COMPUTED})

    return DerivedProperties(Ix=Ix, Sx=Sx, Iy=Iy, J=J, ho=ho, rts=rts, h=h, sources=sources)
