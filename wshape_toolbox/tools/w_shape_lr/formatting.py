from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Tuple

from .buckling import BucklingResult
from .section_props import DerivedProperties
from .shapes_db import ShapeRecord

# Display precision (decimal places)
LENGTH_DECIMALS = 2
PROPERTY_DECIMALS = 2
RTS_DECIMALS = 3
TERM_DECIMALS = {"term1": 3, "term2": 2, "term3": 4, "term4": 4, "term5": 4}

MISSING = "-"


@dataclass(frozen=True)
class FormattedProperties:
    Ix: float
    Sx: float
    Iy: float
    J: float
    ho: float
    rts: float


@dataclass(frozen=True)
class FormattedResult:
    Lr_in: float
    Lr_ft: float
    term1: float
    term2: float
    term3: float
    term4: float
    term5: float
    Fy_ksi: float
    E_ksi: float
    properties: Optional[FormattedProperties] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def summary_lines(self) -> List[str]:
        lines = [
            f"Fy = {self.Fy_ksi:g} ksi, E = {self.E_ksi:g} ksi",
        ]
        if self.properties is not None:
            p = self.properties
            lines += [
                f"Ix  = {p.Ix:.{PROPERTY_DECIMALS}f} in^4",
                f"Sx  = {p.Sx:.{PROPERTY_DECIMALS}f} in^3",
                f"Iy  = {p.Iy:.{PROPERTY_DECIMALS}f} in^4",
                f"J   = {p.J:.{PROPERTY_DECIMALS}f} in^4",
                f"ho  = {p.ho:.{PROPERTY_DECIMALS}f} in",
                f"rts = {p.rts:.{RTS_DECIMALS}f} in",
            ]
        for name, n in TERM_DECIMALS.items():
            lines.append(f"{name} = {getattr(self, name):.{n}f}")
        lines.append(f"Lr = {self.Lr_in:.{LENGTH_DECIMALS}f} in ({self.Lr_ft:.{LENGTH_DECIMALS}f} ft)")
        return lines


def round_to(x: float, decimals: int) -> float:
    return round(float(x), decimals)


def format_properties(props: DerivedProperties) -> FormattedProperties:
    return FormattedProperties(
        Ix=round_to(props.Ix, PROPERTY_DECIMALS),
        Sx=round_to(props.Sx, PROPERTY_DECIMALS),
        Iy=round_to(props.Iy, PROPERTY_DECIMALS),
        J=round_to(props.J, PROPERTY_DECIMALS),
        ho=round_to(props.ho, PROPERTY_DECIMALS),
        rts=round_to(props.rts, RTS_DECIMALS),
    )


def format_result(result: BucklingResult, props: Optional[DerivedProperties] = None) -> FormattedResult:
    """Rounded display values; Lr in feet is converted before rounding."""
    return FormattedResult(
        Lr_in=round_to(result.Lr_in, LENGTH_DECIMALS),
        Lr_ft=round_to(result.Lr_in / 12.0, LENGTH_DECIMALS),
        term1=round_to(result.term1, TERM_DECIMALS["term1"]),
        term2=round_to(result.term2, TERM_DECIMALS["term2"]),
        term3=round_to(result.term3, TERM_DECIMALS["term3"]),
        term4=round_to(result.term4, TERM_DECIMALS["term4"]),
        term5=round_to(result.term5, TERM_DECIMALS["term5"]),
        Fy_ksi=result.Fy_ksi,
        E_ksi=result.E_ksi,
        properties=format_properties(props) if props is not None else None,
    )


def _fmt(value: Any) -> str:
    if value is None:
        return MISSING
    if isinstance(value, float):
        return f"{value:g}"
    return str(value)


def format_shape_properties(record: ShapeRecord) -> List[Tuple[str, str]]:
    """Every catalog column of a record except its name, absent values shown as '-'."""
    return [(col, _fmt(value)) for col, value in record.items()]
