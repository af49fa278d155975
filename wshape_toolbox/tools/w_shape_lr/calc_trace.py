from __future__ import annotations
from dataclasses import dataclass, asdict, field
from typing import Any, Dict, List, Literal, Optional
import math

from .buckling import BucklingResult
from .section_props import CATALOG, DerivedProperties
from .shapes_db import ShapeRecord

@dataclass
class TraceVar:
    symbol: str
    value: Any
    units: str
    source: str

@dataclass
class ResultVal:
    value: Any
    units: str

@dataclass
class Rounding:
    rule: Literal["decimals", "sigfigs"]
    decimals_or_sigfigs: int

@dataclass
class CalcStep:
    id: str
    title: str
    output_symbol: str
    equation: str
    substitution: str
    variables: List[TraceVar]
    result_unrounded: ResultVal
    rounding: Rounding
    result_rounded: ResultVal
    source: str = "computed"

@dataclass
class CalcTraceMeta:
    tool_id: str
    tool_version: str
    shape: str
    code_basis: Optional[str] = "AISC 360 Eq. F2-6"

@dataclass
class CalcTrace:
    meta: CalcTraceMeta
    inputs: Dict[str, Any] = field(default_factory=dict)
    steps: List[CalcStep] = field(default_factory=list)
    summary: Dict[str, Any] = field(default_factory=dict)
    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def step(self, output_symbol: str) -> Optional[CalcStep]:
        for s in self.steps:
            if s.output_symbol == output_symbol:
                return s
        return None

def _fmt(v: Any) -> str:
    if isinstance(v, float):
        return f"{v:.6g}"
    return str(v)

def _apply_rounding(x: float, rule: str, n: int) -> float:
    if rule == "decimals":
        return round(x, n)
    if rule == "sigfigs":
        if x == 0: return 0.0
        p = int(math.floor(math.log10(abs(x))))
        return round(x, n - p - 1)
    raise ValueError(f"Unknown rounding rule: {rule}")

def _substitute(eqn: str, vars_: List[TraceVar]) -> str:
    # Replace longest symbols first so "tf" is not clobbered by "t"
    sub = eqn
    for v in sorted(vars_, key=lambda a: -len(a.symbol)):
        sub = sub.replace(v.symbol, f"({_fmt(v.value)})")
    return sub

def record_step(
    trace: CalcTrace,
    id: str,
    title: str,
    output_symbol: str,
    equation: str,
    variables: Dict[str, float],
    value: float,
    units: str,
    decimals: int = 3,
    rule: Literal["decimals", "sigfigs"] = "decimals",
    source: str = "computed",
) -> float:
    """Append one evaluated equation to the trace and return its rounded value."""
    if not id or not equation:
        raise ValueError("record_step requires id and equation")
    tv = [TraceVar(symbol=k, value=v, units="", source="input") for k, v in variables.items()]
    unrounded = float(value)
    rounded = float(_apply_rounding(unrounded, rule, decimals))
    trace.steps.append(
        CalcStep(
            id=id,
            title=title,
            output_symbol=output_symbol,
            equation=equation,
            substitution=_substitute(equation, tv) if source != CATALOG else "",
            variables=tv,
            result_unrounded=ResultVal(value=unrounded, units=units),
            rounding=Rounding(rule=rule, decimals_or_sigfigs=decimals),
            result_rounded=ResultVal(value=rounded, units=units),
            source=source,
        )
    )
    return rounded

def build_trace(
    tool_id: str,
    tool_version: str,
    shape: ShapeRecord,
    props: DerivedProperties,
    result: BucklingResult,
    material: Dict[str, Any],
) -> CalcTrace:
    d, bf, tf, tw = (shape.get(s) for s in ("d", "bf", "tf", "tw"))
    trace = CalcTrace(
        meta=CalcTraceMeta(tool_id=tool_id, tool_version=tool_version, shape=shape.name),
        inputs={"d": d, "bf": bf, "tf": tf, "tw": tw, **material},
    )
    src = props.sources

    record_step(trace, "S1", "Clear web depth", "h", "d - 2*tf", {"d": d, "tf": tf}, props.h, "in", 3)
    record_step(
        trace, "S2", "Strong-axis moment of inertia", "Ix",
        "bf*d^3/12 - (bf - tw)*h^3/12", {"bf": bf, "d": d, "tw": tw, "h": props.h},
        props.Ix, "in^4", 2, source=src.get("Ix", "computed"),
    )
    record_step(
        trace, "S3", "Strong-axis elastic section modulus", "Sx",
        "Ix/(d/2)", {"Ix": props.Ix, "d": d},
        props.Sx, "in^3", 2, source=src.get("Sx", "computed"),
    )
    record_step(
        trace, "S4", "Weak-axis moment of inertia", "Iy",
        "2*tf*bf^3/12 + h*tw^3/12", {"tf": tf, "bf": bf, "h": props.h, "tw": tw},
        props.Iy, "in^4", 2, source=src.get("Iy", "computed"),
    )
    record_step(
        trace, "S5", "Torsional constant", "J",
        "(2*bf*tf^3 + h*tw^3)/3", {"bf": bf, "tf": tf, "h": props.h, "tw": tw},
        props.J, "in^4", 3,
    )
    record_step(trace, "S6", "Distance between flange centroids", "ho", "d - tf", {"d": d, "tf": tf}, props.ho, "in", 2)
    record_step(
        trace, "S7", "Effective radius of gyration", "rts",
        "sqrt(sqrt(Iy*J)/Sx)", {"Iy": props.Iy, "J": props.J, "Sx": props.Sx},
        props.rts, "in", 3,
    )

    fy, e = result.Fy_ksi, result.E_ksi
    record_step(trace, "L1", "Term 1", "term1", "1.95*rts", {"rts": props.rts}, result.term1, "in", 3)
    record_step(trace, "L2", "Term 2", "term2", "E/(0.7*Fy)", {"E": e, "Fy": fy}, result.term2, "", 2)
    record_step(
        trace, "L3", "Term 3", "term3", "sqrt(J/(Sx*ho))",
        {"J": props.J, "Sx": props.Sx, "ho": props.ho}, result.term3, "", 4,
    )
    record_step(
        trace, "L4", "Term 4", "term4", "6.76*((0.7*Fy*Sx*ho)/(E*J))^2",
        {"Fy": fy, "Sx": props.Sx, "ho": props.ho, "E": e, "J": props.J}, result.term4, "", 4, rule="sigfigs",
    )
    record_step(trace, "L5", "Term 5", "term5", "sqrt(1 + sqrt(1 + term4))", {"term4": result.term4}, result.term5, "", 4)
    record_step(
        trace, "L6", "Limiting unbraced length for inelastic LTB", "Lr",
        "term1*term2*term3*term5",
        {"term1": result.term1, "term2": result.term2, "term3": result.term3, "term5": result.term5},
        result.Lr_in, "in", 2,
    )

    trace.summary = {"Lr_in": round(result.Lr_in, 2), "Lr_ft": round(result.Lr_in / 12.0, 2)}
    return trace
