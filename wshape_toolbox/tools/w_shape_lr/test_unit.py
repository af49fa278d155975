from __future__ import annotations

import io
import math
from pathlib import Path

import pytest

from wshape_toolbox.blocks.steel_materials import E_KSI, STEEL_GRADES, get_grade

from .buckling import compute_lr, resolve_fy
from .calc_trace import build_trace
from .errors import (
    CatalogNotLoadedError,
    CatalogParseError,
    CatalogUnavailableError,
    DegenerateSectionError,
    InvalidElasticModulusError,
    InvalidYieldStrengthError,
    MissingDimensionError,
    ShapeNotFoundError,
)
from .formatting import format_result, format_shape_properties
from .section_props import CATALOG, COMPUTED, DerivedProperties, derive
from .shapes_db import CatalogState, CatalogStore, load_catalog

BUNDLED = Path(__file__).resolve().parent / "data" / "w_shapes.csv"


def _catalog(text: str):
    return load_catalog(io.StringIO(text))


# ---- Catalog store ----

def test_numbers_coerced_and_blanks_absent(small_catalog) -> None:
    r = small_catalog.select("W12X26")
    assert r is not None
    assert r.get("d") == 12.2
    assert r.get("tw") == 0.23
    assert r.get("Ix") is None
    assert r.get("J") is None


def test_extra_columns_kept_apart_from_properties() -> None:
    cat = _catalog("Shape,Type,W,d,bf,tf,tw\nW8X31,W,31,8.0,8.0,0.435,0.285\n")
    r = cat.select("W8X31")
    assert r.extras == {"Type": "W", "W": 31.0}
    assert "Type" not in r.properties
    assert r.columns == ("Type", "W", "d", "bf", "tf", "tw")


def test_duplicate_names_resolve_to_first_row() -> None:
    cat = _catalog("Shape,d,bf,tf,tw\nW10X33,9.73,7.96,0.435,0.29\nW10X33,99,7.96,0.435,0.29\n")
    assert len(cat) == 2
    assert cat.select("W10X33").get("d") == 9.73
    assert cat.suggest("w10") == ["W10X33"]


def test_header_aliases_and_duplicate_columns() -> None:
    cat = _catalog("AISC_Manual_Label,d,bf,tf,tw,I_x,h0,d\nW6X15,5.99,5.99,0.26,0.23,29.1,5.73,150\n")
    r = cat.select("W6X15")
    assert r.get("Ix") == 29.1
    assert r.get("ho") == 5.73
    assert r.get("d") == 5.99


def test_fraction_and_dash_cells() -> None:
    cat = _catalog("Shape,d,bf,tf,tw,Iy\nX1,1 1/2,1/2,0.1,0.05,-\n")
    r = cat.select("X1")
    assert r.get("d") == pytest.approx(1.5)
    assert r.get("bf") == pytest.approx(0.5)
    assert r.get("Iy") is None


@pytest.mark.parametrize(
    "text",
    [
        "Name_of_thing,d,bf\nW1,1,1\n",
        "Shape,d,bf,tf,tw\nW12X26,12.2,wide,0.38,0.23\n",
        "Shape,d,bf,tf,tw\nW12X26,12.2,6.49,0,0.23\n",
        "Shape,d,bf,tf,tw\nW12X26,-12.2,6.49,0.38,0.23\n",
        "Shape,d,bf,tf,tw\nW12X26,12.2,6.49,0.38,0.23,7\n",
        "",
    ],
)
def test_malformed_sources_raise_parse_error(text: str) -> None:
    with pytest.raises(CatalogParseError):
        _catalog(text)


def test_zero_denominator_fraction_is_parse_error() -> None:
    with pytest.raises(CatalogParseError, match="tf"):
        _catalog("Shape,d,bf,tf,tw\nW1,12,6,1/0,0.2\n")
    with pytest.raises(CatalogParseError):
        _catalog("Shape,d,bf,tf,tw\nW1,12 1/0,6,0.4,0.2\n")
    # extra columns are never computed on, so the text is kept
    cat = _catalog("Shape,Note,d,bf,tf,tw\nW1,1/0,12,6,0.4,0.2\n")
    assert cat.select("W1").extras["Note"] == "1/0"


def test_undecodable_stream_is_parse_error() -> None:
    stream = io.TextIOWrapper(io.BytesIO(b"Shape,d,bf,tf,tw\nW\xff1,12,6,0.4,0.2\n"), encoding="utf-8")
    with pytest.raises(CatalogParseError, match="decode"):
        load_catalog(stream)


def test_cp1252_file_falls_back_and_loads(tmp_path: Path) -> None:
    path = tmp_path / "legacy.csv"
    path.write_bytes(b"Shape,Type,d,bf,tf,tw\nW8X31,W\x96A,8,8,0.435,0.285\n")
    r = load_catalog(path).select("W8X31")
    assert r is not None
    assert r.extras["Type"] == "W–A"
    assert r.get("tf") == 0.435


def test_header_only_catalog_is_valid_and_empty() -> None:
    cat = _catalog("Shape,d,bf,tf,tw\n")
    assert len(cat) == 0
    assert cat.suggest("W") == []
    assert cat.select("W12X26") is None


def test_blank_name_rows_are_skipped() -> None:
    cat = _catalog("Shape,d,bf,tf,tw\n,1,1,0.1,0.1\n\nW4X13,4.16,4.06,0.345,0.28\n")
    assert cat.names() == ["W4X13"]


def test_missing_file_is_unavailable(tmp_path: Path) -> None:
    with pytest.raises(CatalogUnavailableError):
        load_catalog(tmp_path / "nope.csv")


def test_store_lifecycle(tmp_path: Path) -> None:
    store = CatalogStore()
    assert store.state is CatalogState.NOT_LOADED
    with pytest.raises(CatalogNotLoadedError):
        store.catalog

    with pytest.raises(CatalogUnavailableError):
        store.load(tmp_path / "missing.csv")
    assert store.state is CatalogState.FAILED
    with pytest.raises(CatalogNotLoadedError):
        store.catalog

    empty = tmp_path / "empty.csv"
    empty.write_text("Shape,d,bf,tf,tw\n", encoding="utf-8")
    store.load(empty)
    assert store.is_loaded
    assert len(store.catalog) == 0

    bad = tmp_path / "bad.csv"
    bad.write_text("Shape,d,bf,tf,tw\nW1,12,6,1/0,0.2\n", encoding="utf-8")
    with pytest.raises(CatalogParseError):
        store.load(bad)
    assert store.state is CatalogState.FAILED
    assert isinstance(store.error, CatalogParseError)


def test_bundled_catalog_loads_from_path() -> None:
    cat = load_catalog(BUNDLED)
    assert "W12X26" in cat
    assert cat.select("W12X26").get("Ix") == 204.0
    assert cat.select("W30X90").get("Ix") is None


# ---- Search index ----

def test_suggest_empty_query_returns_nothing(small_catalog) -> None:
    assert small_catalog.suggest("") == []
    assert small_catalog.suggest("   ") == []


def test_suggest_is_case_insensitive_substring(small_catalog) -> None:
    assert small_catalog.suggest("w12") == ["W12X26", "W12X40"]
    assert small_catalog.suggest("x2") == ["W12X26", "W14X22"]


def test_suggest_caps_at_five_in_catalog_order() -> None:
    cat = load_catalog(BUNDLED)
    hits = cat.suggest("W")
    assert hits == cat.names()[:5]
    assert cat.suggest("W", limit=2) == cat.names()[:2]


def test_select_exact_and_not_found(small_catalog) -> None:
    assert small_catalog.select("W14X22").name == "W14X22"
    assert small_catalog.select("w14x22") is None
    assert small_catalog.select("W99X1") is None
    with pytest.raises(ShapeNotFoundError) as ei:
        small_catalog.require("W12")
    assert "W12X26" in str(ei.value)


# ---- Section property deriver ----

def test_derive_computes_missing_properties(small_catalog) -> None:
    p = derive(small_catalog.select("W12X26"))
    assert p.h == pytest.approx(11.44)
    assert p.Ix == pytest.approx(201.035, abs=0.01)
    assert p.Sx == pytest.approx(p.Ix / 6.1)
    assert p.Iy == pytest.approx(2 * 0.38 * 6.49**3 / 12 + 11.44 * 0.23**3 / 12)
    assert p.J == pytest.approx((2 * 6.49 * 0.38**3 + 11.44 * 0.23**3) / 3)
    assert p.ho == pytest.approx(11.82)
    assert p.rts == pytest.approx(math.sqrt(math.sqrt(p.Iy * p.J) / p.Sx))
    assert all(p.sources[s] == COMPUTED for s in ("Ix", "Sx", "Iy"))


def test_derive_prefers_tabulated_values(small_catalog) -> None:
    p = derive(small_catalog.select("W12X40"))
    assert p.Ix == 307.0
    assert p.Sx == 51.5
    assert p.Iy == 44.1
    assert all(p.sources[s] == CATALOG for s in ("Ix", "Sx", "Iy"))


def test_derive_mixes_tabulated_and_computed() -> None:
    cat = _catalog("Shape,d,bf,tf,tw,Ix\nW33X118,32.9,11.5,0.74,0.55,5900\n")
    p = derive(cat.select("W33X118"))
    assert p.Ix == 5900.0
    assert p.Sx == pytest.approx(5900.0 / (32.9 / 2))
    assert p.sources["Sx"] == COMPUTED


def test_derive_always_recomputes_torsional_constant() -> None:
    cat = _catalog("Shape,d,bf,tf,tw,J,ho,rts\nW12X26,12.2,6.49,0.38,0.23,0.3,99,99\n")
    p = derive(cat.select("W12X26"))
    assert p.J == pytest.approx((2 * 6.49 * 0.38**3 + 11.44 * 0.23**3) / 3)
    assert p.ho == pytest.approx(11.82)
    assert p.rts != 99


def test_derive_names_every_missing_dimension() -> None:
    cat = _catalog("Shape,d,bf,tf,tw\nW1,12,,0.4,\n")
    with pytest.raises(MissingDimensionError) as ei:
        derive(cat.select("W1"))
    assert ei.value.missing == ("bf", "tw")
    assert "bf, tw" in str(ei.value)


def test_derive_rejects_flanges_deeper_than_section() -> None:
    cat = _catalog("Shape,d,bf,tf,tw\nBAD,1.0,4.0,0.5,0.2\n")
    with pytest.raises(DegenerateSectionError):
        derive(cat.select("BAD"))


def test_derived_properties_positive_for_bundled_catalog() -> None:
    for record in load_catalog(BUNDLED):
        p = derive(record)
        assert p.h > 0
        for v in (p.Ix, p.Sx, p.Iy, p.J, p.ho, p.rts):
            assert v > 0, record.name


# ---- Buckling length ----

def _props(small_catalog) -> DerivedProperties:
    return derive(small_catalog.select("W12X26"))


def test_lr_matches_closed_form(small_catalog) -> None:
    p = _props(small_catalog)
    res = compute_lr(p, 50.0)
    Fy, E = 50.0, E_KSI
    c = p.J / (p.Sx * p.ho)
    expected = 1.95 * p.rts * (E / (0.7 * Fy)) * math.sqrt(c + math.sqrt(c**2 + 6.76 * (0.7 * Fy / E) ** 2))
    assert res.Lr_in == pytest.approx(expected, rel=1e-12)
    assert res.Lr_in == res.term1 * res.term2 * res.term3 * res.term5


def test_lr_for_tabulated_w12x26() -> None:
    p = derive(load_catalog(BUNDLED).select("W12X26"))
    res = compute_lr(p, get_grade("A992"))
    assert res.Lr_in == pytest.approx(26.12, rel=5e-3)
    assert res.Fy_ksi == 50.0
    assert res.E_ksi == E_KSI


def test_lr_is_deterministic(small_catalog) -> None:
    a = compute_lr(derive(small_catalog.select("W12X26")), 50.0, E_KSI)
    b = compute_lr(derive(small_catalog.select("W12X26")), 50.0, E_KSI)
    assert a == b


def test_override_supersedes_grade(small_catalog) -> None:
    assert resolve_fy("A992", "65") == 65.0
    assert resolve_fy("A992", 65) == 65.0
    assert resolve_fy("A992", None) == 50.0
    assert resolve_fy(STEEL_GRADES["A36"]) == 36.0
    p = _props(small_catalog)
    assert compute_lr(p, resolve_fy("A992", "65")) == compute_lr(p, 65.0)
    assert compute_lr(p, 65.0).Lr_in < compute_lr(p, 50.0).Lr_in


@pytest.mark.parametrize("override", ["0", "", "  ", "abc", "-50", "nan", "inf", 0, -1.0, True])
def test_bad_override_never_falls_back(override) -> None:
    with pytest.raises(InvalidYieldStrengthError):
        resolve_fy("A992", override)


def test_unknown_grade_rejected() -> None:
    with pytest.raises(InvalidYieldStrengthError):
        resolve_fy("A1085")
    assert resolve_fy("a572 grade 50") == 50.0


def test_compute_lr_input_errors(small_catalog) -> None:
    p = _props(small_catalog)
    with pytest.raises(InvalidYieldStrengthError):
        compute_lr(p, 0.0)
    with pytest.raises(InvalidYieldStrengthError):
        compute_lr(p, "fifty")  # type: ignore[arg-type]
    with pytest.raises(InvalidElasticModulusError):
        compute_lr(p, 50.0, E=0.0)


def test_compute_lr_degenerate_section() -> None:
    p = DerivedProperties(Ix=1.0, Sx=1.0, Iy=1.0, J=0.0, ho=1.0, rts=1.0, h=1.0)
    with pytest.raises(DegenerateSectionError):
        compute_lr(p, 50.0)
    p = DerivedProperties(Ix=1.0, Sx=1.0, Iy=1.0, J=1.0, ho=0.0, rts=1.0, h=1.0)
    with pytest.raises(DegenerateSectionError):
        compute_lr(p, 50.0)


# ---- Formatting / trace ----

def test_format_result_rounding(small_catalog) -> None:
    p = _props(small_catalog)
    res = compute_lr(p, 50.0)
    f = format_result(res, p)
    assert f.Lr_in == round(res.Lr_in, 2)
    assert f.Lr_ft == round(res.Lr_in / 12.0, 2)
    assert f.term1 == round(res.term1, 3)
    assert f.properties.rts == round(p.rts, 3)
    assert f.properties.Ix == round(p.Ix, 2)
    assert format_result(res).properties is None
    assert f.to_dict()["properties"]["Sx"] == round(p.Sx, 2)
    assert f.summary_lines()[-1].startswith("Lr = ")


def test_shape_properties_show_dash_for_missing(small_catalog) -> None:
    rows = dict(format_shape_properties(small_catalog.select("W12X26")))
    assert rows["d"] == "12.2"
    assert rows["Ix"] == "-"
    assert "Shape" not in rows


def test_trace_records_sources_and_terms() -> None:
    record = load_catalog(BUNDLED).select("W33X118")
    p = derive(record)
    res = compute_lr(p, 50.0)
    tr = build_trace("w_shape_lr", "test", record, p, res, {"Fy_ksi": 50.0})
    assert tr.step("Ix").source == CATALOG
    assert tr.step("Ix").substitution == ""
    assert tr.step("Sx").source == COMPUTED
    assert tr.step("Lr").result_unrounded.value == res.Lr_in
    assert tr.step("h").substitution == "(32.9) - 2*(0.74)"
    assert tr.summary["Lr_ft"] == round(res.Lr_in / 12.0, 2)


def test_trace_rounds_term4_to_significant_figures() -> None:
    record = load_catalog(BUNDLED).select("W12X26")
    p = derive(record)
    res = compute_lr(p, 50.0)
    step = build_trace("w_shape_lr", "test", record, p, res, {"Fy_ksi": 50.0}).step("term4")
    assert step.rounding.rule == "sigfigs"
    assert step.rounding.decimals_or_sigfigs == 4
    x = res.term4
    assert step.result_rounded.value == round(x, 3 - int(math.floor(math.log10(abs(x)))))
