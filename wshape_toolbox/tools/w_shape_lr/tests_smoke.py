from __future__ import annotations

import json
from pathlib import Path

from wshape_toolbox.__main__ import main
from wshape_toolbox.core.settings import save_settings

from .shapes_db import CatalogState
from .tool import TOOL, WShapeLrTool


def test_smoke_default_inputs() -> None:
    inputs = TOOL.default_inputs()
    res = TOOL.run(inputs)
    assert res["ok"] is True
    assert res["shape"]["name"] == "W12X26"
    assert res["material"]["Fy_ksi"] == 50.0
    assert res["material"]["Fy_source"] == "grade"
    assert res["result"]["Lr_in"] > 0.0
    assert res["formatted"]["Lr_ft"] == round(res["result"]["Lr_in"] / 12.0, 2)
    assert [s["output_symbol"] for s in res["trace"]["steps"]][-1] == "Lr"


def test_smoke_override_and_repeatability() -> None:
    tool = WShapeLrTool()
    inputs = {"shape": "W12X40", "material_grade": "A992", "Fy_override": "65"}
    r1 = tool.run(inputs)
    r2 = tool.run(inputs)
    assert r1["ok"] is True
    assert r1["material"]["Fy_ksi"] == 65.0
    assert r1["material"]["grade"] == "A992"
    assert r1["result"] == r2["result"]


def test_smoke_reported_errors() -> None:
    tool = WShapeLrTool()
    assert tool.run({"shape": "W99X1"})["error_type"] == "ShapeNotFoundError"
    assert tool.run({"shape": "W12X26", "Fy_override": "0"})["error_type"] == "InvalidYieldStrengthError"
    assert tool.run({"shape": "W12X26", "Fy_override": ""})["error_type"] == "InvalidYieldStrengthError"
    assert tool.run({"shape": "W12X26", "material_grade": "A500"})["error_type"] == "ValidationError"
    assert tool.run({"shape": " "})["error"].startswith("shape: ")
    res = tool.run({"shape": "W30X90"})
    assert res["ok"] is True
    assert res["warnings"]


def test_smoke_missing_catalog(tmp_path: Path) -> None:
    tool = WShapeLrTool(catalog_path=tmp_path / "missing.csv")
    res = tool.run({"shape": "W12X26"})
    assert res["ok"] is False
    assert res["error_type"] == "CatalogUnavailableError"
    # failed load is terminal until an explicit reload
    assert tool.run({"shape": "W12X26"})["error_type"] == "CatalogNotLoadedError"
    good = tmp_path / "w.csv"
    good.write_text("Shape,d,bf,tf,tw\nW12X26,12.2,6.49,0.38,0.23\n", encoding="utf-8")
    tool.reload_catalog(good)
    assert tool.run({"shape": "W12X26"})["ok"] is True


def test_smoke_malformed_catalog_reported(tmp_path: Path) -> None:
    bad = tmp_path / "bad.csv"
    bad.write_text("Shape,d,bf,tf,tw\nW1,12,6,1/0,0.2\n", encoding="utf-8")
    tool = WShapeLrTool(catalog_path=bad)
    res = tool.run({"shape": "W1"})
    assert res["ok"] is False
    assert res["error_type"] == "CatalogParseError"
    assert tool.store.state is CatalogState.FAILED
    assert main(["--catalog", str(bad), "search", "w"]) == 2
    # a CLI catalog override leaves the shared tool on its own catalog
    assert TOOL.run({"shape": "W12X26"})["ok"] is True


def test_smoke_settings_catalog_and_grade(tmp_path: Path) -> None:
    csv_path = tmp_path / "mine.csv"
    csv_path.write_text("Shape,d,bf,tf,tw\nMY1,10,5,0.4,0.25\n", encoding="utf-8")
    save_settings({"catalog_path": str(csv_path), "default_material_grade": "A36"})
    tool = WShapeLrTool()
    assert tool.default_inputs()["material_grade"] == "A36"
    assert tool.suggest("my") == ["MY1"]


def test_smoke_cli(capsys) -> None:
    assert main(["search", "w12"]) == 0
    assert capsys.readouterr().out.split() == ["W12X26", "W12X40"]

    assert main(["show", "W30X90"]) == 0
    out = capsys.readouterr().out
    assert "Ix" in out and "-" in out

    assert main(["calc", "W12X26", "--fy", "65"]) == 0
    assert "Lr = " in capsys.readouterr().out

    assert main(["calc", "W12X26", "--json"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["ok"] is True

    assert main(["calc", "W12X26", "--fy", "abc"]) == 1
    assert main(["show", "nothing"]) == 1
    assert main(["grades"]) == 0
    capsys.readouterr()

    assert main(["tools"]) == 0
    assert capsys.readouterr().out.split()[0] == "w_shape_lr"
