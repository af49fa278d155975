from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

from loguru import logger

from wshape_toolbox.blocks.steel_materials import STEEL_GRADES
from wshape_toolbox.core.schema_utils import validate_inputs
from wshape_toolbox.core.settings import load_settings
from wshape_toolbox.core.tool_base import ToolMeta

from .buckling import compute_lr, resolve_fy
from .calc_trace import build_trace
from .errors import CatalogError, WShapeError
from .formatting import format_result, format_shape_properties
from .models import InputModel
from .section_props import COMPUTED, derive
from .shapes_db import CatalogState, CatalogStore, ShapeCatalog, default_catalog_path


class WShapeLrTool:
    """
    W-shape lookup and lateral-torsional buckling Lr.
    Pure computation tool; the shapes catalog is loaded once on first use.
    """

    meta = ToolMeta(
        id="w_shape_lr",
        name="W-Shape Properties & Lr",
        category="Steel",
        version="0.1.0",
        description=(
            "Looks up W-shape section properties, fills in missing Ix/Sx/Iy from plate dimensions, "
            "and computes the limiting unbraced length Lr for lateral-torsional buckling."
        ),
    )

    InputModel = InputModel

    def __init__(self, catalog_path: Optional[Path] = None) -> None:
        self._catalog_path = catalog_path
        self.store = CatalogStore()
        self._log = logger.bind(tool_id=self.meta.id)

    def default_inputs(self) -> Dict[str, Any]:
        inputs = InputModel().model_dump()
        grade = load_settings().get("default_material_grade")
        if grade in STEEL_GRADES:
            inputs["material_grade"] = grade
        return inputs

    def catalog(self) -> ShapeCatalog:
        """Session catalog; loads it on first call. A failed load stays failed until reload_catalog()."""
        if self.store.state is CatalogState.NOT_LOADED:
            self.store.load(self._catalog_path or default_catalog_path())
        return self.store.catalog

    def with_catalog(self, catalog_path: Path) -> "WShapeLrTool":
        """A separate tool instance bound to another catalog file; this one is untouched."""
        return type(self)(catalog_path=catalog_path)

    def reload_catalog(self, catalog_path: Optional[Path] = None) -> ShapeCatalog:
        if catalog_path is not None:
            self._catalog_path = catalog_path
        return self.store.load(self._catalog_path or default_catalog_path())

    def suggest(self, query: str) -> List[str]:
        return self.catalog().suggest(query)

    def run(self, inputs: Dict[str, Any]) -> Dict[str, Any]:
        validated, err = validate_inputs(InputModel, inputs or {})
        if err is not None:
            self._log.warning(f"Input validation failed: {err}")
            return {"ok": False, "error": err, "error_type": "ValidationError"}
        model = InputModel.model_validate(validated)

        warnings: List[str] = []
        try:
            record = self.catalog().require(model.shape)
            props = derive(record)
            fy = resolve_fy(model.material_grade, model.Fy_override)
            result = compute_lr(props, fy, model.E_ksi)
        except CatalogError as e:
            self._log.error(f"Catalog unavailable: {e}")
            return {"ok": False, "error": str(e), "error_type": type(e).__name__}
        except WShapeError as e:
            self._log.warning(f"{model.shape}: {e}")
            return {"ok": False, "error": str(e), "error_type": type(e).__name__}

        computed = [s for s in ("Ix", "Sx", "Iy") if props.sources.get(s) == COMPUTED]
        if computed:
            warnings.append(
                f"{', '.join(computed)} not tabulated for {record.name}; computed from d, bf, tf, tw."
            )
        material = {
            "grade": model.material_grade,
            "Fy_ksi": result.Fy_ksi,
            "Fy_source": "override" if model.Fy_override is not None else "grade",
            "E_ksi": result.E_ksi,
        }
        formatted = format_result(result, props)
        self._log.info(f"{record.name}: Fy={result.Fy_ksi:g} ksi -> Lr={result.Lr_in:.2f} in")

        out: Dict[str, Any] = {
            "ok": True,
            "inputs": model.model_dump(),
            "shape": record.to_public_dict(),
            "shape_table": format_shape_properties(record),
            "material": material,
            "derived": {**props.as_dict(), "sources": dict(props.sources)},
            "result": result.as_dict(),
            "formatted": formatted.to_dict(),
            "summary_lines": formatted.summary_lines(),
            "warnings": warnings,
        }
        if model.include_trace:
            trace = build_trace(self.meta.id, self.meta.version, record, props, result, material)
            out["trace"] = trace.to_dict()
        return out


TOOL = WShapeLrTool()

__all__ = ["TOOL", "WShapeLrTool"]
