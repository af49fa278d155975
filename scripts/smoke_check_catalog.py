from __future__ import annotations

import importlib
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def _check_path(label: str, path: Path) -> bool:
    ok = path.exists()
    status = "OK" if ok else "MISSING"
    print(f"[{status}] {label}: {path}")
    return ok


def _check_import(label: str, module_name: str, attr: str | None = None) -> bool:
    try:
        mod = importlib.import_module(module_name)
        if attr:
            getattr(mod, attr)
        print(f"[OK] import {label}")
        return True
    except ImportError as e:
        print(f"[WARN] import {label} failed: {e}")
        return False


def main() -> int:
    ok = True

    ok &= _check_import("loguru", "loguru", "logger")
    ok &= _check_import("pydantic", "pydantic", "BaseModel")

    from wshape_toolbox.tools.w_shape_lr.errors import CatalogError
    from wshape_toolbox.tools.w_shape_lr.shapes_db import default_catalog_path, load_catalog

    path = default_catalog_path()
    ok &= _check_path("W-shape catalog", path)
    if path.exists():
        try:
            cat = load_catalog(path)
            print(f"[OK] {len(cat)} shapes, first: {', '.join(cat.names()[:3])}")
        except CatalogError as e:
            print(f"[FAIL] {e}")
            ok = False

    return 0 if ok else 2


if __name__ == "__main__":
    raise SystemExit(main())
