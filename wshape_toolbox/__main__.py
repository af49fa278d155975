from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from wshape_toolbox.blocks.steel_materials import DEFAULT_GRADE, E_KSI, STEEL_GRADES
from wshape_toolbox.core.loader import discover_tools, get_tool
from wshape_toolbox.core.logging import configure_logging
from wshape_toolbox.tools.w_shape_lr.errors import CatalogError
from wshape_toolbox.tools.w_shape_lr.formatting import format_shape_properties
from wshape_toolbox.tools.w_shape_lr.shapes_db import SUGGESTION_LIMIT

TOOL_ID = "w_shape_lr"


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="wshape-toolbox", description="W-shape properties and Lr.")
    p.add_argument("--catalog", type=Path, default=None, help="Shapes CSV (default: bundled catalog).")
    p.add_argument("-v", "--verbose", action="store_true", help="Log to console at INFO level.")
    sub = p.add_subparsers(dest="command", required=True)

    sub.add_parser("tools", help="List the installed tools.")
    sub.add_parser("grades", help="List steel grade presets.")

    s = sub.add_parser("search", help="Suggest shape names containing QUERY.")
    s.add_argument("query")
    s.add_argument("--limit", type=int, default=SUGGESTION_LIMIT)

    s = sub.add_parser("show", help="Print the catalog properties of one shape.")
    s.add_argument("shape")

    s = sub.add_parser("calc", help="Compute Lr for one shape.")
    s.add_argument("shape")
    s.add_argument("--grade", default=DEFAULT_GRADE, choices=sorted(STEEL_GRADES))
    s.add_argument("--fy", default=None, help="Custom Fy (ksi); overrides --grade.")
    s.add_argument("--E", dest="E_ksi", type=float, default=E_KSI, help="Modulus of elasticity (ksi).")
    s.add_argument("--json", action="store_true", help="Print the full result as JSON.")
    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    configure_logging("INFO" if args.verbose else "WARNING")

    if args.command == "grades":
        for g in STEEL_GRADES.values():
            print(f"{g.name:<12} Fy = {g.Fy_ksi:g} ksi")
        return 0

    if args.command == "tools":
        for t in discover_tools():
            print(f"{t.meta.id:<14} {t.meta.category:<8} {t.meta.name} (v{t.meta.version})")
        return 0

    tool = get_tool(TOOL_ID)
    if args.catalog is not None:
        tool = tool.with_catalog(args.catalog)
    try:
        catalog = tool.catalog()
    except CatalogError as e:
        sys.stderr.write(f"{e}\n")
        return 2

    if args.command == "search":
        for name in catalog.suggest(args.query, limit=args.limit):
            print(name)
        return 0

    if args.command == "show":
        record = catalog.select(args.shape)
        if record is None:
            sys.stderr.write(f"Section '{args.shape}' not found.\n")
            return 1
        print(record.name)
        for col, text in format_shape_properties(record):
            print(f"  {col:<8} {text}")
        return 0

    res = tool.run(
        {
            "shape": args.shape,
            "material_grade": args.grade,
            "Fy_override": args.fy,
            "E_ksi": args.E_ksi,
            "include_trace": args.json,
        }
    )
    if args.json:
        print(json.dumps(res, indent=2, default=str))
        return 0 if res["ok"] else 1
    if not res["ok"]:
        sys.stderr.write(f"{res['error_type']}: {res['error']}\n")
        return 1
    print(res["shape"]["name"])
    for line in res["summary_lines"]:
        print(f"  {line}")
    for w in res["warnings"]:
        print(f"  note: {w}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
