from __future__ import annotations

import csv
import enum
import math
import re
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import IO, Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union

from loguru import logger

from wshape_toolbox.core.paths import databases_dir
from wshape_toolbox.core.settings import load_settings

from .errors import (
    CatalogNotLoadedError,
    CatalogParseError,
    CatalogUnavailableError,
    ShapeNotFoundError,
)

PRIMITIVE_SYMBOLS: Tuple[str, ...] = ("d", "bf", "tf", "tw")
DERIVED_SYMBOLS: Tuple[str, ...] = ("A", "Ix", "Sx", "Iy", "J", "ho", "rts")
RECOGNIZED_SYMBOLS: Tuple[str, ...] = PRIMITIVE_SYMBOLS + DERIVED_SYMBOLS

NAME_COLUMNS: Tuple[str, ...] = ("Shape", "Name", "AISC_Manual_Label", "Label")

_SYMBOL_ALIASES: Dict[str, Tuple[str, ...]] = {
    "d": ("d", "Depth"),
    "bf": ("bf", "b_f"),
    "tf": ("tf", "t_f"),
    "tw": ("tw", "t_w"),
    "A": ("A", "Area"),
    "Ix": ("Ix", "I_x"),
    "Sx": ("Sx", "S_x"),
    "Iy": ("Iy", "I_y"),
    "J": ("J",),
    "ho": ("ho", "h0", "h_o"),
    "rts": ("rts", "r_ts"),
}

SUGGESTION_LIMIT = 5

Source = Union[str, Path, IO[str]]


def _canonical(s: str) -> str:
    return re.sub(r"[^a-z0-9]+", "", s.strip().lower())


def _ratio(num: str, den: str) -> float:
    d = float(den)
    if d == 0.0:
        raise ValueError(f"zero denominator in {num}/{den}")
    return float(num) / d


def _to_float(value: Optional[str]) -> Optional[float]:
    """Coerce a catalog cell to float; None for blank/dash cells. Raises ValueError otherwise."""
    if value is None:
        return None
    s = value.strip()
    if s in {"", "-", "\u2013", "\u2014"}:
        return None
    s = s.replace(",", "")
    s = " ".join(s.split())
    sign = 1.0
    if s.startswith(("+", "-")):
        if s[0] == "-":
            sign = -1.0
        s = s[1:].strip()
    if s == "":
        raise ValueError(f"not a number: {value!r}")
    if " " in s and "/" in s:
        parts = s.split()
        if len(parts) == 2 and "/" in parts[1]:
            whole = float(parts[0])
            num, den = parts[1].split("/", 1)
            return sign * (whole + _ratio(num, den))
    if "/" in s:
        num, den = s.split("/", 1)
        return sign * _ratio(num, den)
    return sign * float(s)


@dataclass(frozen=True)
class ShapeRecord:
    """One catalog row: recognized numeric properties plus any extra columns."""

    name: str
    properties: Mapping[str, Optional[float]]
    extras: Mapping[str, Any] = field(default_factory=dict)
    columns: Tuple[str, ...] = ()

    def get(self, symbol: str) -> Optional[float]:
        return self.properties.get(symbol)

    def items(self) -> Iterator[Tuple[str, Any]]:
        """Yield (column, value) in catalog column order, name excluded."""
        for col in self.columns:
            if col in self.properties:
                yield col, self.properties[col]
            else:
                yield col, self.extras.get(col)

    def to_public_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"name": self.name}
        out.update(self.items())
        return out


class ShapeCatalog:
    """Ordered, immutable collection of shape records with name search."""

    def __init__(self, records: List[ShapeRecord], source: str = "") -> None:
        self._records: Tuple[ShapeRecord, ...] = tuple(records)
        self.source = source
        # First occurrence wins for duplicate names.
        self._index: Dict[str, ShapeRecord] = {}
        for r in self._records:
            self._index.setdefault(r.name, r)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[ShapeRecord]:
        return iter(self._records)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.strip() in self._index

    @property
    def records(self) -> Tuple[ShapeRecord, ...]:
        return self._records

    def names(self) -> List[str]:
        return list(self._index.keys())

    def suggest(self, query: str, limit: int = SUGGESTION_LIMIT) -> List[str]:
        # Case-insensitive substring match, catalog order, empty query -> nothing
        q = (query or "").strip().lower()
        if not q or limit <= 0:
            return []
        hits: List[str] = []
        for name in self._index:
            if q in name.lower():
                hits.append(name)
                if len(hits) >= limit:
                    break
        return hits

    def select(self, name: str) -> Optional[ShapeRecord]:
        return self._index.get((name or "").strip())

    def require(self, name: str) -> ShapeRecord:
        record = self.select(name)
        if record is None:
            candidates = self.suggest(name)
            raise ShapeNotFoundError(
                f"Section '{name}' not found in catalog. "
                f"Closest matches: {', '.join(candidates) if candidates else '(none)'}"
            )
        return record


def _classify_columns(header: List[str]) -> Tuple[int, List[Tuple[int, str, bool]]]:
    """
    Map header cells to (index, column label, is_recognized).
    Returns the name column index and the remaining columns in order.
    Duplicate header cells keep the first occurrence.
    """
    seen: set[str] = set()
    cols: List[Tuple[int, str]] = []
    for i, key in enumerate(header):
        k = (key or "").strip()
        if not k or k in seen:
            continue
        seen.add(k)
        cols.append((i, k))

    name_idx: Optional[int] = None
    for candidate in NAME_COLUMNS:
        for i, k in cols:
            if k.lower() == candidate.lower():
                name_idx = i
                break
        if name_idx is not None:
            break
    if name_idx is None:
        raise CatalogParseError(
            f"Catalog header has no shape name column (expected one of {', '.join(NAME_COLUMNS)}). "
            f"Header: {[k for _, k in cols][:30]}"
        )

    # Exact alias match first, then canonical match on still unclaimed columns.
    claimed: Dict[int, str] = {}
    for symbol, aliases in _SYMBOL_ALIASES.items():
        for i, k in cols:
            if i != name_idx and i not in claimed and k in aliases:
                claimed[i] = symbol
                break
    for symbol, aliases in _SYMBOL_ALIASES.items():
        if symbol in claimed.values():
            continue
        targets = {_canonical(a) for a in aliases}
        for i, k in cols:
            if i != name_idx and i not in claimed and _canonical(k) in targets:
                claimed[i] = symbol
                break

    out: List[Tuple[int, str, bool]] = []
    for i, k in cols:
        if i == name_idx:
            continue
        if i in claimed:
            out.append((i, claimed[i], True))
        else:
            out.append((i, k, False))
    return name_idx, out


def _parse_rows(rows: List[List[str]], origin: str) -> List[ShapeRecord]:
    if not rows or not any(c.strip() for c in rows[0]):
        raise CatalogParseError(f"Catalog {origin} has no header row.")
    header = rows[0]
    name_idx, columns = _classify_columns(header)

    records: List[ShapeRecord] = []
    for line_no, row in enumerate(rows[1:], start=2):
        if not row or not any(c.strip() for c in row):
            continue
        if len(row) > len(header):
            raise CatalogParseError(
                f"{origin}, row {line_no}: {len(row)} cells but header has {len(header)} columns."
            )
        name = row[name_idx].strip() if name_idx < len(row) else ""
        if not name:
            logger.warning(f"{origin}, row {line_no}: blank shape name; row skipped.")
            continue

        props: Dict[str, Optional[float]] = {s: None for s in RECOGNIZED_SYMBOLS}
        extras: Dict[str, Any] = {}
        for i, label, recognized in columns:
            raw = row[i] if i < len(row) else ""
            if recognized:
                try:
                    v = _to_float(raw)
                except ValueError:
                    raise CatalogParseError(
                        f"{origin}, row {line_no} ({name}): non-numeric value {raw!r} in column '{label}'."
                    ) from None
                if v is not None and not (math.isfinite(v) and v > 0.0):
                    raise CatalogParseError(
                        f"{origin}, row {line_no} ({name}): '{label}' must be a positive number, got {raw!r}."
                    )
                props[label] = v
            else:
                try:
                    extras[label] = _to_float(raw)
                except ValueError:
                    extras[label] = raw.strip()

        records.append(
            ShapeRecord(
                name=name,
                properties=MappingProxyType(props),
                extras=MappingProxyType(extras),
                columns=tuple(label for _, label, _ in columns),
            )
        )
    return records


def _read_path(path: Path) -> List[List[str]]:
    encodings = ("utf-8-sig", "cp1252", "latin-1")
    last_err: Optional[Exception] = None
    for enc in encodings:
        try:
            with path.open("r", encoding=enc, newline="") as f:
                return list(csv.reader(f))
        except UnicodeDecodeError as e:
            last_err = e
            continue
        except OSError as e:
            raise CatalogUnavailableError(f"Cannot read shapes catalog {path}: {e}") from e
        except csv.Error as e:
            raise CatalogParseError(f"Malformed CSV in {path}: {e}") from e
    raise CatalogParseError(f"Cannot decode shapes catalog {path}: {last_err}")


def load_catalog(source: Source) -> ShapeCatalog:
    """
    Parse a CSV shapes table into a ShapeCatalog.

    `source` is a filesystem path or an open text stream. The header row names
    the property symbols and must include a shape name column. Either the whole
    table parses or CatalogParseError is raised; there is no partial catalog.
    """
    if isinstance(source, (str, Path)):
        path = Path(source)
        origin = str(path)
        if not path.is_file():
            raise CatalogUnavailableError(f"Shapes catalog not found: {path}")
        rows = _read_path(path)
    else:
        origin = getattr(source, "name", None) or "<stream>"
        try:
            rows = list(csv.reader(source))
        except csv.Error as e:
            raise CatalogParseError(f"Malformed CSV in {origin}: {e}") from e
        except UnicodeDecodeError as e:
            raise CatalogParseError(f"Cannot decode shapes catalog {origin}: {e}") from e

    records = _parse_rows(rows, origin)
    logger.info(f"Loaded {len(records)} shape(s) from {origin}")
    return ShapeCatalog(records, source=origin)


class CatalogState(str, enum.Enum):
    NOT_LOADED = "not_loaded"
    LOADED = "loaded"
    FAILED = "failed"


class CatalogStore:
    """
    Holds the session catalog and its load lifecycle.

    A store that was never loaded and one whose load failed both refuse access
    to `catalog`; a store loaded from an empty table is valid and simply finds
    nothing.
    """

    def __init__(self) -> None:
        self.state = CatalogState.NOT_LOADED
        self.error: Optional[Exception] = None
        self._catalog: Optional[ShapeCatalog] = None

    def load(self, source: Source) -> ShapeCatalog:
        try:
            catalog = load_catalog(source)
        except (CatalogParseError, CatalogUnavailableError) as e:
            logger.error(f"Shapes catalog load failed: {e}")
            self.state = CatalogState.FAILED
            self.error = e
            self._catalog = None
            raise
        self._catalog = catalog
        self.state = CatalogState.LOADED
        self.error = None
        return catalog

    @property
    def is_loaded(self) -> bool:
        return self.state is CatalogState.LOADED

    @property
    def catalog(self) -> ShapeCatalog:
        if self._catalog is None:
            if self.state is CatalogState.FAILED:
                raise CatalogNotLoadedError(f"Shapes catalog failed to load: {self.error}")
            raise CatalogNotLoadedError("Shapes catalog has not been loaded yet.")
        return self._catalog


def _tool_data_db_path() -> Path:
    # Tool-relative catalog (packaged with tool)
    return Path(__file__).resolve().parent / "data" / "w_shapes.csv"


def _user_override_db_path() -> Optional[Path]:
    # Optional user override: %LOCALAPPDATA%\WShapeToolbox\databases\w_shapes\w_shapes.csv
    p = databases_dir() / "w_shapes" / "w_shapes.csv"
    return p if p.exists() else None


def default_catalog_path() -> Path:
    configured = load_settings().get("catalog_path")
    if configured:
        return Path(str(configured)).expanduser()
    return _user_override_db_path() or _tool_data_db_path()
