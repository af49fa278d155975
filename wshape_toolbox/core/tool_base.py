from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Protocol, Type

from pydantic import BaseModel

@dataclass(frozen=True)
class ToolMeta:
    id: str
    name: str
    category: str
    version: str
    description: str

class ToolBase(Protocol):
    """
    Catalog-backed tool contract.

    A tool declares a Pydantic `InputModel`, reads its section data from a
    shapes catalog it loads on first use, and returns plain dicts from run().
    Domain failures are reported in the dict (`ok: False`), never raised.
    """
    meta: ToolMeta
    InputModel: Type[BaseModel]

    def default_inputs(self) -> Dict[str, Any]:
        ...

    def catalog(self) -> Any:
        ...

    def suggest(self, query: str) -> List[str]:
        ...

    def with_catalog(self, catalog_path: Path) -> "ToolBase":
        ...

    def run(self, inputs: Dict[str, Any]) -> Dict[str, Any]:
        ...
