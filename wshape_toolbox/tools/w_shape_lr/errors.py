from __future__ import annotations

from typing import Sequence


class WShapeError(Exception):
    """Base class for every error reported by the W-shape Lr engine."""


class CatalogError(WShapeError):
    pass


class CatalogParseError(CatalogError):
    pass


class CatalogUnavailableError(CatalogError):
    pass


class CatalogNotLoadedError(CatalogError):
    pass


class ShapeNotFoundError(WShapeError, LookupError):
    pass


class CalculationError(WShapeError):
    pass


class MissingDimensionError(CalculationError):
    def __init__(self, shape_name: str, missing: Sequence[str]) -> None:
        self.shape_name = shape_name
        self.missing = tuple(missing)
        super().__init__(
            f"Section '{shape_name}' is missing required dimension(s): {', '.join(self.missing)}"
        )


class InvalidYieldStrengthError(CalculationError):
    pass


class InvalidElasticModulusError(CalculationError):
    pass


class DegenerateSectionError(CalculationError):
    pass
