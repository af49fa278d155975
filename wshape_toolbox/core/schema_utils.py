from __future__ import annotations
from typing import Any, Dict, Mapping, Optional, Tuple, Type

from pydantic import BaseModel, ValidationError

def format_validation_error(e: ValidationError) -> str:
    """One `field: reason` entry per failed field, joined with '; '."""
    parts = []
    for err in e.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "inputs"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)

def validate_inputs(model: Type[BaseModel], raw: Mapping[str, Any]) -> Tuple[Dict[str, Any], Optional[str]]:
    """
    Returns (validated_dict, error_message). On failure the dict is empty and
    the message names each offending field.
    """
    try:
        obj = model.model_validate(dict(raw))
    except ValidationError as e:
        return {}, format_validation_error(e)
    return obj.model_dump(), None
