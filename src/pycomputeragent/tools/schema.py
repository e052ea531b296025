from __future__ import annotations
from typing import Any

from pydantic import BaseModel

def model_to_json_schema(model: type[BaseModel]) -> dict[str, Any]:
    """JSONSchema for a tool input model, in the shape tool descriptors expect."""
    schema = model.model_json_schema(by_alias=True)
    schema.pop("title", None)
    for prop in (schema.get("properties") or {}).values():
        if isinstance(prop, dict):
            prop.pop("title", None)
    schema.setdefault("type", "object")
    schema.setdefault("properties", {})
    return schema
