"""
Shared utility functions for capability modules.
"""

import json
from typing import Any

import yaml
from pydantic import BaseModel


def parse_json_param(
    param: str | dict | list | None, param_name: str = "parameter"
) -> dict | list | None:
    """
    Parse a structured parameter given as JSON/YAML text, or pass it through.

    Agents frequently send objects as strings; JSON is tried first, then YAML.

    Args:
        param: Value as dict, list, JSON string or YAML string
        param_name: Parameter name for error messages

    Returns:
        Parsed dict/list or None

    Raises:
        ValueError: If parsing fails or the result is not an object/array

    Examples:
        parse_json_param({"area_id": "kitchen"}) -> {"area_id": "kitchen"}
        parse_json_param('{"brightness": 120}') -> {"brightness": 120}
        parse_json_param('entity_id: light.desk') -> {"entity_id": "light.desk"}
    """
    if param is None:
        return None

    if isinstance(param, (dict, list)):
        return param

    if not isinstance(param, str):
        raise ValueError(
            f"{param_name} must be string, dict, list, or None, got {type(param).__name__}"
        )

    try:
        parsed = json.loads(param)
    except json.JSONDecodeError:
        try:
            parsed = yaml.safe_load(param)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid JSON/YAML in {param_name}: {e}") from e

    if not isinstance(parsed, (dict, list)):
        raise ValueError(
            f"{param_name} must be a JSON object or array, got {type(parsed).__name__}"
        )
    return parsed


def parse_json_object(param: str | dict | None, param_name: str = "parameter") -> dict[str, Any]:
    """Like :func:`parse_json_param` but requires an object; None becomes ``{}``."""
    parsed = parse_json_param(param, param_name)
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ValueError(f"{param_name} must be an object, got array")
    return parsed


def to_jsonable(value: Any) -> Any:
    """Convert pydantic models (or lists of them) to JSON-ready data."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", exclude_none=True)
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item) for item in value]
    if isinstance(value, dict):
        return {key: to_jsonable(item) for key, item in value.items()}
    return value
