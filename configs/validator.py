"""JSON Schema for frc.json documents, with default injection."""

from __future__ import annotations

import copy
from typing import Any, Dict

import jsonschema
from jsonschema import Draft7Validator, validators

from exceptions import ConfigValidationError
from log_config.logger import get_logger

logger = get_logger(__name__)

_NAMED_PROPERTY = {
    "type": "object",
    "required": ["name", "value"],
    "properties": {
        "name": {"type": "string"},
    },
}

_RANGE = {
    "type": "array",
    "items": {"type": "number"},
    "minItems": 2,
    "maxItems": 2,
}

# JSON Schema for frc.json, plus the optional table/tracking/pipeline sections
CONFIG_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["team", "cameras"],
    "properties": {
        "team": {"type": "integer", "minimum": 0, "maximum": 99999},
        "ntmode": {"type": "string"},
        "table": {"type": "string", "minLength": 1, "default": "TestTable"},
        "cameras": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["name", "path"],
                "properties": {
                    "name": {"type": "string", "minLength": 1},
                    "path": {"type": "string", "minLength": 1},
                    "pixel format": {"type": "string"},
                    "width": {"type": "integer", "minimum": 1},
                    "height": {"type": "integer", "minimum": 1},
                    "fps": {"type": "integer", "minimum": 1},
                    "brightness": {"type": "number", "minimum": 0, "maximum": 100},
                    "white balance": {"type": ["string", "integer"]},
                    "exposure": {"type": ["string", "integer"]},
                    "properties": {"type": "array", "items": _NAMED_PROPERTY},
                    "stream": {
                        "type": "object",
                        "properties": {
                            "properties": {"type": "array", "items": _NAMED_PROPERTY},
                        },
                    },
                },
            },
        },
        "tracking": {
            "type": "object",
            "default": {},
            "properties": {
                "camera": {"type": "integer", "minimum": 0, "default": 0},
                "width": {"type": "integer", "minimum": 16, "maximum": 1920, "default": 320},
                "height": {"type": "integer", "minimum": 16, "maximum": 1080, "default": 240},
            },
        },
        "pipeline": {
            "type": "object",
            "default": {},
            "properties": {
                "hsv": {
                    "type": "object",
                    "properties": {
                        "hue": _RANGE,
                        "saturation": _RANGE,
                        "value": _RANGE,
                    },
                },
                "filters": {
                    "type": "object",
                    "properties": {
                        "min_area": {"type": "number", "minimum": 0},
                        "min_perimeter": {"type": "number", "minimum": 0},
                        "min_width": {"type": "number", "minimum": 0},
                        "max_width": {"type": "number", "minimum": 0},
                        "min_height": {"type": "number", "minimum": 0},
                        "max_height": {"type": "number", "minimum": 0},
                        "solidity": _RANGE,
                        "max_vertices": {"type": "number", "minimum": 0},
                        "min_vertices": {"type": "number", "minimum": 0},
                        "min_ratio": {"type": "number", "minimum": 0},
                        "max_ratio": {"type": "number", "minimum": 0},
                    },
                },
            },
        },
    },
}


def _with_defaults(base):
    """Validator class that also fills in each missing property's ``default``.

    Defaults are deep-copied so documents never share the schema's objects.
    """
    check_properties = base.VALIDATORS["properties"]

    def properties_with_defaults(validator, properties, instance, schema):
        if validator.is_type(instance, "object"):
            for name, subschema in properties.items():
                if "default" in subschema and name not in instance:
                    instance[name] = copy.deepcopy(subschema["default"])
        yield from check_properties(validator, properties, instance, schema)

    return validators.extend(base, {"properties": properties_with_defaults})


DefaultValidatingValidator = _with_defaults(Draft7Validator)


def _describe(error: jsonschema.ValidationError) -> str:
    where = " -> ".join(str(part) for part in error.absolute_path) or "root"
    return f"{where}: {error.message}"


def validate_config(config: Dict[str, Any]) -> None:
    """Check a decoded frc.json document and fill in optional sections.

    Args:
        config: Decoded document; defaults are written into it

    Raises:
        ConfigValidationError: Listing every violation, not just the first
    """
    try:
        DefaultValidatingValidator.check_schema(CONFIG_SCHEMA)
    except jsonschema.SchemaError as e:
        raise ConfigValidationError(f"Invalid schema definition: {e.message}") from e

    problems = [_describe(e) for e in DefaultValidatingValidator(CONFIG_SCHEMA).iter_errors(config)]
    if not problems:
        logger.debug("Configuration matches schema")
        return

    for problem in problems:
        logger.error(f"Invalid configuration: {problem}")
    raise ConfigValidationError(
        f"Configuration has {len(problems)} problem(s): " + "; ".join(problems),
        validation_errors=problems,
    )


__all__ = ["CONFIG_SCHEMA", "DefaultValidatingValidator", "validate_config"]
