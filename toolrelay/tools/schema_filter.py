"""
toolrelay - Schema Filter

Prunes an MCP input schema down to the JSON Schema vocabulary a provider
accepts.

Rules:
- ``properties``: every property schema is filtered, the object is closed
  (``additionalProperties: false``) and every property becomes required
- ``oneOf`` is rewritten as ``anyOf`` (OpenAI only understands anyOf)
- other keys survive only if the provider supports them; an object
  ``type`` also closes the object
"""

from typing import Any, Dict, List, Sequence

# Keys some MCP servers put in ``properties`` that are never real arguments
EXTRA_SCHEMA_KEYS = ("schema", "headers")

OPENAI_RESPONSES_SCHEMA_KEYS = (
    "type",
    "description",
    "items",
    "enum",
    "additionalProperties",
    "anyOf",
)

GEMINI_SCHEMA_KEYS = (
    "example",
    "pattern",
    "default",
    "maxLength",
    "minLength",
    "minProperties",
    "maxProperties",
    "anyOf",
    "description",
    "enum",
    "format",
    "items",
    "maxItems",
    "maximum",
    "minItems",
    "minimum",
    "nullable",
    "properties",
    "propertyOrdering",
    "required",
    "title",
    "type",
)


def required_property_names(properties: Any) -> List[str]:
    """All property names except the non-argument extras."""
    if not isinstance(properties, dict):
        return []
    return [name for name in properties if name not in EXTRA_SCHEMA_KEYS]


def filter_properties(schema: Any, supported_keys: Sequence[str]) -> Any:
    """
    Recursively filter ``schema`` to ``supported_keys``.

    Pure: the input is never modified and malformed values pass through.
    """
    if isinstance(schema, list):
        return [filter_properties(item, supported_keys) for item in schema]

    if not isinstance(schema, dict):
        return schema

    result: Dict[str, Any] = {}

    for key, value in schema.items():
        if key == "properties":
            if isinstance(value, dict):
                result[key] = {
                    name: filter_properties(prop, supported_keys)
                    for name, prop in value.items()
                }
            else:
                result[key] = value
            result["additionalProperties"] = False
            result["required"] = required_property_names(value)

        elif key == "oneOf":
            result["anyOf"] = filter_properties(value, supported_keys)

        elif key in supported_keys:
            result[key] = filter_properties(value, supported_keys)

            if key == "type" and value == "object":
                result["additionalProperties"] = False

    return result
