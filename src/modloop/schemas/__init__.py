"""JSON Schema definitions and validation utilities for modloop configuration.

Schemas:
    - config.schema.json: modloop.json (models, budget, workflow, tools, git)

Usage:
    from modloop.schemas import validate_config

    with open("modloop.json") as f:
        data = json.load(f)
    validate_config(data)  # Raises jsonschema.ValidationError if invalid
"""

from __future__ import annotations

import json
from importlib.resources import files
from typing import Any

import jsonschema


def _load_schema(name: str) -> dict[str, Any]:
    """Load a JSON schema from the schemas package.

    Args:
        name: Schema filename (e.g., 'config.schema.json')

    Returns:
        Parsed JSON schema as a dictionary
    """
    schema_text = files("modloop.schemas").joinpath(name).read_text()
    result: dict[str, Any] = json.loads(schema_text)
    return result


def get_config_schema() -> dict[str, Any]:
    """Get the modloop.json schema."""
    return _load_schema("config.schema.json")


def validate_config(data: dict[str, Any]) -> None:
    """Validate a configuration document against the schema.

    Args:
        data: Parsed modloop.json content

    Raises:
        jsonschema.ValidationError: If validation fails
    """
    jsonschema.validate(data, get_config_schema())


__all__ = [
    "get_config_schema",
    "validate_config",
]
