"""JSON Schema generation for registry files."""

from __future__ import annotations

import json
import typing as typ
from pathlib import Path  # noqa: TC003

import msgspec

from .models import ServiceDefinition

SCHEMA_ID = "https://quayside.example/schemas/services.json"


def build_registry_schema() -> dict[str, typ.Any]:
    """Build the JSON Schema for a registry file.

    The document is an object whose keys are service names and whose values
    are :class:`ServiceDefinition` bodies.
    """
    schema = msgspec.json.schema(dict[str, ServiceDefinition])
    schema["$id"] = SCHEMA_ID
    return schema


def write_registry_schema(path: Path) -> Path:
    """Write the registry JSON Schema to ``path``, creating parent directories."""
    schema = build_registry_schema()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(schema, indent=2), encoding="utf-8")
    return path
