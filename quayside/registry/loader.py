"""Loaders for service registry files."""

from __future__ import annotations

import typing as typ
from pathlib import Path

import msgspec
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from quayside.errors import RegistryConfigError

from .lookup import Registry
from .models import ServiceDefinition, ServiceEntry
from .validation import validate_registry

YAML_VERSION = (1, 2)


def load_registry(path: Path | str) -> Registry:
    """Parse, convert and validate a registry file.

    Every file, the legacy ``services.json`` included, is read with a YAML 1.2
    loader, which accepts JSON and rejects duplicate service keys.

    Raises
    ------
    RegistryConfigError
        If the file is missing, malformed, or violates a registry invariant.

    """
    path_obj = Path(path)
    raw = _read_document(path_obj)

    if raw is None:
        raise RegistryConfigError([f"registry file {path_obj} is empty"])
    if not isinstance(raw, dict):
        raise RegistryConfigError(
            [f"registry file {path_obj} must map service names to definitions"]
        )

    entries = _convert_entries(raw)
    validate_registry(entries)
    return Registry(entries)


def _read_document(path: Path) -> typ.Any:  # noqa: ANN401
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise RegistryConfigError([f"failed to read registry {path}: {exc}"]) from exc

    try:
        return _yaml().load(text)
    except YAMLError as exc:
        raise RegistryConfigError([f"failed to parse registry {path}: {exc}"]) from exc


def _convert_entries(raw: dict[typ.Any, typ.Any]) -> list[ServiceEntry]:
    entries: list[ServiceEntry] = []
    issues: list[str] = []
    for name, body in raw.items():
        if not isinstance(name, str):
            issues.append(f"service name {name!r} must be a string")
            continue
        try:
            definition = msgspec.convert(body, type=ServiceDefinition)
        except msgspec.ValidationError as exc:
            issues.append(f"service {name}: schema validation failed: {exc}")
            continue
        entries.append(ServiceEntry.from_definition(name, definition))

    if issues:
        raise RegistryConfigError(issues)
    return entries


def _yaml() -> YAML:
    yaml = YAML(typ="safe")
    yaml.version = YAML_VERSION
    yaml.allow_duplicate_keys = False
    return yaml
