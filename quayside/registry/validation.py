"""Validation rules for the service registry."""

from __future__ import annotations

import dataclasses
import re
import typing as typ
from pathlib import PurePosixPath

from quayside.common.slug import normalise_repo_slug, parse_repo_slug
from quayside.errors import RegistryConfigError

from .models import RefPolicy

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .models import ServiceEntry

NAME_PATTERN = re.compile(r"^[a-z0-9](?:[a-z0-9_-]{0,61}[a-z0-9])?$")


@dataclasses.dataclass(slots=True)
class ValidationState:
    """Indexes and issues accumulated while walking registry entries."""

    names: set[str] = dataclasses.field(default_factory=set)
    tag_repos: dict[str, str] = dataclasses.field(default_factory=dict)
    branch_pairs: dict[tuple[str, str], str] = dataclasses.field(
        default_factory=dict
    )
    issues: list[str] = dataclasses.field(default_factory=list)


def validate_registry(
    entries: cabc.Sequence[ServiceEntry],
) -> cabc.Sequence[ServiceEntry]:
    """Validate registry entries, returning them when all checks pass.

    Raises
    ------
    RegistryConfigError
        Carrying every issue found, not just the first.

    """
    state = ValidationState()
    for entry in entries:
        _validate_entry(entry, state)

    if state.issues:
        raise RegistryConfigError(state.issues)
    return entries


def _validate_entry(entry: ServiceEntry, state: ValidationState) -> None:
    if not NAME_PATTERN.match(entry.name):
        state.issues.append(
            f"service name '{entry.name}' must match {NAME_PATTERN.pattern}"
        )
    if entry.name in state.names:
        state.issues.append(f"duplicate service name '{entry.name}'")
    state.names.add(entry.name)

    try:
        parse_repo_slug(entry.repo_full_name)
    except ValueError as exc:
        state.issues.append(f"service {entry.name}: {exc}")

    if not entry.clone_url.strip():
        state.issues.append(f"service {entry.name} has an empty url")

    _validate_relative_path(entry.name, "build_context", entry.build_context, state)
    _validate_relative_path(entry.name, "dockerfile", entry.dockerfile, state)

    if entry.ref_policy is RefPolicy.TRACKED_BRANCH:
        _validate_branch_entry(entry, state)
    else:
        _validate_tag_entry(entry, state)


def _validate_branch_entry(entry: ServiceEntry, state: ValidationState) -> None:
    branch = (entry.tracked_branch or "").strip()
    if not branch:
        state.issues.append(
            f"service {entry.name} uses tracked-branch but sets no branch"
        )
        return

    key = (normalise_repo_slug(entry.repo_full_name), branch)
    if key in state.branch_pairs:
        state.issues.append(
            f"services {state.branch_pairs[key]} and {entry.name} both track "
            f"{entry.repo_full_name}@{branch}"
        )
    else:
        state.branch_pairs[key] = entry.name


def _validate_tag_entry(entry: ServiceEntry, state: ValidationState) -> None:
    if entry.tracked_branch is not None:
        state.issues.append(
            f"service {entry.name} sets branch '{entry.tracked_branch}' "
            "but uses latest-tag; branch requires tracked-branch"
        )

    key = normalise_repo_slug(entry.repo_full_name)
    if key in state.tag_repos:
        state.issues.append(
            f"services {state.tag_repos[key]} and {entry.name} both follow tags of "
            f"{entry.repo_full_name}; a tag push would be ambiguous"
        )
    else:
        state.tag_repos[key] = entry.name


def _validate_relative_path(
    service: str, label: str, value: str, state: ValidationState
) -> None:
    path = PurePosixPath(value)
    if not value.strip() or path.is_absolute() or ".." in path.parts:
        state.issues.append(
            f"service {service} {label} '{value}' must be a relative path "
            "inside the repository"
        )
