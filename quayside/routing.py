"""Classify push events and resolve them to registry entries.

The router holds no state of its own. Tag pushes match the repository's
``latest-tag`` entry whatever branch the tag was cut from; branch pushes
match only the entry tracking that exact ``(repository, branch)`` pair.
Everything else is a :class:`NoOp`, which is a normal outcome: most pushes
to a repository concern branches or tags nobody deploys.
"""

from __future__ import annotations

import dataclasses
import enum
import typing as typ

from quayside.refs import BranchRef, TagRef, parse_ref

if typ.TYPE_CHECKING:
    from quayside.refs import ResolvedRef
    from quayside.registry import Registry, ServiceEntry


class NoOpReason(enum.StrEnum):
    """Why an event produced no pipeline run."""

    UNSUPPORTED_REF = "unsupported-ref"
    NO_MATCHING_SERVICE = "no-matching-service"


@dataclasses.dataclass(frozen=True, slots=True)
class RoutedAction:
    """Run the pipeline for ``entry`` at ``target``."""

    entry: ServiceEntry
    target: ResolvedRef


@dataclasses.dataclass(frozen=True, slots=True)
class NoOp:
    """Nothing to do for this event."""

    reason: NoOpReason
    detail: str = ""


type Action = RoutedAction | NoOp


class EventRouter:
    """Map ``(repository, ref)`` push events onto registry entries."""

    def __init__(self, registry: Registry) -> None:
        """Route against ``registry``."""
        self._registry = registry

    def route(self, repo_full_name: str, raw_ref: str) -> Action:
        """Return the action for a push of ``raw_ref`` to ``repo_full_name``.

        The tag or branch name is taken verbatim from the event; a tag push
        always checks out the pushed tag, even when a newer one exists.
        """
        ref = parse_ref(raw_ref)
        match ref:
            case TagRef():
                entry = self._registry.lookup_by_tag_push(repo_full_name)
                wanted = f"tags of {repo_full_name}"
            case BranchRef(name=branch):
                entry = self._registry.lookup_by_branch_push(repo_full_name, branch)
                wanted = f"{repo_full_name}@{branch}"
            case _:
                return NoOp(NoOpReason.UNSUPPORTED_REF, f"ignoring ref {raw_ref!r}")

        if entry is None:
            return NoOp(
                NoOpReason.NO_MATCHING_SERVICE, f"no service follows {wanted}"
            )
        return RoutedAction(entry=entry, target=ref)


__all__ = ["Action", "EventRouter", "NoOp", "NoOpReason", "RoutedAction"]
