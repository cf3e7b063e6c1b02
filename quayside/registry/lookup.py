"""In-memory registry with the lookups push events need."""

from __future__ import annotations

import typing as typ

from quayside.common.slug import normalise_repo_slug

from .models import RefPolicy

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .models import ServiceEntry


class Registry:
    """Immutable view over validated service entries.

    Entries keep the order they had in the registry file. A configuration
    reload builds a new ``Registry``; instances are never mutated.

    Parameters
    ----------
    entries:
        Validated entries, see :func:`quayside.registry.validate_registry`.

    """

    __slots__ = ("_by_branch", "_by_name", "_by_tag_repo", "_entries")

    def __init__(self, entries: cabc.Iterable[ServiceEntry]) -> None:
        """Index entries by name, tag repository and (repository, branch)."""
        self._entries = tuple(entries)
        self._by_name = {entry.name: entry for entry in self._entries}
        self._by_tag_repo: dict[str, ServiceEntry] = {}
        self._by_branch: dict[tuple[str, str], ServiceEntry] = {}
        for entry in self._entries:
            repo = normalise_repo_slug(entry.repo_full_name)
            if entry.ref_policy is RefPolicy.TRACKED_BRANCH:
                if entry.tracked_branch:
                    self._by_branch[(repo, entry.tracked_branch)] = entry
            else:
                self._by_tag_repo[repo] = entry

    def lookup_by_tag_push(self, repo_full_name: str) -> ServiceEntry | None:
        """Return the ``latest-tag`` entry for a repository, if any.

        Tags are not tied to a branch, so the repository alone identifies
        the service.
        """
        return self._by_tag_repo.get(normalise_repo_slug(repo_full_name))

    def lookup_by_branch_push(
        self, repo_full_name: str, branch: str
    ) -> ServiceEntry | None:
        """Return the ``tracked-branch`` entry for a repository and branch."""
        return self._by_branch.get((normalise_repo_slug(repo_full_name), branch))

    def get(self, name: str) -> ServiceEntry | None:
        """Return the entry registered under ``name``."""
        return self._by_name.get(name)

    def names(self) -> tuple[str, ...]:
        """Return service names in registry order."""
        return tuple(entry.name for entry in self._entries)

    def __iter__(self) -> cabc.Iterator[ServiceEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name
