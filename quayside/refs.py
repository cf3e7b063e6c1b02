"""Resolved git refs and version-aware tag ordering.

A pipeline always targets a concrete ref: a tag taken verbatim from a push
event or discovered as the newest release, or a branch whose remote tip the
working copy must match exactly.

Usage
-----
>>> parse_ref("refs/tags/v2.0.0")
TagRef(name='v2.0.0')
>>> parse_ref("refs/heads/main")
BranchRef(name='main')
>>> latest_tag(["v1.2.0", "v1.10.0", "v1.9.0"])
'v1.10.0'

"""

from __future__ import annotations

import dataclasses
import enum
import typing as typ

if typ.TYPE_CHECKING:
    import collections.abc as cabc

TAG_PREFIX = "refs/tags/"
BRANCH_PREFIX = "refs/heads/"


class RefKind(enum.StrEnum):
    """Kind of ref a pipeline checks out."""

    TAG = "tag"
    BRANCH = "branch"


@dataclasses.dataclass(frozen=True, slots=True)
class TagRef:
    """A tag name such as ``v2.0.0``."""

    name: str

    @property
    def kind(self) -> RefKind:
        """Return :attr:`RefKind.TAG`."""
        return RefKind.TAG

    def __str__(self) -> str:
        return self.name


@dataclasses.dataclass(frozen=True, slots=True)
class BranchRef:
    """A branch name such as ``main``; always resolved to the remote tip."""

    name: str

    @property
    def kind(self) -> RefKind:
        """Return :attr:`RefKind.BRANCH`."""
        return RefKind.BRANCH

    def __str__(self) -> str:
        return self.name


type ResolvedRef = TagRef | BranchRef


def parse_ref(raw_ref: str) -> ResolvedRef | None:
    """Classify a fully qualified ref from a push event.

    Returns ``None`` for anything that is not a non-empty tag or branch ref,
    such as ``refs/pull/1/head`` or a bare ``main``.
    """
    if raw_ref.startswith(TAG_PREFIX):
        name = raw_ref.removeprefix(TAG_PREFIX)
        return TagRef(name) if name else None
    if raw_ref.startswith(BRANCH_PREFIX):
        name = raw_ref.removeprefix(BRANCH_PREFIX)
        return BranchRef(name) if name else None
    return None


type _Chunk = tuple[int, int | str]


def _chunks(text: str) -> tuple[_Chunk, ...]:
    # Numeric identifiers compare numerically and sort below alphanumeric ones.
    return tuple(
        (0, int(part)) if part.isdigit() else (1, part) for part in text.split(".")
    )


def version_sort_key(tag: str) -> tuple[object, ...]:
    """Return a key that orders tags by semantic version.

    A leading ``v`` is ignored, release components compare numerically, a
    pre-release (``-rc1``) sorts below its release, and build metadata
    (``+build``) is ignored. Tags that do not start with a version number sort
    below every versioned tag, alphabetically among themselves.

    >>> sorted(["v1.10.0", "v1.2.0", "v1.9.0"], key=version_sort_key)
    ['v1.2.0', 'v1.9.0', 'v1.10.0']
    >>> version_sort_key("v2.0.0-rc1") < version_sort_key("v2.0.0")
    True

    """
    text = tag[1:] if tag[:1] in {"v", "V"} and tag[1:2].isdigit() else tag
    if not text[:1].isdigit():
        return (0, (), 0, (), tag)

    text = text.partition("+")[0]
    release, _, prerelease = text.partition("-")
    return (
        1,
        _chunks(release),
        0 if prerelease else 1,
        _chunks(prerelease) if prerelease else (),
        tag,
    )


def latest_tag(tags: cabc.Iterable[str]) -> str | None:
    """Return the highest tag by :func:`version_sort_key`, or ``None``."""
    candidates = [tag for tag in tags if tag]
    if not candidates:
        return None
    return max(candidates, key=version_sort_key)


__all__ = [
    "BRANCH_PREFIX",
    "TAG_PREFIX",
    "BranchRef",
    "RefKind",
    "ResolvedRef",
    "TagRef",
    "latest_tag",
    "parse_ref",
    "version_sort_key",
]
