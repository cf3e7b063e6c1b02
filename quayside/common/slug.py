"""Repository slugs: the ``owner/name`` a forge uses to name a repository.

Push events identify repositories only by slug, and registry entries carry
one to be matched against. A slug uses ``/`` but is not a path, so it is
parsed here rather than with ``pathlib``.
"""

from __future__ import annotations

import re
import typing as typ

_SLUG = re.compile(r"(?P<owner>[A-Za-z0-9_.-]+)/(?P<name>[A-Za-z0-9_.-]+)")


class RepoSlug(typ.NamedTuple):
    """A parsed ``owner/name`` pair."""

    owner: str
    name: str

    def __str__(self) -> str:
        return f"{self.owner}/{self.name}"


def parse_repo_slug(slug: str) -> RepoSlug:
    """Split ``slug`` into owner and name.

    Raises
    ------
    ValueError
        If ``slug`` is not exactly two segments of letters, digits, dots,
        underscores and dashes.

    Examples
    --------
    >>> parse_repo_slug("acme/blog")
    RepoSlug(owner='acme', name='blog')

    """
    match = _SLUG.fullmatch(slug)
    if match is None:
        msg = f"Invalid repository slug: expected 'owner/name', got {slug!r}"
        raise ValueError(msg)
    return RepoSlug(match["owner"], match["name"])


def normalise_repo_slug(slug: str) -> str:
    """Return the lowered slug events and registry entries are matched on.

    >>> normalise_repo_slug(" Acme/Blog ")
    'acme/blog'

    """
    return slug.strip().lower()
