"""Unit tests for repository slug utilities."""

from __future__ import annotations

import pytest

from quayside.common.slug import normalise_repo_slug, parse_repo_slug


def test_parse_repo_slug_splits_owner_and_name() -> None:
    """parse_repo_slug returns (owner, name) for valid slugs."""
    assert parse_repo_slug("acme/blog") == ("acme", "blog")
    assert parse_repo_slug("Owner-Org/Repo_Name.py") == ("Owner-Org", "Repo_Name.py")


@pytest.mark.parametrize(
    "slug",
    [
        "",
        "   ",
        "/",
        "invalid",
        "owner/name/extra",
        r"owner\\name",
        "owner/",
        "/name",
        "owner//name",
        "own er/name",
    ],
)
def test_parse_repo_slug_rejects_invalid_slugs(slug: str) -> None:
    """parse_repo_slug raises ValueError for invalid slugs."""
    with pytest.raises(ValueError, match="Invalid repository slug"):
        parse_repo_slug(slug)


def test_normalise_repo_slug_ignores_case_and_padding() -> None:
    """Slugs differing only in case and whitespace normalise identically."""
    assert normalise_repo_slug(" Acme/Blog ") == normalise_repo_slug("acme/blog")


def test_parsed_slug_renders_back() -> None:
    """A parsed slug exposes its parts and prints as ``owner/name``."""
    slug = parse_repo_slug("acme/blog")

    assert slug.owner == "acme"
    assert slug.name == "blog"
    assert str(slug) == "acme/blog"
