"""Typed service registry structures."""

from __future__ import annotations

import enum

import msgspec


class RefPolicy(enum.StrEnum):
    """How a service chooses the ref its working copy tracks."""

    LATEST_TAG = "latest-tag"
    TRACKED_BRANCH = "tracked-branch"


class ServiceDefinition(msgspec.Struct, kw_only=True):
    """One service as written in the registry file.

    The registry file maps service names to these bodies. Key names follow
    the ``services.json`` layout the webhook container has always read, so
    existing files load unchanged.

    Attributes
    ----------
    repo : str
        ``owner/name`` identity matched against push events.
    url : str
        Clone URL for the repository.
    ref_policy : RefPolicy
        ``latest-tag`` (any tag push triggers) or ``tracked-branch`` (pushes
        to ``branch`` trigger).
    branch : str, optional
        Branch to track; required by ``tracked-branch``.
    build_context : str
        Build context relative to the working copy root.
    dockerfile : str
        Dockerfile path relative to the working copy root.

    """

    repo: str
    url: str
    ref_policy: RefPolicy = RefPolicy.LATEST_TAG
    branch: str | None = None
    build_context: str = "."
    dockerfile: str = "Dockerfile"


class ServiceEntry(msgspec.Struct, kw_only=True, frozen=True):
    """A registered service, immutable for the lifetime of a registry.

    Attributes
    ----------
    name
        Registry key; doubles as the compose service and image name.
    repo_full_name
        ``owner/name`` identity of the upstream repository.
    clone_url
        Address the working copy is cloned from.
    ref_policy
        Ref selection policy.
    tracked_branch
        Branch followed under ``tracked-branch``; ``None`` otherwise.
    build_context, dockerfile
        Image build parameters, relative to the working copy.

    """

    name: str
    repo_full_name: str
    clone_url: str
    ref_policy: RefPolicy = RefPolicy.LATEST_TAG
    tracked_branch: str | None = None
    build_context: str = "."
    dockerfile: str = "Dockerfile"

    @classmethod
    def from_definition(cls, name: str, definition: ServiceDefinition) -> ServiceEntry:
        """Build an entry from its registry key and file body.

        The branch is stripped here so validation and lookup see one value.
        """
        branch = definition.branch
        return cls(
            name=name,
            repo_full_name=definition.repo,
            clone_url=definition.url,
            ref_policy=definition.ref_policy,
            tracked_branch=branch.strip() if branch is not None else None,
            build_context=definition.build_context,
            dockerfile=definition.dockerfile,
        )

    @property
    def tracks_branch(self) -> bool:
        """Return True when the entry follows a branch tip."""
        return self.ref_policy is RefPolicy.TRACKED_BRANCH
