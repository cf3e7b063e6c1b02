"""Build service images and publish them to a private registry.

Used in swarm mode only: nodes pull images from the registry, so every
build is pushed under two tags, the resolved ref and ``latest``. A publish
either pushes both tags or fails; a partial push never reaches the
dispatcher.
"""

from __future__ import annotations

import dataclasses
import re
import typing as typ

from quayside.errors import ImageBuildError, ImagePushError
from quayside.logging import get_logger, log_info

if typ.TYPE_CHECKING:
    from pathlib import Path

    from quayside.process import SupportsRun
    from quayside.registry.models import ServiceEntry

logger = get_logger(__name__)

LATEST_TAG = "latest"

_INVALID_TAG_CHARS = re.compile(r"[^A-Za-z0-9_.-]")
_MAX_TAG_LENGTH = 128


@dataclasses.dataclass(frozen=True, slots=True)
class PublishedImage:
    """Both references pushed for one build."""

    versioned: str
    latest: str


def image_tag_for(ref_name: str | None, commit: str) -> str:
    """Return a valid image tag for a resolved ref.

    Characters docker rejects in tags (``/`` in ``release/1.0``, for example)
    become ``-``. Without a ref, which happens when a repository has no tags,
    the short commit sha is used.

    >>> image_tag_for("v2.0.0", "0123456789abcdef")
    'v2.0.0'
    >>> image_tag_for("release/1.0", "0123456789abcdef")
    'release-1.0'
    >>> image_tag_for(None, "0123456789abcdef")
    '0123456789ab'

    """
    if not ref_name:
        return commit[:12]
    tag = _INVALID_TAG_CHARS.sub("-", ref_name)
    if tag[0] in {".", "-"}:
        tag = f"_{tag[1:]}"
    return tag[:_MAX_TAG_LENGTH]


def image_reference(registry_address: str, service: str, tag: str) -> str:
    """Return ``registry/service:tag``."""
    return f"{registry_address.rstrip('/')}/{service}:{tag}"


class ImagePublisher:
    """Run ``docker build`` and ``docker push`` for one service."""

    def __init__(self, runner: SupportsRun, *, executable: str = "docker") -> None:
        """Bind the publisher to a command runner."""
        self._runner = runner
        self._docker = executable

    def build_and_publish(
        self,
        entry: ServiceEntry,
        tag: str,
        registry_address: str,
        working_copy: Path,
    ) -> PublishedImage:
        """Build ``entry`` from its working copy and push both tags.

        Parameters
        ----------
        entry
            Service being built.
        tag
            Versioned tag, normally from :func:`image_tag_for`.
        registry_address
            Registry host (and optional port) to push to.
        working_copy
            Synced checkout; ``build_context`` and ``dockerfile`` resolve
            relative to it.

        Raises
        ------
        ImageBuildError
            If the build fails; nothing is pushed.
        ImagePushError
            If either push fails.

        """
        image = PublishedImage(
            versioned=image_reference(registry_address, entry.name, tag),
            latest=image_reference(registry_address, entry.name, LATEST_TAG),
        )

        log_info(logger, "Building %s from %s", image.versioned, working_copy)
        build = self._runner.run(
            [
                self._docker,
                "build",
                "-f",
                entry.dockerfile,
                "-t",
                image.versioned,
                "-t",
                image.latest,
                entry.build_context,
            ],
            cwd=working_copy,
        )
        if not build.ok:
            raise ImageBuildError(
                entry.name, "docker build failed", detail=build.describe()
            )

        for reference in (image.versioned, image.latest):
            push = self._runner.run([self._docker, "push", reference])
            if not push.ok:
                raise ImagePushError(
                    entry.name, f"push of {reference} failed", detail=push.describe()
                )
            log_info(logger, "Pushed %s", reference)

        return image


__all__ = [
    "LATEST_TAG",
    "ImagePublisher",
    "PublishedImage",
    "image_reference",
    "image_tag_for",
]
