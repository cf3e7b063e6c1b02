"""Bring a service's working copy to a reproducible ref.

The engine is a small state machine over one directory per service::

    Absent --clone--> Cloned --checkout--> Synced(ref)
    Synced(ref) --fetch, checkout--> Synced(ref')

It never deletes a working copy. Every step is idempotent, so a failed sync
can be re-run as-is; there is no internal retry.

Examples
--------
Sync a tag taken verbatim from a push event:

    engine = RepoSyncEngine(Path("/repos"), GitClient(CommandRunner()))
    result = engine.sync(entry, TagRef("v2.0.0"))

Let the engine pick the newest release:

    result = engine.sync(entry, None)
    if result.status is SyncStatus.WARNING:
        print(result.warning)

"""

from __future__ import annotations

import dataclasses
import enum
import typing as typ

from quayside.errors import RefNotFoundError, SyncError, SyncNetworkError
from quayside.logging import get_logger, log_info, log_warning
from quayside.refs import BranchRef, TagRef, latest_tag
from quayside.registry.models import RefPolicy

from .git import remote_branch_ref, tag_ref

if typ.TYPE_CHECKING:
    from pathlib import Path

    from quayside.process import CommandResult
    from quayside.refs import ResolvedRef
    from quayside.registry.models import ServiceEntry

    from .git import GitClient

logger = get_logger(__name__)


class WorkingCopyState(enum.StrEnum):
    """Whether a working copy has repository metadata on disk."""

    ABSENT = "absent"
    PRESENT = "present"


class SyncStatus(enum.StrEnum):
    """Outcome class of a successful sync."""

    SYNCED = "synced"
    WARNING = "warning"


@dataclasses.dataclass(frozen=True, slots=True)
class WorkingCopy:
    """Local checkout for one service, addressed by a fixed path."""

    path: Path

    @property
    def state(self) -> WorkingCopyState:
        """Return ``PRESENT`` when ``.git`` exists under :attr:`path`."""
        if (self.path / ".git").exists():
            return WorkingCopyState.PRESENT
        return WorkingCopyState.ABSENT


@dataclasses.dataclass(frozen=True, slots=True)
class SyncResult:
    """What a sync left on disk.

    Attributes
    ----------
    service
        Service name.
    status
        ``SYNCED`` or ``WARNING`` (no tags to check out).
    ref
        Ref checked out, or ``None`` when the tree was left as it was.
    commit
        Commit HEAD points at after the sync.
    cloned
        True when this sync created the working copy.
    warning
        Human-readable explanation for a ``WARNING`` status.

    """

    service: str
    status: SyncStatus
    ref: ResolvedRef | None
    commit: str
    cloned: bool = False
    warning: str | None = None


class RepoSyncEngine:
    """Clone, fetch and check out service working copies.

    Parameters
    ----------
    repos_dir:
        Parent directory; each service lives in ``repos_dir / entry.name``.
    git:
        Git command wrapper.

    """

    def __init__(self, repos_dir: Path, git: GitClient) -> None:
        """Configure the engine with its root directory and git client."""
        self.repos_dir = repos_dir
        self._git = git

    def working_copy(self, entry: ServiceEntry) -> WorkingCopy:
        """Return the working copy location for ``entry``."""
        return WorkingCopy(self.repos_dir / entry.name)

    def sync(self, entry: ServiceEntry, target: ResolvedRef | None) -> SyncResult:
        """Bring ``entry``'s working copy to ``target``.

        Parameters
        ----------
        entry:
            Registry entry for the service.
        target:
            Ref to check out. ``None`` selects the newest tag by semantic
            version; when the repository has no tags the tree is left on
            whatever is checked out and a ``WARNING`` result is returned.

        Raises
        ------
        SyncNetworkError
            If clone or fetch fails.
        RefNotFoundError
            If ``target`` does not exist after fetching.
        SyncError
            If any other git step fails.

        """
        copy = self.working_copy(entry)
        cloned = copy.state is WorkingCopyState.ABSENT
        if cloned:
            self._clone(entry, copy)
        else:
            self._fetch(entry, copy, target)

        match target:
            case BranchRef():
                self._checkout_branch(entry, copy, target)
                resolved: ResolvedRef | None = target
            case TagRef():
                self._checkout_tag(entry, copy, target)
                resolved = target
            case None:
                resolved = self._checkout_latest_tag(entry, copy)

        commit = self._head(entry, copy)
        if resolved is None:
            if cloned:
                detail = f"building the fresh clone at {commit[:12]}"
            else:
                detail = (
                    f"kept the existing checkout at {commit[:12]}, "
                    "which may be behind the remote"
                )
            warning = f"no tags found for {entry.name}; {detail}"
            log_warning(logger, "%s", warning)
            return SyncResult(
                service=entry.name,
                status=SyncStatus.WARNING,
                ref=None,
                commit=commit,
                cloned=cloned,
                warning=warning,
            )

        log_info(
            logger,
            "Synced %s to %s %s (%s)",
            entry.name,
            resolved.kind,
            resolved,
            commit[:12],
        )
        return SyncResult(
            service=entry.name,
            status=SyncStatus.SYNCED,
            ref=resolved,
            commit=commit,
            cloned=cloned,
        )

    def _clone(self, entry: ServiceEntry, copy: WorkingCopy) -> None:
        branch = entry.tracked_branch if entry.tracks_branch else None
        log_info(logger, "Cloning %s into %s", entry.clone_url, copy.path)
        copy.path.parent.mkdir(parents=True, exist_ok=True)
        result = self._git.clone(entry.clone_url, copy.path, branch=branch)
        if not result.ok:
            raise SyncNetworkError(
                entry.name, "clone failed", detail=result.describe()
            )

    def _fetch(
        self, entry: ServiceEntry, copy: WorkingCopy, target: ResolvedRef | None
    ) -> None:
        tags = not isinstance(target, BranchRef) or (
            entry.ref_policy is RefPolicy.LATEST_TAG
        )
        result = self._git.fetch(copy.path, tags=tags)
        if not result.ok:
            raise SyncNetworkError(
                entry.name, "fetch failed", detail=result.describe()
            )

    def _checkout_branch(
        self, entry: ServiceEntry, copy: WorkingCopy, target: BranchRef
    ) -> None:
        remote_ref = remote_branch_ref(target.name)
        if not self._git.verify_commit(copy.path, remote_ref):
            raise RefNotFoundError(entry.name, target.name)

        self._expect(
            entry,
            "checkout",
            self._git.checkout_branch(copy.path, target.name, remote_ref),
        )
        self._expect(entry, "reset", self._git.reset_hard(copy.path, remote_ref))
        self._expect(entry, "clean", self._git.clean(copy.path))

    def _checkout_tag(
        self, entry: ServiceEntry, copy: WorkingCopy, target: TagRef
    ) -> None:
        ref = tag_ref(target.name)
        if not self._git.verify_commit(copy.path, ref):
            raise RefNotFoundError(entry.name, target.name)

        self._expect(entry, "checkout", self._git.checkout_detached(copy.path, ref))
        self._expect(entry, "clean", self._git.clean(copy.path))

    def _checkout_latest_tag(
        self, entry: ServiceEntry, copy: WorkingCopy
    ) -> TagRef | None:
        listing = self._expect(entry, "tag listing", self._git.list_tags(copy.path))
        newest = latest_tag(line.strip() for line in listing.stdout.splitlines())
        if newest is None:
            return None

        target = TagRef(newest)
        self._checkout_tag(entry, copy, target)
        return target

    def _head(self, entry: ServiceEntry, copy: WorkingCopy) -> str:
        result = self._expect(entry, "rev-parse", self._git.head_commit(copy.path))
        return result.stdout.strip()

    @staticmethod
    def _expect(
        entry: ServiceEntry, step: str, result: CommandResult
    ) -> CommandResult:
        if not result.ok:
            raise SyncError(entry.name, f"git {step} failed", detail=result.describe())
        return result
