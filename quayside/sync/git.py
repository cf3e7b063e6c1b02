"""Thin git command wrapper used by the sync engine.

Each method builds one ``git -C <repo> ...`` invocation and returns the raw
:class:`~quayside.process.CommandResult`. Interpreting exit codes is left to
:class:`~quayside.sync.engine.RepoSyncEngine`, which owns the mapping to
``SyncError`` subclasses.
"""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    from pathlib import Path

    from quayside.process import CommandResult, SupportsRun

REMOTE = "origin"


class GitClient:
    """Issue git commands through a :class:`~quayside.process.SupportsRun`."""

    def __init__(self, runner: SupportsRun, *, executable: str = "git") -> None:
        """Bind the client to a command runner."""
        self._runner = runner
        self._git = executable

    def _run(self, repo: Path, *args: str) -> CommandResult:
        return self._runner.run([self._git, "-C", str(repo), *args])

    def clone(
        self, url: str, dest: Path, *, branch: str | None = None
    ) -> CommandResult:
        """Clone ``url`` into ``dest``, optionally limited to one branch."""
        argv = [self._git, "clone"]
        if branch is not None:
            argv += ["--branch", branch, "--single-branch"]
        argv += ["--", url, str(dest)]
        return self._runner.run(argv)

    def fetch(self, repo: Path, *, tags: bool) -> CommandResult:
        """Fetch from the remote, pruning deleted refs.

        With ``tags`` set, every tag is fetched and moved tags are updated.
        """
        args = ["fetch", "--prune"]
        if tags:
            args += ["--tags", "--force"]
        return self._run(repo, *args, REMOTE)

    def list_tags(self, repo: Path) -> CommandResult:
        """List local tag names, one per line."""
        return self._run(repo, "tag", "--list")

    def verify_commit(self, repo: Path, rev: str) -> bool:
        """Return True when ``rev`` resolves to a commit."""
        result = self._run(
            repo, "rev-parse", "--verify", "--quiet", f"{rev}^{{commit}}"
        )
        return result.ok

    def checkout_detached(self, repo: Path, rev: str) -> CommandResult:
        """Force-check out ``rev`` on a detached HEAD."""
        return self._run(repo, "checkout", "--force", "--detach", rev)

    def checkout_branch(self, repo: Path, branch: str, start: str) -> CommandResult:
        """Force-check out ``branch``, resetting it to ``start``."""
        return self._run(repo, "checkout", "--force", "-B", branch, start)

    def reset_hard(self, repo: Path, rev: str) -> CommandResult:
        """Reset index and tree to ``rev``."""
        return self._run(repo, "reset", "--hard", rev)

    def clean(self, repo: Path) -> CommandResult:
        """Remove untracked and ignored files, including nested repositories."""
        return self._run(repo, "clean", "-ffdx")

    def head_commit(self, repo: Path) -> CommandResult:
        """Return the commit HEAD points at."""
        return self._run(repo, "rev-parse", "HEAD")


def remote_branch_ref(branch: str) -> str:
    """Return the fully qualified remote-tracking ref for ``branch``."""
    return f"refs/remotes/{REMOTE}/{branch}"


def tag_ref(tag: str) -> str:
    """Return the fully qualified ref for ``tag``."""
    return f"refs/tags/{tag}"
