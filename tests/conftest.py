"""Shared fixtures for unit and feature tests."""

from __future__ import annotations

import json
import typing as typ

import pytest

from quayside.process import CommandRunner
from quayside.sync import GitClient, RepoSyncEngine
from tests.helpers.git_repos import UpstreamRepo
from tests.helpers.recording_runner import RecordingRunner

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path


@pytest.fixture
def write_registry(tmp_path: Path) -> cabc.Callable[..., Path]:
    """Return a helper that writes a JSON registry file."""

    def _write(services: object, name: str = "services.json") -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(services), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def upstream(tmp_path: Path) -> UpstreamRepo:
    """Provide an upstream repository with a bare remote."""
    return UpstreamRepo(tmp_path / "upstream")


@pytest.fixture
def repos_dir(tmp_path: Path) -> Path:
    """Return the parent directory for service working copies."""
    return tmp_path / "repos"


@pytest.fixture
def sync_engine(repos_dir: Path) -> RepoSyncEngine:
    """Build a sync engine that runs the real git binary."""
    return RepoSyncEngine(repos_dir, GitClient(CommandRunner(timeout=30)))


@pytest.fixture
def docker() -> RecordingRunner:
    """Provide a recording stand-in for the docker CLI."""
    return RecordingRunner()
