"""Bring every registered service up to date in one pass.

Used at container start and on demand from the CLI. Each service is synced
to its newest tag regardless of its ref policy, since there is no push event
to name a ref; a repository without tags keeps its current checkout and is
reported as a warning. Services are processed one after another and each
failure is recorded without stopping the pass.
"""

from __future__ import annotations

import dataclasses
import typing as typ

from quayside.errors import QuaysideError
from quayside.logging import get_logger, log_info

if typ.TYPE_CHECKING:
    from quayside.pipeline import Orchestrator, PipelineOutcome

logger = get_logger(__name__)


@dataclasses.dataclass(frozen=True, slots=True)
class BulkFailure:
    """A service whose pipeline raised during the bulk pass."""

    service: str
    error: QuaysideError


@dataclasses.dataclass(slots=True)
class BulkReport:
    """Per-service results of a bulk pass."""

    succeeded: list[PipelineOutcome] = dataclasses.field(default_factory=list)
    failures: list[BulkFailure] = dataclasses.field(default_factory=list)

    @property
    def warnings(self) -> list[PipelineOutcome]:
        """Return successful outcomes that carry a sync warning."""
        return [outcome for outcome in self.succeeded if outcome.warning is not None]

    @property
    def ok(self) -> bool:
        """Return True when no service failed."""
        return not self.failures


def initialize_all(
    orchestrator: Orchestrator, *, also_deploy: bool = False
) -> BulkReport:
    """Sync every registered service, and optionally redeploy each one.

    Parameters
    ----------
    orchestrator
        Orchestrator holding the registry and pipeline collaborators.
    also_deploy
        When True, build (swarm) and dispatch each service after syncing.

    Returns
    -------
    BulkReport
        Successes, warnings and failures; never raises for a single
        service's :class:`~quayside.errors.QuaysideError`.

    """
    report = BulkReport()
    for entry in orchestrator.registry:
        log_info(logger, "Initialising %s", entry.name)
        try:
            outcome = orchestrator.run_pipeline(entry, None, deploy=also_deploy)
        except QuaysideError as exc:
            report.failures.append(BulkFailure(service=entry.name, error=exc))
            continue
        report.succeeded.append(outcome)

    orchestrator.event_logger.log_bulk_completed(
        succeeded=len(report.succeeded),
        warnings=len(report.warnings),
        failed=len(report.failures),
    )
    return report


__all__ = ["BulkFailure", "BulkReport", "initialize_all"]
