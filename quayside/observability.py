"""Emit structured observability events for pipeline runs.

Each event is one log line of the form ``[event.type] key=value ...`` so
operators can grep a container log for a service's history.

Usage
-----
>>> event_logger = PipelineEventLogger()
>>> event_logger.log_noop(
...     repo_full_name="acme/blog", ref="refs/heads/feature-x", reason="no-match"
... )

"""

from __future__ import annotations

import enum
import typing as typ

from quayside.logging import get_logger, log_error, log_info, log_warning

if typ.TYPE_CHECKING:
    from quayside.deploy import DeployResult
    from quayside.images import PublishedImage
    from quayside.sync import SyncResult

logger = get_logger(__name__)


class PipelineEventType(enum.StrEnum):
    """Structured log event types for pipeline runs."""

    SYNC_COMPLETED = "pipeline.sync.completed"
    SYNC_WARNING = "pipeline.sync.warning"
    IMAGE_PUBLISHED = "pipeline.image.published"
    DEPLOY_COMPLETED = "pipeline.deploy.completed"
    PIPELINE_FAILED = "pipeline.failed"
    PIPELINE_NOOP = "pipeline.noop"
    BULK_COMPLETED = "bulk.completed"


class PipelineEventLogger:
    """Emit structured pipeline events via femtologging."""

    def log_sync(self, result: SyncResult) -> None:
        """Log a finished sync, at WARNING when no tag could be checked out."""
        if result.warning is not None:
            log_warning(
                logger,
                "[%s] service=%s commit=%s warning=%s",
                PipelineEventType.SYNC_WARNING,
                result.service,
                result.commit,
                result.warning,
            )
            return
        log_info(
            logger,
            "[%s] service=%s ref=%s commit=%s cloned=%s",
            PipelineEventType.SYNC_COMPLETED,
            result.service,
            result.ref,
            result.commit,
            result.cloned,
        )

    def log_image_published(self, service: str, image: PublishedImage) -> None:
        """Log that both image tags were pushed."""
        log_info(
            logger,
            "[%s] service=%s versioned=%s latest=%s",
            PipelineEventType.IMAGE_PUBLISHED,
            service,
            image.versioned,
            image.latest,
        )

    def log_deploy(self, result: DeployResult) -> None:
        """Log a completed deploy and the action it took."""
        log_info(
            logger,
            "[%s] service=%s action=%s target=%s",
            PipelineEventType.DEPLOY_COMPLETED,
            result.service,
            result.action,
            result.target_name,
        )

    def log_failure(self, service: str, exc: Exception) -> None:
        """Log a failed pipeline with its error type.

        Parameters
        ----------
        service
            Service whose pipeline failed.
        exc
            The error that stopped the pipeline.

        """
        log_error(
            logger,
            "[%s] service=%s error_type=%s error=%s",
            PipelineEventType.PIPELINE_FAILED,
            service,
            type(exc).__name__,
            exc,
        )

    def log_noop(self, *, repo_full_name: str, ref: str, reason: str) -> None:
        """Log an event that matched no pipeline."""
        log_info(
            logger,
            "[%s] repo=%s ref=%s reason=%s",
            PipelineEventType.PIPELINE_NOOP,
            repo_full_name,
            ref,
            reason,
        )

    def log_bulk_completed(self, *, succeeded: int, warnings: int, failed: int) -> None:
        """Log the totals of a bulk initialisation pass."""
        log_info(
            logger,
            "[%s] succeeded=%d warnings=%d failed=%d",
            PipelineEventType.BULK_COMPLETED,
            succeeded,
            warnings,
            failed,
        )


__all__ = ["PipelineEventLogger", "PipelineEventType"]
