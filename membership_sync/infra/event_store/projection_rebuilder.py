# =============================================================================
# File: membership_sync/infra/event_store/projection_rebuilder.py
# Description: Rebuilds every read model from the event log via replay
#              Tracks progress; refuses concurrent rebuilds
# =============================================================================

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from membership_sync.common.exceptions.exceptions import ProjectionRebuildError
from membership_sync.config.projection_rebuilder_config import (
    ProjectionRebuilderConfig,
    get_projection_rebuilder_config,
)
from membership_sync.infra.event_bus.event_bus import EventBus
from membership_sync.infra.jobs.job_queue import PausableJobQueue

log = logging.getLogger("membership_sync.projection_rebuilder")


class RebuildStatus(Enum):
    """Status of a projection rebuild"""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class RebuildProgress:
    """Tracks progress of a projection rebuild"""
    projections: List[str]
    status: RebuildStatus = RebuildStatus.PENDING
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    events_total: int = 0
    events_processed: int = 0
    errors: List[Dict[str, Any]] = field(default_factory=list)
    last_error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "projections": self.projections,
            "status": self.status.value,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "events_total": self.events_total,
            "events_processed": self.events_processed,
            "errors": self.errors[-10:],  # Keep last 10 errors
            "last_error": self.last_error,
            "metadata": self.metadata,
        }


class ProjectionRebuilder:
    """
    Drops and re-derives every registered projector's read model.

    Wraps EventBus.replay(): reactors are never invoked, so no external
    command is re-issued by a rebuild. Job queues passed in `paused_queues`
    hold execution for the whole rebuild, since their command handlers read
    the read models being reset.
    """

    def __init__(
            self,
            event_bus: EventBus,
            config: Optional[ProjectionRebuilderConfig] = None,
            paused_queues: Iterable[PausableJobQueue] = (),
    ):
        self._event_bus = event_bus
        self._config = config or get_projection_rebuilder_config()
        self._paused_queues = list(paused_queues)
        self._current: Optional[RebuildProgress] = None
        self._history: List[RebuildProgress] = []

    @property
    def current(self) -> Optional[RebuildProgress]:
        return self._current

    @property
    def history(self) -> List[RebuildProgress]:
        return list(self._history)

    @property
    def is_rebuilding(self) -> bool:
        return self._current is not None and self._current.status == RebuildStatus.IN_PROGRESS

    async def rebuild(self) -> RebuildProgress:
        """
        Rebuild all projections.

        Raises:
            ProjectionRebuildError: rebuilder disabled, a rebuild is already
                running, or the replay itself failed
        """
        if not self._config.enabled:
            raise ProjectionRebuildError("Projection rebuilder is disabled")
        if self.is_rebuilding:
            raise ProjectionRebuildError("A projection rebuild is already in progress")

        progress = RebuildProgress(
            projections=[projector.name for projector in self._event_bus.projectors],
            status=RebuildStatus.IN_PROGRESS,
            started_at=datetime.now(timezone.utc),
        )
        self._current = progress
        interval = max(self._config.progress_log_interval, 1)

        def on_progress(processed: int, total: int) -> None:
            progress.events_processed = processed
            progress.events_total = max(total, processed)
            if processed % interval == 0:
                log.info(f"Rebuild progress: {processed}/{progress.events_total} events")

        log.info(f"Rebuilding projections: {progress.projections}")

        try:
            try:
                for queue in self._paused_queues:
                    await queue.pause()
                result = await self._event_bus.replay(on_progress=on_progress)
            finally:
                for queue in self._paused_queues:
                    queue.resume()
        except Exception as e:
            progress.status = RebuildStatus.FAILED
            progress.completed_at = datetime.now(timezone.utc)
            progress.last_error = str(e)
            self._remember(progress)
            log.error(f"Projection rebuild failed after {progress.events_processed} events: {e}", exc_info=True)
            raise ProjectionRebuildError(f"Projection rebuild failed: {e}") from e

        progress.events_processed = result.events_replayed
        progress.events_total = max(progress.events_total, result.events_replayed)
        progress.errors = [
            {
                "handler": failure.handler,
                "event_type": failure.event_type,
                "sequence_number": failure.sequence_number,
                "error": failure.error,
            }
            for failure in result.failures
        ]
        progress.last_error = result.failures[-1].error if result.failures else None
        progress.metadata = {"last_sequence": result.last_sequence, "duration_ms": round(result.duration_ms, 1)}
        progress.status = RebuildStatus.COMPLETED
        progress.completed_at = datetime.now(timezone.utc)
        self._remember(progress)

        if progress.errors:
            log.warning(
                f"Projection rebuild completed with {len(progress.errors)} handler errors "
                f"({progress.events_processed} events)"
            )
        else:
            log.info(f"Projection rebuild completed: {progress.events_processed} events")
        return progress

    def _remember(self, progress: RebuildProgress) -> None:
        self._history.append(progress)
        if len(self._history) > self._config.keep_history:
            self._history = self._history[-self._config.keep_history:]

    def get_status(self) -> Dict[str, Any]:
        return {
            "enabled": self._config.enabled,
            "current": self._current.to_dict() if self._current else None,
            "history": [p.to_dict() for p in self._history],
        }
