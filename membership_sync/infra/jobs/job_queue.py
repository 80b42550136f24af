# =============================================================================
# File: membership_sync/infra/jobs/job_queue.py
# Description: Job layer - reactors enqueue commands, workers execute them
#              against the chat workspace with retry and backoff
# =============================================================================

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, List, Optional, Protocol, Type, TypeVar, runtime_checkable

from membership_sync.common.exceptions.exceptions import ExternalActionFailed
from membership_sync.config.job_queue_config import JobQueueConfig, get_job_queue_config
from membership_sync.infra.cqrs.command_executor import Command, CommandExecutor
from membership_sync.infra.metrics.sync_metrics import (
    job_duration_seconds,
    jobs_enqueued_total,
    jobs_failed_total,
    jobs_succeeded_total,
)
from membership_sync.infra.reliability.retry import retry_async

log = logging.getLogger("membership_sync.jobs")

C = TypeVar("C", bound=Command)

FailureSink = Callable[["JobHandle", ExternalActionFailed], None]


class JobStatus(str, Enum):
    QUEUED = "queued"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class JobHandle:
    """Tracks one enqueued command through execution."""
    command: Command
    job_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    status: JobStatus = JobStatus.QUEUED
    attempts: int = 0
    error: Optional[ExternalActionFailed] = None
    enqueued_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: Optional[datetime] = None
    _done: asyncio.Event = field(default_factory=asyncio.Event, repr=False)

    @property
    def command_name(self) -> str:
        return type(self.command).__name__

    @property
    def done(self) -> bool:
        return self._done.is_set()

    async def wait(self) -> JobStatus:
        await self._done.wait()
        return self.status

    def _finish(self, status: JobStatus, error: Optional[ExternalActionFailed] = None) -> None:
        self.status = status
        self.error = error
        self.finished_at = datetime.now(timezone.utc)
        self._done.set()


@runtime_checkable
class JobQueue(Protocol):
    """What reactors see of the job layer."""

    async def enqueue(self, command: Command) -> JobHandle: ...


@runtime_checkable
class PausableJobQueue(JobQueue, Protocol):
    """A job layer that can hold execution while read models are rebuilt."""

    async def pause(self) -> None: ...

    def resume(self) -> None: ...


class RecordingJobQueue:
    """
    Records enqueued commands without executing them.

    Used by tests and dry runs to observe exactly what reactors decided.
    """

    def __init__(self) -> None:
        self.handles: List[JobHandle] = []

    async def enqueue(self, command: Command) -> JobHandle:
        handle = JobHandle(command=command)
        self.handles.append(handle)
        jobs_enqueued_total.labels(command=handle.command_name).inc()
        return handle

    @property
    def commands(self) -> List[Command]:
        return [handle.command for handle in self.handles]

    def commands_of(self, command_type: Type[C]) -> List[C]:
        return [c for c in self.commands if isinstance(c, command_type)]

    def clear(self) -> None:
        self.handles = []


class AsyncJobQueue:
    """
    asyncio.Queue drained by a pool of worker tasks.

    Every job runs through retry_async. A job that exhausts its attempts is
    marked FAILED with an ExternalActionFailed, logged, counted and handed
    to the failure sink. Nothing is propagated back to the reactor or the
    event log.
    """

    def __init__(
            self,
            executor: CommandExecutor,
            config: Optional[JobQueueConfig] = None,
            failure_sink: Optional[FailureSink] = None,
    ):
        self._executor = executor
        self._config = config or get_job_queue_config()
        self._retry_config = self._config.retry_config()
        self._failure_sink = failure_sink

        self._queue: asyncio.Queue[JobHandle] = asyncio.Queue(maxsize=self._config.max_queue_size)
        self._workers: List[asyncio.Task] = []
        self._running = False

        # Attempts start only while set; _idle is set when none is in flight
        self._gate = asyncio.Event()
        self._gate.set()
        self._idle = asyncio.Event()
        self._idle.set()
        self._active = 0

        self.failed: List[JobHandle] = []

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    @property
    def is_paused(self) -> bool:
        return not self._gate.is_set()

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._workers = [
            asyncio.create_task(self._worker(i), name=f"membership-sync-job-worker-{i}")
            for i in range(self._config.concurrency)
        ]
        log.info(f"Job queue started with {self._config.concurrency} workers")

    async def enqueue(self, command: Command) -> JobHandle:
        if not self._running:
            raise RuntimeError("AsyncJobQueue.start() must be awaited before enqueue()")
        if not self._executor.has_handler(type(command)):
            raise LookupError(f"No handler registered for {command.command_name}")

        handle = JobHandle(command=command)
        await self._queue.put(handle)
        jobs_enqueued_total.labels(command=handle.command_name).inc()
        log.debug(f"Enqueued {handle.command_name} as job {handle.job_id}")
        return handle

    async def pause(self) -> None:
        """
        Stop starting new attempts and wait for in-flight ones to finish.

        Jobs can still be enqueued while paused; they run after resume().
        """
        self._gate.clear()
        await self._idle.wait()
        log.info(f"Job queue paused with {self._queue.qsize()} jobs waiting")

    def resume(self) -> None:
        self._gate.set()
        log.info("Job queue resumed")

    async def join(self) -> None:
        """Wait until every enqueued job has finished."""
        await self._queue.join()

    async def stop(self, timeout: Optional[float] = None) -> None:
        """Let in-flight jobs finish for up to `timeout` seconds, then cancel workers."""
        if not self._running:
            return

        timeout = self._config.shutdown_timeout_seconds if timeout is None else timeout
        try:
            await asyncio.wait_for(self._queue.join(), timeout=timeout)
        except asyncio.TimeoutError:
            log.warning(f"Job queue stop timed out with {self._queue.qsize()} jobs pending")

        self._running = False
        for worker in self._workers:
            worker.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []
        log.info("Job queue stopped")

    async def _worker(self, index: int) -> None:
        while True:
            handle = await self._queue.get()
            try:
                await self._run(handle)
            finally:
                self._queue.task_done()

    async def _run(self, handle: JobHandle) -> None:
        handle.status = JobStatus.RUNNING
        started = time.monotonic()

        async def attempt() -> None:
            await self._gate.wait()
            handle.attempts += 1
            self._active += 1
            self._idle.clear()
            try:
                await self._executor.execute(handle.command)
            finally:
                self._active -= 1
                if self._active == 0:
                    self._idle.set()

        try:
            await retry_async(
                attempt,
                retry_config=self._retry_config,
                context=f"{handle.command_name} (job {handle.job_id})",
            )
        except Exception as e:
            failure = ExternalActionFailed(
                f"{handle.command_name} failed after {handle.attempts} attempts: {e}",
                command_name=handle.command_name,
                attempts=handle.attempts,
            )
            failure.__cause__ = e
            handle._finish(JobStatus.FAILED, failure)
            self.failed.append(handle)
            jobs_failed_total.labels(command=handle.command_name).inc()
            log.error(f"Job {handle.job_id} gave up: {failure}")
            if self._failure_sink is not None:
                try:
                    self._failure_sink(handle, failure)
                except Exception as sink_error:
                    log.error(f"Failure sink raised for job {handle.job_id}: {sink_error}", exc_info=True)
        else:
            handle._finish(JobStatus.SUCCEEDED)
            jobs_succeeded_total.labels(command=handle.command_name).inc()
        finally:
            job_duration_seconds.labels(command=handle.command_name).observe(time.monotonic() - started)
