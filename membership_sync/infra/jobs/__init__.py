from membership_sync.infra.jobs.job_queue import (
    AsyncJobQueue,
    JobHandle,
    JobQueue,
    JobStatus,
    PausableJobQueue,
    RecordingJobQueue,
)

__all__ = [
    "AsyncJobQueue",
    "JobHandle",
    "JobQueue",
    "JobStatus",
    "PausableJobQueue",
    "RecordingJobQueue",
]
