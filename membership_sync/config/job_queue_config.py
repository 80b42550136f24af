# membership_sync/config/job_queue_config.py
# =============================================================================
# File: membership_sync/config/job_queue_config.py
# Description: Job queue / worker pool configuration for external commands
# =============================================================================

from functools import lru_cache

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from membership_sync.common.base.base_config import BaseConfig
from membership_sync.config.reliability_config import RetryConfig


class JobQueueConfig(BaseConfig):
    """Configuration for the asynchronous command worker pool"""

    model_config = SettingsConfigDict(env_prefix='JOB_QUEUE_')

    # Concurrency
    concurrency: int = Field(default=4, ge=1, description="Number of worker tasks")
    max_queue_size: int = Field(default=0, ge=0, description="0 = unbounded")

    # Retry
    max_attempts: int = Field(default=5, ge=1, description="Attempts per command before giving up")
    initial_delay_ms: int = Field(default=500, description="First retry delay")
    max_delay_ms: int = Field(default=30000, description="Retry delay cap")
    backoff_factor: float = Field(default=2.0, description="Exponential backoff factor")
    jitter: bool = Field(default=True, description="Randomize retry delays")

    # Shutdown
    shutdown_timeout_seconds: float = Field(default=10.0, description="Grace period for in-flight jobs")

    def retry_config(self) -> RetryConfig:
        """Build the RetryConfig used for every job."""
        return RetryConfig(
            max_attempts=self.max_attempts,
            initial_delay_ms=self.initial_delay_ms,
            max_delay_ms=self.max_delay_ms,
            backoff_factor=self.backoff_factor,
            jitter=self.jitter,
        )


@lru_cache(maxsize=1)
def get_job_queue_config() -> JobQueueConfig:
    """Get job queue configuration singleton (cached)."""
    return JobQueueConfig()


def reset_job_queue_config() -> None:
    """Reset config singleton (for testing)."""
    get_job_queue_config.cache_clear()
