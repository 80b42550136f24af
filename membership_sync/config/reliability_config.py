# =============================================================================
# File: membership_sync/config/reliability_config.py
# Description: Retry configuration shared by the job layer
# =============================================================================

from typing import Optional, Callable

from pydantic import BaseModel, ConfigDict


class RetryConfig(BaseModel):
    """Retry configuration."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    max_attempts: int = 3
    initial_delay_ms: int = 100
    max_delay_ms: int = 10000
    backoff_factor: float = 2.0
    jitter: bool = True
    jitter_type: str = "full"
    retry_condition: Optional[Callable[[Exception], bool]] = None
