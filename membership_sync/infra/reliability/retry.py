# =============================================================================
# File: membership_sync/infra/reliability/retry.py
# Description: Retry with exponential backoff and jitter for job execution
# =============================================================================

import asyncio
import logging
import random
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional, TypeVar

from membership_sync.config.reliability_config import RetryConfig

logger = logging.getLogger("membership_sync.retry")

T = TypeVar('T')


# Jitter strategies
class JitterStrategy(ABC):
    """Base class for jitter strategies."""

    @abstractmethod
    def apply(self, base_delay: float) -> float:
        """Apply jitter to base delay."""


class FullJitter(JitterStrategy):
    """Full jitter: delay = random(0, base_delay)."""

    def apply(self, base_delay: float) -> float:
        return random.uniform(0, base_delay)


class EqualJitter(JitterStrategy):
    """Equal jitter: delay = base_delay/2 + random(0, base_delay/2)."""

    def apply(self, base_delay: float) -> float:
        half = base_delay / 2
        return half + random.uniform(0, half)


def get_jitter_strategy(jitter_type: str) -> JitterStrategy:
    """Get jitter strategy by name."""
    if jitter_type == 'equal':
        return EqualJitter()
    return FullJitter()


def compute_delay_ms(attempt: int, retry_config: RetryConfig) -> float:
    """Backoff delay before the retry that follows `attempt` (1-based), before jitter."""
    return min(
        retry_config.initial_delay_ms * (retry_config.backoff_factor ** (attempt - 1)),
        retry_config.max_delay_ms
    )


# Permanent error marking
class PermanentError(Exception):
    """An error that should not be retried"""

    def __init__(self, *args):
        super().__init__(*args)
        self.__permanent__ = True


def is_permanent(error: Exception) -> bool:
    """Check if an exception is marked as permanent"""
    return getattr(error, '__permanent__', False)


async def retry_async(
        func: Callable[..., Awaitable[T]],
        *args,
        retry_config: Optional[RetryConfig] = None,
        context: str = "operation",
        **kwargs
) -> T:
    """
    Execute an async function, retrying on failure.

    Permanent errors and errors rejected by `retry_config.retry_condition`
    are re-raised immediately. After the last attempt the last error is
    re-raised unchanged.
    """
    if retry_config is None:
        retry_config = RetryConfig()

    jitter_strategy = get_jitter_strategy(retry_config.jitter_type) if retry_config.jitter else None

    for attempt in range(1, retry_config.max_attempts + 1):
        try:
            return await func(*args, **kwargs)

        except Exception as e:
            if is_permanent(e):
                logger.warning(f"Permanent error for {context} on attempt {attempt}: {e}")
                raise

            if retry_config.retry_condition and not retry_config.retry_condition(e):
                logger.warning(
                    f"Retry condition not met for {context} after attempt {attempt}. Error: {e}"
                )
                raise

            if attempt >= retry_config.max_attempts:
                logger.warning(
                    f"Retry exhausted for {context} after {attempt} attempts. Last error: {e}"
                )
                raise

            base_delay_ms = compute_delay_ms(attempt, retry_config)
            actual_delay_ms = jitter_strategy.apply(base_delay_ms) if jitter_strategy else base_delay_ms
            delay_seconds = actual_delay_ms / 1000

            logger.info(
                f"Retry attempt {attempt}/{retry_config.max_attempts} for {context} "
                f"after error: {e}. Waiting {delay_seconds:.2f}s before retry."
            )

            await asyncio.sleep(delay_seconds)

    raise RuntimeError(f"Retry loop for {context} ran zero attempts")
