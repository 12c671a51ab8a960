"""Retry policy applied to every Vault request."""
import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from .errors import VaultError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Try at most 10 times in total
DEFAULT_MAX_ATTEMPTS = 10
# Fetching ~50 secrets takes roughly 200ms, so start small
DEFAULT_BASE_DELAY = 0.04


def full_jitter_backoff(base_delay: float = DEFAULT_BASE_DELAY) -> Callable[[int], float]:
    """
    Build a full-jitter exponential backoff.

    Args:
        base_delay: Upper bound of the first delay, in seconds

    Returns:
        Function mapping retry number n (1-based) to a delay drawn
        uniformly from [0, base_delay * 2**(n-1))
    """
    def delay(retry_number: int) -> float:
        return random.random() * base_delay * 2 ** (retry_number - 1)

    return delay


def retry_on_any_error(error: VaultError) -> bool:
    """Retry every failure, permanent ones (403, 404) included."""
    return True


@dataclass(frozen=True)
class RetryPolicy:
    """Run an async action until it succeeds, the predicate refuses, or attempts run out."""
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    backoff: Callable[[int], float] = full_jitter_backoff()
    should_retry: Callable[[VaultError], bool] = retry_on_any_error

    async def run(self, action: Callable[[], Awaitable[T]], label: str = "") -> T:
        """
        Await ``action()`` under this policy.

        Args:
            action: Zero-argument coroutine factory, called once per attempt
            label: Name used in log messages

        Returns:
            Result of the first successful attempt

        Raises:
            VaultError: The error of the last attempt once retrying stops
        """
        attempt = 1
        while True:
            try:
                return await action()
            except VaultError as e:
                if attempt >= self.max_attempts or not self.should_retry(e):
                    logger.debug(f"Giving up on {label} after {attempt} attempt(s): {e!r}")
                    raise
                delay = self.backoff(attempt)
                logger.debug(
                    f"Retry {attempt}/{self.max_attempts - 1} for {label} in {delay:.3f}s after {type(e).__name__}"
                )
                await asyncio.sleep(delay)
                attempt += 1


DEFAULT_RETRY_POLICY = RetryPolicy()
