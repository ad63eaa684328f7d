"""Bounded retry with exponential backoff for blob store calls."""
import time
from dataclasses import dataclass
from typing import Callable, Tuple, Type, TypeVar

from geoexport.utils.logging import log_structured

T = TypeVar("T")


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for retry behavior."""
    max_attempts: int = 3
    base_wait: float = 5.0
    multiplier: float = 3.0
    max_wait: float = 60.0

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_wait < 0:
            raise ValueError("base_wait must be >= 0")
        if self.multiplier < 1:
            raise ValueError("multiplier must be >= 1")
        if self.max_wait < self.base_wait:
            raise ValueError("max_wait must be >= base_wait")

    def wait_for(self, attempt: int) -> float:
        """Seconds to sleep after the given failed attempt (1-based)."""
        return min(self.base_wait * (self.multiplier ** (attempt - 1)), self.max_wait)


def call_with_retry(
    func: Callable[..., T],
    *args,
    config: RetryConfig = RetryConfig(),
    retry_on: Tuple[Type[BaseException], ...] = (OSError,),
    operation: str = "",
    sleep: Callable[[float], None] = time.sleep,
    **kwargs
) -> T:
    """
    Call ``func`` and retry on transient errors.

    Args:
        func: Callable to invoke
        config: Attempts and backoff settings
        retry_on: Exception types treated as transient
        operation: Name used in log lines
        sleep: Sleep function (injectable for tests)

    Returns:
        Whatever ``func`` returns

    Raises:
        The last transient error once attempts are exhausted, or any
        non-transient error immediately.
    """
    operation = operation or getattr(func, "__name__", "operation")
    for attempt in range(1, config.max_attempts + 1):
        try:
            return func(*args, **kwargs)
        except retry_on as e:
            if attempt == config.max_attempts:
                log_structured(
                    "error",
                    f"{operation} failed after {attempt} attempts",
                    operation=operation,
                    attempts=attempt,
                    error=str(e)
                )
                raise
            wait = config.wait_for(attempt)
            log_structured(
                "warning",
                f"{operation} failed, retrying",
                operation=operation,
                attempt=attempt,
                wait_seconds=wait,
                error=str(e)
            )
            sleep(wait)
