"""
Bounded retry with exponential backoff and jitter.

Remote calls are made once per run. The only step allowed to repeat is the
post-upload verification, which may trail an attach on an eventually
consistent vector store.
"""

import logging
import random
import time
from typing import Callable, Optional, Tuple, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryConfig:
    """Configuration for retry behavior."""

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 30.0,
        exponential_base: float = 2.0,
        jitter: bool = True,
        jitter_range: Tuple[float, float] = (0.5, 1.5),
        retryable_exceptions: Tuple[Type[Exception], ...] = (Exception,),
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.exponential_base = exponential_base
        self.jitter = jitter
        self.jitter_range = jitter_range
        self.retryable_exceptions = retryable_exceptions

    def calculate_delay(self, attempt: int) -> float:
        """Calculate delay for given attempt with exponential backoff and jitter."""
        delay = self.base_delay * (self.exponential_base ** attempt)
        delay = min(delay, self.max_delay)

        if self.jitter:
            delay *= random.uniform(*self.jitter_range)

        return delay


def call_with_retry(
    func: Callable[[], T],
    config: Optional[RetryConfig] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Call ``func`` until it succeeds or the attempts are used up.

    Exceptions outside ``config.retryable_exceptions`` propagate immediately;
    the last retryable exception is re-raised once attempts run out.

    Example:
        call_with_retry(
            verify,
            RetryConfig(max_attempts=3, retryable_exceptions=(VerificationError,)),
        )
    """
    config = config or RetryConfig(max_attempts=1)

    for attempt in range(config.max_attempts):
        try:
            return func()
        except config.retryable_exceptions as e:
            if attempt == config.max_attempts - 1:
                if config.max_attempts > 1:
                    logger.error(
                        f"All {config.max_attempts} attempts failed for "
                        f"{getattr(func, '__name__', 'call')}: {e}"
                    )
                raise

            delay = config.calculate_delay(attempt)
            logger.warning(
                f"Attempt {attempt + 1}/{config.max_attempts} failed for "
                f"{getattr(func, '__name__', 'call')}: {e}. Retrying in {delay:.2f}s"
            )
            sleep(delay)
