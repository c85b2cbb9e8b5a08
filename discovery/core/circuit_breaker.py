"""
Circuit Breaker guarding the content repository boundary.
Fails fast while the repository keeps failing; it never retries a call.
"""
import logging
import time
from enum import Enum
from threading import Lock
from typing import Awaitable, Callable, Optional, TypeVar

from discovery.core.exceptions import CircuitBreakerOpenError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CircuitState(Enum):
    CLOSED = "closed"
    OPEN = "open"  # repository calls short-circuited
    HALF_OPEN = "half_open"  # next call is a trial


class CircuitBreaker:
    """
    Thread-safe circuit breaker for awaitable calls.

    Usage:
        breaker = CircuitBreaker("content_repository", failure_threshold=5)
        items = await breaker.call(repository.load_all_content)
    """

    def __init__(
        self,
        name: str,
        failure_threshold: int = 5,
        recovery_timeout_sec: float = 30,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._name = name
        self._failure_threshold = failure_threshold
        self._recovery_timeout_sec = recovery_timeout_sec
        self._clock = clock

        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._last_failure_time: Optional[float] = None
        self._lock = Lock()

    @property
    def state(self) -> CircuitState:
        return self._state

    @property
    def name(self) -> str:
        return self._name

    @property
    def failure_count(self) -> int:
        """Consecutive failures since the last success."""
        return self._failure_count

    async def call(self, func: Callable[[], Awaitable[T]]) -> T:
        """
        Await ``func()`` through the circuit breaker.

        Raises:
            CircuitBreakerOpenError: If the circuit is open
            Exception: Whatever ``func`` raised (the failure is counted)
        """
        with self._lock:
            if self._state == CircuitState.OPEN:
                if self._should_attempt_reset():
                    self._state = CircuitState.HALF_OPEN
                    logger.info(f"Circuit breaker '{self._name}' entering HALF_OPEN")
                else:
                    raise CircuitBreakerOpenError(self._name)

        try:
            result = await func()
        except Exception:
            self._on_failure()
            raise

        self._on_success()
        return result

    def _on_success(self) -> None:
        with self._lock:
            self._failure_count = 0
            if self._state == CircuitState.HALF_OPEN:
                self._state = CircuitState.CLOSED
                logger.info(f"Circuit breaker '{self._name}' recovered to CLOSED")

    def _on_failure(self) -> None:
        with self._lock:
            self._failure_count += 1
            self._last_failure_time = self._clock()

            if (
                self._state == CircuitState.HALF_OPEN
                or self._failure_count >= self._failure_threshold
            ):
                self._state = CircuitState.OPEN
                logger.error(
                    f"Circuit breaker '{self._name}' OPENED after "
                    f"{self._failure_count} failures"
                )

    def _should_attempt_reset(self) -> bool:
        """True once the recovery timeout has elapsed since the last failure."""
        if self._last_failure_time is None:
            return True
        elapsed = self._clock() - self._last_failure_time
        return elapsed >= self._recovery_timeout_sec

    def reset(self) -> None:
        """Close the circuit and forget recorded failures."""
        with self._lock:
            self._state = CircuitState.CLOSED
            self._failure_count = 0
            self._last_failure_time = None
            logger.info(f"Circuit breaker '{self._name}' manually reset")
