"""Circuit breaker guarding calls to the upstream news APIs."""

import logging
import time
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Set, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CircuitState(str, Enum):
    """States of one upstream's circuit."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half-open"


class CircuitOpenError(Exception):
    """Raised when a circuit breaker is open and the request is rejected."""

    def __init__(self, service: str):
        self.service = service
        super().__init__(f"Circuit breaker is open for upstream: {service}")


class CircuitBreaker:
    """
    Per-upstream circuit breaker.

    Each sub-API (``newsapi.headlines``, ``nytimes.top_stories`` ...) gets its
    own circuit inside one breaker. After ``failure_threshold`` consecutive
    failures the circuit opens and requests are rejected until
    ``reset_timeout`` seconds have elapsed; the next request is then let
    through as a single trial (half-open) and closes the circuit on success.
    Other requests are rejected while the trial is in flight.

    Only exceptions for which ``is_failure`` returns True count toward
    opening a circuit; any other exception still shows the upstream answered.

    Usage:
        breaker = CircuitBreaker(failure_threshold=3, reset_timeout=60)
        payload = await breaker.call("nytimes.search", adapter._request, params)
    """

    def __init__(
        self,
        failure_threshold: int = 3,
        reset_timeout: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
        is_failure: Optional[Callable[[Exception], bool]] = None,
    ):
        """
        Initialize the circuit breaker.

        Args:
            failure_threshold: Consecutive failures before opening a circuit.
            reset_timeout: Seconds an open circuit waits before a trial.
            clock: Monotonic time source, replaceable in tests.
            is_failure: Classifies exceptions raised inside ``call``; every
                exception counts when omitted.
        """
        self.failure_threshold = failure_threshold
        self.reset_timeout = reset_timeout
        self._clock = clock
        self._is_failure = is_failure or (lambda exc: True)

        self._failures: Dict[str, int] = {}
        self._opened_at: Dict[str, float] = {}
        self._state: Dict[str, CircuitState] = {}
        self._trial_in_flight: Set[str] = set()

    def get_state(self, service: str) -> CircuitState:
        """Current state of a service's circuit."""
        state = self._state.get(service, CircuitState.CLOSED)
        if state == CircuitState.OPEN:
            opened_at = self._opened_at.get(service, 0.0)
            if self._clock() - opened_at >= self.reset_timeout:
                return CircuitState.HALF_OPEN
        return state

    def allow_request(self, service: str) -> bool:
        """Whether a request to this service should proceed."""
        state = self.get_state(service)
        if state == CircuitState.OPEN:
            return False
        if state == CircuitState.HALF_OPEN:
            if service in self._trial_in_flight:
                return False
            self._trial_in_flight.add(service)
            self._state[service] = CircuitState.HALF_OPEN
        return True

    def record_failure(self, service: str) -> None:
        """Record a failed upstream call."""
        failures = self._failures.get(service, 0) + 1
        self._failures[service] = failures
        self._trial_in_flight.discard(service)

        if self.get_state(service) == CircuitState.HALF_OPEN:
            self._open(service)
            logger.warning(f"Circuit breaker: {service} failed while half-open, reopening")
        elif failures >= self.failure_threshold:
            self._open(service)
            logger.warning(f"Circuit breaker: {service} opened after {failures} failures")

    def record_success(self, service: str) -> None:
        """Record a successful upstream call and close the circuit."""
        if self.get_state(service) == CircuitState.HALF_OPEN:
            logger.info(f"Circuit breaker: {service} closed after successful trial")
        self._failures[service] = 0
        self._state[service] = CircuitState.CLOSED
        self._trial_in_flight.discard(service)
        self._opened_at.pop(service, None)

    def reset(self, service: Optional[str] = None) -> None:
        """Forget the state of one service, or of all services."""
        if service:
            self._failures.pop(service, None)
            self._opened_at.pop(service, None)
            self._state.pop(service, None)
            self._trial_in_flight.discard(service)
        else:
            self._failures.clear()
            self._opened_at.clear()
            self._state.clear()
            self._trial_in_flight.clear()

    async def call(
        self,
        service: str,
        func: Callable[..., Awaitable[T]],
        *args: Any,
        **kwargs: Any,
    ) -> T:
        """
        Await ``func`` under circuit breaker protection.

        Raises:
            CircuitOpenError: If the circuit is open.
            Exception: Whatever ``func`` raised, after recording it.
        """
        if not self.allow_request(service):
            raise CircuitOpenError(service)

        try:
            result = await func(*args, **kwargs)
        except Exception as e:
            if self._is_failure(e):
                self.record_failure(service)
            else:
                self.record_success(service)
            raise
        finally:
            self._trial_in_flight.discard(service)

        self.record_success(service)
        return result

    def _open(self, service: str) -> None:
        self._state[service] = CircuitState.OPEN
        self._opened_at[service] = self._clock()
