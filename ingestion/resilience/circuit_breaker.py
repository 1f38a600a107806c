"""
Circuit Breaker

One breaker instance guards one logical remote endpoint and is shared by
every job calling that endpoint. All state transitions happen under a lock
so concurrent callers (tasks or threads) observe a consistent state.

Failure counting: failures are counted consecutively. The counter resets on
any success, and also when the first failure of the current streak is older
than the sampling window, so sparse failures spread over a long period never
add up to a trip.
"""

import logging
import threading
import time
from enum import Enum
from typing import Callable, Optional

from ingestion.resilience.errors import CircuitOpenError


logger = logging.getLogger(__name__)


class CircuitState(Enum):
    """Circuit breaker states."""
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreaker:
    """Consecutive-failure circuit breaker for a single endpoint.
    
    Protocol for callers:
    1. ``before_call()`` - raises CircuitOpenError when the call must not run
    2. run the call
    3. exactly one of ``record_success()``, ``record_failure()`` or
       ``release()`` (outcome says nothing about endpoint health)
    
    Example:
        >>> breaker = CircuitBreaker("assemblyai", failure_threshold=5)
        >>> breaker.before_call()
        >>> breaker.record_success()
    """
    
    def __init__(
        self,
        endpoint: str,
        failure_threshold: int = 5,
        open_duration: float = 60.0,
        sampling_window: float = 30.0,
        clock: Callable[[], float] = time.monotonic
    ):
        """Initialize circuit breaker.
        
        Args:
            endpoint: Logical endpoint name, used in errors and logs
            failure_threshold: Consecutive failures that open the circuit
            open_duration: Seconds the circuit stays open before a trial call
            sampling_window: Seconds a failure streak may span before resetting
            clock: Monotonic time source in seconds
        """
        if failure_threshold < 1:
            raise ValueError("failure_threshold must be >= 1")
        
        self.endpoint = endpoint
        self.failure_threshold = failure_threshold
        self.open_duration = open_duration
        self.sampling_window = sampling_window
        self._clock = clock
        self._lock = threading.Lock()
        
        self._state = CircuitState.CLOSED
        self._consecutive_failures = 0
        self._streak_started_at: Optional[float] = None
        self._opened_at: Optional[float] = None
        self._trial_in_flight = False
    
    @property
    def state(self) -> CircuitState:
        with self._lock:
            return self._state
    
    @property
    def consecutive_failures(self) -> int:
        with self._lock:
            return self._consecutive_failures
    
    @property
    def opened_at(self) -> Optional[float]:
        with self._lock:
            return self._opened_at
    
    def before_call(self) -> None:
        """Admit or reject a call.
        
        Raises:
            CircuitOpenError: If the circuit is open, or half-open with the
                single trial call already in flight
        """
        with self._lock:
            if self._state is CircuitState.CLOSED:
                return
            
            now = self._clock()
            if self._state is CircuitState.OPEN:
                elapsed = now - self._opened_at
                if elapsed < self.open_duration:
                    raise CircuitOpenError(self.endpoint, self.open_duration - elapsed)
                self._state = CircuitState.HALF_OPEN
                self._trial_in_flight = True
                logger.info(f"Circuit for '{self.endpoint}' half-open, allowing trial call")
                return
            
            # Half-open: only one trial at a time
            if self._trial_in_flight:
                raise CircuitOpenError(self.endpoint, 0.0)
            self._trial_in_flight = True
    
    def record_success(self) -> None:
        """Record a call that reached the endpoint and got an answer."""
        with self._lock:
            if self._state is not CircuitState.CLOSED:
                logger.info(f"Circuit for '{self.endpoint}' closed after successful trial")
            self._state = CircuitState.CLOSED
            self._consecutive_failures = 0
            self._streak_started_at = None
            self._opened_at = None
            self._trial_in_flight = False
    
    def record_failure(self) -> None:
        """Record a transport failure against the endpoint."""
        with self._lock:
            now = self._clock()
            
            if self._state is CircuitState.HALF_OPEN:
                self._trip(now)
                return
            
            if self._state is CircuitState.OPEN:
                return
            
            if (
                self._streak_started_at is None
                or now - self._streak_started_at > self.sampling_window
            ):
                self._consecutive_failures = 0
                self._streak_started_at = now
            
            self._consecutive_failures += 1
            if self._consecutive_failures >= self.failure_threshold:
                self._trip(now)
    
    def release(self) -> None:
        """Give back a half-open trial slot without judging the endpoint."""
        with self._lock:
            if self._state is CircuitState.HALF_OPEN:
                self._trial_in_flight = False
    
    def reset(self) -> None:
        """Force the breaker back to closed."""
        self.record_success()
    
    def _trip(self, now: float) -> None:
        # Caller holds the lock
        self._state = CircuitState.OPEN
        self._opened_at = now
        self._trial_in_flight = False
        logger.warning(
            f"Circuit for '{self.endpoint}' opened after "
            f"{self._consecutive_failures} consecutive failures; "
            f"cooling down for {self.open_duration:.0f}s"
        )
