"""
Resilience Policy

Wraps any asynchronous remote call with retry (exponential backoff plus
jitter) and a shared circuit breaker. Only TransientTransportError is
retried; permanent errors and circuit-open rejections propagate at once.
"""

import asyncio
import logging
import random
from typing import Awaitable, Callable, Optional, TypeVar

from ingestion.resilience.backoff import calculate_backoff_delay
from ingestion.resilience.circuit_breaker import CircuitBreaker
from ingestion.resilience.errors import (
    PermanentTransportError,
    TransientFailureExhausted,
    TransientTransportError,
)


logger = logging.getLogger(__name__)

T = TypeVar("T")

RetryCallback = Callable[[int, Exception], None]


class ResiliencePolicy:
    """Retry and circuit-breaking wrapper for remote operations.
    
    The breaker is injected so that every component calling the same
    endpoint shares one set of failure counters. Retry state lives on the
    stack of ``execute`` and never leaks between callers.
    
    Example:
        >>> breaker = CircuitBreaker("assemblyai")
        >>> policy = ResiliencePolicy(breaker, max_retry_attempts=3)
        >>> result = await policy.execute(lambda: client._get("/transcript/abc"))
    """
    
    def __init__(
        self,
        breaker: CircuitBreaker,
        max_retry_attempts: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 30.0,
        jitter_max: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rng: Optional[random.Random] = None
    ):
        """Initialize the policy.
        
        Args:
            breaker: Circuit breaker shared per endpoint
            max_retry_attempts: Retries after the initial attempt
            base_delay: Backoff base delay in seconds
            max_delay: Backoff cap in seconds (before jitter)
            jitter_max: Maximum random jitter in seconds
            sleep: Awaitable sleep, injectable for tests
            rng: Random source for jitter
        """
        if max_retry_attempts < 0:
            raise ValueError("max_retry_attempts must be >= 0")
        
        self.breaker = breaker
        self.max_retry_attempts = max_retry_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.jitter_max = jitter_max
        self._sleep = sleep
        self._rng = rng
    
    @classmethod
    def from_config(cls, config, breaker: CircuitBreaker, **kwargs) -> "ResiliencePolicy":
        """Build a policy from a ResilienceConfig."""
        return cls(
            breaker,
            max_retry_attempts=config.max_retry_attempts,
            base_delay=config.base_delay,
            max_delay=config.max_delay,
            jitter_max=config.jitter_max,
            **kwargs
        )
    
    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        context: str = "",
        on_retry: Optional[RetryCallback] = None
    ) -> T:
        """Run an operation under retry and circuit-breaker protection.
        
        Args:
            operation: Zero-argument coroutine factory, called once per attempt
            context: Short description used in log messages
            on_retry: Called with (retry_number, error) before each backoff
            
        Returns:
            The operation's result
            
        Raises:
            CircuitOpenError: If the breaker rejects an attempt
            PermanentTransportError: On a non-retryable response
            TransientFailureExhausted: After 1 + max_retry_attempts transient failures
        """
        label = context or getattr(operation, "__name__", "operation")
        last_error: Optional[TransientTransportError] = None
        total_attempts = self.max_retry_attempts + 1
        
        for attempt in range(total_attempts):
            self.breaker.before_call()
            
            try:
                result = await operation()
            
            except TransientTransportError as e:
                self.breaker.record_failure()
                last_error = e
                
                if attempt + 1 >= total_attempts:
                    break
                
                retry_number = attempt + 1
                delay = calculate_backoff_delay(
                    retry_number, self.base_delay, self.max_delay,
                    self.jitter_max, self._rng
                )
                logger.warning(
                    f"Transient error in {label} "
                    f"(attempt {attempt + 1}/{total_attempts}): {e}. "
                    f"Retrying in {delay:.2f}s..."
                )
                if on_retry is not None:
                    on_retry(retry_number, e)
                await self._sleep(delay)
                continue
            
            except PermanentTransportError as e:
                # The endpoint answered, so it is healthy
                self.breaker.record_success()
                logger.error(f"Permanent error in {label}: {e}")
                raise
            
            except BaseException:
                self.breaker.release()
                raise
            
            self.breaker.record_success()
            return result
        
        logger.error(f"All {total_attempts} attempts failed for {label}: {last_error}")
        raise TransientFailureExhausted(total_attempts, last_error) from last_error
