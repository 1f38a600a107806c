"""
Resilience Module

Retry with exponential backoff and jitter plus a shared, thread-safe circuit
breaker for every remote call.
"""

from ingestion.resilience.backoff import calculate_backoff_delay
from ingestion.resilience.circuit_breaker import CircuitBreaker, CircuitState
from ingestion.resilience.errors import (
    CircuitOpenError,
    PermanentTransportError,
    ResilienceError,
    TransientFailureExhausted,
    TransientTransportError,
    is_retryable_status,
)
from ingestion.resilience.policy import ResiliencePolicy

__all__ = [
    "calculate_backoff_delay",
    "CircuitBreaker",
    "CircuitState",
    "CircuitOpenError",
    "PermanentTransportError",
    "ResilienceError",
    "TransientFailureExhausted",
    "TransientTransportError",
    "is_retryable_status",
    "ResiliencePolicy",
]
