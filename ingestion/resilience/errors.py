"""
Resilience Error Classes

Defines the transport-level error taxonomy shared by every remote call.
Transient errors are retried by the ResiliencePolicy; permanent errors and
circuit-open rejections are surfaced to the caller immediately.
"""

from typing import Optional


# HTTP status codes that indicate a transient, retryable condition
RETRYABLE_STATUS_CODES = frozenset({408, 429})


def is_retryable_status(status: int) -> bool:
    """Check whether an HTTP status code should be retried.
    
    Args:
        status: HTTP response status code
        
    Returns:
        True for 408, 429 and any 5xx response, False otherwise
    """
    return status in RETRYABLE_STATUS_CODES or 500 <= status <= 599


class ResilienceError(Exception):
    """Base exception for all resilience-layer errors."""
    pass


class TransientTransportError(ResilienceError):
    """Raised when a remote call fails in a way that may succeed on retry.
    
    This exception is raised when:
    - The connection is refused or reset
    - The request times out
    - The remote service answers 5xx, 408 or 429
    
    Attributes:
        status: HTTP status code, or None for connection-level failures
    """
    
    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class PermanentTransportError(ResilienceError):
    """Raised when the remote service rejects a request outright.
    
    This exception is raised when:
    - Authentication fails (401/403)
    - The request is invalid (400/404/422)
    - Any other 4xx response except 408 and 429
    
    Permanent errors are never retried.
    
    Attributes:
        status: HTTP status code
        body: Response body text, if any
    """
    
    def __init__(self, message: str, status: int, body: str = ""):
        super().__init__(message)
        self.status = status
        self.body = body


class CircuitOpenError(ResilienceError):
    """Raised when a call is rejected because the circuit breaker is open.
    
    The underlying operation is never invoked when this error is raised.
    
    Attributes:
        endpoint: Logical endpoint name guarded by the breaker
        retry_after: Seconds until a trial call will be allowed
    """
    
    def __init__(self, endpoint: str, retry_after: float = 0.0):
        super().__init__(
            f"Circuit open for '{endpoint}'; retry after {retry_after:.1f}s"
        )
        self.endpoint = endpoint
        self.retry_after = retry_after


class TransientFailureExhausted(ResilienceError):
    """Raised when every retry attempt for a transient failure was consumed.
    
    Attributes:
        attempts: Total number of attempts made (initial call plus retries)
        last_error: The final transient error observed
    """
    
    def __init__(self, attempts: int, last_error: Optional[Exception] = None):
        detail = f": {last_error}" if last_error else ""
        super().__init__(f"Gave up after {attempts} attempts{detail}")
        self.attempts = attempts
        self.last_error = last_error
