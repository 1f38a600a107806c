"""
Transcription Error Classes

This module defines custom exceptions for transcription operations.
Transport-level failures live in ingestion.resilience.errors; the classes
here describe what went wrong from the transcription job's point of view.
"""


class TranscriptionError(Exception):
    """Base exception for all transcription-related errors."""
    pass


class ConfigurationError(TranscriptionError):
    """Raised when transcription configuration is invalid or missing.
    
    This exception is raised when:
    - The API key is missing
    - The base URL is malformed
    
    Example:
        >>> raise ConfigurationError("AssemblyAI API key not found")
    """
    pass


class SubmissionError(TranscriptionError):
    """Raised when the provider rejects a job submission or upload.
    
    This exception is raised when:
    - Authentication fails
    - The audio URL is invalid
    - The account quota is exceeded
    
    These are permanent failures and are never retried.
    
    Attributes:
        status: HTTP status code returned by the provider, if any
    """
    
    def __init__(self, message: str, status: int = None):
        super().__init__(message)
        self.status = status


class ProviderResponseError(TranscriptionError):
    """Raised when the provider answers with a payload that cannot be parsed.
    
    Example:
        >>> raise ProviderResponseError("Submit response carried no transcript id")
    """
    pass


class InvalidTransitionError(TranscriptionError):
    """Raised when a job status change does not follow a legal edge.
    
    Attributes:
        current: Status the job was in
        requested: Status that was requested
    """
    
    def __init__(self, current, requested):
        super().__init__(
            f"Illegal job status transition: {current.value} -> {requested.value}"
        )
        self.current = current
        self.requested = requested


class TranscriptionCancelledError(TranscriptionError):
    """Raised when a caller-supplied cancellation signal aborts a job.
    
    Cancellation is distinct from failure: the job ends in the Cancelled
    state and this error propagates instead of a Failed result.
    
    Attributes:
        job: The cancelled TranscriptionJob
    """
    
    def __init__(self, job):
        super().__init__(f"Transcription job {job.id} was cancelled")
        self.job = job
