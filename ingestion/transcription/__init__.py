"""
Transcription Module

Canonical transcript model, AssemblyAI wire schemas and mapper, the
resilient API client, the job-tracking state machine and the
transcription services built on them.
"""

from ingestion.transcription.client import TranscriptionClient
from ingestion.transcription.errors import (
    ConfigurationError,
    InvalidTransitionError,
    ProviderResponseError,
    SubmissionError,
    TranscriptionCancelledError,
    TranscriptionError,
)
from ingestion.transcription.factory import TranscriptionServiceFactory
from ingestion.transcription.mapper import map_status, to_canonical
from ingestion.transcription.models import (
    JobErrorKind,
    SilenceInterval,
    TranscriptionJob,
    TranscriptionResult,
    TranscriptionStatus,
    TranscriptSegment,
    Word,
)
from ingestion.transcription.tracker import JobTracker

__all__ = [
    "TranscriptionClient",
    "ConfigurationError",
    "InvalidTransitionError",
    "ProviderResponseError",
    "SubmissionError",
    "TranscriptionCancelledError",
    "TranscriptionError",
    "TranscriptionServiceFactory",
    "map_status",
    "to_canonical",
    "JobErrorKind",
    "SilenceInterval",
    "TranscriptionJob",
    "TranscriptionResult",
    "TranscriptionStatus",
    "TranscriptSegment",
    "Word",
    "JobTracker",
]
