"""
Canonical Transcription Model

Provider-agnostic representation of transcription jobs and transcripts.
Every downstream consumer (indexing, persistence, CLI output) works with
these types, never with provider wire DTOs.

All times are milliseconds.
"""

import uuid
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from ingestion.transcription.errors import InvalidTransitionError


class TranscriptionStatus(Enum):
    """Lifecycle status of a transcription job."""
    NOT_STARTED = "not_started"
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"
    
    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({
    TranscriptionStatus.COMPLETED,
    TranscriptionStatus.FAILED,
    TranscriptionStatus.CANCELLED,
})

# Forward rank; a job may only move to a strictly higher rank
_STATUS_RANK = {
    TranscriptionStatus.NOT_STARTED: 0,
    TranscriptionStatus.QUEUED: 1,
    TranscriptionStatus.PROCESSING: 2,
    TranscriptionStatus.COMPLETED: 3,
    TranscriptionStatus.FAILED: 3,
    TranscriptionStatus.CANCELLED: 3,
}


def can_transition(current: TranscriptionStatus, requested: TranscriptionStatus) -> bool:
    """Check whether a job may move from ``current`` to ``requested``.
    
    Legal edges: NotStarted -> Queued -> Processing -> {Completed | Failed},
    where intermediate states may be skipped, plus Cancelled from any
    non-terminal state. Nothing leaves a terminal state and nothing enters
    NotStarted or Unknown.
    """
    if current.is_terminal:
        return False
    if requested not in _STATUS_RANK or requested is TranscriptionStatus.NOT_STARTED:
        return False
    if requested is TranscriptionStatus.CANCELLED:
        return True
    return _STATUS_RANK[requested] > _STATUS_RANK[current]


class JobErrorKind(Enum):
    """Why a job ended in the Failed state."""
    SUBMISSION = "submission"
    TRANSPORT = "transport"
    CIRCUIT_OPEN = "circuit_open"
    PROVIDER = "provider"
    TIMEOUT = "timeout"
    PROTOCOL = "protocol"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class TranscriptionJob:
    """One remote unit of work.
    
    ``id`` is the local correlation id; ``remote_id`` is assigned by the
    provider when submission succeeds. Only the JobTracker mutates a job.
    
    Attributes:
        source_file_path: Local audio file to transcribe
        audio_url: Provider-reachable audio URL (set after upload if empty)
        id: Local correlation id
        remote_id: Provider transcript id, empty until submitted
        status: Current lifecycle status
        submitted_at: When the provider accepted the job
        completed_at: When the job reached a terminal status
        retry_count: Retries consumed by the current remote call
        last_error: Most recent error message, kept after failure
        error_kind: Classification of the failure, when failed
        history: Every status the job has been in, in order
    """
    source_file_path: str
    audio_url: str = ""
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    remote_id: str = ""
    status: TranscriptionStatus = TranscriptionStatus.NOT_STARTED
    submitted_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    retry_count: int = 0
    last_error: str = ""
    error_kind: Optional[JobErrorKind] = None
    history: List[TranscriptionStatus] = field(default_factory=list)
    
    def __post_init__(self):
        if not self.history:
            self.history.append(self.status)
    
    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal
    
    def transition_to(
        self,
        status: TranscriptionStatus,
        error: Optional[str] = None,
        kind: Optional[JobErrorKind] = None
    ) -> bool:
        """Move the job to a new status.
        
        Args:
            status: Requested status
            error: Error message to record
            kind: Failure classification to record
            
        Returns:
            True if the status changed, False if it was already ``status``
            
        Raises:
            InvalidTransitionError: If the edge is not legal
        """
        if status is self.status:
            return False
        if not can_transition(self.status, status):
            raise InvalidTransitionError(self.status, status)
        
        self.status = status
        self.history.append(status)
        if error:
            self.last_error = error
        if kind is not None:
            self.error_kind = kind
        if status.is_terminal:
            self.completed_at = _utcnow()
        return True


@dataclass(frozen=True)
class Word:
    """A single recognized word."""
    text: str
    start_time: int
    end_time: int
    confidence: float


@dataclass(frozen=True)
class TranscriptSegment:
    """A contiguous stretch of speech, usually one speaker turn.
    
    Attributes:
        text: Segment text
        start_time: Start in milliseconds
        end_time: End in milliseconds, never before start_time
        confidence: Recognition confidence in [0.0, 1.0]
        speaker: Speaker label, if diarization ran
        sentiment: Dominant sentiment label, if sentiment analysis ran
        words: Words in the segment, ordered by start time
    """
    text: str
    start_time: int
    end_time: int
    confidence: float
    speaker: Optional[str] = None
    sentiment: Optional[str] = None
    words: List[Word] = field(default_factory=list)


@dataclass(frozen=True)
class SilenceInterval:
    """A stretch of silence in the audio, in milliseconds."""
    start_time: int
    end_time: int
    
    @property
    def duration(self) -> int:
        return self.end_time - self.start_time


@dataclass
class TranscriptionResult:
    """Canonical transcript.
    
    Attributes:
        id: Provider transcript id
        status: Canonical status of the provider job
        transcript: Full transcript text
        detected_language: Language code reported by the provider
        percent_complete: Progress 0-100, None until known
        error: Provider error message, empty when successful
        confidence: Overall confidence in [0.0, 1.0], if reported
        audio_duration: Audio duration in seconds, as reported by the provider
        segments: Segments ordered by start time; overlap is possible
        silences: Silence intervals, filled by silence detection
        warnings: Non-fatal problems met while producing this result
    """
    id: str = ""
    status: TranscriptionStatus = TranscriptionStatus.UNKNOWN
    transcript: str = ""
    detected_language: str = ""
    percent_complete: Optional[int] = None
    error: str = ""
    confidence: Optional[float] = None
    audio_duration: Optional[float] = None
    segments: List[TranscriptSegment] = field(default_factory=list)
    silences: List[SilenceInterval] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    
    @property
    def success(self) -> bool:
        return self.status is TranscriptionStatus.COMPLETED and not self.error
    
    @property
    def speakers(self) -> List[str]:
        """Distinct speaker labels in order of first appearance."""
        seen = []
        for segment in self.segments:
            if segment.speaker and segment.speaker not in seen:
                seen.append(segment.speaker)
        return seen
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        data = asdict(self)
        data["status"] = self.status.value
        return data
