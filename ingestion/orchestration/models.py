"""
Ingestion Models

Progress, search-document and outcome types produced by the orchestrator.
"""

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, List, Optional

from ingestion.transcription.models import (
    TranscriptionJob,
    TranscriptionResult,
    TranscriptSegment,
)


class IngestionStage(Enum):
    """Stages of one media item's ingestion, in execution order."""
    EXTRACTING_AUDIO = "extracting_audio"
    SUBMITTING = "submitting"
    POLLING = "polling"
    MAPPING = "mapping"
    EXTRACTING_TOPICS = "extracting_topics"
    INDEXING = "indexing"
    PERSISTING = "persisting"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"


# Overall progress when a stage starts; polling fills POLLING..MAPPING
STAGE_PROGRESS = {
    IngestionStage.EXTRACTING_AUDIO: 0.0,
    IngestionStage.SUBMITTING: 10.0,
    IngestionStage.POLLING: 20.0,
    IngestionStage.MAPPING: 70.0,
    IngestionStage.EXTRACTING_TOPICS: 75.0,
    IngestionStage.INDEXING: 80.0,
    IngestionStage.PERSISTING: 90.0,
    IngestionStage.DONE: 100.0,
}


@dataclass
class IngestionProgress:
    """Ephemeral progress of one media item.
    
    Owned by the orchestration task that created it; observers receive
    snapshots.
    """
    media_id: str
    stage: IngestionStage = IngestionStage.EXTRACTING_AUDIO
    progress_percentage: float = 0.0
    errors: List[str] = field(default_factory=list)
    
    def snapshot(self) -> "IngestionProgress":
        return IngestionProgress(
            media_id=self.media_id,
            stage=self.stage,
            progress_percentage=self.progress_percentage,
            errors=list(self.errors),
        )


@dataclass
class SearchDocument:
    """Searchable representation of one transcribed media item."""
    media_id: str
    title: str
    transcript: str
    segments: List[TranscriptSegment] = field(default_factory=list)
    topics: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    
    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class IngestionOutcomeStatus(Enum):
    """Overall classification of an ingestion run."""
    SUCCESS = "success"
    PARTIAL_SUCCESS = "partial_success"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class IngestionOutcome:
    """Final result of processing one media item.
    
    Always produced, whatever happened. Carries the stage reached, the
    stages that failed with their messages, and every artifact that was
    obtained before a failure.
    
    Attributes:
        media_id: Media identifier
        source_path: Original media file
        status: Overall classification
        stage_reached: Last stage entered (DONE, FAILED or CANCELLED when finished)
        audio_path: Extracted audio, if extraction succeeded
        transcript: Canonical transcript, if transcription completed
        topics: Topics, if topic extraction succeeded
        indexed: Whether the search document was indexed
        persisted: Whether metadata was saved
        failed_stages: Stages that failed, in order
        errors: Error messages, in order
        warnings: Non-fatal warnings (e.g. enrichment failures)
        job: The transcription job, once created
        duration: Wall time in seconds
    """
    media_id: str
    source_path: str
    status: IngestionOutcomeStatus = IngestionOutcomeStatus.FAILED
    stage_reached: IngestionStage = IngestionStage.EXTRACTING_AUDIO
    audio_path: Optional[str] = None
    transcript: Optional[TranscriptionResult] = None
    topics: List[str] = field(default_factory=list)
    indexed: bool = False
    persisted: bool = False
    failed_stages: List[IngestionStage] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    job: Optional[TranscriptionJob] = None
    duration: float = 0.0
    
    @property
    def reason(self) -> str:
        """Human-readable failure reason; empty on full success."""
        return "; ".join(self.errors)
    
    @property
    def transcript_obtained(self) -> bool:
        return self.transcript is not None
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            "media_id": self.media_id,
            "source_path": self.source_path,
            "status": self.status.value,
            "stage_reached": self.stage_reached.value,
            "audio_path": self.audio_path,
            "transcript_id": self.transcript.id if self.transcript else None,
            "transcript": self.transcript.transcript if self.transcript else None,
            "topics": list(self.topics),
            "indexed": self.indexed,
            "persisted": self.persisted,
            "failed_stages": [s.value for s in self.failed_stages],
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "remote_job_id": self.job.remote_id if self.job else None,
            "duration": round(self.duration, 3),
        }
