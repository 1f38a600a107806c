"""
Orchestration Module

Sequences audio extraction, transcription, topic extraction, indexing and
persistence for media items, singly or in bounded-concurrency batches.
"""

from ingestion.orchestration.batch import BatchIngestor, BatchReport
from ingestion.orchestration.errors import (
    AudioExtractionError,
    IndexingError,
    IngestionCancelledError,
    IngestionError,
    PersistenceError,
    SilenceAnalysisError,
)
from ingestion.orchestration.models import (
    IngestionOutcome,
    IngestionOutcomeStatus,
    IngestionProgress,
    IngestionStage,
    SearchDocument,
)
from ingestion.orchestration.orchestrator import IngestionOrchestrator

__all__ = [
    "BatchIngestor",
    "BatchReport",
    "AudioExtractionError",
    "IndexingError",
    "IngestionCancelledError",
    "IngestionError",
    "PersistenceError",
    "SilenceAnalysisError",
    "IngestionOutcome",
    "IngestionOutcomeStatus",
    "IngestionProgress",
    "IngestionStage",
    "SearchDocument",
    "IngestionOrchestrator",
]
