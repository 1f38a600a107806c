"""
Ingestion Error Classes

Errors raised by the orchestration layer and by the default collaborator
adapters. The orchestrator converts all of them into an IngestionOutcome;
none escape process_media.
"""


class IngestionError(Exception):
    """Base exception for all ingestion-related errors."""
    pass


class AudioExtractionError(IngestionError):
    """Raised when audio cannot be extracted from a media file.
    
    This exception is raised when:
    - The media file doesn't exist
    - ffmpeg is missing or exits with an error
    - The media file has no audio stream
    """
    pass


class SilenceAnalysisError(IngestionError):
    """Raised when silence analysis of an audio file fails."""
    pass


class IndexingError(IngestionError):
    """Raised when a search document cannot be written to the index."""
    pass


class PersistenceError(IngestionError):
    """Raised when media metadata cannot be saved or loaded."""
    pass


class IngestionCancelledError(IngestionError):
    """Raised internally when the cancellation signal interrupts a stage.
    
    Attributes:
        stage: Stage that was running when cancellation was observed
    """
    
    def __init__(self, stage=None):
        label = stage.value if stage is not None else "unknown stage"
        super().__init__(f"Ingestion cancelled during {label}")
        self.stage = stage
