"""
Collaborator Protocols

Capabilities the orchestrator consumes without knowing their internals.
Default implementations live in ingestion.adapters.
"""

from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from ingestion.orchestration.models import SearchDocument
from ingestion.transcription.models import TranscriptionResult
from ingestion.transcription.providers.base import SilenceAnalyzer


@runtime_checkable
class AudioExtractor(Protocol):
    """Extracts a transcribable audio track from a media file."""
    
    async def extract_audio(self, source_path: str) -> str:
        """
        Args:
            source_path: Media file (audio or video)
            
        Returns:
            Path of the extracted audio file
            
        Raises:
            AudioExtractionError: If no audio could be produced
        """
        ...


@runtime_checkable
class TopicExtractor(Protocol):
    """Best-effort extraction of topics/tags from a transcript."""
    
    async def extract_topics(self, result: TranscriptionResult) -> List[str]:
        ...


@runtime_checkable
class SearchIndexer(Protocol):
    """Writes search documents to a full-text index."""
    
    async def index(self, document: SearchDocument) -> bool:
        """
        Returns:
            True when the document was indexed
        """
        ...


@runtime_checkable
class MetadataRepository(Protocol):
    """Repository-style persistence of media metadata."""
    
    async def save(self, media_id: str, metadata: Dict[str, Any]) -> bool:
        ...
    
    async def load(self, media_id: str) -> Optional[Dict[str, Any]]:
        ...


__all__ = [
    "AudioExtractor",
    "SilenceAnalyzer",
    "TopicExtractor",
    "SearchIndexer",
    "MetadataRepository",
]
