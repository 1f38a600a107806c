"""
Transcription Services

Base AssemblyAI service and the silence-detection decorator, both
implementing the TranscriptionService protocol.
"""

from ingestion.transcription.providers.assemblyai import AssemblyAITranscriptionService
from ingestion.transcription.providers.base import SilenceAnalyzer, TranscriptionService
from ingestion.transcription.providers.silence_detection import SilenceDetectionDecorator

__all__ = [
    "AssemblyAITranscriptionService",
    "SilenceAnalyzer",
    "TranscriptionService",
    "SilenceDetectionDecorator",
]
