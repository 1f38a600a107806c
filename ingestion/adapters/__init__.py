"""
Default Collaborators

ffmpeg-based audio extraction and silence analysis, and JSON-file search
index and metadata repository.
"""

from ingestion.adapters.ffmpeg_audio import FFmpegAudioExtractor
from ingestion.adapters.ffmpeg_silence import FFmpegSilenceAnalyzer, parse_silencedetect_output
from ingestion.adapters.json_store import JsonFileIndexer, JsonMetadataRepository

__all__ = [
    "FFmpegAudioExtractor",
    "FFmpegSilenceAnalyzer",
    "parse_silencedetect_output",
    "JsonFileIndexer",
    "JsonMetadataRepository",
]
