"""
Trial Media Ingestion

Turns recorded hearing media into searchable, persisted transcripts:
audio extraction, remote transcription job tracking with retry and
circuit-breaker resilience, silence-detection enrichment, indexing and
metadata persistence.
"""

__version__ = "0.2.0"
