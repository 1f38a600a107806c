"""
AssemblyAI Wire Schemas

Pydantic models mirroring the provider's JSON payloads with bit-exact field
names. Every response field is optional and unknown fields are ignored, so
provider additions never break parsing. Start/end values are milliseconds.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class TranscriptRequest(BaseModel):
    """Body of ``POST /transcript``."""
    model_config = ConfigDict(extra="forbid")
    
    audio_url: str = Field(..., description="Provider-reachable audio URL", min_length=1)
    language_code: str = Field(default="en", description="Spoken language")
    speaker_labels: bool = Field(default=False, description="Enable speaker diarization")
    sentiment_analysis: bool = Field(default=False, description="Enable sentiment analysis")
    punctuate: bool = Field(default=True, description="Add punctuation")
    format_text: bool = Field(default=True, description="Apply text formatting")
    webhook_url: Optional[str] = Field(default=None, description="Completion webhook")
    webhook_auth_header_name: Optional[str] = None
    webhook_auth_header_value: Optional[str] = None
    
    def to_payload(self) -> dict:
        """Serialize for the wire, leaving out unset webhook fields."""
        return self.model_dump(exclude_none=True)


class WordDto(BaseModel):
    """One entry of ``words[]``."""
    model_config = ConfigDict(extra="ignore")
    
    text: Optional[str] = None
    start: Optional[int] = None
    end: Optional[int] = None
    confidence: Optional[float] = None
    speaker: Optional[str] = None


class UtteranceDto(BaseModel):
    """One entry of ``utterances[]``."""
    model_config = ConfigDict(extra="ignore")
    
    start: Optional[int] = None
    end: Optional[int] = None
    speaker: Optional[str] = None
    text: Optional[str] = None
    confidence: Optional[float] = None
    words: Optional[List[WordDto]] = None


class SentimentResultDto(BaseModel):
    """One entry of ``sentiment_analysis_results[]``."""
    model_config = ConfigDict(extra="ignore")
    
    text: Optional[str] = None
    start: Optional[int] = None
    end: Optional[int] = None
    sentiment: Optional[str] = None
    confidence: Optional[float] = None
    speaker: Optional[str] = None


class TranscriptResponse(BaseModel):
    """Body of ``GET /transcript/{id}`` and ``POST /transcript`` responses."""
    model_config = ConfigDict(extra="ignore")
    
    id: Optional[str] = None
    status: Optional[str] = None
    audio_url: Optional[str] = None
    text: Optional[str] = None
    confidence: Optional[float] = None
    language_code: Optional[str] = None
    audio_duration: Optional[float] = None
    utterances: Optional[List[UtteranceDto]] = None
    words: Optional[List[WordDto]] = None
    sentiment_analysis_results: Optional[List[SentimentResultDto]] = None
    error: Optional[str] = None
    created: Optional[str] = None
    completed: Optional[str] = None
    percent_complete: Optional[int] = None


class UploadResponse(BaseModel):
    """Body of ``POST /upload`` responses."""
    model_config = ConfigDict(extra="ignore")
    
    upload_url: str = Field(..., min_length=1)
