"""
AssemblyAI Transcription Service

Base TranscriptionService: submission and polling are delegated to a
JobTracker whose remote calls all go through the resilience policy.
"""

import asyncio
import logging
from typing import Optional

from ingestion.config import TranscriptionOptions
from ingestion.transcription.models import TranscriptionJob, TranscriptionResult
from ingestion.transcription.providers.base import UpdateCallback
from ingestion.transcription.tracker import JobTracker


logger = logging.getLogger(__name__)


class AssemblyAITranscriptionService:
    """Transcription service backed by the AssemblyAI API.
    
    Example:
        >>> service = AssemblyAITranscriptionService(tracker, TranscriptionOptions())
        >>> result = await service.transcribe("hearing.wav")
    """
    
    def __init__(self, tracker: JobTracker, default_options: Optional[TranscriptionOptions] = None):
        self.tracker = tracker
        self.default_options = default_options or TranscriptionOptions()
    
    async def submit(
        self,
        job: TranscriptionJob,
        options: Optional[TranscriptionOptions] = None
    ) -> TranscriptionJob:
        return await self.tracker.submit(job, options or self.default_options)
    
    async def await_result(
        self,
        job: TranscriptionJob,
        cancel_event: Optional[asyncio.Event] = None,
        on_update: Optional[UpdateCallback] = None
    ) -> TranscriptionResult:
        return await self.tracker.track(job, cancel_event, on_update)
    
    async def cancel(self, job: TranscriptionJob) -> bool:
        return await self.tracker.cancel(job)
    
    async def transcribe(
        self,
        audio_path: str,
        options: Optional[TranscriptionOptions] = None,
        cancel_event: Optional[asyncio.Event] = None
    ) -> TranscriptionResult:
        job = TranscriptionJob(source_file_path=audio_path)
        await self.submit(job, options)
        return await self.await_result(job, cancel_event)
