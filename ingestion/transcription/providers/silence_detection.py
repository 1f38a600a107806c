"""
Silence Detection Decorator

Wraps any TranscriptionService and adds silence intervals to completed
results. Analysis starts as soon as the job is submitted and runs
concurrently with provider polling.

A failing analysis never downgrades the transcription: the wrapped
service's result is returned with only a warning appended.
"""

import asyncio
import logging
from dataclasses import replace
from typing import Dict, List, Optional, Tuple

from ingestion.config import TranscriptionOptions
from ingestion.transcription.models import (
    SilenceInterval,
    TranscriptionJob,
    TranscriptionResult,
)
from ingestion.transcription.providers.base import (
    SilenceAnalyzer,
    TranscriptionService,
    UpdateCallback,
)


logger = logging.getLogger(__name__)


def to_silence_intervals(pairs: List[Tuple[int, int]]) -> List[SilenceInterval]:
    """Normalize analyzer output into ordered SilenceInterval objects."""
    intervals = []
    for start, end in pairs:
        start_ms = max(0, int(start))
        intervals.append(SilenceInterval(start_ms, max(start_ms, int(end))))
    intervals.sort(key=lambda s: s.start_time)
    return intervals


class SilenceDetectionDecorator:
    """TranscriptionService decorator adding silence intervals.
    
    Example:
        >>> service = SilenceDetectionDecorator(base_service, FFmpegSilenceAnalyzer())
        >>> result = await service.transcribe("hearing.wav")
        >>> result.silences
        [SilenceInterval(start_time=0, end_time=2300)]
    """
    
    def __init__(self, inner: TranscriptionService, analyzer: SilenceAnalyzer):
        self.inner = inner
        self.analyzer = analyzer
        self._pending: Dict[str, asyncio.Task] = {}
    
    def _start_analysis(self, job: TranscriptionJob) -> asyncio.Task:
        task = asyncio.ensure_future(self.analyzer.analyze(job.source_file_path))
        self._pending[job.id] = task
        return task
    
    def _discard_analysis(self, job: TranscriptionJob) -> None:
        task = self._pending.pop(job.id, None)
        if task is None:
            return
        if not task.done():
            task.cancel()
        elif not task.cancelled():
            # Mark a finished failure as retrieved
            task.exception()
    
    async def submit(
        self,
        job: TranscriptionJob,
        options: Optional[TranscriptionOptions] = None
    ) -> TranscriptionJob:
        await self.inner.submit(job, options)
        if not job.is_terminal and job.source_file_path and job.id not in self._pending:
            self._start_analysis(job)
        return job
    
    async def await_result(
        self,
        job: TranscriptionJob,
        cancel_event: Optional[asyncio.Event] = None,
        on_update: Optional[UpdateCallback] = None
    ) -> TranscriptionResult:
        try:
            result = await self.inner.await_result(job, cancel_event, on_update)
        except BaseException:
            self._discard_analysis(job)
            raise
        
        if not result.success:
            self._discard_analysis(job)
            return result
        
        task = self._pending.pop(job.id, None)
        if task is None:
            task = asyncio.ensure_future(self.analyzer.analyze(job.source_file_path))
        
        try:
            pairs = await task
            silences = to_silence_intervals(pairs)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Silence detection failed for job {job.id}: {e}")
            return replace(
                result,
                warnings=result.warnings + [f"Silence detection failed: {e}"]
            )
        
        logger.debug(f"Job {job.id}: {len(silences)} silence intervals detected")
        return replace(result, silences=silences)
    
    async def cancel(self, job: TranscriptionJob) -> bool:
        self._discard_analysis(job)
        return await self.inner.cancel(job)
    
    async def transcribe(
        self,
        audio_path: str,
        options: Optional[TranscriptionOptions] = None,
        cancel_event: Optional[asyncio.Event] = None
    ) -> TranscriptionResult:
        job = TranscriptionJob(source_file_path=audio_path)
        await self.submit(job, options)
        return await self.await_result(job, cancel_event)
