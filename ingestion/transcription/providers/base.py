"""
Transcription Service Protocol

Defines the TranscriptionService protocol shared by the base AssemblyAI
service and every decorator composed over it, plus the SilenceAnalyzer
capability consumed by the silence-detection decorator.

Decorators implement the same protocol and delegate to a wrapped service;
they never subclass it.
"""
import asyncio
from typing import Callable, List, Optional, Protocol, Tuple, runtime_checkable

from ingestion.config import TranscriptionOptions
from ingestion.transcription.models import TranscriptionJob, TranscriptionResult


UpdateCallback = Callable[[TranscriptionJob, TranscriptionResult], None]


@runtime_checkable
class TranscriptionService(Protocol):
    """
    Protocol for transcription services.
    
    A service turns a TranscriptionJob into a canonical TranscriptionResult
    in two steps so callers can observe the job between them:
    
    1. ``submit`` - create the remote job (job becomes Queued or Failed)
    2. ``await_result`` - poll until a terminal state
    
    Example:
        >>> job = TranscriptionJob(source_file_path="hearing.wav")
        >>> await service.submit(job, options)
        >>> result = await service.await_result(job, cancel_event)
        >>> print(result.transcript)
    """
    
    async def submit(
        self,
        job: TranscriptionJob,
        options: Optional[TranscriptionOptions] = None
    ) -> TranscriptionJob:
        """
        Submit a job to the remote provider.
        
        Submission failures do not raise; they leave the job Failed with
        ``last_error`` and ``error_kind`` populated.
        
        Args:
            job: Job in the NotStarted state
            options: Submit-request options, service defaults when None
            
        Returns:
            The same job, Queued on success or Failed otherwise
        """
        ...
    
    async def await_result(
        self,
        job: TranscriptionJob,
        cancel_event: Optional[asyncio.Event] = None,
        on_update: Optional[UpdateCallback] = None
    ) -> TranscriptionResult:
        """
        Wait for a submitted job to finish.
        
        Args:
            job: Submitted job
            cancel_event: Cancellation signal checked between polls
            on_update: Called with (job, result) after every poll
            
        Returns:
            Canonical result with status Completed or Failed
            
        Raises:
            TranscriptionCancelledError: If the cancellation signal fired
        """
        ...
    
    async def cancel(self, job: TranscriptionJob) -> bool:
        """
        Best-effort cancellation of a job.
        
        Returns:
            True if the provider accepted the cancel request
        """
        ...
    
    async def transcribe(
        self,
        audio_path: str,
        options: Optional[TranscriptionOptions] = None,
        cancel_event: Optional[asyncio.Event] = None
    ) -> TranscriptionResult:
        """
        Convenience wrapper: create a job, submit it and wait for the result.
        """
        ...


@runtime_checkable
class SilenceAnalyzer(Protocol):
    """Black-box audio analysis returning timed silence intervals."""
    
    async def analyze(self, audio_path: str) -> List[Tuple[int, int]]:
        """
        Find silent stretches in an audio file.
        
        Args:
            audio_path: Local audio file
            
        Returns:
            List of (start_ms, end_ms) pairs
            
        Raises:
            Exception: Any failure; callers treat it as non-fatal
        """
        ...
