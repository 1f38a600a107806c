"""
Job Tracker

Drives one TranscriptionJob through its lifecycle:

    NotStarted -> Queued -> Processing -> {Completed | Failed}

with Cancelled reachable from any non-terminal state. Polling is a
cooperative wait loop: the tracker suspends between polls on the caller's
cancellation event, so a cancellation request is honoured within one poll
interval and never interrupts an in-flight request.

Transport and provider failures never escape the tracker; they move the job
to Failed with ``last_error`` and ``error_kind`` populated. Only caller
cancellation propagates, as TranscriptionCancelledError.
"""

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Callable, Optional

from ingestion.config import TranscriptionOptions
from ingestion.resilience.errors import (
    CircuitOpenError,
    PermanentTransportError,
    TransientFailureExhausted,
)
from ingestion.transcription.client import TranscriptionClient
from ingestion.transcription.errors import (
    ProviderResponseError,
    SubmissionError,
    TranscriptionCancelledError,
    TranscriptionError,
)
from ingestion.transcription.mapper import to_canonical
from ingestion.transcription.models import (
    JobErrorKind,
    TranscriptionJob,
    TranscriptionResult,
    TranscriptionStatus,
    can_transition,
)


logger = logging.getLogger(__name__)

UpdateCallback = Callable[[TranscriptionJob, TranscriptionResult], None]


def failed_result(job: TranscriptionJob) -> TranscriptionResult:
    """Canonical result describing a job that ended without a transcript."""
    return TranscriptionResult(
        id=job.remote_id,
        status=job.status,
        error=job.last_error or f"Job ended as {job.status.value}",
    )


class JobTracker:
    """Owns submission, polling and cancellation of transcription jobs.
    
    A tracker holds no per-job state, so one instance can drive many
    concurrent jobs.
    
    Attributes:
        client: Transcription API client
        poll_interval: Seconds between status polls
        max_wait: Optional polling deadline in seconds
    """
    
    def __init__(
        self,
        client: TranscriptionClient,
        poll_interval: float = 5.0,
        max_wait: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        self.client = client
        self.poll_interval = poll_interval
        self.max_wait = max_wait
        self._clock = clock
    
    @staticmethod
    def _retry_observer(job: TranscriptionJob):
        def on_retry(retry_number: int, error: Exception) -> None:
            job.retry_count = retry_number
            job.last_error = str(error)
        return on_retry
    
    @staticmethod
    def _fail(job: TranscriptionJob, message: str, kind: JobErrorKind) -> None:
        job.transition_to(TranscriptionStatus.FAILED, error=message, kind=kind)
        logger.error(f"Job {job.id} failed ({kind.value}): {message}")
    
    async def submit(
        self,
        job: TranscriptionJob,
        options: TranscriptionOptions
    ) -> TranscriptionJob:
        """Upload (when needed) and submit a job.
        
        On success the job is Queued with ``remote_id`` set. Any failure
        moves it to Failed instead of raising.
        
        Args:
            job: Job in the NotStarted state
            options: Submit-request options
            
        Returns:
            The same job, mutated
        """
        if job.status is not TranscriptionStatus.NOT_STARTED:
            logger.debug(f"Job {job.id} already {job.status.value}; skipping submit")
            return job
        
        on_retry = self._retry_observer(job)
        try:
            if not job.audio_url:
                job.retry_count = 0
                job.audio_url = await self.client.upload(job.source_file_path, on_retry=on_retry)
            job.retry_count = 0
            job.remote_id = await self.client.submit(job.audio_url, options, on_retry=on_retry)
        except SubmissionError as e:
            self._fail(job, str(e), JobErrorKind.SUBMISSION)
        except OSError as e:
            self._fail(job, f"Cannot read audio file: {e}", JobErrorKind.SUBMISSION)
        except CircuitOpenError as e:
            self._fail(job, str(e), JobErrorKind.CIRCUIT_OPEN)
        except TransientFailureExhausted as e:
            self._fail(job, str(e), JobErrorKind.TRANSPORT)
        except ProviderResponseError as e:
            self._fail(job, str(e), JobErrorKind.PROTOCOL)
        except TranscriptionError as e:
            self._fail(job, str(e), JobErrorKind.PROTOCOL)
        else:
            job.submitted_at = datetime.now(timezone.utc)
            job.transition_to(TranscriptionStatus.QUEUED)
            logger.info(f"Job {job.id} submitted as {job.remote_id}")
        
        return job
    
    async def track(
        self,
        job: TranscriptionJob,
        cancel_event: Optional[asyncio.Event] = None,
        on_update: Optional[UpdateCallback] = None
    ) -> TranscriptionResult:
        """Poll a submitted job until it reaches a terminal state.
        
        Args:
            job: Submitted job (Queued or Processing)
            cancel_event: Caller's cancellation signal
            on_update: Called with (job, result) after every poll
            
        Returns:
            Canonical result; ``status`` is Completed or Failed
            
        Raises:
            TranscriptionCancelledError: If ``cancel_event`` was set
        """
        if job.is_terminal or not job.remote_id:
            if not job.is_terminal:
                self._fail(job, "Job was never submitted", JobErrorKind.SUBMISSION)
            return failed_result(job)
        
        started = self._clock()
        on_retry = self._retry_observer(job)
        
        while True:
            if cancel_event is not None and cancel_event.is_set():
                await self._cancel(job)
                raise TranscriptionCancelledError(job)
            
            job.retry_count = 0
            try:
                dto = await self.client.get_status(job.remote_id, on_retry=on_retry)
            except CircuitOpenError as e:
                self._fail(job, str(e), JobErrorKind.CIRCUIT_OPEN)
                return failed_result(job)
            except TransientFailureExhausted as e:
                self._fail(job, str(e), JobErrorKind.TRANSPORT)
                return failed_result(job)
            except PermanentTransportError as e:
                self._fail(job, str(e), JobErrorKind.TRANSPORT)
                return failed_result(job)
            except ProviderResponseError as e:
                self._fail(job, str(e), JobErrorKind.PROTOCOL)
                return failed_result(job)
            except TranscriptionError as e:
                self._fail(job, str(e), JobErrorKind.PROTOCOL)
                return failed_result(job)
            
            result = to_canonical(dto)
            self._apply(job, result, dto.status)
            
            if on_update is not None:
                on_update(job, result)
            
            if job.status is TranscriptionStatus.COMPLETED:
                logger.info(f"Job {job.id} ({job.remote_id}) completed")
                return result
            if job.status is TranscriptionStatus.FAILED:
                if not result.error:
                    result.error = job.last_error
                return result
            
            remaining = None
            if self.max_wait is not None:
                remaining = self.max_wait - (self._clock() - started)
                if remaining <= 0:
                    await self.client.cancel(job.remote_id)
                    self._fail(
                        job,
                        f"Gave up waiting for job {job.remote_id} after {self.max_wait:.0f}s",
                        JobErrorKind.TIMEOUT,
                    )
                    return failed_result(job)
            
            delay = self.poll_interval if remaining is None else min(self.poll_interval, remaining)
            await self._wait(cancel_event, delay)
    
    def _apply(self, job: TranscriptionJob, result: TranscriptionResult, raw_status: Optional[str]) -> None:
        status = result.status
        
        if status is TranscriptionStatus.UNKNOWN:
            logger.warning(f"Job {job.remote_id} reported unrecognized status '{raw_status}'; still polling")
            return
        
        if status is TranscriptionStatus.FAILED:
            message = result.error or "Provider reported job failure"
            self._fail(job, message, JobErrorKind.PROVIDER)
            return
        
        if status is job.status or not can_transition(job.status, status):
            # Stale or repeated report; status never moves backwards
            return
        
        job.transition_to(status)
        logger.debug(f"Job {job.remote_id} is {status.value} ({result.percent_complete}%)")
    
    @staticmethod
    async def _wait(cancel_event: Optional[asyncio.Event], delay: float) -> None:
        if cancel_event is None:
            await asyncio.sleep(delay)
            return
        try:
            await asyncio.wait_for(cancel_event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass
    
    async def _cancel(self, job: TranscriptionJob) -> bool:
        """Issue one best-effort remote cancel and mark the job Cancelled."""
        accepted = await self.client.cancel(job.remote_id)
        if not job.is_terminal:
            job.transition_to(TranscriptionStatus.CANCELLED, error="Cancelled by request")
        logger.info(f"Job {job.id} cancelled (remote cancel accepted: {accepted})")
        return accepted
    
    async def cancel(self, job: TranscriptionJob) -> bool:
        """Cancel a job outside of a polling loop.
        
        Returns:
            False if the job was already terminal, else whether the remote
            cancel request was accepted
        """
        if job.is_terminal:
            return False
        return await self._cancel(job)
