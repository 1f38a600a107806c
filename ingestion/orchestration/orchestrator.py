"""
Ingestion Orchestrator

Runs one media item through the pipeline, strictly in order:

1. Extract audio                  (fatal on failure)
2. Submit transcription job       (fatal on failure)
3. Poll until terminal            (fatal unless Completed)
4. Validate the canonical result
5. Extract topics                 (best effort)
6. Index the search document      (bounded retries, non-fatal)
7. Persist media metadata         (non-fatal)

Every stage updates IngestionProgress and notifies the progress observer.
process_media always returns an IngestionOutcome; stage failures are
recorded on it rather than raised. A single cancellation event reaches
audio extraction, polling, indexing and persistence.
"""

import asyncio
import logging
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional

from ingestion.config import TranscriptionOptions
from ingestion.orchestration.collaborators import (
    AudioExtractor,
    MetadataRepository,
    SearchIndexer,
    TopicExtractor,
)
from ingestion.orchestration.errors import IngestionCancelledError
from ingestion.orchestration.models import (
    STAGE_PROGRESS,
    IngestionOutcome,
    IngestionOutcomeStatus,
    IngestionProgress,
    IngestionStage,
    SearchDocument,
)
from ingestion.transcription.errors import TranscriptionCancelledError
from ingestion.transcription.models import (
    JobErrorKind,
    TranscriptionJob,
    TranscriptionResult,
    TranscriptionStatus,
)
from ingestion.transcription.providers.base import TranscriptionService


logger = logging.getLogger(__name__)

ProgressCallback = Callable[[IngestionProgress], None]


def media_id_for(file_path: str) -> str:
    """Stable media id derived from the absolute source path."""
    return uuid.uuid5(uuid.NAMESPACE_URL, str(Path(file_path).resolve())).hex


class _StageFailed(Exception):
    """Aborts the remaining stages after a fatal failure was recorded."""


class IngestionOrchestrator:
    """Orchestrates ingestion of single media items.
    
    The orchestrator holds no per-item state; concurrent process_media
    calls each own their progress, job and outcome.
    
    Example:
        >>> orchestrator = IngestionOrchestrator(extractor, service, indexer, repository)
        >>> outcome = await orchestrator.process_media("hearing-2024-03-01.mp4")
        >>> outcome.status
        <IngestionOutcomeStatus.SUCCESS: 'success'>
    """
    
    def __init__(
        self,
        audio_extractor: AudioExtractor,
        transcription_service: TranscriptionService,
        indexer: SearchIndexer,
        repository: MetadataRepository,
        topic_extractor: Optional[TopicExtractor] = None,
        options: Optional[TranscriptionOptions] = None,
        index_retry_attempts: int = 2,
        index_retry_delay: float = 1.0,
        on_progress: Optional[ProgressCallback] = None
    ):
        """Initialize orchestrator.
        
        Args:
            audio_extractor: Audio extraction collaborator
            transcription_service: Base or decorated transcription service
            indexer: Search index collaborator
            repository: Metadata persistence collaborator
            topic_extractor: Optional best-effort topic extraction
            options: Submit-request options (service defaults when None)
            index_retry_attempts: Extra indexing attempts after a failure
            index_retry_delay: Seconds between indexing attempts
            on_progress: Observer receiving progress snapshots
        """
        self.audio_extractor = audio_extractor
        self.transcription_service = transcription_service
        self.indexer = indexer
        self.repository = repository
        self.topic_extractor = topic_extractor
        self.options = options
        self.index_retry_attempts = index_retry_attempts
        self.index_retry_delay = index_retry_delay
        self.on_progress = on_progress
    
    async def process_media(
        self,
        file_path: str,
        cancel_event: Optional[asyncio.Event] = None,
        media_id: Optional[str] = None
    ) -> IngestionOutcome:
        """Process one media item end to end.
        
        Args:
            file_path: Media file to ingest
            cancel_event: Cancellation signal for this item
            media_id: Explicit media id (derived from the path when None)
            
        Returns:
            IngestionOutcome with status SUCCESS, PARTIAL_SUCCESS, FAILED or CANCELLED
        """
        media_id = media_id or media_id_for(file_path)
        progress = IngestionProgress(media_id=media_id)
        outcome = IngestionOutcome(media_id=media_id, source_path=str(file_path))
        started = time.monotonic()
        
        logger.info(f"Ingesting {file_path} as {media_id}")
        try:
            await self._run_stages(file_path, outcome, progress, cancel_event)
        except (IngestionCancelledError, TranscriptionCancelledError):
            stage = outcome.stage_reached
            message = f"Cancelled during {stage.value}"
            outcome.errors.append(message)
            progress.errors.append(message)
            outcome.status = IngestionOutcomeStatus.CANCELLED
            self._enter(progress, outcome, IngestionStage.CANCELLED)
            logger.warning(f"{media_id}: {message}")
        except _StageFailed:
            outcome.status = IngestionOutcomeStatus.FAILED
            self._enter(progress, outcome, IngestionStage.FAILED)
            logger.error(f"{media_id}: ingestion failed: {outcome.reason}")
        else:
            if outcome.failed_stages:
                outcome.status = IngestionOutcomeStatus.PARTIAL_SUCCESS
            else:
                outcome.status = IngestionOutcomeStatus.SUCCESS
            self._enter(progress, outcome, IngestionStage.DONE)
            logger.info(f"{media_id}: ingestion finished with {outcome.status.value}")
        finally:
            outcome.duration = time.monotonic() - started
        
        return outcome
    
    async def _run_stages(
        self,
        file_path: str,
        outcome: IngestionOutcome,
        progress: IngestionProgress,
        cancel_event: Optional[asyncio.Event]
    ) -> None:
        # 1. Extract audio
        self._enter(progress, outcome, IngestionStage.EXTRACTING_AUDIO)
        try:
            outcome.audio_path = await self._run_cancellable(
                self.audio_extractor.extract_audio(file_path), cancel_event, outcome
            )
        except IngestionCancelledError:
            raise
        except Exception as e:
            self._record_failure(progress, outcome, f"Audio extraction failed: {e}")
            raise _StageFailed() from e
        
        if cancel_event is not None and cancel_event.is_set():
            raise IngestionCancelledError(outcome.stage_reached)

        # 2-3. Submit and poll; any service error is fatal for the item
        try:
            result = await self._transcribe(outcome, progress, cancel_event)
        except (IngestionCancelledError, TranscriptionCancelledError, _StageFailed):
            raise
        except Exception as e:
            job = outcome.job
            if job is not None and not job.is_terminal:
                job.transition_to(TranscriptionStatus.FAILED, error=str(e), kind=JobErrorKind.PROTOCOL)
            self._record_failure(progress, outcome, f"Transcription failed: {e}")
            raise _StageFailed() from e
        
        # 4. Validate the mapped result
        self._enter(progress, outcome, IngestionStage.MAPPING)
        outcome.transcript = result
        outcome.warnings.extend(result.warnings)
        outcome.warnings.extend(self._validate(result))
        
        # 5. Topics (best effort)
        if self.topic_extractor is not None:
            self._enter(progress, outcome, IngestionStage.EXTRACTING_TOPICS)
            try:
                topics = await self._run_cancellable(
                    self.topic_extractor.extract_topics(result), cancel_event, outcome
                )
                outcome.topics = list(topics or [])
            except IngestionCancelledError:
                raise
            except Exception as e:
                # Enrichment only: recorded, never changes the outcome status
                message = f"Topic extraction failed: {e}"
                outcome.warnings.append(message)
                progress.errors.append(message)
                logger.warning(f"{outcome.media_id}: {message}")
        
        # 6. Index with bounded retries
        self._enter(progress, outcome, IngestionStage.INDEXING)
        document = self.build_document(outcome)
        outcome.indexed = await self._index_with_retry(document, cancel_event, outcome, progress)
        
        # 7. Persist metadata
        self._enter(progress, outcome, IngestionStage.PERSISTING)
        metadata = self._build_metadata(outcome)
        try:
            saved = await self._run_cancellable(
                self.repository.save(outcome.media_id, metadata), cancel_event, outcome
            )
        except IngestionCancelledError:
            raise
        except Exception as e:
            self._record_failure(progress, outcome, f"Persisting metadata failed: {e}")
        else:
            if saved:
                outcome.persisted = True
            else:
                self._record_failure(progress, outcome, "Persisting metadata failed: repository rejected the save")
    
    async def _transcribe(
        self,
        outcome: IngestionOutcome,
        progress: IngestionProgress,
        cancel_event: Optional[asyncio.Event]
    ) -> TranscriptionResult:
        # Submit is never interrupted mid-request so a created remote job is always known
        self._enter(progress, outcome, IngestionStage.SUBMITTING)
        job = TranscriptionJob(source_file_path=outcome.audio_path)
        outcome.job = job
        await self.transcription_service.submit(job, self.options)
        if job.is_terminal:
            self._record_failure(progress, outcome, f"Transcription submission failed: {job.last_error}")
            raise _StageFailed()
        if cancel_event is not None and cancel_event.is_set():
            await self.transcription_service.cancel(job)
            raise IngestionCancelledError(outcome.stage_reached)
        
        self._enter(progress, outcome, IngestionStage.POLLING)
        result = await self.transcription_service.await_result(
            job, cancel_event, self._polling_observer(progress)
        )
        if not result.success:
            self._record_failure(progress, outcome, f"Transcription failed: {result.error or job.last_error}")
            raise _StageFailed()
        return result
    
    async def _index_with_retry(
        self,
        document: SearchDocument,
        cancel_event: Optional[asyncio.Event],
        outcome: IngestionOutcome,
        progress: IngestionProgress
    ) -> bool:
        total_attempts = self.index_retry_attempts + 1
        last_error = "indexer rejected the document"
        
        for attempt in range(1, total_attempts + 1):
            try:
                indexed = await self._run_cancellable(self.indexer.index(document), cancel_event, outcome)
            except IngestionCancelledError:
                raise
            except Exception as e:
                indexed = False
                last_error = str(e)
            
            if indexed:
                return True
            
            if attempt < total_attempts:
                logger.warning(
                    f"Indexing {document.media_id} failed "
                    f"(attempt {attempt}/{total_attempts}): {last_error}. "
                    f"Retrying in {self.index_retry_delay}s..."
                )
                await self._run_cancellable(
                    asyncio.sleep(self.index_retry_delay), cancel_event, outcome
                )
        
        self._record_failure(
            progress, outcome,
            f"Indexing failed after {total_attempts} attempts: {last_error}"
        )
        return False
    
    @staticmethod
    async def _run_cancellable(
        awaitable: Awaitable[Any],
        cancel_event: Optional[asyncio.Event],
        outcome: IngestionOutcome
    ) -> Any:
        """Await ``awaitable`` unless the cancellation event fires first.
        
        Raises:
            IngestionCancelledError: If the event was set before completion
        """
        if cancel_event is None:
            return await awaitable
        
        task = asyncio.ensure_future(awaitable)
        if cancel_event.is_set():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
            raise IngestionCancelledError(outcome.stage_reached)
        
        waiter = asyncio.ensure_future(cancel_event.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
            if not task.done():
                task.cancel()
        
        if task.done() and not task.cancelled():
            return task.result()
        
        await asyncio.gather(task, return_exceptions=True)
        raise IngestionCancelledError(outcome.stage_reached)
    
    @staticmethod
    def _validate(result: TranscriptionResult) -> List[str]:
        warnings = []
        if not result.transcript and not result.segments:
            warnings.append("Transcript is empty")
        if any(s.end_time < s.start_time for s in result.segments):
            warnings.append("Transcript contains segments ending before they start")
        return warnings
    
    def _polling_observer(self, progress: IngestionProgress):
        start = STAGE_PROGRESS[IngestionStage.POLLING]
        span = STAGE_PROGRESS[IngestionStage.MAPPING] - start
        
        def on_update(job: TranscriptionJob, result: TranscriptionResult) -> None:
            if result.percent_complete is not None:
                progress.progress_percentage = start + span * result.percent_complete / 100
            self._notify(progress)
        return on_update
    
    def _enter(self, progress: IngestionProgress, outcome: IngestionOutcome, stage: IngestionStage) -> None:
        progress.stage = stage
        # FAILED and CANCELLED keep the stage where the run stopped
        if stage in STAGE_PROGRESS:
            progress.progress_percentage = STAGE_PROGRESS[stage]
            outcome.stage_reached = stage
        logger.debug(f"{progress.media_id}: {stage.value} ({progress.progress_percentage:.0f}%)")
        self._notify(progress)
    
    @staticmethod
    def _record_failure(progress: IngestionProgress, outcome: IngestionOutcome, message: str) -> None:
        stage = outcome.stage_reached
        outcome.failed_stages.append(stage)
        outcome.errors.append(message)
        progress.errors.append(message)
        logger.warning(f"{outcome.media_id}: {message}")
    
    def _notify(self, progress: IngestionProgress) -> None:
        if self.on_progress is None:
            return
        try:
            self.on_progress(progress.snapshot())
        except Exception as e:
            logger.warning(f"Progress observer raised {type(e).__name__}: {e}")
    
    @staticmethod
    def build_document(outcome: IngestionOutcome) -> SearchDocument:
        """Assemble the searchable document for a transcribed item."""
        result = outcome.transcript
        return SearchDocument(
            media_id=outcome.media_id,
            title=Path(outcome.source_path).stem,
            transcript=result.transcript,
            segments=list(result.segments),
            topics=list(outcome.topics),
            metadata={
                "source_path": outcome.source_path,
                "audio_path": outcome.audio_path,
                "transcript_id": result.id,
                "language": result.detected_language,
                "audio_duration": result.audio_duration,
                "confidence": result.confidence,
                "speakers": result.speakers,
                "silence_intervals": len(result.silences),
            },
        )
    
    @staticmethod
    def _build_metadata(outcome: IngestionOutcome) -> Dict[str, Any]:
        result = outcome.transcript
        now = datetime.now(timezone.utc).isoformat()
        return {
            "media_id": outcome.media_id,
            "source_path": outcome.source_path,
            "audio_path": outcome.audio_path,
            "transcript_id": result.id,
            "transcript": result.transcript,
            "language": result.detected_language,
            "topics": list(outcome.topics),
            "segments": [
                {
                    "text": s.text,
                    "start_time": s.start_time,
                    "end_time": s.end_time,
                    "confidence": s.confidence,
                    "speaker": s.speaker,
                    "sentiment": s.sentiment,
                }
                for s in result.segments
            ],
            "silences": [[s.start_time, s.end_time] for s in result.silences],
            "indexed": outcome.indexed,
            "indexed_at": now if outcome.indexed else None,
            "updated_at": now,
        }
