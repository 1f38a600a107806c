"""
Batch Ingestion

Processes many media items concurrently, bounded by a maximum number of
in-flight items. Items share one cancellation event; nothing else is
shared between them except the transcription endpoint's circuit breaker.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from ingestion.orchestration.models import (
    IngestionOutcome,
    IngestionOutcomeStatus,
    IngestionStage,
)
from ingestion.orchestration.orchestrator import IngestionOrchestrator, media_id_for


logger = logging.getLogger(__name__)


@dataclass
class BatchReport:
    """Summary report for batch ingestion.
    
    Attributes:
        total_files: Number of media items submitted
        succeeded: Items fully ingested
        partial: Items with a transcript but a failed later stage
        failed: Items without a transcript
        cancelled: Items stopped by cancellation
        total_duration: Wall time in seconds
        outcomes: Per-item outcomes, in input order
    """
    total_files: int
    succeeded: int
    partial: int
    failed: int
    cancelled: int
    total_duration: float
    outcomes: List[IngestionOutcome] = field(default_factory=list)
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_files": self.total_files,
            "succeeded": self.succeeded,
            "partial": self.partial,
            "failed": self.failed,
            "cancelled": self.cancelled,
            "total_duration": round(self.total_duration, 3),
            "outcomes": [o.to_dict() for o in self.outcomes],
        }


class BatchIngestor:
    """Runs an IngestionOrchestrator over many files with bounded concurrency.
    
    Example:
        >>> ingestor = BatchIngestor(orchestrator, max_concurrent_jobs=4)
        >>> report = await ingestor.process_batch(["a.mp4", "b.mp3"])
        >>> print(f"{report.succeeded}/{report.total_files} ingested")
    """
    
    def __init__(self, orchestrator: IngestionOrchestrator, max_concurrent_jobs: int = 4):
        if max_concurrent_jobs < 1:
            raise ValueError("max_concurrent_jobs must be >= 1")
        self.orchestrator = orchestrator
        self.max_concurrent_jobs = max_concurrent_jobs
    
    async def process_batch(
        self,
        paths: Sequence[str],
        cancel_event: Optional[asyncio.Event] = None
    ) -> BatchReport:
        """Ingest every path, at most ``max_concurrent_jobs`` at a time.
        
        Args:
            paths: Media files
            cancel_event: Shared cancellation signal
            
        Returns:
            BatchReport with one outcome per path, in input order
        """
        semaphore = asyncio.Semaphore(self.max_concurrent_jobs)
        started = time.monotonic()
        
        async def run_one(path: str) -> IngestionOutcome:
            async with semaphore:
                return await self.orchestrator.process_media(path, cancel_event)
        
        logger.info(f"Ingesting {len(paths)} files (max {self.max_concurrent_jobs} concurrent)")
        results = await asyncio.gather(
            *(run_one(path) for path in paths), return_exceptions=True
        )
        
        outcomes = []
        for path, result in zip(paths, results):
            if isinstance(result, BaseException):
                if isinstance(result, asyncio.CancelledError):
                    raise result
                logger.error(f"Unexpected error ingesting {path}: {type(result).__name__}: {result}")
                result = IngestionOutcome(
                    media_id=media_id_for(path),
                    source_path=str(path),
                    status=IngestionOutcomeStatus.FAILED,
                    stage_reached=IngestionStage.EXTRACTING_AUDIO,
                    errors=[f"Unexpected error: {result}"],
                )
            outcomes.append(result)
        
        counts = {status: 0 for status in IngestionOutcomeStatus}
        for outcome in outcomes:
            counts[outcome.status] += 1
        
        report = BatchReport(
            total_files=len(paths),
            succeeded=counts[IngestionOutcomeStatus.SUCCESS],
            partial=counts[IngestionOutcomeStatus.PARTIAL_SUCCESS],
            failed=counts[IngestionOutcomeStatus.FAILED],
            cancelled=counts[IngestionOutcomeStatus.CANCELLED],
            total_duration=time.monotonic() - started,
            outcomes=outcomes,
        )
        logger.info(
            f"Batch finished: {report.succeeded} succeeded, {report.partial} partial, "
            f"{report.failed} failed, {report.cancelled} cancelled "
            f"in {report.total_duration:.1f}s"
        )
        return report
