"""
Ingest Subcommand Module

Runs the full ingestion pipeline over one or more media files:
audio extraction, AssemblyAI transcription with retry and circuit
breaking, optional silence detection, JSON indexing and metadata
persistence. Ctrl-C cancels politely: polling stops between requests and
remote jobs get a best-effort cancel.
"""

import asyncio
import json
import logging
import signal
import sys
import time
from pathlib import Path
from typing import List

import click

from ingestion.adapters import (
    FFmpegAudioExtractor,
    FFmpegSilenceAnalyzer,
    JsonFileIndexer,
    JsonMetadataRepository,
)
from ingestion.config import IngestionConfig
from ingestion.orchestration import (
    BatchIngestor,
    BatchReport,
    IngestionOrchestrator,
    IngestionOutcomeStatus,
    IngestionProgress,
)
from ingestion.transcription.factory import TranscriptionServiceFactory
from ingestion.utils.logging_config import logging_config

from .shared_options import (
    api_key_option, config_option, input_option, language_option,
    log_file_option, log_level_option, output_dir_option
)
from .help_texts import (
    CONFIG_HELP, INGEST_HELP, INGEST_MAX_CONCURRENT_HELP, INGEST_NO_SILENCE_HELP,
    INGEST_OUTPUT_DIR_HELP, INGEST_REPORT_HELP, INGEST_SOURCE_HELP,
    LOG_LEVEL_HELP, ExitCodes
)


class ProgressPrinter:
    """Echoes stage changes of every media item to stderr."""
    
    def __init__(self):
        self._last_stage = {}
    
    def __call__(self, progress: IngestionProgress) -> None:
        if self._last_stage.get(progress.media_id) is progress.stage:
            return
        self._last_stage[progress.media_id] = progress.stage
        click.echo(
            f"[{progress.media_id[:8]}] {progress.stage.value} "
            f"({progress.progress_percentage:.0f}%)",
            err=True
        )


def build_orchestrator(config: IngestionConfig, factory: TranscriptionServiceFactory, on_progress=None) -> IngestionOrchestrator:
    """Wire the default collaborators into an orchestrator."""
    output_dir = Path(config.pipeline.output_dir)
    ffmpeg_path = config.pipeline.ffmpeg_path
    
    analyzer = None
    if config.silence_detection.enabled:
        analyzer = FFmpegSilenceAnalyzer(
            noise_floor_db=config.silence_detection.noise_floor_db,
            min_duration=config.silence_detection.min_duration,
            ffmpeg_path=ffmpeg_path,
        )
    
    return IngestionOrchestrator(
        audio_extractor=FFmpegAudioExtractor(str(output_dir / "audio"), ffmpeg_path=ffmpeg_path),
        transcription_service=factory.create_service(analyzer),
        indexer=JsonFileIndexer(str(output_dir / "index")),
        repository=JsonMetadataRepository(str(output_dir / "metadata")),
        options=config.transcription,
        index_retry_attempts=config.pipeline.index_retry_attempts,
        index_retry_delay=config.pipeline.index_retry_delay,
        on_progress=on_progress,
    )


async def _run_ingestion(config: IngestionConfig, sources: List[str]) -> BatchReport:
    cancel_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    signal_installed = False
    try:
        loop.add_signal_handler(signal.SIGINT, cancel_event.set)
        signal_installed = True
    except (NotImplementedError, RuntimeError):
        # Not supported on this platform or outside the main thread
        pass
    
    factory = TranscriptionServiceFactory(config)
    try:
        orchestrator = build_orchestrator(config, factory, on_progress=ProgressPrinter())
        ingestor = BatchIngestor(orchestrator, config.pipeline.max_concurrent_jobs)
        return await ingestor.process_batch(sources, cancel_event)
    finally:
        await factory.close()
        if signal_installed:
            loop.remove_signal_handler(signal.SIGINT)


def _exit_code(report: BatchReport) -> int:
    if report.cancelled:
        return ExitCodes.CANCELLED
    if report.failed:
        return ExitCodes.GENERAL_ERROR
    if report.partial:
        return ExitCodes.PARTIAL_SUCCESS
    return ExitCodes.SUCCESS


@click.command(help=INGEST_HELP)
@input_option(help=INGEST_SOURCE_HELP, multiple=True)
@config_option(help=CONFIG_HELP)
@output_dir_option(help=INGEST_OUTPUT_DIR_HELP)
@language_option()
@api_key_option()
@click.option("--max-concurrent", type=click.IntRange(min=1), default=None, help=INGEST_MAX_CONCURRENT_HELP)
@click.option("--no-silence-detection", is_flag=True, default=False, help=INGEST_NO_SILENCE_HELP)
@click.option("--report", "report_path", default=None, help=INGEST_REPORT_HELP)
@log_level_option(help=LOG_LEVEL_HELP)
@log_file_option()
def ingest(source, config, output_dir, language, api_key, max_concurrent,
           no_silence_detection, report_path, log_level, log_file):
    """
    Ingest media files into the archive.
    """
    logging_config.configure_logging(level=log_level, log_file=log_file)
    logger = logging.getLogger(__name__)
    
    # Step 1: Load configuration
    try:
        ingestion_config = IngestionConfig.load(config)
    except FileNotFoundError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(ExitCodes.FILE_NOT_FOUND)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(ExitCodes.INVALID_CONFIGURATION)
    
    # Step 2: Apply CLI overrides
    if api_key:
        ingestion_config.assemblyai.api_key = api_key
    if output_dir:
        ingestion_config.pipeline.output_dir = output_dir
    if language:
        ingestion_config.transcription.language_code = language
    if max_concurrent:
        ingestion_config.pipeline.max_concurrent_jobs = max_concurrent
    if no_silence_detection:
        ingestion_config.silence_detection.enabled = False
    
    logging_config.log_configuration_details(ingestion_config.to_dict())
    
    # Step 3: Validate configuration and sources
    problems = ingestion_config.validate()
    if problems:
        for problem in problems:
            click.echo(f"Configuration error: {problem}", err=True)
        sys.exit(ExitCodes.INVALID_CONFIGURATION)
    
    missing = [path for path in source if not Path(path).is_file()]
    if missing:
        for path in missing:
            click.echo(f"Error: media file not found: {path}", err=True)
        sys.exit(ExitCodes.FILE_NOT_FOUND)
    
    # Step 4: Run the batch
    click.echo(f"Ingesting {len(source)} file(s)...")
    start_time = time.time()
    report = asyncio.run(_run_ingestion(ingestion_config, list(source)))
    logging_config.log_operation_timing("Ingestion", time.time() - start_time)
    
    # Step 5: Summarize
    for outcome in report.outcomes:
        line = f"{outcome.status.value:>15}  {outcome.source_path}"
        if outcome.status is not IngestionOutcomeStatus.SUCCESS and outcome.reason:
            line += f"  ({outcome.reason})"
        click.echo(line)
    click.echo(
        f"Done: {report.succeeded} succeeded, {report.partial} partial, "
        f"{report.failed} failed, {report.cancelled} cancelled"
    )
    
    if report_path:
        Path(report_path).parent.mkdir(parents=True, exist_ok=True)
        with open(report_path, 'w', encoding='utf-8') as f:
            json.dump(report.to_dict(), f, indent=2)
        logger.info(f"Batch report written to {report_path}")
    
    sys.exit(_exit_code(report))
