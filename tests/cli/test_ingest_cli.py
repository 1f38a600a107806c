"""
Unit Tests for Ingest Subcommand

The pipeline itself is patched out; these tests cover option handling,
validation, exit codes and the JSON report.
"""

import json
from unittest.mock import AsyncMock, Mock, patch

import pytest
from click.testing import CliRunner

from cli import main
from cli.help_texts import ExitCodes
from cli.ingest import ProgressPrinter, _exit_code, ingest
from ingestion.orchestration import (
    BatchReport,
    IngestionOutcome,
    IngestionOutcomeStatus,
    IngestionProgress,
    IngestionStage,
)


def make_report(*statuses):
    outcomes = [
        IngestionOutcome(
            media_id=f"m{i}",
            source_path=f"hearing-{i}.mp4",
            status=status,
            errors=[] if status is IngestionOutcomeStatus.SUCCESS else ["Indexing failed after 3 attempts: down"],
        )
        for i, status in enumerate(statuses)
    ]
    count = lambda s: sum(1 for o in outcomes if o.status is s)
    return BatchReport(
        total_files=len(outcomes),
        succeeded=count(IngestionOutcomeStatus.SUCCESS),
        partial=count(IngestionOutcomeStatus.PARTIAL_SUCCESS),
        failed=count(IngestionOutcomeStatus.FAILED),
        cancelled=count(IngestionOutcomeStatus.CANCELLED),
        total_duration=1.5,
        outcomes=outcomes,
    )


@pytest.fixture(autouse=True)
def isolated(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.delenv("ASSEMBLYAI_API_KEY", raising=False)
    with patch("cli.ingest.logging_config", Mock()):
        yield


@pytest.fixture
def media(tmp_path):
    path = tmp_path / "hearing.mp4"
    path.write_bytes(b"video")
    return str(path)


class TestIngestCommand:
    """Unit tests for the ingest command."""
    
    def test_help_output(self):
        result = CliRunner().invoke(ingest, ['--help'])
        
        assert result.exit_code == 0
        assert "--source" in result.output
        assert "--max-concurrent" in result.output
    
    def test_registered_on_main_group(self):
        result = CliRunner().invoke(main, ['--help'])
        
        assert result.exit_code == 0
        assert "ingest" in result.output
        assert "status" in result.output
    
    def test_missing_source(self):
        result = CliRunner().invoke(ingest, ['--api-key', 'k'])
        
        assert result.exit_code == ExitCodes.MISSING_REQUIRED_OPTION
    
    def test_missing_api_key_is_configuration_error(self, media):
        result = CliRunner().invoke(ingest, ['--source', media])
        
        assert result.exit_code == ExitCodes.INVALID_CONFIGURATION
        assert "API key" in result.output
    
    def test_missing_media_file(self, tmp_path):
        result = CliRunner().invoke(ingest, ['--source', str(tmp_path / "nope.mp4"), '--api-key', 'k'])
        
        assert result.exit_code == ExitCodes.FILE_NOT_FOUND
        assert "nope.mp4" in result.output
    
    def test_missing_config_file(self, media):
        result = CliRunner().invoke(ingest, ['--source', media, '--config', 'missing.yaml'])
        
        assert result.exit_code == ExitCodes.FILE_NOT_FOUND
    
    def test_invalid_config_file(self, media, tmp_path):
        config = tmp_path / "bad.yaml"
        config.write_text("assemblyai: [unclosed\n")
        
        result = CliRunner().invoke(ingest, ['--source', media, '--config', str(config)])
        
        assert result.exit_code == ExitCodes.INVALID_CONFIGURATION
    
    def test_successful_run(self, media):
        run = AsyncMock(return_value=make_report(IngestionOutcomeStatus.SUCCESS))
        
        with patch("cli.ingest._run_ingestion", run):
            result = CliRunner().invoke(ingest, [
                '--source', media, '--api-key', 'k', '--language', 'es',
                '--max-concurrent', '2', '--no-silence-detection',
            ])
        
        assert result.exit_code == ExitCodes.SUCCESS
        assert "1 succeeded" in result.output
        
        config, sources = run.await_args.args
        assert sources == [media]
        assert config.assemblyai.api_key == 'k'
        assert config.transcription.language_code == 'es'
        assert config.pipeline.max_concurrent_jobs == 2
        assert config.silence_detection.enabled is False
    
    def test_partial_success_exit_code_and_reason(self, media):
        run = AsyncMock(return_value=make_report(IngestionOutcomeStatus.PARTIAL_SUCCESS))
        
        with patch("cli.ingest._run_ingestion", run):
            result = CliRunner().invoke(ingest, ['--source', media, '--api-key', 'k'])
        
        assert result.exit_code == ExitCodes.PARTIAL_SUCCESS
        assert "Indexing failed" in result.output
    
    def test_report_written(self, media, tmp_path):
        report_path = tmp_path / "reports" / "batch.json"
        run = AsyncMock(return_value=make_report(
            IngestionOutcomeStatus.SUCCESS, IngestionOutcomeStatus.FAILED
        ))
        
        with patch("cli.ingest._run_ingestion", run):
            result = CliRunner().invoke(ingest, [
                '--source', media, '--api-key', 'k', '--report', str(report_path),
            ])
        
        assert result.exit_code == ExitCodes.GENERAL_ERROR
        data = json.loads(report_path.read_text(encoding="utf-8"))
        assert data["total_files"] == 2
        assert data["failed"] == 1
        assert data["outcomes"][1]["status"] == "failed"


class TestExitCodes:
    """Exit code selection from batch reports."""
    
    @pytest.mark.parametrize("statuses, expected", [
        ((IngestionOutcomeStatus.SUCCESS,), ExitCodes.SUCCESS),
        ((IngestionOutcomeStatus.SUCCESS, IngestionOutcomeStatus.PARTIAL_SUCCESS), ExitCodes.PARTIAL_SUCCESS),
        ((IngestionOutcomeStatus.PARTIAL_SUCCESS, IngestionOutcomeStatus.FAILED), ExitCodes.GENERAL_ERROR),
        ((IngestionOutcomeStatus.FAILED, IngestionOutcomeStatus.CANCELLED), ExitCodes.CANCELLED),
    ])
    def test_exit_code(self, statuses, expected):
        assert _exit_code(make_report(*statuses)) == expected


class TestProgressPrinter:
    """Stage-change echo."""
    
    def test_prints_only_stage_changes(self, capsys):
        printer = ProgressPrinter()
        
        printer(IngestionProgress("abcdef123456", IngestionStage.POLLING, 20.0))
        printer(IngestionProgress("abcdef123456", IngestionStage.POLLING, 45.0))
        printer(IngestionProgress("abcdef123456", IngestionStage.MAPPING, 70.0))
        
        lines = capsys.readouterr().err.strip().splitlines()
        assert lines == ["[abcdef12] polling (20%)", "[abcdef12] mapping (70%)"]
