"""
Unit Tests for Status Subcommand
"""

import json
from unittest.mock import AsyncMock, Mock, patch

import pytest
from click.testing import CliRunner

from cli.help_texts import ExitCodes
from cli.status import status
from ingestion.resilience.errors import (
    CircuitOpenError,
    PermanentTransportError,
    TransientFailureExhausted,
)
from ingestion.transcription.errors import ConfigurationError
from ingestion.transcription.models import TranscriptionResult, TranscriptionStatus


@pytest.fixture(autouse=True)
def isolated(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    with patch("cli.status.logging_config", Mock()):
        yield


class TestStatusCommand:
    """Unit tests for the status command."""
    
    def test_requires_id(self):
        result = CliRunner().invoke(status, [])
        
        assert result.exit_code == ExitCodes.MISSING_REQUIRED_OPTION
    
    def test_prints_result_as_json(self):
        fetched = TranscriptionResult(
            id="abc123", status=TranscriptionStatus.COMPLETED, transcript="hello world",
        )
        fetch = AsyncMock(return_value=fetched)
        
        with patch("cli.status._fetch", fetch):
            result = CliRunner().invoke(status, ['--id', 'abc123', '--api-key', 'k'])
        
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["id"] == "abc123"
        assert data["status"] == "completed"
        assert data["transcript"] == "hello world"
        
        config, remote_id = fetch.await_args.args
        assert remote_id == "abc123"
        assert config.assemblyai.api_key == "k"
    
    @pytest.mark.parametrize("error, expected", [
        (ConfigurationError("AssemblyAI API key not found"), ExitCodes.INVALID_CONFIGURATION),
        (PermanentTransportError("HTTP 401", 401), ExitCodes.AUTHENTICATION_ERROR),
        (PermanentTransportError("HTTP 404", 404), ExitCodes.GENERAL_ERROR),
        (TransientFailureExhausted(4), ExitCodes.NETWORK_ERROR),
        (CircuitOpenError("https://api.assemblyai.com/v2", 30.0), ExitCodes.NETWORK_ERROR),
    ])
    def test_error_exit_codes(self, error, expected):
        with patch("cli.status._fetch", AsyncMock(side_effect=error)):
            result = CliRunner().invoke(status, ['--id', 'abc123', '--api-key', 'k'])
        
        assert result.exit_code == expected
        assert "rror" in result.output
