"""
Unit Tests: Logging Configuration

**Test Coverage:**
- Level mapping and handler installation
- Rotating file output
- Secret masking in configuration dumps
- Reconfiguration after reset
"""

import logging
import logging.handlers
import sys

import pytest
from hypothesis import given, settings, strategies as st

from ingestion.utils.logging_config import LoggingConfig, is_sensitive


@pytest.fixture(autouse=True)
def restore_root_logger():
    root_logger = logging.getLogger()
    handlers = root_logger.handlers[:]
    level = root_logger.level
    yield
    root_logger.handlers[:] = handlers
    root_logger.setLevel(level)


@pytest.fixture
def config():
    config = LoggingConfig()
    yield config
    config.reset()


# ============================================================================
# Test: Levels and handlers
# ============================================================================

@pytest.mark.parametrize("level, expected", [
    ("debug", logging.DEBUG),
    ("INFO", logging.INFO),
    ("warning", logging.WARNING),
    ("error", logging.ERROR),
    ("chatty", logging.INFO),
])
def test_level_mapping(config, level, expected):
    config.configure_logging(level=level)
    
    assert logging.getLogger().level == expected


def test_console_handler_writes_to_stderr(config):
    config.configure_logging()
    
    handlers = [h for h in logging.getLogger().handlers if isinstance(h, logging.StreamHandler)]
    assert any(h.stream is sys.stderr for h in handlers)


def test_aiohttp_never_logs_below_info(config):
    config.configure_logging(level="debug")
    
    assert logging.getLogger("aiohttp").level == logging.INFO


def test_configure_is_idempotent_until_reset(config):
    config.configure_logging(level="error")
    config.configure_logging(level="debug")
    
    assert logging.getLogger().level == logging.ERROR
    
    config.reset()
    config.configure_logging(level="debug")
    
    assert logging.getLogger().level == logging.DEBUG


def test_debug_formatter_includes_logger_name(config):
    formatter = config._create_console_formatter(include_timestamps=False, debug_mode=True)
    
    assert "%(name)s" in formatter._fmt
    assert "%(asctime)s" not in formatter._fmt


# ============================================================================
# Test: File output
# ============================================================================

def test_file_logging(config, tmp_path):
    log_file = tmp_path / "logs" / "ingest.log"
    
    config.configure_logging(level="info", log_file=str(log_file))
    logging.getLogger("ingestion.test").info("hearing ingested")
    for handler in logging.getLogger().handlers:
        handler.flush()
    
    assert log_file.exists()
    assert "hearing ingested" in log_file.read_text(encoding="utf-8")
    assert any(
        isinstance(h, logging.handlers.RotatingFileHandler)
        for h in logging.getLogger().handlers
    )


def test_unwritable_log_file_falls_back_to_console(config, tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("file, not a directory")
    
    config.configure_logging(log_file=str(blocker / "ingest.log"))
    
    assert not any(
        isinstance(h, logging.handlers.RotatingFileHandler)
        for h in logging.getLogger().handlers
    )


# ============================================================================
# Test: Secret masking
# ============================================================================

@pytest.mark.parametrize("name, sensitive", [
    ("assemblyai.api_key", True),
    ("transcription.webhook_auth_header_value", True),
    ("ASSEMBLYAI_API_KEY", True),
    ("assemblyai.base_url", False),
    ("pipeline.output_dir", False),
])
def test_is_sensitive(name, sensitive):
    assert is_sensitive(name) is sensitive


def test_configuration_dump_masks_api_key(config, caplog):
    with caplog.at_level(logging.DEBUG, logger="ingestion.utils.logging_config"):
        config.log_configuration_details({
            "assemblyai.api_key": "sk-live-123",
            "assemblyai.base_url": "https://api.assemblyai.com/v2",
        })
    
    assert "sk-live-123" not in caplog.text
    assert "***MASKED***" in caplog.text
    assert "https://api.assemblyai.com/v2" in caplog.text


@given(secret=st.text(alphabet="abcdefghijklmnopqrstuvwxyz0123456789", min_size=8, max_size=40))
@settings(max_examples=25, deadline=None)
def test_property_secrets_never_logged(secret):
    logger = logging.getLogger("ingestion.utils.logging_config")
    records = []
    
    class Collect(logging.Handler):
        def emit(self, record):
            records.append(record.getMessage())
    
    handler = Collect(level=logging.DEBUG)
    previous = logger.level
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    try:
        LoggingConfig().log_configuration_details({"assemblyai.api_key": secret})
    finally:
        logger.removeHandler(handler)
        logger.setLevel(previous)
    
    assert records
    assert all(secret not in message for message in records)
