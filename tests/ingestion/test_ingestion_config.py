"""
Unit Tests: Ingestion Configuration

**Test Coverage:**
- Defaults when no file or environment is present
- Precedence: YAML > environment > default
- ${VAR:-default} substitution
- Invalid files
- Validation messages
"""

import pytest

from ingestion.config import IngestionConfig


ENV_VARS = [
    "ASSEMBLYAI_API_KEY",
    "ASSEMBLYAI_BASE_URL",
    "ASSEMBLYAI_POLL_INTERVAL",
    "ASSEMBLYAI_MAX_WAIT",
    "INGEST_LANGUAGE_CODE",
    "INGEST_SPEAKER_LABELS",
    "INGEST_MAX_RETRY_ATTEMPTS",
    "INGEST_CIRCUIT_FAILURE_THRESHOLD",
    "INGEST_SILENCE_DETECTION",
    "INGEST_MAX_CONCURRENT_JOBS",
    "INGEST_OUTPUT_DIR",
    "ARCHIVE_DIR",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.chdir(tmp_path)


def write_config(tmp_path, text):
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return str(path)


# ============================================================================
# Test: Defaults
# ============================================================================

def test_defaults_without_file():
    config = IngestionConfig.load()
    
    assert config.assemblyai.api_key is None
    assert config.assemblyai.base_url == "https://api.assemblyai.com/v2"
    assert config.assemblyai.max_wait is None
    assert config.transcription.language_code == "en"
    assert config.transcription.speaker_labels is True
    assert config.transcription.sentiment_analysis is False
    assert config.resilience.max_retry_attempts == 3
    assert config.resilience.failure_threshold == 5
    assert config.resilience.open_duration == 60.0
    assert config.silence_detection.enabled is True
    assert config.pipeline.max_concurrent_jobs == 4


def test_load_finds_project_config(tmp_path):
    project_dir = tmp_path / ".media-ingest"
    project_dir.mkdir()
    (project_dir / "config.yaml").write_text("pipeline:\n  max_concurrent_jobs: 2\n")
    
    config = IngestionConfig.load()
    
    assert config.pipeline.max_concurrent_jobs == 2


# ============================================================================
# Test: Precedence
# ============================================================================

def test_environment_overrides_default(monkeypatch):
    monkeypatch.setenv("ASSEMBLYAI_API_KEY", "env-key")
    monkeypatch.setenv("INGEST_MAX_RETRY_ATTEMPTS", "5")
    monkeypatch.setenv("INGEST_SPEAKER_LABELS", "false")
    monkeypatch.setenv("ASSEMBLYAI_MAX_WAIT", "600")
    
    config = IngestionConfig.load()
    
    assert config.assemblyai.api_key == "env-key"
    assert config.resilience.max_retry_attempts == 5
    assert config.transcription.speaker_labels is False
    assert config.assemblyai.max_wait == 600.0


def test_yaml_overrides_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("ASSEMBLYAI_API_KEY", "env-key")
    monkeypatch.setenv("INGEST_LANGUAGE_CODE", "fr")
    path = write_config(tmp_path, """
assemblyai:
  api_key: file-key
  poll_interval: 2
transcription:
  language_code: de
  speaker_labels: false
resilience:
  failure_threshold: 3
""")
    
    config = IngestionConfig.load(path)
    
    assert config.assemblyai.api_key == "file-key"
    assert config.assemblyai.poll_interval == 2.0
    assert config.transcription.language_code == "de"
    assert config.transcription.speaker_labels is False
    assert config.resilience.failure_threshold == 3


def test_env_substitution_in_yaml(tmp_path, monkeypatch):
    monkeypatch.setenv("MY_KEY", "substituted-key")
    path = write_config(tmp_path, """
assemblyai:
  api_key: ${MY_KEY}
pipeline:
  output_dir: ${ARCHIVE_DIR:-/srv/archive}
""")
    
    config = IngestionConfig.load(path)
    
    assert config.assemblyai.api_key == "substituted-key"
    assert config.pipeline.output_dir == "/srv/archive"


def test_empty_substitution_falls_back_to_environment(tmp_path, monkeypatch):
    monkeypatch.delenv("UNSET_VAR_FOR_TEST", raising=False)
    monkeypatch.setenv("INGEST_OUTPUT_DIR", "/env/archive")
    path = write_config(tmp_path, "pipeline:\n  output_dir: ${UNSET_VAR_FOR_TEST}\n")
    
    config = IngestionConfig.load(path)
    
    assert config.pipeline.output_dir == "/env/archive"


def test_trailing_slash_removed_from_base_url(tmp_path):
    path = write_config(tmp_path, "assemblyai:\n  base_url: https://proxy.example/v2/\n")
    
    assert IngestionConfig.load(path).assemblyai.base_url == "https://proxy.example/v2"


# ============================================================================
# Test: Invalid files
# ============================================================================

def test_missing_explicit_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        IngestionConfig.load(str(tmp_path / "nope.yaml"))


def test_invalid_yaml(tmp_path):
    path = write_config(tmp_path, "assemblyai: [unclosed\n")
    
    with pytest.raises(ValueError, match="Invalid YAML"):
        IngestionConfig.load(path)


def test_non_mapping_yaml(tmp_path):
    path = write_config(tmp_path, "- a\n- b\n")
    
    with pytest.raises(ValueError, match="mapping"):
        IngestionConfig.load(path)


def test_empty_file_uses_defaults(tmp_path):
    path = write_config(tmp_path, "")
    
    assert IngestionConfig.load(path).resilience.max_retry_attempts == 3


# ============================================================================
# Test: Validation
# ============================================================================

def test_validate_requires_api_key():
    errors = IngestionConfig.load().validate()
    
    assert any("API key" in e for e in errors)


def test_validate_accepts_complete_config(monkeypatch):
    monkeypatch.setenv("ASSEMBLYAI_API_KEY", "key")
    
    assert IngestionConfig.load().validate() == []


def test_validate_reports_bad_values(monkeypatch):
    monkeypatch.setenv("ASSEMBLYAI_API_KEY", "key")
    config = IngestionConfig.load()
    config.resilience.failure_threshold = 0
    config.pipeline.max_concurrent_jobs = 0
    config.assemblyai.base_url = "ftp://nope"
    
    errors = config.validate()
    
    assert len(errors) == 3


def test_to_dict_flattens_sections():
    flat = IngestionConfig().to_dict()
    
    assert flat["resilience.failure_threshold"] == 5
    assert flat["pipeline.output_dir"] == "./archive"
