"""
Ingestion Configuration Management

This module provides configuration classes for the ingestion pipeline. It
handles configuration loading from YAML files with environment variable
substitution and precedence rules.

Configuration Precedence (highest to lowest):
1. Explicit values in the YAML file (``${VAR:-default}`` is substituted)
2. Environment variables (ASSEMBLYAI_*, INGEST_*)
3. System defaults
"""

import os
import re
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml


DEFAULT_CONFIG_PATHS = (
    "./.media-ingest/config.yaml",
    "~/.media-ingest/config.yaml",
)


@dataclass
class AssemblyAIConfig:
    """Connection settings for the AssemblyAI transcription API.
    
    Attributes:
        api_key: AssemblyAI API key
        base_url: API root, without trailing slash
        request_timeout: Per-request timeout in seconds
        poll_interval: Seconds between status polls
        max_wait: Optional overall polling deadline in seconds (None = unbounded)
    """
    api_key: Optional[str] = None
    base_url: str = "https://api.assemblyai.com/v2"
    request_timeout: float = 30.0
    poll_interval: float = 5.0
    max_wait: Optional[float] = None


@dataclass
class TranscriptionOptions:
    """Per-job options sent with the submit request.
    
    Attributes:
        language_code: Spoken language of the recording
        speaker_labels: Request speaker diarization
        sentiment_analysis: Request sentence-level sentiment
        punctuate: Request punctuation
        format_text: Request text formatting (casing, numerals)
        webhook_url: Optional completion webhook
        webhook_auth_header_name: Optional webhook auth header name
        webhook_auth_header_value: Optional webhook auth header value
    """
    language_code: str = "en"
    speaker_labels: bool = True
    sentiment_analysis: bool = False
    punctuate: bool = True
    format_text: bool = True
    webhook_url: Optional[str] = None
    webhook_auth_header_name: Optional[str] = None
    webhook_auth_header_value: Optional[str] = None


@dataclass
class ResilienceConfig:
    """Retry and circuit-breaker settings for remote calls.
    
    Attributes:
        max_retry_attempts: Retries after the initial attempt
        base_delay: Backoff base delay in seconds
        max_delay: Backoff cap in seconds
        jitter_max: Maximum random jitter in seconds
        failure_threshold: Consecutive failures that open the circuit
        open_duration: Seconds the circuit stays open
        sampling_window: Seconds a failure streak may span
    """
    max_retry_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    jitter_max: float = 1.0
    failure_threshold: int = 5
    open_duration: float = 60.0
    sampling_window: float = 30.0


@dataclass
class SilenceDetectionConfig:
    """Settings for the silence-detection enrichment.
    
    Attributes:
        enabled: Wrap the transcription service with silence detection
        noise_floor_db: Level below which audio counts as silence
        min_duration: Minimum silence length in seconds
    """
    enabled: bool = True
    noise_floor_db: float = -30.0
    min_duration: float = 2.0


@dataclass
class PipelineConfig:
    """Orchestration settings.
    
    Attributes:
        max_concurrent_jobs: Media items processed at the same time
        index_retry_attempts: Extra indexing attempts after the first failure
        index_retry_delay: Seconds between indexing attempts
        output_dir: Directory for extracted audio, index and metadata files
        ffmpeg_path: ffmpeg executable
    """
    max_concurrent_jobs: int = 4
    index_retry_attempts: int = 2
    index_retry_delay: float = 1.0
    output_dir: str = "./archive"
    ffmpeg_path: str = "ffmpeg"


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def _to_optional_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    return float(value)


@dataclass
class IngestionConfig:
    """Main configuration for the ingestion pipeline.
    
    Attributes:
        assemblyai: Transcription API connection settings
        transcription: Submit-request options
        resilience: Retry and circuit-breaker settings
        silence_detection: Silence enrichment settings
        pipeline: Orchestration settings
    """
    assemblyai: AssemblyAIConfig = field(default_factory=AssemblyAIConfig)
    transcription: TranscriptionOptions = field(default_factory=TranscriptionOptions)
    resilience: ResilienceConfig = field(default_factory=ResilienceConfig)
    silence_detection: SilenceDetectionConfig = field(default_factory=SilenceDetectionConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    
    @classmethod
    def load(cls, config_path: Optional[str] = None) -> "IngestionConfig":
        """Load configuration from an explicit path or the default locations.
        
        Falls back to environment variables and defaults when no file exists.
        
        Args:
            config_path: Optional explicit config.yaml path
            
        Returns:
            IngestionConfig instance
            
        Raises:
            FileNotFoundError: If an explicit config_path doesn't exist
            ValueError: If the config file is invalid
        """
        if config_path:
            return cls.load_from_yaml(config_path)
        
        for candidate in DEFAULT_CONFIG_PATHS:
            path = Path(candidate).expanduser()
            if path.exists():
                return cls.load_from_yaml(str(path))
        
        return cls.from_dict({})
    
    @classmethod
    def load_from_yaml(cls, config_path: str) -> "IngestionConfig":
        """Load configuration from YAML file with environment variable substitution.
        
        Args:
            config_path: Path to config.yaml file
            
        Returns:
            IngestionConfig instance with loaded configuration
            
        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config file is invalid
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        
        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                config_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}")
        
        if not isinstance(config_data, dict):
            raise ValueError("Configuration file must contain a mapping at the top level")
        
        return cls.from_dict(config_data)
    
    @classmethod
    def from_dict(cls, config_data: Dict[str, Any]) -> "IngestionConfig":
        """Build configuration from a parsed mapping, applying precedence rules."""
        api_data = config_data.get('assemblyai') or {}
        options_data = config_data.get('transcription') or {}
        resilience_data = config_data.get('resilience') or {}
        silence_data = config_data.get('silence_detection') or {}
        pipeline_data = config_data.get('pipeline') or {}
        resolve = cls._resolve_value
        
        assemblyai = AssemblyAIConfig(
            api_key=resolve(api_data.get('api_key'), 'ASSEMBLYAI_API_KEY', None),
            base_url=resolve(api_data.get('base_url'), 'ASSEMBLYAI_BASE_URL', 'https://api.assemblyai.com/v2').rstrip('/'),
            request_timeout=float(resolve(api_data.get('request_timeout'), 'ASSEMBLYAI_REQUEST_TIMEOUT', '30')),
            poll_interval=float(resolve(api_data.get('poll_interval'), 'ASSEMBLYAI_POLL_INTERVAL', '5')),
            max_wait=_to_optional_float(resolve(api_data.get('max_wait'), 'ASSEMBLYAI_MAX_WAIT', None)),
        )
        
        transcription = TranscriptionOptions(
            language_code=resolve(options_data.get('language_code'), 'INGEST_LANGUAGE_CODE', 'en'),
            speaker_labels=_to_bool(resolve(options_data.get('speaker_labels'), 'INGEST_SPEAKER_LABELS', 'true')),
            sentiment_analysis=_to_bool(resolve(options_data.get('sentiment_analysis'), 'INGEST_SENTIMENT_ANALYSIS', 'false')),
            punctuate=_to_bool(resolve(options_data.get('punctuate'), 'INGEST_PUNCTUATE', 'true')),
            format_text=_to_bool(resolve(options_data.get('format_text'), 'INGEST_FORMAT_TEXT', 'true')),
            webhook_url=resolve(options_data.get('webhook_url'), 'INGEST_WEBHOOK_URL', None),
            webhook_auth_header_name=resolve(options_data.get('webhook_auth_header_name'), 'INGEST_WEBHOOK_AUTH_HEADER_NAME', None),
            webhook_auth_header_value=resolve(options_data.get('webhook_auth_header_value'), 'INGEST_WEBHOOK_AUTH_HEADER_VALUE', None),
        )
        
        resilience = ResilienceConfig(
            max_retry_attempts=int(resolve(resilience_data.get('max_retry_attempts'), 'INGEST_MAX_RETRY_ATTEMPTS', '3')),
            base_delay=float(resolve(resilience_data.get('base_delay'), 'INGEST_RETRY_BASE_DELAY', '1.0')),
            max_delay=float(resolve(resilience_data.get('max_delay'), 'INGEST_RETRY_MAX_DELAY', '30.0')),
            jitter_max=float(resolve(resilience_data.get('jitter_max'), 'INGEST_RETRY_JITTER_MAX', '1.0')),
            failure_threshold=int(resolve(resilience_data.get('failure_threshold'), 'INGEST_CIRCUIT_FAILURE_THRESHOLD', '5')),
            open_duration=float(resolve(resilience_data.get('open_duration'), 'INGEST_CIRCUIT_OPEN_DURATION', '60')),
            sampling_window=float(resolve(resilience_data.get('sampling_window'), 'INGEST_CIRCUIT_SAMPLING_WINDOW', '30')),
        )
        
        silence_detection = SilenceDetectionConfig(
            enabled=_to_bool(resolve(silence_data.get('enabled'), 'INGEST_SILENCE_DETECTION', 'true')),
            noise_floor_db=float(resolve(silence_data.get('noise_floor_db'), 'INGEST_SILENCE_NOISE_DB', '-30')),
            min_duration=float(resolve(silence_data.get('min_duration'), 'INGEST_SILENCE_MIN_DURATION', '2.0')),
        )
        
        pipeline = PipelineConfig(
            max_concurrent_jobs=int(resolve(pipeline_data.get('max_concurrent_jobs'), 'INGEST_MAX_CONCURRENT_JOBS', '4')),
            index_retry_attempts=int(resolve(pipeline_data.get('index_retry_attempts'), 'INGEST_INDEX_RETRY_ATTEMPTS', '2')),
            index_retry_delay=float(resolve(pipeline_data.get('index_retry_delay'), 'INGEST_INDEX_RETRY_DELAY', '1.0')),
            output_dir=resolve(pipeline_data.get('output_dir'), 'INGEST_OUTPUT_DIR', './archive'),
            ffmpeg_path=resolve(pipeline_data.get('ffmpeg_path'), 'INGEST_FFMPEG_PATH', 'ffmpeg'),
        )
        
        return cls(
            assemblyai=assemblyai,
            transcription=transcription,
            resilience=resilience,
            silence_detection=silence_detection,
            pipeline=pipeline,
        )
    
    def validate(self) -> List[str]:
        """Check configuration values.
        
        Returns:
            List of human-readable problems; empty when the config is usable
        """
        errors = []
        
        if not self.assemblyai.api_key:
            errors.append("AssemblyAI API key is not set (assemblyai.api_key or ASSEMBLYAI_API_KEY)")
        if not self.assemblyai.base_url.startswith(("http://", "https://")):
            errors.append(f"assemblyai.base_url must be an http(s) URL, got '{self.assemblyai.base_url}'")
        if self.assemblyai.request_timeout <= 0:
            errors.append("assemblyai.request_timeout must be positive")
        if self.assemblyai.poll_interval <= 0:
            errors.append("assemblyai.poll_interval must be positive")
        if self.assemblyai.max_wait is not None and self.assemblyai.max_wait <= 0:
            errors.append("assemblyai.max_wait must be positive when set")
        
        if self.resilience.max_retry_attempts < 0:
            errors.append("resilience.max_retry_attempts must be >= 0")
        if self.resilience.base_delay < 0 or self.resilience.max_delay < 0 or self.resilience.jitter_max < 0:
            errors.append("resilience delays must not be negative")
        if self.resilience.failure_threshold < 1:
            errors.append("resilience.failure_threshold must be >= 1")
        if self.resilience.open_duration <= 0 or self.resilience.sampling_window <= 0:
            errors.append("resilience.open_duration and sampling_window must be positive")
        
        if self.silence_detection.min_duration <= 0:
            errors.append("silence_detection.min_duration must be positive")
        
        if self.pipeline.max_concurrent_jobs < 1:
            errors.append("pipeline.max_concurrent_jobs must be >= 1")
        if self.pipeline.index_retry_attempts < 0:
            errors.append("pipeline.index_retry_attempts must be >= 0")
        
        return errors
    
    def to_dict(self) -> Dict[str, Any]:
        """Flatten configuration to dotted keys, for debug logging."""
        flat = {}
        for section, values in asdict(self).items():
            for key, value in values.items():
                flat[f"{section}.{key}"] = value
        return flat
    
    @staticmethod
    def _resolve_value(config_value: Any, env_var: str, default: Any) -> Any:
        """Resolve configuration value with precedence rules.
        
        Precedence (highest to lowest):
        1. Explicit config value (if not None and not empty string)
        2. Environment variable
        3. Default value
        
        Supports environment variable substitution syntax: ${VAR_NAME:-default}
        
        Args:
            config_value: Value from configuration file
            env_var: Environment variable name to check
            default: Default value if neither config nor env var is set
            
        Returns:
            Resolved configuration value
        """
        if isinstance(config_value, str) and '${' in config_value:
            # Pattern: ${VAR_NAME:-default_value} or ${VAR_NAME}
            pattern = r'\$\{([^}:]+)(?::-([^}]*))?\}'
            
            def replace_env_var(match):
                var_name = match.group(1)
                var_default = match.group(2) if match.group(2) is not None else ''
                return os.getenv(var_name, var_default)
            
            config_value = re.sub(pattern, replace_env_var, config_value)
            
            if config_value == '':
                config_value = None
        
        if config_value is not None and config_value != '':
            return config_value
        
        env_value = os.getenv(env_var)
        if env_value is not None and env_value != '':
            return env_value
        
        return default
