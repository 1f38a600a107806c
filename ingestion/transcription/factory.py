"""
Transcription Service Factory

Wires configuration into ready-to-use transcription services. The factory
owns exactly one CircuitBreaker per endpoint and one client, so every
service it creates shares the same failure counters.
"""

import logging
from typing import Dict, Optional

import aiohttp

from ingestion.config import IngestionConfig
from ingestion.resilience.circuit_breaker import CircuitBreaker
from ingestion.resilience.policy import ResiliencePolicy
from ingestion.transcription.client import TranscriptionClient
from ingestion.transcription.providers.assemblyai import AssemblyAITranscriptionService
from ingestion.transcription.providers.base import SilenceAnalyzer, TranscriptionService
from ingestion.transcription.providers.silence_detection import SilenceDetectionDecorator
from ingestion.transcription.tracker import JobTracker


logger = logging.getLogger(__name__)


class TranscriptionServiceFactory:
    """Factory for transcription services sharing one resilience state.
    
    Example:
        >>> factory = TranscriptionServiceFactory(IngestionConfig.load())
        >>> service = factory.create_service(FFmpegSilenceAnalyzer())
        >>> ...
        >>> await factory.close()
    """
    
    def __init__(
        self,
        config: IngestionConfig,
        session: Optional[aiohttp.ClientSession] = None,
        **policy_kwargs
    ):
        """Initialize the factory.
        
        Args:
            config: Full ingestion configuration
            session: Optional externally managed aiohttp session
            **policy_kwargs: Extra ResiliencePolicy arguments (sleep, rng)
        """
        self.config = config
        self._session = session
        self._policy_kwargs = policy_kwargs
        self._breakers: Dict[str, CircuitBreaker] = {}
        self._client: Optional[TranscriptionClient] = None
    
    def get_breaker(self, endpoint: Optional[str] = None) -> CircuitBreaker:
        """Return the breaker for an endpoint, creating it on first use."""
        endpoint = endpoint or self.config.assemblyai.base_url
        if endpoint not in self._breakers:
            resilience = self.config.resilience
            self._breakers[endpoint] = CircuitBreaker(
                endpoint,
                failure_threshold=resilience.failure_threshold,
                open_duration=resilience.open_duration,
                sampling_window=resilience.sampling_window,
            )
        return self._breakers[endpoint]
    
    def create_client(self) -> TranscriptionClient:
        """Return the shared client, creating it on first use.
        
        Raises:
            ConfigurationError: If the API key is missing
        """
        if self._client is None:
            policy = ResiliencePolicy.from_config(
                self.config.resilience, self.get_breaker(), **self._policy_kwargs
            )
            self._client = TranscriptionClient(self.config.assemblyai, policy, self._session)
        return self._client
    
    def create_tracker(self) -> JobTracker:
        api = self.config.assemblyai
        return JobTracker(
            self.create_client(),
            poll_interval=api.poll_interval,
            max_wait=api.max_wait,
        )
    
    def create_service(self, silence_analyzer: Optional[SilenceAnalyzer] = None) -> TranscriptionService:
        """Create a transcription service.
        
        The base service is wrapped with silence detection when an analyzer
        is given and silence detection is enabled in the configuration.
        """
        service = AssemblyAITranscriptionService(self.create_tracker(), self.config.transcription)
        
        if silence_analyzer is not None and self.config.silence_detection.enabled:
            logger.debug("Silence detection enabled")
            return SilenceDetectionDecorator(service, silence_analyzer)
        return service
    
    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
