"""
AssemblyAI Transcription Client

Owns the HTTP calls to the transcription API: audio upload, job
submission, status checks and best-effort cancellation. Every call is
routed through the injected ResiliencePolicy; transport failures are
classified here (transient vs permanent) so the policy knows what to retry.
Provider payloads are returned as wire DTOs; conversion to the canonical
model is delegated to the response mapper.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Optional

import aiohttp
from pydantic import ValidationError

from ingestion.config import AssemblyAIConfig, TranscriptionOptions
from ingestion.resilience.errors import (
    PermanentTransportError,
    ResilienceError,
    TransientTransportError,
    is_retryable_status,
)
from ingestion.resilience.policy import ResiliencePolicy, RetryCallback
from ingestion.transcription.errors import (
    ConfigurationError,
    ProviderResponseError,
    SubmissionError,
    TranscriptionError,
)
from ingestion.transcription.mapper import map_status, to_canonical
from ingestion.transcription.models import TranscriptionResult
from ingestion.transcription.schemas import (
    TranscriptRequest,
    TranscriptResponse,
    UploadResponse,
)


logger = logging.getLogger(__name__)


class TranscriptionClient:
    """Async HTTP client for the AssemblyAI v2 API.
    
    The client owns its aiohttp session unless one is injected, in which
    case the caller is responsible for closing it.
    
    Example:
        >>> async with TranscriptionClient(config, policy) as client:
        ...     remote_id = await client.submit("https://cdn/audio.wav", options)
        ...     dto = await client.get_status(remote_id)
    """
    
    def __init__(
        self,
        config: AssemblyAIConfig,
        policy: ResiliencePolicy,
        session: Optional[aiohttp.ClientSession] = None
    ):
        """Initialize the client.
        
        Args:
            config: API connection settings
            policy: Resilience policy shared by every client of this endpoint
            session: Optional externally managed aiohttp session
            
        Raises:
            ConfigurationError: If the API key is missing
        """
        if not config.api_key:
            raise ConfigurationError(
                "AssemblyAI API key not found. Set ASSEMBLYAI_API_KEY or "
                "assemblyai.api_key in the configuration file."
            )
        
        self.config = config
        self.policy = policy
        self.base_url = config.base_url.rstrip("/")
        self._session = session
        self._owns_session = session is None
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)
    
    async def __aenter__(self) -> "TranscriptionClient":
        return self
    
    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
    
    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True
        return self._session
    
    async def close(self) -> None:
        """Close the underlying session if this client created it."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
    
    async def _request(
        self,
        method: str,
        path: str,
        payload: Optional[dict] = None,
        data: Optional[bytes] = None
    ) -> Any:
        """Perform one HTTP request and classify the outcome.
        
        Raises:
            TransientTransportError: Connection failure, timeout, 5xx, 408, 429
            PermanentTransportError: Any other 4xx
            ProviderResponseError: Body is not valid JSON
        """
        url = f"{self.base_url}{path}"
        headers = {"authorization": self.config.api_key}
        if data is not None:
            headers["content-type"] = "application/octet-stream"
        
        try:
            async with self._get_session().request(
                method, url, json=payload, data=data,
                headers=headers, timeout=self._timeout
            ) as response:
                raw = await response.read()
                status = response.status
                charset = response.charset or "utf-8"
        except asyncio.TimeoutError as e:
            raise TransientTransportError(
                f"{method} {path} timed out after {self.config.request_timeout}s"
            ) from e
        except aiohttp.ClientError as e:
            raise TransientTransportError(f"{method} {path} failed: {e}") from e
        
        if status >= 400:
            body = raw.decode("utf-8", errors="replace")
            message = f"{method} {path} returned HTTP {status}: {body[:200]}"
            if is_retryable_status(status):
                raise TransientTransportError(message, status)
            raise PermanentTransportError(message, status, body)
        
        try:
            body = raw.decode(charset)
        except (UnicodeDecodeError, LookupError) as e:
            raise ProviderResponseError(f"{method} {path} returned undecodable body: {e}") from e
        
        if not body.strip():
            return {}
        try:
            return json.loads(body)
        except ValueError as e:
            raise ProviderResponseError(f"{method} {path} returned invalid JSON: {e}") from e
    
    async def upload(self, file_path: str, on_retry: Optional[RetryCallback] = None) -> str:
        """Upload a local audio file and return its provider URL.
        
        Raises:
            FileNotFoundError: If the audio file doesn't exist
            SubmissionError: If the provider rejects the upload
            CircuitOpenError / TransientFailureExhausted: From the policy
        """
        path = Path(file_path)
        if not path.is_file():
            raise FileNotFoundError(f"Audio file not found: {file_path}")
        audio = await asyncio.to_thread(path.read_bytes)
        
        logger.debug(f"Uploading {path.name} ({len(audio)} bytes)")
        try:
            body = await self.policy.execute(
                lambda: self._request("POST", "/upload", data=audio),
                context=f"upload {path.name}",
                on_retry=on_retry,
            )
        except PermanentTransportError as e:
            raise SubmissionError(f"Upload rejected: {e}", e.status) from e
        
        try:
            return UploadResponse.model_validate(body).upload_url
        except ValidationError as e:
            raise ProviderResponseError(f"Upload response carried no upload_url: {e}") from e
    
    async def submit(
        self,
        audio_url: str,
        options: TranscriptionOptions,
        on_retry: Optional[RetryCallback] = None
    ) -> str:
        """Create a remote transcription job.
        
        Args:
            audio_url: Provider-reachable audio URL
            options: Submit-request options
            on_retry: Retry observer passed to the policy
            
        Returns:
            Provider transcript id
            
        Raises:
            SubmissionError: If the request is invalid or rejected (never retried)
            CircuitOpenError / TransientFailureExhausted: From the policy
        """
        try:
            request = TranscriptRequest(
                audio_url=audio_url,
                language_code=options.language_code,
                speaker_labels=options.speaker_labels,
                sentiment_analysis=options.sentiment_analysis,
                punctuate=options.punctuate,
                format_text=options.format_text,
                webhook_url=options.webhook_url,
                webhook_auth_header_name=options.webhook_auth_header_name,
                webhook_auth_header_value=options.webhook_auth_header_value,
            )
        except ValidationError as e:
            raise SubmissionError(f"Invalid transcription request: {e}") from e
        
        try:
            body = await self.policy.execute(
                lambda: self._request("POST", "/transcript", payload=request.to_payload()),
                context="submit transcript",
                on_retry=on_retry,
            )
        except PermanentTransportError as e:
            raise SubmissionError(f"Submission rejected: {e}", e.status) from e
        
        response = self._parse_transcript(body)
        if not response.id:
            raise ProviderResponseError("Submit response carried no transcript id")
        
        logger.info(f"Submitted transcription job {response.id}")
        return response.id
    
    async def get_status(
        self,
        remote_id: str,
        on_retry: Optional[RetryCallback] = None
    ) -> TranscriptResponse:
        """Fetch the current state of a remote job.
        
        Raises:
            PermanentTransportError: If the provider rejects the request
            ProviderResponseError: If the payload cannot be parsed
            CircuitOpenError / TransientFailureExhausted: From the policy
        """
        body = await self.policy.execute(
            lambda: self._request("GET", f"/transcript/{remote_id}"),
            context=f"status {remote_id}",
            on_retry=on_retry,
        )
        return self._parse_transcript(body)
    
    async def fetch_result(self, remote_id: str) -> TranscriptionResult:
        """Fetch a remote job and convert it to the canonical model."""
        return to_canonical(await self.get_status(remote_id))
    
    async def cancel(self, remote_id: str) -> bool:
        """Best-effort remote cancellation.
        
        Returns:
            True if a cancel request was accepted, False if the job was
            already terminal or the request failed. Never raises for
            transport or provider errors.
        """
        if not remote_id:
            return False
        
        try:
            current = await self.get_status(remote_id)
            if map_status(current.status).is_terminal:
                logger.info(f"Job {remote_id} already {current.status}; nothing to cancel")
                return False
            
            await self.policy.execute(
                lambda: self._request("DELETE", f"/transcript/{remote_id}"),
                context=f"cancel {remote_id}",
            )
        except (ResilienceError, TranscriptionError) as e:
            logger.warning(f"Best-effort cancel of job {remote_id} failed: {e}")
            return False
        
        logger.info(f"Cancel requested for job {remote_id}")
        return True
    
    @staticmethod
    def _parse_transcript(body: Any) -> TranscriptResponse:
        try:
            return TranscriptResponse.model_validate(body)
        except ValidationError as e:
            raise ProviderResponseError(f"Malformed transcript payload: {e}") from e
