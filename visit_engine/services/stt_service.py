"""
Speech-to-Text Service

Transcribes a visit recording by trying an ordered list of models until one
succeeds. OpenAI models go through the audio transcription endpoint,
`assemblyai-*` models through the AssemblyAI SDK.
"""

import asyncio
import functools
import io
import os
from typing import BinaryIO, List, Optional, Protocol, Sequence

import assemblyai as aai
import httpx
from openai import APIConnectionError, APITimeoutError, AsyncOpenAI
from tenacity import retry, retry_if_exception, retry_if_exception_type, stop_after_attempt, wait_exponential

from visit_engine.config import settings, Settings
from visit_engine.core.exceptions import ExternalServiceError, ValidationError
from visit_engine.core.fallback import AllStrategiesFailed, FallbackChain
from visit_engine.core.logging import get_logger
from visit_engine.core.metrics import transcription_attempts_total
from visit_engine.models.transcription import RawTranscription, TranscriptionResult
from visit_engine.services.audio_processor import AudioProcessor
from visit_engine.services.llm_service import build_openai_client, is_server_error

logger = get_logger(__name__)

# Define retryable exceptions for network issues or server errors
RETRYABLE_EXCEPTIONS = (httpx.TimeoutException, httpx.NetworkError, APITimeoutError, APIConnectionError)

ASSEMBLYAI_PREFIX = "assemblyai"


class TranscriptionBackend(Protocol):
    async def transcribe(
        self, audio: BinaryIO, model_id: str, language_hint: Optional[str]
    ) -> RawTranscription:
        ...


def _language_or_none(language_hint: Optional[str]) -> Optional[str]:
    if not language_hint or language_hint == "auto":
        return None
    return language_hint


class ProviderTranscriptionBackend:
    """Routes a model id to OpenAI or AssemblyAI."""

    def __init__(self, openai_client: Optional[AsyncOpenAI] = None, config: Settings = settings):
        self.openai_client = openai_client if openai_client is not None else build_openai_client(config)
        self.assemblyai_enabled = bool(config.assemblyai_api_key)
        if self.assemblyai_enabled:
            aai.settings.api_key = config.assemblyai_api_key
            aai.settings.base_url = config.assemblyai_api_base_url

    async def transcribe(
        self, audio: BinaryIO, model_id: str, language_hint: Optional[str]
    ) -> RawTranscription:
        if model_id.startswith(ASSEMBLYAI_PREFIX):
            return await self._transcribe_assemblyai(audio, language_hint)
        return await self._transcribe_openai(audio, model_id, language_hint)

    @retry(
        wait=wait_exponential(multiplier=1, min=2, max=10),
        stop=stop_after_attempt(3),
        retry=(retry_if_exception_type(RETRYABLE_EXCEPTIONS) | retry_if_exception(is_server_error)),
        before_sleep=lambda retry_state: logger.warning(
            f"Retrying OpenAI transcription call, attempt {retry_state.attempt_number}..."
        ),
        reraise=True,
    )
    async def _transcribe_openai(
        self, audio: BinaryIO, model_id: str, language_hint: Optional[str]
    ) -> RawTranscription:
        if self.openai_client is None:
            raise ExternalServiceError("OpenAI API key is not configured.")

        audio.seek(0)
        params = {
            "file": audio,
            "model": model_id,
            # Only whisper-1 reports duration and language
            "response_format": "verbose_json" if model_id == "whisper-1" else "json",
        }
        language = _language_or_none(language_hint)
        if language:
            params["language"] = language

        transcription = await self.openai_client.audio.transcriptions.create(**params)

        return RawTranscription(
            text=transcription.text or "",
            duration=getattr(transcription, "duration", None),
            language=getattr(transcription, "language", None),
        )

    async def _transcribe_assemblyai(
        self, audio: BinaryIO, language_hint: Optional[str]
    ) -> RawTranscription:
        if not self.assemblyai_enabled:
            raise ExternalServiceError("AssemblyAI API key is not configured.")

        language = _language_or_none(language_hint)
        config_params = {"language_code": language} if language else {"language_detection": True}
        transcriber = aai.Transcriber(config=aai.TranscriptionConfig(**config_params))

        audio.seek(0)
        # The SDK call is synchronous and keeps running in its thread after a
        # timeout, so it reads from its own buffer rather than the shared handle
        transcript = await asyncio.to_thread(transcriber.transcribe, io.BytesIO(audio.read()))

        if transcript.status == aai.TranscriptStatus.error:
            raise ExternalServiceError(f"AssemblyAI transcription failed: {transcript.error}")

        logger.info(f"AssemblyAI transcript created with ID: {transcript.id}")
        detected = (transcript.json_response or {}).get("language_code")
        return RawTranscription(
            text=transcript.text or "",
            duration=transcript.audio_duration,
            language=detected,
        )


class TranscriptionService:
    """Transcription adapter with per-model fallback."""

    def __init__(
        self,
        backend: TranscriptionBackend,
        models: Sequence[str] = tuple(settings.transcription_models),
        timeout: float = settings.stt_timeout,
        audio_processor: Optional[AudioProcessor] = None,
    ):
        self.backend = backend
        self.models: List[str] = list(models)
        self.timeout = timeout
        self.audio_processor = audio_processor or AudioProcessor()

    async def transcribe(self, audio_path: str, language_hint: Optional[str] = None) -> TranscriptionResult:
        """
        Transcribes the audio file with the first model that succeeds.
        Raises ExternalServiceError with the last failure when every model fails.
        """
        if not os.path.exists(audio_path):
            raise ValidationError(f"Audio file not found: {audio_path}")

        logger.info(f"Starting audio transcription with models: {', '.join(self.models)}")

        chain = FallbackChain()
        for model_id in self.models:
            chain.add(model_id, functools.partial(self._attempt, audio_path, model_id, language_hint))

        try:
            model_id, raw = await chain.run()
        except AllStrategiesFailed as e:
            logger.error(f"Audio transcription failed with every model: {e}")
            raise ExternalServiceError(
                f"Transcription failed: {e}",
                details={"models": [name for name, _ in e.errors]},
            ) from e.last_error

        duration = raw.duration or self.audio_processor.probe_duration(audio_path)
        result = TranscriptionResult(
            text=raw.text,
            duration_seconds=duration,
            detected_language=raw.language or _language_or_none(language_hint),
            model=model_id,
        )

        logger.info(
            "Audio transcription completed",
            model=model_id,
            duration=result.duration_seconds,
            text_length=len(result.text),
        )
        return result

    async def _attempt(self, audio_path: str, model_id: str, language_hint: Optional[str]) -> RawTranscription:
        """One model, one read handle; the handle is closed on every exit path."""
        with open(audio_path, "rb") as audio:
            try:
                raw = await asyncio.wait_for(
                    self.backend.transcribe(audio, model_id, language_hint),
                    timeout=self.timeout,
                )
            except asyncio.TimeoutError as e:
                transcription_attempts_total.labels(model=model_id, outcome="timeout").inc()
                raise ExternalServiceError(f"{model_id} timed out after {self.timeout:g}s") from e
            except Exception:
                transcription_attempts_total.labels(model=model_id, outcome="error").inc()
                raise

        if not raw.text or not raw.text.strip():
            transcription_attempts_total.labels(model=model_id, outcome="empty").inc()
            raise ExternalServiceError(f"{model_id} returned an empty transcript")

        transcription_attempts_total.labels(model=model_id, outcome="success").inc()
        return raw
