"""Process-wide service wiring"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Request
import structlog

from app.config import Settings
from app.llm.adapter import get_llm_adapter
from app.services.auth import TokenValidator
from app.services.speech import (
    SimulatedTranscriptionBackend,
    TranscriptionBackend,
    WhisperTranscriptionBackend,
)
from app.services.summarization import SummarizationService, TextGenerator
from app.services.transcription import TranscriptionService
from app.streaming.audio import AudioAccumulator
from app.streaming.registry import ConnectionRegistry
from app.telephony.base import TelephonyProvider
from app.telephony.twilio import TwilioTelephonyProvider
from app.tools.dispatcher import ToolDispatcher
from app.tools.registry import register_tools
from app.tools.rpc import register_socket_methods

logger = structlog.get_logger()


@dataclass
class ServiceContext:
    settings: Settings
    telephony: TelephonyProvider
    token_validator: TokenValidator
    registry: ConnectionRegistry
    accumulator: AudioAccumulator
    transcription: TranscriptionService
    summarization: SummarizationService
    dispatcher: ToolDispatcher

    async def close(self) -> None:
        await self.accumulator.stop_all()
        await self.registry.close()
        await self.telephony.close()


def _default_transcription_backend(settings: Settings) -> TranscriptionBackend:
    if settings.openai_api_key:
        return WhisperTranscriptionBackend(
            api_key=settings.openai_api_key,
            model=settings.transcription_model,
            timeout=settings.provider_timeout_seconds,
        )
    logger.warning("OpenAI API key not configured, using simulated transcription")
    return SimulatedTranscriptionBackend()


def build_context(
    settings: Settings,
    telephony: Optional[TelephonyProvider] = None,
    llm: Optional[TextGenerator] = None,
    transcription_backend: Optional[TranscriptionBackend] = None,
) -> ServiceContext:
    """
    Wire every service from settings.

    Any of the external collaborators can be passed in; the rest are built
    from configuration.
    """
    if telephony is None:
        telephony = TwilioTelephonyProvider(settings)
    if llm is None:
        llm = get_llm_adapter(settings)
    if transcription_backend is None:
        transcription_backend = _default_transcription_backend(settings)

    token_validator = TokenValidator(default_ttl_seconds=settings.token_ttl_seconds)
    provisioned = token_validator.load(settings.provisioned_tokens())

    registry = ConnectionRegistry()
    accumulator = AudioAccumulator(
        registry,
        transcription_backend,
        sample_rate=settings.audio_sample_rate,
        channels=settings.audio_channels,
        bytes_per_sample=settings.audio_bytes_per_sample,
        chunk_seconds=settings.audio_chunk_seconds,
        scratch_dir=settings.audio_scratch_dir,
    )
    transcription = TranscriptionService(
        accumulator,
        transcription_backend,
        download_timeout=settings.provider_timeout_seconds,
        download_auth=(settings.twilio_account_sid, settings.twilio_auth_token)
        if settings.twilio_account_sid
        else None,
        scratch_dir=settings.audio_scratch_dir,
    )
    summarization = SummarizationService(llm=llm)

    dispatcher = ToolDispatcher(timeout=settings.tool_timeout_seconds)
    register_tools(dispatcher, telephony, transcription, summarization, token_validator)
    register_socket_methods(registry, dispatcher)

    logger.info(
        "Service context ready",
        tools=dispatcher.names,
        tokens=provisioned,
        llm=llm is not None,
        transcription_backend=type(transcription_backend).__name__,
    )

    return ServiceContext(
        settings=settings,
        telephony=telephony,
        token_validator=token_validator,
        registry=registry,
        accumulator=accumulator,
        transcription=transcription,
        summarization=summarization,
        dispatcher=dispatcher,
    )


def get_context(request: Request) -> ServiceContext:
    """FastAPI dependency returning the app's service context"""
    return request.app.state.context
