"""Call and audio-file transcription"""

import os
import tempfile
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple
from urllib.parse import urlparse

import httpx
import structlog

from app.errors import InvalidArguments, ProviderError
from app.schemas.transcription import ChunkTranscript, Transcription, TranscriptionMetadata
from app.services.speech import TranscriptionBackend
from app.streaming.audio import AudioAccumulator

logger = structlog.get_logger()

UNAVAILABLE_TEXT = "[Transcription service unavailable. Please try again later.]"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _new_transcription_id() -> str:
    return f"trans_{uuid.uuid4()}"


def _discard(path: str) -> None:
    try:
        os.remove(path)
    except OSError as e:
        logger.warning("Error cleaning up audio file", path=path, error=str(e))


class TranscriptionService:
    """
    Real-time transcription of a call's audio stream, and one-shot
    transcription of audio files by URL.

    Streaming transcriptions start `in-progress`, are updated in place as
    chunks are transcribed (each chunk is also broadcast to socket
    observers), and complete when the stream stops.
    """

    def __init__(
        self,
        accumulator: AudioAccumulator,
        backend: TranscriptionBackend,
        download_timeout: float = 20.0,
        download_auth: Optional[Tuple[str, str]] = None,
        scratch_dir: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.accumulator = accumulator
        self.backend = backend
        self.download_timeout = download_timeout
        self.download_auth = download_auth
        self.scratch_dir = scratch_dir or None
        self.transport = transport
        self._transcriptions: Dict[str, Transcription] = {}
        self._streams: Dict[str, str] = {}  # call id -> transcription id

    async def transcribe(
        self,
        call_id: Optional[str] = None,
        audio_url: Optional[str] = None,
        language: str = "en-US",
    ) -> Transcription:
        if call_id:
            return await self.start_stream(call_id, language)
        if audio_url:
            return await self.transcribe_url(audio_url, language)
        raise InvalidArguments("Either callId or audioUrl must be provided")

    def get_transcription(self, transcription_id: str) -> Optional[Transcription]:
        return self._transcriptions.get(transcription_id)

    def list_transcriptions(self, limit: int = 50) -> List[Transcription]:
        """Most recent first"""
        return list(reversed(self._transcriptions.values()))[:limit]

    # Streaming

    async def start_stream(self, call_id: str, language: str = "en-US") -> Transcription:
        active_id = self._streams.get(call_id)
        if active_id is not None:
            return self._transcriptions[active_id]

        transcription = Transcription(
            id=_new_transcription_id(),
            language=language,
            status="in-progress",
            metadata=TranscriptionMetadata(
                call_id=call_id,
                start_time=_now(),
                channels=self.accumulator.channels,
                sample_rate=self.accumulator.sample_rate,
            ),
        )
        self._transcriptions[transcription.id] = transcription
        self._streams[call_id] = transcription.id

        handle = await self.accumulator.process_audio_stream(call_id, language)

        async def on_chunk(chunk: ChunkTranscript) -> None:
            await self._apply_chunk(call_id, transcription, chunk)

        def on_close() -> None:
            self._complete(call_id, transcription)

        handle.on_transcription(on_chunk)
        handle.on_close(on_close)

        logger.info("Real-time transcription started", call_id=call_id, transcription_id=transcription.id)
        return transcription

    async def stop_stream(self, call_id: str) -> Optional[Transcription]:
        transcription_id = self._streams.get(call_id)
        if transcription_id is None:
            return None

        handle = self.accumulator.get_handle(call_id)
        if handle is not None:
            await handle.stop()
        else:
            self._complete(call_id, self._transcriptions[transcription_id])
        return self._transcriptions[transcription_id]

    async def _apply_chunk(self, call_id: str, transcription: Transcription, chunk: ChunkTranscript) -> None:
        if transcription.is_terminal:
            return

        count = transcription.chunk_count
        if chunk.text:
            transcription.text = f"{transcription.text} {chunk.text}".strip()
        transcription.confidence = (transcription.confidence * count + chunk.confidence) / (count + 1)
        transcription.chunk_count = count + 1
        transcription.duration += chunk.duration
        transcription.word_count = len(transcription.text.split())

        await self.accumulator.registry.broadcast(
            call_id,
            {
                "type": "transcription",
                "transcriptionId": transcription.id,
                "text": chunk.text,
                "isFinal": chunk.is_final,
                "language": transcription.language,
                "confidence": chunk.confidence,
            },
        )

    def _complete(self, call_id: str, transcription: Transcription) -> None:
        if not transcription.is_terminal:
            transcription.status = "completed"
            if transcription.metadata:
                transcription.metadata.end_time = _now()
        self._streams.pop(call_id, None)
        logger.info(
            "Real-time transcription completed",
            call_id=call_id,
            transcription_id=transcription.id,
            word_count=transcription.word_count,
        )

    # Batch

    async def transcribe_url(self, audio_url: str, language: str = "en-US") -> Transcription:
        audio_path = await self._download(audio_url)
        transcription_id = _new_transcription_id()

        try:
            chunk = await self.backend.transcribe(audio_path, language)
            transcription = Transcription(
                id=transcription_id,
                text=chunk.text,
                confidence=chunk.confidence,
                language=language,
                duration=chunk.duration,
                word_count=len(chunk.text.split()),
                status="completed",
            )
        except Exception as e:
            logger.error("Transcription backend failed", audio_url=audio_url, error=str(e))
            transcription = Transcription(
                id=transcription_id,
                text=UNAVAILABLE_TEXT,
                confidence=0.0,
                language=language,
                status="failed",
                error=str(e),
            )
        finally:
            _discard(audio_path)

        self._transcriptions[transcription.id] = transcription
        return transcription

    async def _download(self, audio_url: str) -> str:
        parsed = urlparse(audio_url)
        if parsed.scheme not in ("http", "https"):
            raise InvalidArguments(f"audioUrl must be an http(s) URL, got {audio_url!r}")

        auth = self.download_auth if parsed.hostname and parsed.hostname.endswith("twilio.com") else None
        suffix = os.path.splitext(parsed.path)[1] or ".wav"
        fd, path = tempfile.mkstemp(prefix="audio-", suffix=suffix, dir=self.scratch_dir)

        try:
            with os.fdopen(fd, "wb") as audio_file:
                async with httpx.AsyncClient(
                    timeout=self.download_timeout,
                    follow_redirects=True,
                    transport=self.transport,
                ) as client:
                    async with client.stream("GET", audio_url, auth=auth) as response:
                        response.raise_for_status()
                        async for data in response.aiter_bytes():
                            audio_file.write(data)
        except Exception as e:
            _discard(path)
            logger.error("Audio download failed", audio_url=audio_url, error=str(e))
            raise ProviderError(f"Failed to download audio: {e}") from e

        return path
