"""Accumulate streamed call audio into chunks for transcription"""

import inspect
import os
import re
import tempfile
import wave
from typing import Callable, Dict, List, Optional

import structlog

from app.schemas.transcription import ChunkTranscript
from app.services.speech import TranscriptionBackend
from app.streaming.messages import StreamMessage
from app.streaming.registry import CONNECTION_CLOSED, ConnectionRegistry

logger = structlog.get_logger()

TranscriptionCallback = Callable[[ChunkTranscript], object]
CloseCallback = Callable[[], object]


async def _invoke(callback, *args) -> None:
    result = callback(*args)
    if inspect.isawaitable(result):
        await result


class AudioStreamHandle:
    """Control surface for one call's audio stream"""

    def __init__(self, accumulator: "AudioAccumulator", call_id: str, language: str):
        self.call_id = call_id
        self.language = language
        self.stopped = False
        self._accumulator = accumulator
        self._transcription_callbacks: List[TranscriptionCallback] = []
        self._close_callbacks: List[CloseCallback] = []

    def on_transcription(self, callback: TranscriptionCallback) -> None:
        if callable(callback):
            self._transcription_callbacks.append(callback)

    def on_close(self, callback: CloseCallback) -> None:
        if callable(callback):
            self._close_callbacks.append(callback)

    async def stop(self) -> None:
        await self._accumulator.stop(self)

    async def _emit(self, result: ChunkTranscript) -> None:
        for callback in self._transcription_callbacks:
            try:
                await _invoke(callback, result)
            except Exception as e:
                logger.error("Transcription callback failed", call_id=self.call_id, error=str(e))

    async def _closed(self) -> None:
        for callback in self._close_callbacks:
            try:
                await _invoke(callback)
            except Exception as e:
                logger.error("Stream close callback failed", call_id=self.call_id, error=str(e))


class AudioAccumulator:
    """
    Buffers base64 media frames per call and hands time-bounded chunks to a
    transcription backend.

    Buffered duration is estimated as bytes / (sample_rate * channels *
    bytes_per_sample). Once it reaches `chunk_seconds` the buffer is joined,
    cleared, written to a scratch WAV file and transcribed. Backend failures
    are logged and accumulation carries on.
    """

    def __init__(
        self,
        registry: ConnectionRegistry,
        backend: TranscriptionBackend,
        sample_rate: int = 8000,
        channels: int = 1,
        bytes_per_sample: int = 2,
        chunk_seconds: float = 2.0,
        scratch_dir: Optional[str] = None,
    ):
        self.registry = registry
        self.backend = backend
        self.sample_rate = sample_rate
        self.channels = channels
        self.bytes_per_sample = bytes_per_sample
        self.chunk_seconds = chunk_seconds
        self.scratch_dir = scratch_dir or None
        self._buffers: Dict[str, List[bytes]] = {}
        self._handles: Dict[str, AudioStreamHandle] = {}

    @property
    def bytes_per_second(self) -> int:
        return self.sample_rate * self.channels * self.bytes_per_sample

    def buffered_bytes(self, call_id: str) -> int:
        return sum(len(chunk) for chunk in self._buffers.get(call_id, ()))

    def buffered_seconds(self, call_id: str) -> float:
        return self.buffered_bytes(call_id) / self.bytes_per_second

    def get_handle(self, call_id: str) -> Optional[AudioStreamHandle]:
        return self._handles.get(call_id)

    async def process_audio_stream(self, call_id: str, language: str = "en-US") -> AudioStreamHandle:
        """Start accumulating frames for `call_id`; an active stream is returned as is"""
        existing = self._handles.get(call_id)
        if existing is not None:
            return existing

        logger.info("Starting audio processing", call_id=call_id, language=language)

        handle = AudioStreamHandle(self, call_id, language)
        self._handles[call_id] = handle
        self._buffers[call_id] = []

        async def on_message(message: StreamMessage, connection_id: Optional[str]) -> None:
            await self._handle_message(handle, message)

        self.registry.register_stream_handler(call_id, on_message)
        return handle

    async def stop(self, handle: AudioStreamHandle) -> None:
        """Unregister, flush what is left once, and drop the buffer"""
        if handle.stopped:
            return
        handle.stopped = True

        logger.info("Stopping audio processing", call_id=handle.call_id)
        self.registry.unregister_stream_handler(handle.call_id)

        if self._buffers.get(handle.call_id):
            logger.info(
                "Processing remaining audio",
                call_id=handle.call_id,
                buffered_bytes=self.buffered_bytes(handle.call_id),
            )
            await self._flush(handle)

        self._buffers.pop(handle.call_id, None)
        self._handles.pop(handle.call_id, None)
        await handle._closed()

    async def stop_all(self) -> None:
        for handle in list(self._handles.values()):
            await self.stop(handle)

    async def _handle_message(self, handle: AudioStreamHandle, message: StreamMessage) -> None:
        if message.type == "media":
            try:
                audio = message.audio_bytes()
            except ValueError as e:
                logger.warning("Invalid media frame", call_id=handle.call_id, error=str(e))
                await self.registry.broadcast(
                    handle.call_id,
                    {"type": "error", "error": f"Error processing audio: {e}"},
                )
                return
            await self._append(handle, audio)

        elif message.type == "mark":
            mark = message.mark()
            logger.info("Received mark", call_id=handle.call_id, name=mark.get("name"), time=mark.get("time"))

        elif message.type == "stop":
            await handle.stop()

        elif message.type == "error":
            logger.warning("Stream error", call_id=handle.call_id, error=message.error)
            if message.error == CONNECTION_CLOSED:
                await handle.stop()

        else:
            logger.debug("Ignoring stream message", call_id=handle.call_id, type=message.type)

    async def _append(self, handle: AudioStreamHandle, audio: bytes) -> None:
        buffer = self._buffers.get(handle.call_id)
        if buffer is None or handle.stopped:
            return

        buffer.append(audio)
        if self.buffered_seconds(handle.call_id) >= self.chunk_seconds:
            await self._flush(handle)

    async def _flush(self, handle: AudioStreamHandle) -> None:
        buffer = self._buffers.get(handle.call_id)
        if not buffer:
            return

        # take the audio and clear before awaiting anything
        audio = b"".join(buffer)
        buffer.clear()

        path = self._write_scratch(handle.call_id, audio)
        try:
            result = await self.backend.transcribe(path, handle.language)
        except Exception as e:
            logger.warning(
                "Transcription backend failed, continuing",
                call_id=handle.call_id,
                chunk_bytes=len(audio),
                error=str(e),
            )
            return
        finally:
            self._remove_scratch(path)

        logger.info(
            "Chunk transcribed",
            call_id=handle.call_id,
            chunk_seconds=round(len(audio) / self.bytes_per_second, 2),
            text_length=len(result.text),
        )
        await handle._emit(result)

    def _write_scratch(self, call_id: str, audio: bytes) -> str:
        prefix = re.sub(r"[^A-Za-z0-9_-]", "_", call_id) + "-"
        fd, path = tempfile.mkstemp(prefix=prefix, suffix=".wav", dir=self.scratch_dir)
        os.close(fd)
        with wave.open(path, "wb") as wav:
            wav.setnchannels(self.channels)
            wav.setsampwidth(self.bytes_per_sample)
            wav.setframerate(self.sample_rate)
            wav.writeframes(audio)
        return path

    def _remove_scratch(self, path: str) -> None:
        try:
            os.remove(path)
        except OSError as e:
            logger.warning("Error cleaning up temp file", path=path, error=str(e))
