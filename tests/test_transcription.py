"""Tests for transcription of audio files by URL"""

import io
import wave

import httpx
import pytest

from app.errors import InvalidArguments, ProviderError
from app.services.speech import SimulatedTranscriptionBackend
from app.services.transcription import UNAVAILABLE_TEXT
from conftest import scratch_files


def wav_bytes(seconds: float = 1.0, rate: int = 8000) -> bytes:
    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wav:
        wav.setnchannels(1)
        wav.setsampwidth(2)
        wav.setframerate(rate)
        wav.writeframes(b"\x00\x00" * int(seconds * rate))
    return buffer.getvalue()


@pytest.fixture
def requests_seen():
    return []


@pytest.fixture
def serve_audio(context, requests_seen):
    def handler(request: httpx.Request) -> httpx.Response:
        requests_seen.append(request)
        if request.url.path.endswith("missing.wav"):
            return httpx.Response(404)
        return httpx.Response(200, content=wav_bytes())

    context.transcription.transport = httpx.MockTransport(handler)
    return context.transcription


@pytest.mark.asyncio
async def test_transcribe_url(serve_audio, backend, requests_seen, tmp_path):
    transcription = await serve_audio.transcribe(audio_url="https://example.com/audio/greeting.wav")

    assert transcription.status == "completed"
    assert transcription.text == "hello from the call"
    assert transcription.word_count == 4
    assert transcription.duration == pytest.approx(1.0)
    assert "authorization" not in requests_seen[0].headers
    assert backend.invocations[0]["duration"] == pytest.approx(1.0)
    assert serve_audio.get_transcription(transcription.id) is transcription
    assert scratch_files(tmp_path) == []


@pytest.mark.asyncio
async def test_twilio_recordings_downloaded_with_account_credentials(serve_audio, requests_seen):
    await serve_audio.transcribe(audio_url="https://api.twilio.com/2010-04-01/Accounts/AC1/Recordings/RE1.wav")

    assert requests_seen[0].headers["authorization"].startswith("Basic ")


@pytest.mark.asyncio
async def test_download_failure(serve_audio, tmp_path):
    with pytest.raises(ProviderError) as exc_info:
        await serve_audio.transcribe(audio_url="https://example.com/missing.wav")

    assert exc_info.value.message.startswith("Failed to download audio")
    assert list(tmp_path.iterdir()) == []


@pytest.mark.asyncio
async def test_download_io_error_removes_partial_file(context, tmp_path):
    def handler(request: httpx.Request) -> httpx.Response:
        raise OSError("disk full")

    context.transcription.transport = httpx.MockTransport(handler)

    with pytest.raises(ProviderError) as exc_info:
        await context.transcription.transcribe(audio_url="https://example.com/audio.wav")

    assert "disk full" in exc_info.value.message
    assert list(tmp_path.iterdir()) == []


@pytest.mark.asyncio
async def test_backend_failure_degrades(serve_audio, backend):
    backend.fail = True

    transcription = await serve_audio.transcribe(audio_url="https://example.com/audio.wav")

    assert transcription.status == "failed"
    assert transcription.text == UNAVAILABLE_TEXT
    assert transcription.confidence == 0.0
    assert transcription.error == "backend unavailable"


@pytest.mark.asyncio
async def test_non_http_url_rejected(serve_audio):
    with pytest.raises(InvalidArguments):
        await serve_audio.transcribe(audio_url="ftp://example.com/audio.wav")


@pytest.mark.asyncio
async def test_transcribe_tool_with_audio_url(serve_audio, context):
    result = await context.dispatcher.invoke("transcribe", {"audioUrl": "https://example.com/audio.wav"})

    assert result["status"] == "completed"
    assert result["wordCount"] == 4
    assert result["language"] == "en-US"


@pytest.mark.asyncio
async def test_simulated_backend_reads_wav_duration(tmp_path):
    path = tmp_path / "clip.wav"
    path.write_bytes(wav_bytes(seconds=2.5))

    chunk = await SimulatedTranscriptionBackend().transcribe(str(path), "en-US")

    assert chunk.duration == pytest.approx(2.5)
    assert chunk.confidence == 0.95

    mp3 = tmp_path / "clip.mp3"
    mp3.write_bytes(b"ID3 not a wav")
    assert (await SimulatedTranscriptionBackend().transcribe(str(mp3), "en-US")).duration == 0.0
