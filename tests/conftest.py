"""Test configuration and fixtures"""

import base64
import json
import os
import uuid
import wave
from typing import Dict, List, Optional

import pytest
from httpx import ASGITransport, AsyncClient

from app.config import Settings
from app.context import ServiceContext, build_context
from app.errors import NoActiveRecording, ProviderError
from app.main import create_app
from app.schemas.call import CallSnapshot, PlacedCall, RecordingSnapshot, TERMINAL_CALL_STATUSES
from app.schemas.llm import LLMGenerateResponse, LLMMessage
from app.schemas.transcription import ChunkTranscript
from app.services.speech import TranscriptionBackend
from app.telephony.base import TelephonyProvider


FROM_NUMBER = "+15557654321"


class FakeTelephonyProvider(TelephonyProvider):
    """In-memory telephony provider"""

    def __init__(self, from_number: str = FROM_NUMBER):
        self.from_number = from_number
        self.calls: Dict[str, dict] = {}
        self.recordings: Dict[str, List[RecordingSnapshot]] = {}
        self.placed: List[dict] = []
        self.next_call_id: Optional[str] = None
        self.closed = False

    def set_call(self, call_id: str, **fields) -> None:
        self.calls.setdefault(call_id, {"call_id": call_id, "status": "queued"}).update(fields)

    def _get(self, call_id: str) -> dict:
        if call_id not in self.calls:
            raise ProviderError(f"Failed to get call status: call {call_id} not found")
        return self.calls[call_id]

    async def place_call(self, to, message, voice="alice", language="en-US") -> PlacedCall:
        call_id = self.next_call_id or f"CA{uuid.uuid4().hex}"
        self.placed.append({"to": to, "message": message, "voice": voice, "language": language})
        self.set_call(call_id, to=to, from_number=self.from_number, status="queued")
        return PlacedCall(call_id=call_id, status="queued", to=to, from_number=self.from_number)

    async def get_call_status(self, call_id) -> CallSnapshot:
        return CallSnapshot(**self._get(call_id))

    async def list_calls(self, limit=50, status="completed") -> List[CallSnapshot]:
        calls = [CallSnapshot(**call) for call in reversed(list(self.calls.values()))]
        if status:
            calls = [call for call in calls if call.status == status]
        return calls[:limit]

    async def cancel_call(self, call_id) -> CallSnapshot:
        call = self._get(call_id)
        if call["status"] in TERMINAL_CALL_STATUSES:
            raise ProviderError(f"Failed to cancel call: call {call_id} already ended")
        call["status"] = "canceled"
        return CallSnapshot(**call)

    async def start_recording(self, call_id, channels="dual", callback_url=None) -> RecordingSnapshot:
        self._get(call_id)
        recording = RecordingSnapshot(
            recording_id=f"RE{uuid.uuid4().hex}",
            call_id=call_id,
            status="recording",
            channels=channels,
        )
        self.recordings.setdefault(call_id, []).insert(0, recording)
        return recording

    async def stop_recording(self, call_id) -> RecordingSnapshot:
        recordings = self.recordings.get(call_id)
        if not recordings:
            raise NoActiveRecording(call_id)
        latest = recordings[0]
        return latest.model_copy(
            update={
                "status": "stopped",
                "duration": 12,
                "recording_url": f"https://api.twilio.com/Recordings/{latest.recording_id}",
            }
        )

    async def close(self) -> None:
        self.closed = True


class FakeTranscriptionBackend(TranscriptionBackend):
    """Records every invocation; optionally fails"""

    def __init__(self, text: str = "hello from the call", confidence: float = 0.9, fail: bool = False):
        self.text = text
        self.confidence = confidence
        self.fail = fail
        self.invocations: List[dict] = []

    async def transcribe(self, audio_path: str, language: str) -> ChunkTranscript:
        with wave.open(audio_path, "rb") as wav:
            frames = wav.getnframes()
            duration = frames / wav.getframerate()
            audio_bytes = frames * wav.getsampwidth() * wav.getnchannels()
        self.invocations.append(
            {"path": audio_path, "language": language, "bytes": audio_bytes, "duration": duration}
        )
        if self.fail:
            raise RuntimeError("backend unavailable")
        return ChunkTranscript(text=self.text, confidence=self.confidence, duration=duration, language=language)


class FakeLLM:
    """Generative backend answering by the kind of prompt it receives"""

    def __init__(
        self,
        summary: str = "Customer asked about a refund.",
        sentiment: str = "negative",
        topics: str = "refund, billing",
        fail: bool = False,
    ):
        self.summary = summary
        self.sentiment = sentiment
        self.topics = topics
        self.fail = fail
        self.requests: List[dict] = []

    async def generate(
        self,
        system_prompt: str,
        messages: List[LLMMessage],
        temperature: float = 0.2,
        max_tokens: int = 256,
    ) -> LLMGenerateResponse:
        self.requests.append(
            {"system_prompt": system_prompt, "temperature": temperature, "max_tokens": max_tokens}
        )
        if self.fail:
            raise RuntimeError("provider down")

        if "sentiment" in system_prompt:
            content = self.sentiment
        elif "topics" in system_prompt:
            content = self.topics
        else:
            content = self.summary
        return LLMGenerateResponse(content=content, provider="fake", model="fake-1")


class FakeWebSocket:
    """Minimal stand-in for a FastAPI WebSocket"""

    def __init__(self, frames: Optional[List[str]] = None, fail_send: bool = False):
        self.frames = list(frames or [])
        self.fail_send = fail_send
        self.accepted = False
        self.closed = False
        self.sent: List[dict] = []

    async def accept(self):
        self.accepted = True

    async def iter_text(self):
        for frame in self.frames:
            yield frame

    async def send_text(self, data: str):
        if self.fail_send:
            raise RuntimeError("socket gone")
        self.sent.append(json.loads(data))

    async def close(self):
        self.closed = True


def make_settings(**overrides) -> Settings:
    """Settings isolated from the environment and .env"""
    values = {
        "twilio_account_sid": "ACtest",
        "twilio_auth_token": "secret",
        "twilio_phone_number": FROM_NUMBER,
        "webhook_base_url": "https://calls.example.com/",
        "openai_api_key": "",
        "anthropic_api_key": "",
        "gemini_api_key": "",
        "default_llm_provider": "openai",
        "auth_tokens_json": "",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    return make_settings(
        audio_scratch_dir=str(tmp_path),
        auth_tokens_json=json.dumps(
            {"tok-valid": {"id": "user-1", "phone_number": "+91-98765 43210"}}
        ),
    )


@pytest.fixture
def telephony() -> FakeTelephonyProvider:
    return FakeTelephonyProvider()


@pytest.fixture
def backend() -> FakeTranscriptionBackend:
    return FakeTranscriptionBackend()


@pytest.fixture
def llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def context(test_settings, telephony, backend) -> ServiceContext:
    """Service context with fakes and no generative backend"""
    return build_context(test_settings, telephony=telephony, transcription_backend=backend)


@pytest.fixture
async def client(context):
    """HTTP client against an app wired with the test context"""
    app = create_app(context)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


def media_frame(call_id: str, audio: bytes) -> str:
    return json.dumps(
        {
            "type": "media",
            "streamSid": call_id,
            "payload": {"media": {"payload": base64.b64encode(audio).decode()}},
        }
    )


def scratch_files(directory) -> List[str]:
    return [name for name in os.listdir(directory) if name.endswith(".wav")]
