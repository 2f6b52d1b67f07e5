"""Twilio voice provider"""

from datetime import datetime
from typing import Any, Awaitable, List, Optional

from twilio.base.exceptions import TwilioException
from twilio.http.async_http_client import AsyncTwilioHttpClient
from twilio.rest import Client as TwilioClient
from twilio.twiml.voice_response import VoiceResponse
import structlog

from app.config import Settings
from app.errors import NoActiveRecording, ProviderError
from app.schemas.call import (
    CallSnapshot,
    PlacedCall,
    RecordingSnapshot,
    TERMINAL_CALL_STATUSES,
)
from app.telephony.base import TelephonyProvider

logger = structlog.get_logger()

TWILIO_API_BASE = "https://api.twilio.com"
STATUS_CALLBACK_EVENTS = ["initiated", "ringing", "answered", "completed"]


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _recording_url(uri: Optional[str]) -> Optional[str]:
    if not uri:
        return None
    return f"{TWILIO_API_BASE}{uri.removesuffix('.json')}"


def _recording_status(status: Optional[str]) -> str:
    # Twilio reports an active recording as "in-progress"
    return "recording" if status == "in-progress" else (status or "unknown")


def _call_snapshot(call: Any) -> CallSnapshot:
    return CallSnapshot(
        call_id=call.sid,
        status=call.status,
        to=call.to,
        from_number=call.from_,
        start_time=_isoformat(call.start_time),
        end_time=_isoformat(call.end_time),
        duration=call.duration,
        price=call.price,
    )


def _recording_snapshot(recording: Any, channels: Optional[str] = None) -> RecordingSnapshot:
    return RecordingSnapshot(
        recording_id=recording.sid,
        call_id=recording.call_sid,
        status=_recording_status(recording.status),
        channels=channels,
        duration=int(recording.duration) if recording.duration else None,
        recording_url=_recording_url(recording.uri),
    )


class TwilioTelephonyProvider(TelephonyProvider):
    """Twilio implementation using the async REST client"""

    def __init__(self, settings: Settings, client: Optional[TwilioClient] = None):
        self.from_number = settings.twilio_phone_number
        self.status_callback_url = settings.status_callback_url
        self.client = client or TwilioClient(
            settings.twilio_account_sid,
            settings.twilio_auth_token,
            http_client=AsyncTwilioHttpClient(timeout=settings.provider_timeout_seconds),
        )

    async def close(self) -> None:
        await self.client.http_client.close()
        logger.debug("Twilio HTTP client closed")

    async def _request(self, operation: str, awaitable: Awaitable[Any]) -> Any:
        """Await a Twilio request, converting upstream failures to ProviderError"""
        try:
            return await awaitable
        except TwilioException as e:
            message = getattr(e, "msg", None) or str(e)
            logger.error("Twilio request failed", operation=operation, error=message)
            raise ProviderError(f"Failed to {operation}: {message}") from e

    async def place_call(
        self,
        to: str,
        message: str,
        voice: str = "alice",
        language: str = "en-US",
    ) -> PlacedCall:
        twiml = VoiceResponse()
        twiml.say(message, voice=voice, language=language)

        logger.info("Placing call", to_number=to[-4:], voice=voice, language=language)

        call = await self._request(
            "make call",
            self.client.calls.create_async(
                to=to,
                from_=self.from_number,
                twiml=str(twiml),
                status_callback=self.status_callback_url,
                status_callback_event=STATUS_CALLBACK_EVENTS,
                status_callback_method="POST",
            ),
        )

        return PlacedCall(
            call_id=call.sid,
            status=call.status,
            to=call.to,
            from_number=call.from_,
        )

    async def get_call_status(self, call_id: str) -> CallSnapshot:
        call = await self._request("get call status", self.client.calls(call_id).fetch_async())
        return _call_snapshot(call)

    async def list_calls(self, limit: int = 50, status: Optional[str] = "completed") -> List[CallSnapshot]:
        kwargs = {"limit": limit}
        if status:
            kwargs["status"] = status

        calls = await self._request("list calls", self.client.calls.list_async(**kwargs))
        # Twilio returns calls newest first
        return [_call_snapshot(call) for call in calls]

    async def cancel_call(self, call_id: str) -> CallSnapshot:
        current = await self.get_call_status(call_id)
        if current.status in TERMINAL_CALL_STATUSES:
            raise ProviderError(
                f"Failed to cancel call: call {call_id} already ended with status {current.status}"
            )

        call = await self._request(
            "cancel call",
            self.client.calls(call_id).update_async(status="canceled"),
        )
        logger.info("Call canceled", call_id=call_id)
        return _call_snapshot(call)

    async def start_recording(
        self,
        call_id: str,
        channels: str = "dual",
        callback_url: Optional[str] = None,
    ) -> RecordingSnapshot:
        kwargs = {
            "recording_channels": channels,
            "recording_status_callback_event": ["completed"],
            "recording_status_callback_method": "POST",
        }
        if callback_url:
            kwargs["recording_status_callback"] = callback_url

        recording = await self._request(
            "start recording",
            self.client.calls(call_id).recordings.create_async(**kwargs),
        )
        logger.info("Recording started", call_id=call_id, recording_id=recording.sid)
        return _recording_snapshot(recording, channels=channels)

    async def stop_recording(self, call_id: str) -> RecordingSnapshot:
        recordings = await self._request(
            "list recordings",
            self.client.calls(call_id).recordings.list_async(),
        )
        if not recordings:
            raise NoActiveRecording(call_id)

        latest = recordings[0]
        recording = await self._request(
            "stop recording",
            self.client.calls(call_id).recordings(latest.sid).update_async(status="stopped"),
        )
        logger.info("Recording stopped", call_id=call_id, recording_id=recording.sid)
        return _recording_snapshot(recording)
