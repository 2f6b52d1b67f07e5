"""Twilio webhook handlers"""

from typing import Any, Dict

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse
import structlog

router = APIRouter()
logger = structlog.get_logger()


async def _payload(request: Request) -> Dict[str, Any]:
    """Twilio posts form data; JSON bodies are accepted too"""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except ValueError as e:
            logger.warning("Unparsable webhook body", path=request.url.path, error=str(e))
            return {}
        return body if isinstance(body, dict) else {}
    form = await request.form()
    return dict(form)


def _last4(number: Any) -> Any:
    return number[-4:] if isinstance(number, str) else number


@router.post("/call-status", response_class=PlainTextResponse)
async def handle_call_status(request: Request):
    """Handle call status updates from Twilio"""
    payload = await _payload(request)

    logger.info(
        "Call status update",
        call_sid=payload.get("CallSid"),
        status=payload.get("CallStatus"),
        duration=payload.get("CallDuration"),
        start_time=payload.get("CallStartTime"),
        end_time=payload.get("CallEndTime"),
        price=payload.get("CallPrice"),
        to=_last4(payload.get("To")),
        from_number=_last4(payload.get("From")),
    )

    return "OK"


@router.post("/recording-status", response_class=PlainTextResponse)
async def handle_recording_status(request: Request):
    """Handle recording status updates from Twilio"""
    payload = await _payload(request)

    logger.info(
        "Recording status update",
        call_sid=payload.get("CallSid"),
        recording_sid=payload.get("RecordingSid"),
        status=payload.get("RecordingStatus"),
        recording_url=payload.get("RecordingUrl"),
        duration=payload.get("RecordingDuration"),
    )

    return "OK"
