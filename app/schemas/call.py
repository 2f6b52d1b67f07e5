"""Call and recording snapshots returned by the telephony provider"""

from typing import Optional
from pydantic import BaseModel, model_validator


# Twilio lifecycle values; busy/no-answer are provider-specific terminal states
CALL_STATUSES = (
    "queued",
    "ringing",
    "in-progress",
    "completed",
    "failed",
    "canceled",
    "busy",
    "no-answer",
)
TERMINAL_CALL_STATUSES = {"completed", "failed", "canceled", "busy", "no-answer"}


class PlacedCall(BaseModel):
    """Result of placing an outbound call"""
    call_id: str
    status: str
    to: str
    from_number: str


class CallSnapshot(BaseModel):
    """Point-in-time view of a provider call record"""
    call_id: str
    status: str
    to: Optional[str] = None
    from_number: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    duration: Optional[str] = None
    price: Optional[str] = None

    @model_validator(mode="after")
    def _unknown_until_completed(self) -> "CallSnapshot":
        # duration, price and end time only mean something once the call completed
        if self.status != "completed":
            self.duration = None
            self.price = None
            self.end_time = None
        return self


class RecordingSnapshot(BaseModel):
    """Provider recording record"""
    recording_id: str
    call_id: str
    status: str  # recording, stopped, completed
    channels: Optional[str] = None  # single, dual
    duration: Optional[int] = None
    recording_url: Optional[str] = None
