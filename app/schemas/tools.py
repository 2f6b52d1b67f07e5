"""Tool argument and result schemas (camelCase on the wire)"""

from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class ToolModel(BaseModel):
    """Base for tool payloads: camelCase aliases, snake_case attributes"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Arguments

class CallArgs(ToolModel):
    to: str = Field(description="The phone number to call (e.g., +1234567890)")
    message: str = Field(description="The message to speak during the call")
    voice: str = Field(default="alice", description="Voice to use (alice, man, woman, ...)")
    language: str = Field(default="en-US", description="Language for the call (e.g., en-US, es-ES)")


class CallStatusArgs(ToolModel):
    call_id: str = Field(description="The Twilio call ID to check status for")


class ListCallsArgs(ToolModel):
    limit: int = Field(default=50, ge=1, le=1000)
    status: str = Field(default="completed", description="Only list calls in this status")


class TranscribeArgs(ToolModel):
    call_id: Optional[str] = Field(default=None, description="Twilio call ID to transcribe in real time")
    audio_url: Optional[str] = Field(default=None, description="URL of audio file to transcribe")
    language: str = Field(default="en-US", description="Language of the audio")

    @model_validator(mode="after")
    def _needs_a_source(self) -> "TranscribeArgs":
        if not self.call_id and not self.audio_url:
            raise ValueError("Either callId or audioUrl must be provided")
        return self


class SummarizeArgs(ToolModel):
    text: str = Field(description="Text content to summarize")
    max_length: int = Field(default=150, description="Maximum length of summary")
    style: Literal["bullet", "paragraph", "key_points"] = "key_points"
    language: str = "en-US"


class RecordArgs(ToolModel):
    call_id: str = Field(description="Twilio call ID to record")
    action: Literal["start", "stop"]
    recording_channels: Literal["dual", "single"] = "dual"
    recording_status_callback: Optional[str] = None


class ValidateArgs(ToolModel):
    token: str = Field(description="The bearer token to validate")


# Results

class CallResult(ToolModel):
    call_id: str
    status: str
    to: str
    from_number: str = Field(alias="from")
    message: str


class CallStatusResult(ToolModel):
    call_id: str
    status: str
    duration: Optional[str]
    start_time: Optional[str]
    end_time: Optional[str]
    price: Optional[str]


class CallListItem(ToolModel):
    call_id: str
    to: Optional[str]
    from_number: Optional[str] = Field(alias="from")
    status: str
    start_time: Optional[str]
    duration: Optional[str]
    price: Optional[str]


class ListCallsResult(ToolModel):
    calls: List[CallListItem]


class TranscribeResult(ToolModel):
    transcription_id: str
    text: str
    confidence: float
    language: str
    duration: float
    word_count: int
    status: str


class SummarizeResult(ToolModel):
    summary: str
    original_length: int
    summary_length: int
    key_topics: List[str]
    sentiment: Literal["positive", "negative", "neutral"]


class RecordResult(ToolModel):
    recording_id: str
    call_id: str
    status: str
    action: str
    recording_url: Optional[str] = None
    duration: Optional[int] = None


class ValidateResult(ToolModel):
    is_valid: bool
    phone_number: Optional[str] = None
    message: Optional[str] = None
