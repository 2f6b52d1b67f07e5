"""Socket message shapes.

Inbound frames are JSON text and parse into exactly one of:

  EnvelopeMessage      {"jsonrpc": "2.0", "method": "tools/<name>", "params": {...}, "id": 1}
  StreamMessage        {"type": "media", "streamSid": "CA...", "payload": {...}}
  UnrecognizedMessage  any other JSON value

Media payloads are base64 audio, either as the payload itself or nested as
{"media": {"payload": "<base64>"}} the way Twilio media events carry it.
"""

import base64
import binascii
import json
from typing import Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class MessageParseError(ValueError):
    """Frame is not valid JSON"""


class EnvelopeMessage(BaseModel):
    kind: Literal["envelope"] = "envelope"
    method: str
    # usually an object; anything else is left for the method handler to reject
    params: Any = Field(default_factory=dict)
    id: Any = None

    @field_validator("params", mode="before")
    @classmethod
    def _null_params(cls, value: Any) -> Any:
        return {} if value is None else value


class StreamMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    kind: Literal["stream"] = "stream"
    type: str  # connect, media, mark, stop, error, transcription
    stream_sid: str = Field(alias="streamSid")
    track: Optional[str] = None
    payload: Any = None
    event: Optional[str] = None
    error: Optional[str] = None

    def audio_bytes(self) -> bytes:
        """Decode the base64 audio carried by a media frame"""
        encoded = self.payload
        if isinstance(encoded, dict):
            media = encoded.get("media")
            encoded = media.get("payload") if isinstance(media, dict) else encoded.get("payload")
        if not isinstance(encoded, str) or not encoded:
            raise ValueError("Media frame has no audio payload")
        try:
            return base64.b64decode(encoded, validate=True)
        except binascii.Error as e:
            raise ValueError(f"Audio payload is not valid base64: {e}") from e

    def mark(self) -> Dict[str, Any]:
        payload = self.payload if isinstance(self.payload, dict) else {}
        return payload.get("mark", payload)


class UnrecognizedMessage(BaseModel):
    kind: Literal["unrecognized"] = "unrecognized"
    raw: Any = None


InboundMessage = Union[EnvelopeMessage, StreamMessage, UnrecognizedMessage]


def parse_message(raw: str) -> InboundMessage:
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, TypeError) as e:
        raise MessageParseError(f"Invalid message format: {e}") from e

    if not isinstance(data, dict):
        return UnrecognizedMessage(raw=data)

    if data.get("jsonrpc") == "2.0" and isinstance(data.get("method"), str):
        return EnvelopeMessage.model_validate(data)

    if data.get("type") and data.get("streamSid"):
        model = StreamMessage
    else:
        return UnrecognizedMessage(raw=data)

    try:
        return model.model_validate(data)
    except ValidationError:
        return UnrecognizedMessage(raw=data)


def error_message(error: str, id: Optional[Union[int, str]] = None) -> Dict[str, Any]:
    message: Dict[str, Any] = {"type": "error", "error": error}
    if id is not None:
        message["id"] = id
    return message
