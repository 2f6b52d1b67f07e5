"""Transcription schemas"""

from typing import Literal, Optional
from pydantic import BaseModel, Field


TranscriptionStatus = Literal["in-progress", "completed", "failed"]


class TranscriptionMetadata(BaseModel):
    call_id: Optional[str] = None
    recording_id: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    channels: Optional[int] = None
    sample_rate: Optional[int] = None


class ChunkTranscript(BaseModel):
    """One backend pass over a unit of audio"""
    text: str
    confidence: float = Field(ge=0.0, le=1.0)
    duration: float = 0.0
    language: Optional[str] = None
    is_final: bool = True


class Transcription(BaseModel):
    """Transcription record; streaming ones are updated in place until terminal"""
    id: str
    text: str = ""
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    language: str
    duration: float = 0.0
    word_count: int = 0
    status: TranscriptionStatus = "in-progress"
    error: Optional[str] = None
    metadata: Optional[TranscriptionMetadata] = None
    chunk_count: int = 0

    @property
    def is_terminal(self) -> bool:
        return self.status != "in-progress"
