"""Pydantic schemas for tool payloads and service state"""

from app.schemas.auth import (
    TokenRecord,
    TokenValidation,
    User,
)
from app.schemas.call import (
    CallSnapshot,
    PlacedCall,
    RecordingSnapshot,
)
from app.schemas.llm import (
    LLMGenerateResponse,
    LLMMessage,
    UsageStats,
)
from app.schemas.summary import (
    Summary,
    SummaryMetadata,
)
from app.schemas.transcription import (
    ChunkTranscript,
    Transcription,
    TranscriptionMetadata,
)

__all__ = [
    "TokenRecord",
    "TokenValidation",
    "User",
    "CallSnapshot",
    "PlacedCall",
    "RecordingSnapshot",
    "LLMGenerateResponse",
    "LLMMessage",
    "UsageStats",
    "Summary",
    "SummaryMetadata",
    "ChunkTranscript",
    "Transcription",
    "TranscriptionMetadata",
]
