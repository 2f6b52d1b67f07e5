"""Summarization schemas"""

from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict


Sentiment = Literal["positive", "negative", "neutral"]
SummaryStyle = Literal["bullet", "paragraph", "key_points"]


class SummaryMetadata(BaseModel):
    provider: Optional[str] = None  # "fallback" when no LLM stage succeeded
    model: Optional[str] = None
    style: Optional[SummaryStyle] = None
    language: Optional[str] = None
    call_type: Optional[str] = None


class Summary(BaseModel):
    """Summary of a text; immutable once produced"""
    model_config = ConfigDict(frozen=True)

    summary: str
    original_length: int
    summary_length: int
    key_topics: List[str]
    sentiment: Sentiment
    confidence: Optional[float] = None
    metadata: Optional[SummaryMetadata] = None
