"""Generative-text request and response schemas"""

from typing import Literal, Optional
from pydantic import BaseModel


class LLMMessage(BaseModel):
    """One conversation turn sent to a provider"""
    role: Literal["user", "assistant"]
    content: str


class UsageStats(BaseModel):
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


class LLMGenerateResponse(BaseModel):
    """Text produced by a provider; content is None when the provider returned nothing"""
    content: Optional[str] = None
    usage: Optional[UsageStats] = None
    provider: str
    model: str
