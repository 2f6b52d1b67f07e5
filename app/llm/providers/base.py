"""Base LLM provider interface"""

from abc import ABC, abstractmethod
from typing import List, Optional

import structlog

from app.config import Settings
from app.schemas.llm import LLMMessage, LLMGenerateResponse, UsageStats

logger = structlog.get_logger()


class BaseLLMProvider(ABC):
    """Abstract base class for LLM providers"""

    name = "base"

    def __init__(self, model: str, settings: Settings, timeout: float = 20.0):
        self.model = model
        self.settings = settings
        self.timeout = timeout

    @abstractmethod
    async def generate(
        self,
        system_prompt: str,
        messages: List[LLMMessage],
        temperature: float = 0.2,
        max_tokens: int = 256,
    ) -> LLMGenerateResponse:
        """Generate a text completion from the LLM"""
        pass

    def _chat_messages(self, system_prompt: str, messages: List[LLMMessage]) -> List[dict]:
        """System prompt followed by the conversation, as role/content dicts"""
        return [{"role": "system", "content": system_prompt}] + [
            {"role": msg.role, "content": msg.content} for msg in messages
        ]

    def _response(
        self,
        content: Optional[str],
        prompt_tokens: Optional[int] = None,
        completion_tokens: Optional[int] = None,
    ) -> LLMGenerateResponse:
        usage = None
        if prompt_tokens is not None and completion_tokens is not None:
            usage = UsageStats(
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                total_tokens=prompt_tokens + completion_tokens,
            )

        logger.debug(
            "LLM response",
            provider=self.name,
            model=self.model,
            content_length=len(content) if content else 0,
            completion_tokens=completion_tokens,
        )

        return LLMGenerateResponse(
            content=content or None,
            usage=usage,
            provider=self.name,
            model=self.model,
        )
