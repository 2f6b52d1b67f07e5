"""Anthropic Claude LLM provider"""

from typing import List
from anthropic import AsyncAnthropic
import structlog

from app.config import Settings
from app.schemas.llm import LLMMessage, LLMGenerateResponse
from app.llm.providers.base import BaseLLMProvider

logger = structlog.get_logger()


def _alternating_turns(messages: List[LLMMessage]) -> List[dict]:
    """Merge consecutive same-role messages; Anthropic rejects repeated roles"""
    turns: List[dict] = []
    for msg in messages:
        role = "assistant" if msg.role == "assistant" else "user"
        if turns and turns[-1]["role"] == role:
            turns[-1]["content"] += "\n" + msg.content
        else:
            turns.append({"role": role, "content": msg.content})
    return turns


class AnthropicProvider(BaseLLMProvider):
    """Anthropic messages API"""

    name = "anthropic"

    def __init__(self, model: str, settings: Settings, timeout: float = 20.0):
        super().__init__(model, settings, timeout)
        self.client = AsyncAnthropic(api_key=settings.anthropic_api_key, timeout=timeout)

    async def generate(
        self,
        system_prompt: str,
        messages: List[LLMMessage],
        temperature: float = 0.2,
        max_tokens: int = 256,
    ) -> LLMGenerateResponse:
        turns = _alternating_turns(messages)

        logger.debug("Anthropic request", model=self.model, message_count=len(turns))

        response = await self.client.messages.create(
            model=self.model,
            max_tokens=max_tokens,
            temperature=temperature,
            system=system_prompt,
            messages=turns,
        )

        return self._response(
            "".join(block.text for block in response.content if block.type == "text"),
            prompt_tokens=response.usage.input_tokens,
            completion_tokens=response.usage.output_tokens,
        )
