"""OpenAI LLM provider"""

from typing import List
from openai import AsyncOpenAI
import structlog

from app.config import Settings
from app.schemas.llm import LLMMessage, LLMGenerateResponse
from app.llm.providers.base import BaseLLMProvider

logger = structlog.get_logger()


class OpenAIProvider(BaseLLMProvider):
    """OpenAI chat completions"""

    name = "openai"

    def __init__(self, model: str, settings: Settings, timeout: float = 20.0):
        super().__init__(model, settings, timeout)
        self.client = AsyncOpenAI(api_key=settings.openai_api_key, timeout=timeout)

    async def generate(
        self,
        system_prompt: str,
        messages: List[LLMMessage],
        temperature: float = 0.2,
        max_tokens: int = 256,
    ) -> LLMGenerateResponse:
        chat_messages = self._chat_messages(system_prompt, messages)

        logger.debug(
            "OpenAI request",
            model=self.model,
            message_count=len(chat_messages),
            max_tokens=max_tokens,
        )

        response = await self.client.chat.completions.create(
            model=self.model,
            messages=chat_messages,
            temperature=temperature,
            max_tokens=max_tokens,
        )

        usage = response.usage
        return self._response(
            response.choices[0].message.content,
            prompt_tokens=usage.prompt_tokens if usage else None,
            completion_tokens=usage.completion_tokens if usage else None,
        )
