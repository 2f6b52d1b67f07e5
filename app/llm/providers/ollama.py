"""Ollama local LLM provider"""

from typing import List
import httpx
import structlog

from app.config import Settings
from app.schemas.llm import LLMMessage, LLMGenerateResponse
from app.llm.providers.base import BaseLLMProvider

logger = structlog.get_logger()


class OllamaProvider(BaseLLMProvider):
    """Ollama chat API over HTTP; needs no credentials"""

    name = "ollama"

    def __init__(self, model: str, settings: Settings, timeout: float = 20.0):
        super().__init__(model, settings, timeout)
        self.base_url = settings.ollama_base_url.rstrip("/")

    async def generate(
        self,
        system_prompt: str,
        messages: List[LLMMessage],
        temperature: float = 0.2,
        max_tokens: int = 256,
    ) -> LLMGenerateResponse:
        chat_messages = self._chat_messages(system_prompt, messages)

        logger.debug(
            "Ollama request",
            model=self.model,
            base_url=self.base_url,
            message_count=len(chat_messages),
        )

        async with httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout) as client:
            response = await client.post(
                "/api/chat",
                json={
                    "model": self.model,
                    "messages": chat_messages,
                    "stream": False,
                    "options": {"temperature": temperature, "num_predict": max_tokens},
                },
            )
            response.raise_for_status()
            data = response.json()

        return self._response(
            data.get("message", {}).get("content"),
            prompt_tokens=data.get("prompt_eval_count"),
            completion_tokens=data.get("eval_count"),
        )
