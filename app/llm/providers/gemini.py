"""Google Gemini LLM provider"""

import asyncio
from typing import List
import google.generativeai as genai
import structlog

from app.config import Settings
from app.schemas.llm import LLMMessage, LLMGenerateResponse
from app.llm.providers.base import BaseLLMProvider

logger = structlog.get_logger()


class GeminiProvider(BaseLLMProvider):
    """Google Gemini generate-content API"""

    name = "gemini"

    def __init__(self, model: str, settings: Settings, timeout: float = 20.0):
        super().__init__(model, settings, timeout)
        genai.configure(api_key=settings.gemini_api_key)

    async def generate(
        self,
        system_prompt: str,
        messages: List[LLMMessage],
        temperature: float = 0.2,
        max_tokens: int = 256,
    ) -> LLMGenerateResponse:
        # system prompts are bound to the model instance in this SDK
        client = genai.GenerativeModel(self.model, system_instruction=system_prompt)
        contents = [
            {"role": "model" if msg.role == "assistant" else "user", "parts": [msg.content]}
            for msg in messages
        ]

        logger.debug("Gemini request", model=self.model, message_count=len(contents))

        response = await asyncio.wait_for(
            client.generate_content_async(
                contents,
                generation_config=genai.types.GenerationConfig(
                    temperature=temperature,
                    max_output_tokens=max_tokens,
                ),
            ),
            timeout=self.timeout,
        )

        text = "".join(
            part.text
            for candidate in response.candidates
            for part in candidate.content.parts
            if getattr(part, "text", None)
        )
        usage = getattr(response, "usage_metadata", None)
        return self._response(
            text,
            prompt_tokens=usage.prompt_token_count if usage else None,
            completion_tokens=usage.candidates_token_count if usage else None,
        )
