"""Unified LLM adapter interface"""

from typing import List, Optional
import structlog

from app.config import Settings, settings as default_settings
from app.schemas.llm import LLMMessage, LLMGenerateResponse
from app.llm.providers import PROVIDERS, BaseLLMProvider

logger = structlog.get_logger()


class LLMAdapter:
    """
    Routes generation requests to a configured provider.

    When the primary provider raises, the request is retried once on the
    fallback provider if one is configured; otherwise the error propagates.
    """

    def __init__(
        self,
        provider: str,
        model: str,
        fallback_provider: Optional[str] = None,
        fallback_model: Optional[str] = None,
        timeout: float = 20.0,
        settings: Optional[Settings] = None,
    ):
        self.provider = provider
        self.model = model
        self.fallback_provider = fallback_provider
        self.fallback_model = fallback_model
        self.timeout = timeout
        self.settings = settings or default_settings

    def _get_provider_instance(self, provider: str, model: str) -> BaseLLMProvider:
        provider_class = PROVIDERS.get(provider)
        if not provider_class:
            raise ValueError(f"Unknown provider: {provider}")

        return provider_class(model=model, settings=self.settings, timeout=self.timeout)

    async def generate(
        self,
        system_prompt: str,
        messages: List[LLMMessage],
        temperature: float = 0.2,
        max_tokens: int = 256,
    ) -> LLMGenerateResponse:
        try:
            primary = self._get_provider_instance(self.provider, self.model)
            return await primary.generate(
                system_prompt=system_prompt,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
            )

        except Exception as e:
            if not (self.fallback_provider and self.fallback_model):
                logger.warning("LLM provider failed", provider=self.provider, model=self.model, error=str(e))
                raise

            logger.warning(
                "Primary LLM provider failed, attempting fallback",
                provider=self.provider,
                model=self.model,
                fallback_provider=self.fallback_provider,
                error=str(e),
            )

            try:
                fallback = self._get_provider_instance(self.fallback_provider, self.fallback_model)
                return await fallback.generate(
                    system_prompt=system_prompt,
                    messages=messages,
                    temperature=temperature,
                    max_tokens=max_tokens,
                )
            except Exception as fallback_error:
                logger.error(
                    "Fallback LLM provider also failed",
                    fallback_provider=self.fallback_provider,
                    fallback_model=self.fallback_model,
                    error=str(fallback_error),
                )
                raise


def get_llm_adapter(settings: Settings) -> Optional[LLMAdapter]:
    """Build the adapter from settings, or None when no provider is configured"""
    if not settings.llm_configured:
        return None

    fallback_provider = settings.fallback_llm_provider
    fallback_model = settings.fallback_llm_model
    if fallback_provider and not fallback_model:
        fallback_model = settings.default_model_for(fallback_provider)

    return LLMAdapter(
        provider=settings.default_llm_provider,
        model=settings.default_llm_model or settings.default_model_for(settings.default_llm_provider),
        fallback_provider=fallback_provider or None,
        fallback_model=fallback_model or None,
        timeout=settings.provider_timeout_seconds,
        settings=settings,
    )
