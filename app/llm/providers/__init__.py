"""LLM provider implementations, keyed by the names used in configuration"""

from typing import Dict, Type

from app.llm.providers.base import BaseLLMProvider
from app.llm.providers.openai import OpenAIProvider
from app.llm.providers.anthropic import AnthropicProvider
from app.llm.providers.gemini import GeminiProvider
from app.llm.providers.ollama import OllamaProvider

PROVIDERS: Dict[str, Type[BaseLLMProvider]] = {
    provider.name: provider
    for provider in (OpenAIProvider, AnthropicProvider, GeminiProvider, OllamaProvider)
}

__all__ = ["BaseLLMProvider", "PROVIDERS"]
