"""
Factory for creating LLM provider instances.

This module provides the create_llm_provider() function which instantiates
the provider matching an adapter configuration.
"""

from typing import Dict, Type

from src.config import AdapterConfig
from .base import LLMProvider
from .providers.openai import OpenAIProvider
from .providers.gemini import GeminiProvider
from .providers.anthropic import AnthropicProvider

PROVIDERS: Dict[str, Type[LLMProvider]] = {
    "openai": OpenAIProvider,
    "google": GeminiProvider,
    "anthropic": AnthropicProvider,
}


def create_llm_provider(adapter_config: AdapterConfig) -> LLMProvider:
    """
    Create an LLM provider instance.

    Args:
        adapter_config: Adapter entry (model, key, retries, token limit, extra options)

    Returns:
        Instantiated LLMProvider subclass

    Raises:
        ValueError: If the adapter name has no provider

    Examples:
        >>> provider = create_llm_provider(get_adapter_config("openai"))
    """
    provider_class = PROVIDERS.get(adapter_config.name.lower())
    if provider_class is None:
        raise ValueError(f"Unknown provider type: {adapter_config.name}. "
                         f"Supported: {', '.join(sorted(PROVIDERS))}")

    return provider_class(
        model=adapter_config.model,
        api_key=adapter_config.api_key,
        max_retries=adapter_config.max_retries,
        max_tokens=adapter_config.max_tokens,
        provider_options=dict(adapter_config.provider_options),
    )
