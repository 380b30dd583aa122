"""
LLM Provider System

Structured-output calls against the supported vision model APIs.

Public API:
    - Exceptions: ProviderError, SchemaValidationError
    - Base class: LLMProvider
    - Messages: user_message, assistant_message, system_message
    - Providers: OpenAIProvider, GeminiProvider, AnthropicProvider
    - Factory: create_llm_provider

Example usage:
    >>> from src.core.llm import create_llm_provider
    >>> provider = create_llm_provider(get_adapter_config("google"))
    >>> answer = await provider.generate_object(messages, TranslateResult)
"""

# Exceptions
from .exceptions import ProviderError, SchemaValidationError

# Base classes
from .base import LLMProvider

# Messages
from .messages import user_message, assistant_message, system_message, message_text

# Providers
from .providers.openai import OpenAIProvider
from .providers.gemini import GeminiProvider
from .providers.anthropic import AnthropicProvider

# Factory
from .factory import create_llm_provider

__all__ = [
    'ProviderError',
    'SchemaValidationError',
    'LLMProvider',
    'user_message',
    'assistant_message',
    'system_message',
    'message_text',
    'OpenAIProvider',
    'GeminiProvider',
    'AnthropicProvider',
    'create_llm_provider',
]
