"""
LLM Provider Implementations

Providers:
    - openai: OpenAI chat completions (json_schema response format)
    - gemini: Google Gemini generateContent
    - anthropic: Anthropic Messages API (forced tool call)
"""

__all__ = []
