"""
Anthropic provider implementation.

The Messages API has no JSON response mode, so structured answers are obtained
by forcing a single tool call whose input schema is the requested schema.
"""
from typing import Any, Dict, List, Optional, Tuple, Type

from pydantic import BaseModel

from src.config import ANTHROPIC_API_ENDPOINT
from ..base import LLMProvider, json_schema_for
from ..messages import Message, SYSTEM, encode_image, message_text

ANTHROPIC_VERSION = "2023-06-01"
DEFAULT_MAX_TOKENS = 4096


class AnthropicProvider(LLMProvider):
    """Anthropic Messages API"""

    name = "anthropic"

    def __init__(self, model: str, api_key: str, api_endpoint: Optional[str] = None, **kwargs):
        super().__init__(model, api_key, api_endpoint or ANTHROPIC_API_ENDPOINT, **kwargs)

    async def _convert_message(self, message: Message) -> Dict[str, Any]:
        content = []
        for part in message["content"]:
            if part["type"] == "text":
                content.append({"type": "text", "text": part["text"]})
            elif part["type"] == "image":
                mime_type, data = await encode_image(part["path"])
                content.append({
                    "type": "image",
                    "source": {"type": "base64", "media_type": mime_type, "data": data},
                })
        return {"role": message["role"], "content": content}

    async def _build_request(self, messages: List[Message],
                             schema: Type[BaseModel]) -> Tuple[str, Dict[str, str], Dict[str, Any]]:
        headers = {
            "Content-Type": "application/json",
            "x-api-key": self.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
        }
        tool_name = schema.__name__
        payload: Dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens or DEFAULT_MAX_TOKENS,
            "messages": [await self._convert_message(m) for m in messages if m["role"] != SYSTEM],
            "tools": [{
                "name": tool_name,
                "description": schema.__doc__ or f"Return the answer as {tool_name}",
                "input_schema": json_schema_for(schema),
            }],
            "tool_choice": {"type": "tool", "name": tool_name},
        }
        system_text = "\n\n".join(message_text(m) for m in messages if m["role"] == SYSTEM)
        if system_text:
            payload["system"] = system_text
        payload.update(self.provider_options)
        return self.api_endpoint, headers, payload

    def _extract_object(self, response_json: Dict[str, Any]) -> Dict[str, Any]:
        for block in response_json["content"]:
            if block.get("type") == "tool_use":
                return block["input"]
        raise KeyError("tool_use block missing from response")
