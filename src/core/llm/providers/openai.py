"""
OpenAI provider implementation.

Structured answers use the chat completions `json_schema` response format;
images travel as base64 data URLs.
"""
from typing import Any, Dict, List, Optional, Tuple, Type

from pydantic import BaseModel

from src.config import OPENAI_API_ENDPOINT
from ..base import LLMProvider, json_schema_for
from ..messages import Message, encode_image, message_text


class OpenAIProvider(LLMProvider):
    """OpenAI chat completions API (also works with compatible servers)"""

    name = "openai"

    def __init__(self, model: str, api_key: str, api_endpoint: Optional[str] = None, **kwargs):
        super().__init__(model, api_key, self._normalize_endpoint(api_endpoint or OPENAI_API_ENDPOINT), **kwargs)

    @staticmethod
    def _normalize_endpoint(endpoint: str) -> str:
        """
        Normalize API endpoint URL.

        Adds '/chat/completions' when the URL stops at '/v1', e.g.
        https://api.example.com/v1/ -> https://api.example.com/v1/chat/completions
        """
        endpoint = endpoint.rstrip('/')
        if endpoint.endswith('/v1'):
            return endpoint + '/chat/completions'
        return endpoint

    async def _convert_message(self, message: Message) -> Dict[str, Any]:
        if message["role"] != "user":
            return {"role": message["role"], "content": message_text(message)}
        content = []
        for part in message["content"]:
            if part["type"] == "text":
                content.append({"type": "text", "text": part["text"]})
            elif part["type"] == "image":
                mime_type, data = await encode_image(part["path"])
                content.append({"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{data}"}})
        return {"role": "user", "content": content}

    async def _build_request(self, messages: List[Message],
                             schema: Type[BaseModel]) -> Tuple[str, Dict[str, str], Dict[str, Any]]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": [await self._convert_message(m) for m in messages],
            "response_format": {
                "type": "json_schema",
                "json_schema": {
                    "name": schema.__name__,
                    "schema": json_schema_for(schema),
                    "strict": True,
                },
            },
        }
        if self.max_tokens:
            payload["max_completion_tokens"] = self.max_tokens
        payload.update(self.provider_options)
        return self.api_endpoint, headers, payload

    def _extract_object(self, response_json: Dict[str, Any]) -> str:
        return response_json["choices"][0]["message"]["content"]
