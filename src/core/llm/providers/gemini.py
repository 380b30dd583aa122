"""
Google Gemini provider implementation.

Structured answers use `responseMimeType: application/json` with a JSON schema;
the system prompt travels as `systemInstruction`.
"""
from typing import Any, Dict, List, Optional, Tuple, Type

from pydantic import BaseModel

from src.config import GEMINI_API_ENDPOINT
from ..base import LLMProvider, json_schema_for
from ..messages import Message, SYSTEM, ASSISTANT, encode_image, message_text


class GeminiProvider(LLMProvider):
    """Google Generative Language API (generateContent)"""

    name = "google"

    def __init__(self, model: str, api_key: str, api_endpoint: Optional[str] = None, **kwargs):
        super().__init__(model, api_key, (api_endpoint or GEMINI_API_ENDPOINT).rstrip('/'), **kwargs)

    async def _convert_parts(self, message: Message) -> List[Dict[str, Any]]:
        parts = []
        for part in message["content"]:
            if part["type"] == "text":
                parts.append({"text": part["text"]})
            elif part["type"] == "image":
                mime_type, data = await encode_image(part["path"])
                parts.append({"inline_data": {"mime_type": mime_type, "data": data}})
        return parts

    async def _build_request(self, messages: List[Message],
                             schema: Type[BaseModel]) -> Tuple[str, Dict[str, str], Dict[str, Any]]:
        headers = {"Content-Type": "application/json", "x-goog-api-key": self.api_key}

        system_text = "\n\n".join(message_text(m) for m in messages if m["role"] == SYSTEM)
        contents = []
        for message in messages:
            if message["role"] == SYSTEM:
                continue
            role = "model" if message["role"] == ASSISTANT else "user"
            contents.append({"role": role, "parts": await self._convert_parts(message)})

        generation_config: Dict[str, Any] = {
            "responseMimeType": "application/json",
            "responseJsonSchema": json_schema_for(schema),
        }
        if self.max_tokens:
            generation_config["maxOutputTokens"] = self.max_tokens

        payload: Dict[str, Any] = {"contents": contents, "generationConfig": generation_config}
        if system_text:
            payload["systemInstruction"] = {"parts": [{"text": system_text}]}
        payload.update(self.provider_options)

        url = f"{self.api_endpoint}/{self.model}:generateContent"
        return url, headers, payload

    def _extract_object(self, response_json: Dict[str, Any]) -> str:
        parts = response_json["candidates"][0]["content"]["parts"]
        return "".join(part.get("text", "") for part in parts)
