"""
Base class for LLM providers.

Providers turn provider-neutral messages into their wire format, call the API
over a shared httpx client, and validate the answer against a pydantic schema.
"""
import asyncio
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from src.config import REQUEST_TIMEOUT, RETRY_DELAY
from .exceptions import ProviderError, SchemaValidationError
from .messages import Message

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)


def json_schema_for(schema: Type[BaseModel]) -> Dict[str, Any]:
    """JSON schema of a pydantic model, closed to extra properties"""
    json_schema = schema.model_json_schema()
    json_schema["additionalProperties"] = False
    return json_schema


class LLMProvider(ABC):
    """Abstract provider with a bounded retry loop around one structured call"""

    name = "base"

    def __init__(self, model: str, api_key: str, api_endpoint: str, max_retries: int = 0,
                 timeout: int = REQUEST_TIMEOUT, max_tokens: Optional[int] = None,
                 provider_options: Optional[dict] = None):
        self.model = model
        self.api_key = api_key
        self.api_endpoint = api_endpoint
        self.max_retries = max_retries
        self.timeout = timeout
        self.max_tokens = max_tokens
        self.provider_options = provider_options or {}
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def close(self):
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    @abstractmethod
    async def _build_request(self, messages: List[Message],
                             schema: Type[BaseModel]) -> Tuple[str, Dict[str, str], Dict[str, Any]]:
        """Return (url, headers, payload) for one structured call"""

    @abstractmethod
    def _extract_object(self, response_json: Dict[str, Any]) -> Any:
        """Return the structured answer (a dict or a JSON string) from the raw response"""

    async def generate_object(self, messages: List[Message], schema: Type[SchemaT]) -> SchemaT:
        """
        Ask the model for an object matching `schema`.

        Args:
            messages: Conversation, system prompt first
            schema: Pydantic model describing the expected answer

        Returns:
            A validated instance of `schema`

        Raises:
            ProviderError: If every attempt failed
        """
        url, headers, payload = await self._build_request(messages, schema)
        client = await self._get_client()
        attempts = self.max_retries + 1
        last_error: Optional[ProviderError] = None

        for attempt in range(attempts):
            try:
                response = await client.post(url, json=payload, headers=headers, timeout=self.timeout)
                response.raise_for_status()
                raw = self._extract_object(response.json())
                if isinstance(raw, str):
                    return schema.model_validate_json(raw)
                return schema.model_validate(raw)

            except httpx.TimeoutException as e:
                last_error = ProviderError(self.name, f"request timeout ({e})")
            except httpx.HTTPStatusError as e:
                error_body = e.response.text[:500] if e.response is not None else ""
                status_code = e.response.status_code if e.response is not None else None
                last_error = ProviderError(self.name, f"HTTP {status_code}: {error_body}", status_code)
            except httpx.HTTPError as e:
                last_error = ProviderError(self.name, f"{type(e).__name__}: {e}")
            except (json.JSONDecodeError, KeyError, IndexError, TypeError) as e:
                last_error = ProviderError(self.name, f"malformed response ({type(e).__name__}: {e})")
            except ValidationError as e:
                last_error = SchemaValidationError(
                    self.name, f"answer does not match {schema.__name__}: {e.error_count()} error(s)")

            logger.warning(f"{self.name} call failed (attempt {attempt + 1}/{attempts}, model {self.model}): "
                           f"{last_error}")
            if attempt < attempts - 1:
                logger.info(f"   Retrying in {RETRY_DELAY} seconds...")
                await asyncio.sleep(RETRY_DELAY)

        logger.error(f"All {attempts} attempt(s) exhausted for {self.name} ({self.model})")
        raise last_error
