"""
HTML to screenshot rendering used by the critique stage.
"""
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

import httpx

from src.config import RENDER_ENDPOINT, RENDER_TIMEOUT
from src.core.exceptions import RenderError

logger = logging.getLogger(__name__)


class PageRenderer(ABC):
    """Renders an HTML document to an image of the given pixel size"""

    @abstractmethod
    async def render(self, html: str, width: int, height: int, output_path: Union[str, Path]) -> Path:
        """
        Returns:
            Path of the written screenshot

        Raises:
            RenderError: If no screenshot could be produced
        """


class HttpPageRenderer(PageRenderer):
    """
    Client of a headless-browser rendering service.

    The service receives {html, width, height, output}, writes the screenshot
    to `output` on a filesystem shared with this process and may answer with
    {"imagePath": ...} when it chose another location.
    """

    def __init__(self, endpoint: str = RENDER_ENDPOINT, timeout: int = RENDER_TIMEOUT):
        self.endpoint = endpoint
        self.timeout = timeout
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def close(self):
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def render(self, html: str, width: int, height: int, output_path: Union[str, Path]) -> Path:
        output_path = Path(output_path)
        payload = {"html": html, "width": width, "height": height, "output": str(output_path)}
        client = await self._get_client()
        try:
            response = await client.post(self.endpoint, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise RenderError(f"Rendering service answered HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise RenderError(f"Rendering service unreachable: {type(e).__name__}: {e}") from e

        image_path = output_path
        if response.headers.get("content-type", "").startswith("application/json"):
            image_path = self._reply_image_path(response, output_path)
        if not image_path.exists():
            raise RenderError(f"Rendering service did not produce {image_path}")
        logger.debug(f"Rendered {width}x{height} screenshot to {image_path}")
        return image_path

    @staticmethod
    def _reply_image_path(response: httpx.Response, output_path: Path) -> Path:
        """Screenshot location announced by a JSON reply ({imagePath} or {image_path})"""
        try:
            reply = response.json()
        except ValueError as e:
            raise RenderError(f"Rendering service answered invalid JSON: {e}") from e
        if not isinstance(reply, dict):
            raise RenderError(f"Rendering service answered {type(reply).__name__}, expected an object")
        return Path(reply.get("imagePath") or reply.get("image_path") or output_path)
