"""
Provider-neutral chat messages.

A message is a plain dict: {"role": ..., "content": [part, ...]} where a part
is either {"type": "text", "text": ...} or {"type": "image", "path": ...}.
Providers convert parts to their own wire format.
"""
import base64
import mimetypes
from typing import Dict, List, Optional, Tuple

import aiofiles

Message = Dict[str, object]

SYSTEM = "system"
USER = "user"
ASSISTANT = "assistant"


def build_message(role: str, text: Optional[str] = None, image: Optional[str] = None) -> Message:
    content: List[dict] = []
    if text:
        content.append({"type": "text", "text": text})
    if image:
        content.append({"type": "image", "path": str(image)})
    return {"role": role, "content": content}


def user_message(text: Optional[str] = None, image: Optional[str] = None) -> Message:
    return build_message(USER, text=text, image=image)


def assistant_message(text: str) -> Message:
    return build_message(ASSISTANT, text=text)


def system_message(text: str) -> Message:
    return build_message(SYSTEM, text=text)


def message_text(message: Message) -> str:
    """Concatenated text parts of a message"""
    return "\n".join(part["text"] for part in message["content"] if part.get("type") == "text")


async def encode_image(path: str) -> Tuple[str, str]:
    """
    Read an image file and return (mime_type, base64 data).

    Raises:
        FileNotFoundError: If the image does not exist
    """
    mime_type = mimetypes.guess_type(path)[0] or "image/png"
    async with aiofiles.open(path, "rb") as f:
        data = await f.read()
    return mime_type, base64.b64encode(data).decode("ascii")
