"""Extract code and JSON payloads from free-form model output.

Models are told to answer with bare file content but frequently wrap it in a
markdown fence anyway. Everything that strips fences lives here so workers
share one behaviour.
"""

import json
import re
from typing import Any

from pydantic import BaseModel, ConfigDict

_TYPESCRIPT_FENCE = re.compile(r"```(?:typescript|ts)\n([\s\S]*?)\n```")
_GENERIC_FENCE = re.compile(r"```\n([\s\S]*?)\n```")
_JSON_FENCE = re.compile(r"```(?:json)?\n([\s\S]*?)\n```")


class ExtractedPayload(BaseModel):
    """Result of extracting a structured payload.

    ``error`` is set instead of raising when the payload is unusable.
    """

    model_config = ConfigDict(frozen=True)

    content: str
    data: Any = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def extract_code(text: str) -> str:
    """Return the first TypeScript fence, else the first bare fence, else the text.

    Args:
        text: Raw model output.

    Returns:
        Stripped code content. Never raises.
    """
    match = _TYPESCRIPT_FENCE.search(text)
    if match:
        return match.group(1).strip()

    match = _GENERIC_FENCE.search(text)
    if match:
        return match.group(1).strip()

    return text.strip()


def extract_json(text: str) -> ExtractedPayload:
    """Strip an optional ```json fence and parse the remainder.

    Args:
        text: Raw model output.

    Returns:
        ExtractedPayload with ``data`` set on success, ``error`` on failure.
    """
    match = _JSON_FENCE.search(text)
    content = match.group(1).strip() if match else text.strip()

    if not content:
        return ExtractedPayload(content=content, error="Empty response, no JSON payload found")

    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        return ExtractedPayload(content=content, error=f"Invalid JSON payload: {e}")

    return ExtractedPayload(content=content, data=data)
