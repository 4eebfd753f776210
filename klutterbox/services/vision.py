"""Vision suggestion service - asks a vision model what items a photo shows."""
import base64
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import httpx

from klutterbox.config import settings

logger = logging.getLogger(__name__)

MAX_SUGGESTIONS = 10

SUGGEST_PROMPT = (
    "You help catalog household items stored in labeled boxes. Identify distinct items in the image.\n"
    'Return JSON with key "items" as an array of up to 10 objects.\n'
    "Each object must have: name (3-6 words, singular), description (<= 20 words)."
)

RESPONSE_FORMAT = {
    "type": "json_schema",
    "json_schema": {
        "name": "items_schema",
        "schema": {
            "type": "object",
            "additionalProperties": False,
            "required": ["items"],
            "properties": {
                "items": {
                    "type": "array",
                    "minItems": 1,
                    "maxItems": MAX_SUGGESTIONS,
                    "items": {
                        "type": "object",
                        "additionalProperties": False,
                        "required": ["name"],
                        "properties": {
                            "name": {"type": "string", "minLength": 1},
                            "description": {"type": "string"},
                        },
                    },
                },
            },
        },
    },
}


@dataclass
class Suggestion:
    """A candidate item inferred from an image."""
    name: str
    description: str = ""

    def to_dict(self):
        return {
            "name": self.name,
            "description": self.description,
        }


class VisionUnavailable(Exception):
    """The vision endpoint is not configured, unreachable, or answered nonsense."""


class VisionClient:
    """Client for an OpenAI-compatible chat completions endpoint."""

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = "https://api.openai.com/v1",
        model: str = "gpt-4o",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    async def describe(self, image: bytes, mime_type: str = "image/jpeg") -> List[Suggestion]:
        """Return the items the model sees in ``image``.

        Raises ``VisionUnavailable`` on any transport, HTTP or parsing failure.
        """
        if not self.enabled:
            raise VisionUnavailable("no API key configured")

        data_url = f"data:{mime_type};base64,{base64.b64encode(image).decode('ascii')}"
        payload = {
            "model": self.model,
            "temperature": 0.2,
            "messages": [
                {"role": "system", "content": "You are a helpful assistant."},
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": SUGGEST_PROMPT},
                        {"type": "image_url", "image_url": {"url": data_url}},
                    ],
                },
            ],
            "response_format": RESPONSE_FORMAT,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    f"{self.base_url}/chat/completions",
                    json=payload,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
                response.raise_for_status()
                body = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise VisionUnavailable(str(exc)) from exc

        try:
            content = body["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise VisionUnavailable("response has no message content") from exc
        return parse_suggestions(content)


def parse_suggestions(content: Optional[str]) -> List[Suggestion]:
    """Turn the model's JSON answer into suggestions, dropping blank names."""
    if not content:
        raise VisionUnavailable("empty response")
    try:
        parsed = json.loads(content)
    except ValueError as exc:
        raise VisionUnavailable("response is not JSON") from exc

    raw_items = parsed.get("items") if isinstance(parsed, dict) else None
    if not isinstance(raw_items, list):
        raise VisionUnavailable("response has no items array")

    suggestions = []
    for raw in raw_items:
        if not isinstance(raw, dict):
            continue
        name = str(raw.get("name") or "").strip()
        if not name:
            continue
        description = str(raw.get("description") or "").strip()
        suggestions.append(Suggestion(name=name, description=description))
    return suggestions[:MAX_SUGGESTIONS]


def fallback_suggestion(filename: Optional[str]) -> Suggestion:
    """Name an item after the uploaded file, without its extension."""
    stem = Path(filename or "").stem.strip()
    return Suggestion(name=stem or "Untitled item", description="")


async def suggest_items(
    client: VisionClient,
    image_path: Path,
    original_filename: Optional[str],
    mime_type: str = "image/jpeg",
) -> List[Suggestion]:
    """Suggestions for a stored image, or the filename fallback.

    Vision failures are logged and never propagate; the caller always gets at
    least one suggestion.
    """
    fallback_name = original_filename or image_path.name
    if not client.enabled:
        return [fallback_suggestion(fallback_name)]
    try:
        suggestions = await client.describe(image_path.read_bytes(), mime_type)
    except (VisionUnavailable, OSError) as exc:
        logger.warning("Vision suggestion failed, using filename: %s", exc)
        suggestions = []
    if not suggestions:
        return [fallback_suggestion(fallback_name)]
    return suggestions


async def infer_single_item(
    client: VisionClient,
    image_path: Path,
    original_filename: Optional[str],
    mime_type: str = "image/jpeg",
) -> Suggestion:
    """The single best suggestion, used when adding an item straight from a photo."""
    suggestions = await suggest_items(client, image_path, original_filename, mime_type)
    return suggestions[0]


def get_vision_client() -> VisionClient:
    """FastAPI dependency building a client from the current settings."""
    return VisionClient(
        api_key=settings.OPENAI_API_KEY,
        base_url=settings.OPENAI_BASE_URL,
        model=settings.OPENAI_MODEL,
        timeout=settings.VISION_TIMEOUT_SECONDS,
    )
