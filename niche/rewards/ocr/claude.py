"""Claude API backend for receipt OCR."""

from __future__ import annotations

import base64
import logging

from ..errors import MalformedExtraction, UpstreamUnavailable
from ..extraction import RECEIPT_PROMPT
from . import OCRBackend
from .images import fetch_image

logger = logging.getLogger(__name__)


class ClaudeOCRBackend(OCRBackend):
    """Read receipts using Claude's vision capability."""

    provider = "claude"

    def __init__(
        self, api_key: str = "", model: str = "claude-sonnet-4-5-20250929"
    ) -> None:
        self._api_key = api_key
        self._model = model

    async def extract(self, image_url: str) -> str:
        if not self._api_key:
            raise ValueError(
                "Anthropic API key is not set. "
                "Check the config file or the ANTHROPIC_API_KEY environment variable."
            )

        try:
            import anthropic
        except ImportError:
            raise ImportError(
                "anthropic SDK is required: pip install 'niche-rewards[claude]'"
            ) from None

        content: list[dict] = [
            await self._image_block(image_url),
            {"type": "text", "text": RECEIPT_PROMPT},
        ]

        client = anthropic.AsyncAnthropic(api_key=self._api_key)
        try:
            response = await client.messages.create(
                model=self._model,
                max_tokens=2048,
                messages=[{"role": "user", "content": content}],
            )
        except Exception as e:
            raise UpstreamUnavailable(f"Claude request failed: {e}") from e

        if not response.content:
            raise MalformedExtraction("Claude returned an empty message")
        return response.content[0].text

    @staticmethod
    async def _image_block(image_url: str) -> dict:
        """Remote URLs are passed through; anything else is inlined."""
        if image_url.startswith(("https://", "http://")):
            return {"type": "image", "source": {"type": "url", "url": image_url}}

        data, media_type = await fetch_image(image_url)
        logger.debug("Inlining %d byte %s image", len(data), media_type)
        return {
            "type": "image",
            "source": {
                "type": "base64",
                "media_type": media_type,
                "data": base64.standard_b64encode(data).decode(),
            },
        }
