"""Gemini API backend for receipt OCR."""

from __future__ import annotations

import logging

from ..errors import MalformedExtraction, UpstreamUnavailable
from ..extraction import RECEIPT_PROMPT
from . import OCRBackend
from .images import fetch_image

logger = logging.getLogger(__name__)


class GeminiOCRBackend(OCRBackend):
    """Read receipts using Google Gemini's vision capability."""

    provider = "gemini"

    def __init__(self, api_key: str = "", model: str = "gemini-2.0-flash") -> None:
        self._api_key = api_key
        self._model = model

    async def extract(self, image_url: str) -> str:
        if not self._api_key:
            raise ValueError(
                "Gemini API key is not set. "
                "Check the config file or the GEMINI_API_KEY environment variable."
            )

        try:
            import google.generativeai as genai
        except ImportError:
            raise ImportError(
                "google-generativeai SDK is required: "
                "pip install 'niche-rewards[gemini]'"
            ) from None

        data, mime_type = await fetch_image(image_url)

        genai.configure(api_key=self._api_key)
        model = genai.GenerativeModel(self._model)

        logger.debug("Sending %d byte %s image to %s", len(data), mime_type, self._model)
        try:
            response = await model.generate_content_async(
                [{"mime_type": mime_type, "data": data}, RECEIPT_PROMPT],
                generation_config={"temperature": 0.1},
            )
        except Exception as e:
            raise UpstreamUnavailable(f"Gemini request failed: {e}") from e

        if not response.candidates:
            raise MalformedExtraction("Gemini returned no candidates")
        try:
            return response.text
        except ValueError as e:
            # candidate blocked or without text parts
            raise MalformedExtraction(f"Gemini candidate has no text: {e}") from e
