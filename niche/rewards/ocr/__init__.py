"""OCR backend base class and factory."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..config import RewardsConfig


class OCRBackend(ABC):
    """Abstract base for reading a receipt image with a vision model."""

    provider: str = ""

    @abstractmethod
    async def extract(self, image_url: str) -> str:
        """Send the image to the model and return its raw text reply.

        The reply is untrusted; parsing belongs to the caller.

        Raises:
            UpstreamUnavailable: If the model endpoint or the image URL
                cannot be reached.
            MalformedExtraction: If the model returned no usable candidate.
        """
        ...


def create_backend(config: RewardsConfig) -> OCRBackend:
    """Create an OCR backend based on configuration."""
    backend_name = config.ocr.backend

    match backend_name:
        case "gemini":
            from .gemini import GeminiOCRBackend

            return GeminiOCRBackend(
                api_key=config.ocr.gemini.api_key,
                model=config.ocr.gemini.model,
            )
        case "claude":
            from .claude import ClaudeOCRBackend

            return ClaudeOCRBackend(
                api_key=config.ocr.claude.api_key,
                model=config.ocr.claude.model,
            )
        case _:
            raise ValueError(
                f"Unknown OCR backend: {backend_name!r}  "
                f"(choose gemini or claude)"
            )
