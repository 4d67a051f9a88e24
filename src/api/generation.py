"""
Generation client for Google's Gemini API.

Sends a single prompt per call and returns the trimmed text. There is no
retry, timeout or backoff: any failure is surfaced as ``GenerationError``.
"""
from typing import Optional

from google import genai

from src.api.exceptions import GenerationError
from src.api.logger import get_logger

logger = get_logger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash"


class GenerationClient:
    """Thin async wrapper around ``genai.Client`` for text generation."""

    def __init__(self, api_key: Optional[str] = None, client: Optional[genai.Client] = None, model: str = DEFAULT_MODEL):
        if client is None and api_key:
            client = genai.Client(api_key=api_key)
        self.client = client
        self.model = model

    def _require_client(self) -> genai.Client:
        if not self.client:
            raise RuntimeError("GEMINI_API_KEY not configured")
        return self.client

    # PUBLIC_INTERFACE
    async def generate(self, prompt: str) -> str:
        """
        Generate text for a prompt.

        Args:
            prompt: Full instruction for the model.

        Returns:
            str: Generated text with surrounding whitespace removed.

        Raises:
            GenerationError: If the call fails or produces no text.
        """
        try:
            client = self._require_client()
            response = await client.aio.models.generate_content(
                model=self.model,
                contents=prompt,
            )
            text = (response.text or "").strip()
            if not text:
                raise ValueError("No content generated")
            return text
        except Exception as e:
            logger.error(f"Gemini API error: {e}")
            raise GenerationError(f"Failed to generate content: {e}") from e
