"""Client for the LLM behind project recommendations.

Talks to Gemini through its OpenAI-compatible endpoint with the `openai`
SDK. Without an API key the client stays in mock mode: `enabled` is False
and callers are expected to skip the request.
"""

import json
import logging
from typing import Any, Optional

from openai import OpenAI, OpenAIError

from .config import settings

logger = logging.getLogger(__name__)


class LLMError(Exception):
    """Raised when the LLM request fails or returns nothing usable."""
    pass


class LLMClient:
    DEFAULT_TEMPERATURE = 0.3
    DEFAULT_MAX_TOKENS = 2048

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ):
        """
        Args:
            api_key: Gemini API key. If None, client operates in mock mode.
            base_url: OpenAI-compatible endpoint; defaults to `settings.GEMINI_BASE_URL`.
            model: Model name; defaults to `settings.GEMINI_MODEL`.
        """
        self.api_key = api_key
        self.base_url = base_url or settings.GEMINI_BASE_URL
        self.model = model or settings.GEMINI_MODEL
        self.temperature = temperature if temperature is not None else self.DEFAULT_TEMPERATURE
        self.max_tokens = max_tokens if max_tokens is not None else self.DEFAULT_MAX_TOKENS
        self.client = None

        if not 0.0 <= self.temperature <= 2.0:
            raise ValueError("Temperature must be between 0.0 and 2.0")
        if self.max_tokens <= 0:
            raise ValueError("Max tokens must be positive")

        if api_key:
            self.client = OpenAI(api_key=api_key, base_url=self.base_url)
            logger.info("LLM client initialized (model: %s, base_url: %s)", self.model, self.base_url)
        else:
            logger.warning("LLM client initialized without API key (mock mode)")

    @property
    def enabled(self) -> bool:
        return self.client is not None

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        """Send one chat completion and return the text of the first choice."""
        if not self.enabled:
            raise LLMError("LLM client is not configured")
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except OpenAIError as e:
            logger.error("LLM request failed: %s", e)
            raise LLMError(f"LLM request failed: {e}") from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise LLMError("LLM returned an empty response")
        return content


def extract_json(text: str) -> Any:
    """Parse JSON from a model response, tolerating markdown code fences.

    Raises `ValueError` (`json.JSONDecodeError`) when the text is not JSON.
    """
    text = (text or "").strip()
    if text.startswith("```json"):
        text = text[7:]
    if text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    return json.loads(text.strip())


_client: Optional[LLMClient] = None


def get_client() -> LLMClient:
    """Return the process-wide client built from settings."""
    global _client
    if _client is None:
        _client = LLMClient(api_key=settings.GEMINI_API_KEY)
    return _client
