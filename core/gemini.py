"""
Gemini Generative Language API client

Thin async wrapper over the REST generateContent endpoint.

API Documentation: https://ai.google.dev/api/generate-content
"""

import logging
from typing import Optional

import httpx

logger = logging.getLogger(__name__)


DEFAULT_MODEL = "gemini-1.5-flash"


class GeminiError(Exception):
    """The Gemini API returned an error or no usable text"""


class GeminiClient:
    """
    Client for the Gemini API

    Endpoints used:
    - /v1beta/models/{model}:generateContent - single-turn text generation
    """

    BASE_URL = "https://generativelanguage.googleapis.com"

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        timeout: float = 60.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create httpx client"""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def close(self):
        """Close the client"""
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def generate_content(self, prompt: str) -> str:
        """
        Generate a text response for a prompt.

        Raises GeminiError when the request fails or the response has no text.
        """
        client = await self._get_client()
        url = f"{self.BASE_URL}/v1beta/models/{self.model}:generateContent"
        payload = {'contents': [{'parts': [{'text': prompt}]}]}

        try:
            response = await client.post(
                url,
                json=payload,
                headers={'x-goog-api-key': self.api_key},
            )
        except httpx.HTTPError as e:
            logger.error(f"Gemini request error: {e}")
            raise GeminiError(f"request failed: {e}") from e

        if response.status_code == 429:
            logger.warning("Gemini rate limited")
            raise GeminiError("rate limited")
        if response.status_code != 200:
            logger.error(f"Gemini request failed: {response.status_code} - {response.text}")
            raise GeminiError(f"HTTP {response.status_code}")

        return self._extract_text(response.json())

    @staticmethod
    def _extract_text(data: dict) -> str:
        candidates = data.get('candidates') or []
        if not candidates:
            reason = (data.get('promptFeedback') or {}).get('blockReason', 'no candidates')
            raise GeminiError(f"empty response: {reason}")

        parts = (candidates[0].get('content') or {}).get('parts') or []
        text = "".join(part.get('text', '') for part in parts)
        if not text:
            raise GeminiError("empty response: no text parts")
        return text
