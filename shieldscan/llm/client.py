"""
Gemini Client
=============
Minimal async client for the Google Gemini REST ``generateContent`` endpoint.

    POST {base_url}/models/{model}:generateContent?key={api_key}
    {"contents": [{"role": "user", "parts": [{"text": prompt}]}], ...}

Errors (HTTP status, timeouts, transport) propagate to the caller as httpx
exceptions; an unexpected response shape yields an empty string.
"""
import logging
from typing import Optional

import httpx

from shieldscan.core.config import (
    ANNOTATOR_TIMEOUT,
    GEMINI_API_KEY,
    GEMINI_BASE_URL,
    GEMINI_MODEL,
)

logger = logging.getLogger(__name__)


def extract_text(data) -> str:
    """Pull the first candidate's first text part out of a Gemini response."""
    try:
        candidates = data.get("candidates", [])
        if candidates:
            parts = candidates[0].get("content", {}).get("parts", [])
            if parts:
                return parts[0].get("text", "") or ""
    except (AttributeError, IndexError, KeyError, TypeError):
        pass
    return ""


class GeminiClient:
    """
    Async HTTP client for Gemini.

    Usage:
        client = GeminiClient(api_key="...")
        text = await client.generate("Classify this finding...")
        await client.close()
    """

    def __init__(
        self,
        api_key: Optional[str] = GEMINI_API_KEY,
        model: str = GEMINI_MODEL,
        base_url: str = GEMINI_BASE_URL,
        timeout: float = ANNOTATOR_TIMEOUT,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._http: Optional[httpx.AsyncClient] = None

    async def _get_http(self) -> httpx.AsyncClient:
        """Lazy-initialise the HTTP client."""
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout))
        return self._http

    async def close(self) -> None:
        if self._http and not self._http.is_closed:
            await self._http.aclose()
            self._http = None

    async def generate(self, prompt: str) -> str:
        http = await self._get_http()
        url = f"{self.base_url}/models/{self.model}:generateContent"
        payload = {
            "contents": [
                {"role": "user", "parts": [{"text": prompt}]}
            ],
            "generationConfig": {"temperature": 0.0},
        }
        resp = await http.post(url, params={"key": self.api_key}, json=payload)
        resp.raise_for_status()
        text = extract_text(resp.json())
        logger.debug("Gemini %s returned %d chars", self.model, len(text))
        return text
