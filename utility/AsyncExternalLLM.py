import json
from typing import Any, Dict, List, Optional

import httpx
from loguru import logger

from utility.config import get_settings
from utility.errors import TransportError, UpstreamError, UpstreamShapeError


class AsyncExternalLLM:
    """
    Async client for an OpenAI-compatible provider.
    Covers the two calls this service needs: chat completions and speech.
    The API key only ever goes into the Authorization header.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()

        if api_key is None and settings.OPENAI_API_KEY is not None:
            api_key = settings.OPENAI_API_KEY.get_secret_value()
        self.api_key = api_key
        if not self.api_key:
            raise ValueError("API key must be provided or set in OPENAI_API_KEY")
        self.base_url = (base_url or settings.OPENAI_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.REQUEST_TIMEOUT
        self.transport = transport
        self.headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def __repr__(self) -> str:
        return f"AsyncExternalLLM(base_url={self.base_url!r})"

    # -----------------------------
    # Internal helpers
    # -----------------------------
    async def _post(self, path: str, payload: Dict[str, Any]) -> httpx.Response:
        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(url, headers=self.headers, json=payload)
        except httpx.HTTPError as e:
            logger.error(f"Request to {url} failed: {type(e).__name__}: {e}")
            raise TransportError(f"Could not reach provider: {type(e).__name__}") from e

        if response.is_success:
            return response

        error_data = self._safe_json(response)
        logger.error(f"OpenAI API Error ({response.status_code}) from {path}: {error_data}")
        message = None
        if isinstance(error_data, dict) and isinstance(error_data.get("error"), dict):
            message = error_data["error"].get("message")
        raise UpstreamError(
            message or "Error from OpenAI API",
            status_code=response.status_code,
            payload=error_data,
        )

    @staticmethod
    def _safe_json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            return response.text

    # -----------------------------
    # Public API
    # -----------------------------
    async def chat(self, messages: List[Dict[str, str]], model: str, temperature: float) -> Dict[str, Any]:
        """Non-streaming chat completion. Returns the decoded response envelope."""
        payload = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
        }
        response = await self._post("/chat/completions", payload)

        data = self._safe_json(response)
        if not isinstance(data, dict):
            logger.error(f"Unexpected API response structure: {data!r}")
            raise UpstreamShapeError(payload=data)
        return data

    async def speech(self, text: str, voice: str, model: str) -> bytes:
        """Text-to-speech. Returns the raw audio bytes (mp3)."""
        payload = {
            "model": model,
            "input": text,
            "voice": voice,
        }
        response = await self._post("/audio/speech", payload)
        return response.content
