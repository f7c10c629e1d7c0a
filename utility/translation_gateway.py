from __future__ import annotations

import json
from typing import Any, Dict, Optional

from loguru import logger
from pydantic import ValidationError

from utility.AsyncExternalLLM import AsyncExternalLLM
from utility.config import get_settings
from utility.dto import TranslateRequest, TranslateResponse
from utility.errors import (
    MissingInputError,
    ResponseParseError,
    ResponseValidationError,
    UpstreamShapeError,
)
from utility.prompt_manager import PromptManager


class TranslationGateway:
    """
    One translation round trip: prompt -> chat completion -> parsed, validated JSON.

    Failures are raised as GatewayError subclasses. There is no retry here;
    callers wrap translate() with utility.retry.call_with_retry.
    """

    def __init__(
        self,
        llm: Optional[AsyncExternalLLM] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
    ):
        settings = get_settings()
        self._llm = llm
        self.model = model or settings.TRANSLATION_MODEL
        self.temperature = temperature if temperature is not None else settings.TRANSLATION_TEMPERATURE

    @property
    def llm(self) -> AsyncExternalLLM:
        # Built lazily so the API key is read at call time
        if self._llm is None:
            self._llm = AsyncExternalLLM()
        return self._llm

    @staticmethod
    def _extract_content(envelope: Dict[str, Any]) -> str:
        try:
            content = envelope["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            content = None

        if not isinstance(content, str) or not content.strip():
            logger.error(f"Unexpected API response structure: {envelope}")
            raise UpstreamShapeError(payload=envelope)
        return content.strip()

    @staticmethod
    def _parse_content(content: str) -> Dict[str, Any]:
        try:
            parsed = json.loads(content)
        except json.JSONDecodeError as e:
            logger.error(f"JSON Parse Error: {e} | content: {content!r}")
            raise ResponseParseError(raw_content=content) from e

        if not isinstance(parsed, dict):
            logger.error(f"Translation content is not a JSON object: {content!r}")
            raise ResponseParseError(raw_content=content)
        return parsed

    @staticmethod
    def _validate(parsed: Dict[str, Any]) -> None:
        try:
            TranslateResponse.model_validate(parsed)
        except ValidationError as e:
            logger.error(f"Invalid JSON response structure: {parsed} ({e.error_count()} error(s))")
            raise ResponseValidationError(payload=parsed) from e

    async def translate(self, request: TranslateRequest) -> Dict[str, Any]:
        """
        Returns the model's JSON object verbatim once it has a non-empty
        'translation'. Optional and unknown keys are left as the model sent them.
        """
        if not request.text:
            raise MissingInputError()

        messages = PromptManager.build_messages(request)
        envelope = await self.llm.chat(messages, model=self.model, temperature=self.temperature)

        content = self._extract_content(envelope)
        parsed = self._parse_content(content)
        self._validate(parsed)

        logger.debug(
            f"Translated {len(request.text)} chars {request.source_language} -> {request.target_language}"
        )
        return parsed
