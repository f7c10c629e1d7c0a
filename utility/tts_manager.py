from __future__ import annotations

import re
import unicodedata
from types import MappingProxyType
from typing import Mapping, Optional

from loguru import logger

from utility.AsyncExternalLLM import AsyncExternalLLM
from utility.config import get_settings
from utility.errors import MissingInputError

# Language code -> provider voice. "default" is required.
TTS_VOICES: Mapping[str, str] = MappingProxyType({
    "en": "alloy",
    "ja": "nova",
    "es": "echo",
    "fr": "shimmer",
    "de": "onyx",
    "zh": "fable",
    "ko": "nova",
    "it": "shimmer",
    "pt": "echo",
    "ru": "onyx",
    "default": "alloy",
})

# Languages whose voice pronounces unaccented text better
ACCENT_STRIP_LANGS = frozenset({"es"})

_COMBINING_MARKS = re.compile("[\u0300-\u036f]")


class TTSManager:
    """
    Speech synthesis through the provider's /audio/speech endpoint.
    Stateless apart from the read-only voice registry; safe to share.
    """

    def __init__(self, llm: Optional[AsyncExternalLLM] = None, model: Optional[str] = None,
                 voices: Mapping[str, str] = TTS_VOICES):
        if "default" not in voices:
            raise ValueError("Voice registry needs a 'default' entry")
        self._llm = llm
        self.model = model or get_settings().TTS_MODEL
        self.voices = voices

    @property
    def llm(self) -> AsyncExternalLLM:
        if self._llm is None:
            self._llm = AsyncExternalLLM()
        return self._llm

    def resolve_voice(self, language: str) -> str:
        """Unknown languages quietly get the default voice."""
        return self.voices.get(language) or self.voices["default"]

    @staticmethod
    def strip_accents(text: str) -> str:
        return _COMBINING_MARKS.sub("", unicodedata.normalize("NFD", text))

    @classmethod
    def preprocess_text(cls, text: str, language: str) -> str:
        if language in ACCENT_STRIP_LANGS:
            text = cls.strip_accents(text)
        return text

    async def synthesize(self, text: str, language: str) -> bytes:
        """
        Generate mp3 bytes for `text`.
        Raises MissingInputError before any network call when text is empty.
        """
        if not text:
            raise MissingInputError()

        voice = self.resolve_voice(language)
        processed = self.preprocess_text(text, language)

        audio = await self.llm.speech(processed, voice=voice, model=self.model)
        logger.info(f"Synthesized {len(audio)} bytes ({language} -> voice {voice})")
        return audio
