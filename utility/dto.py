from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

CHARACTER_LIMIT = 2000


class Formality(str, Enum):
    SUPERIOR = "superior"
    STRANGER = "stranger"
    FRIEND = "friend"
    CHILD = "child"


class TranslateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: str = Field("", max_length=CHARACTER_LIMIT)
    source_language: str = Field("", alias="sourceLanguage")  # e.g. "English"
    target_language: str = Field("", alias="targetLanguage")  # e.g. "Japanese"
    target_dialect: Optional[str] = Field(None, alias="targetDialect")  # e.g. "Kansai"
    speaker_pronouns: Optional[str] = Field(None, alias="speakerPronouns")
    listener_pronouns: Optional[str] = Field(None, alias="listenerPronouns")
    formality: Optional[str] = None  # kept verbatim, see formality_level

    @property
    def formality_level(self) -> Optional[Formality]:
        """The recognised register, or None for absent/unrecognised values."""
        if not self.formality:
            return None
        try:
            return Formality(self.formality)
        except ValueError:
            return None


class TranslateResponse(BaseModel):
    # Extra keys from the model pass through untouched
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    translation: str = Field(..., min_length=1)
    romaji: Optional[Any] = None
    detected_speaker_pronouns: Optional[Any] = Field(None, alias="detectedSpeakerPronouns")
    detected_listener_pronouns: Optional[Any] = Field(None, alias="detectedListenerPronouns")
    formality_used: Optional[Any] = Field(None, alias="formalityUsed")
    notes: Optional[Any] = None


class SynthesizeRequest(BaseModel):
    text: str = ""
    language: str = "en"  # "en", "es", "ja", ...
