from functools import lru_cache
from typing import Optional

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BASE_URL = "https://api.openai.com/v1"


class Settings(BaseSettings):
    """Process-wide settings, read from the environment (and .env) once."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", frozen=True)

    # Provider
    OPENAI_API_KEY: Optional[SecretStr] = None
    OPENAI_BASE_URL: str = DEFAULT_BASE_URL
    REQUEST_TIMEOUT: float = 60.0

    # Translation
    TRANSLATION_MODEL: str = "gpt-3.5-turbo"
    TRANSLATION_TEMPERATURE: float = 0.3
    TRANSLATE_MAX_ATTEMPTS: int = 3
    TRANSLATE_RETRY_DELAY: float = 1.0

    # Speech
    TTS_MODEL: str = "tts-1"

    # Server
    LOG_LEVEL: str = "INFO"
    HOST: str = "127.0.0.1"
    PORT: int = 8000

    @field_validator("OPENAI_BASE_URL")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("LOG_LEVEL")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
