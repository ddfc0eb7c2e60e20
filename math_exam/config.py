import os

from pydantic import BaseModel

DEFAULT_MODEL = "openai/gpt-oss-20b"
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 4096


class ConfigError(RuntimeError):
    """Raised when a required setting is missing."""


class Settings(BaseModel):
    groq_api_key: str
    groq_model: str = DEFAULT_MODEL
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS


def load_settings() -> Settings:
    """
    Build settings from the process environment.

    GROQ_API_KEY is mandatory and its absence is fatal.
    """
    api_key = os.getenv("GROQ_API_KEY")
    if not api_key:
        raise ConfigError("GROQ_API_KEY environment variable not set")

    return Settings(
        groq_api_key=api_key,
        groq_model=os.getenv("GROQ_MODEL") or DEFAULT_MODEL,
        temperature=float(os.getenv("GROQ_TEMPERATURE") or DEFAULT_TEMPERATURE),
        max_tokens=int(os.getenv("GROQ_MAX_TOKENS") or DEFAULT_MAX_TOKENS),
    )
