"""
Global configuration — override via environment variables or .env file.
"""
from __future__ import annotations
from typing import List, Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── Logging ─────────────────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"

    # ── Remote inference providers ──────────────────────────────────────────
    # Presence of a key enables the provider; first configured one wins.
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-2.0-flash-exp"
    OPENAI_API_KEY: str = ""
    OPENAI_MODEL: str = "gpt-4o-mini"
    ANTHROPIC_API_KEY: str = ""
    ANTHROPIC_MODEL: str = "claude-3-5-sonnet-20241022"

    REMOTE_TIMEOUT_S: float = 8.0       # emotion call, single shot
    PLACES_TIMEOUT_S: float = 12.0      # place suggestion call, single shot
    REMOTE_TEMPERATURE: float = 0.3
    REMOTE_MAX_TOKENS: int = 500

    # ── Fusion ──────────────────────────────────────────────────────────────
    EMOTION_TEXT_WEIGHT: float = 0.8
    EMOTION_AUDIO_WEIGHT: float = 0.2
    AUDIO_CONFIDENCE: float = 0.6       # prosody rules are not a trained model

    # ── Matching ────────────────────────────────────────────────────────────
    MATCH_LIMIT: int = 10

    # ── Sessions ────────────────────────────────────────────────────────────
    SESSION_TTL_S: float = 3600.0

    @property
    def remote_provider(self) -> Optional[str]:
        """Name of the first provider with a credential, or None."""
        for name in self.remote_providers:
            return name
        return None

    @property
    def remote_providers(self) -> List[str]:
        configured = [
            ("gemini",    self.GEMINI_API_KEY),
            ("openai",    self.OPENAI_API_KEY),
            ("anthropic", self.ANTHROPIC_API_KEY),
        ]
        return [name for name, key in configured if key.strip()]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
