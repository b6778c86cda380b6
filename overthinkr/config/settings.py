from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="OVERTHINKR_",
        extra="ignore",
    )

    environment: str = "local"

    gemini_model: str = "gemini-3-flash-preview"
    gemini_base_url: str = DEFAULT_GEMINI_BASE_URL
    gemini_timeout_seconds: float | None = Field(default=None, gt=0)
    ocr_model: str = "mistral-ocr-latest"

    prompts_root: Path = Path("overthinkr/prompts")
    prompt_name: str = "tone_analysis"
    prompt_version: str = "v001"

    log_level: str = "INFO"
    log_file: Path | None = None

    gradio_server_name: str = "127.0.0.1"
    gradio_server_port: int = Field(default=7860, ge=1, le=65535)

    gemini_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "OVERTHINKR_GEMINI_API_KEY",
            "GEMINI_KEY",
            "GOOGLE_API_KEY",
        ),
    )
    mistral_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("OVERTHINKR_MISTRAL_API_KEY", "MISTRAL_API_KEY"),
    )

    @property
    def project_root(self) -> Path:
        return Path(__file__).resolve().parents[2]

    @property
    def resolved_prompts_root(self) -> Path:
        return self._resolve_path(self.prompts_root)

    def _resolve_path(self, path: Path) -> Path:
        if path.is_absolute():
            return path
        return (self.project_root / path).resolve()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
