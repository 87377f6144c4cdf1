"""
Process settings, read from the environment (or ``.env``) once at import.

The only credential read here is the process-level default API key
(``API_KEY``). Per-request provider settings (provider, model, base URL,
explicit key) live in the configuration store, not in the environment.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # LLM providers
    # ------------------------------------------------------------------
    # environment default credential, only honoured for the Gemini provider
    api_key: str = ""

    default_provider:       str = "google"     # "google" | "deepseek"
    gemini_default_model:   str = "gemini-2.5-flash"
    deepseek_default_model: str = "deepseek-chat"
    deepseek_base_url:      str = "https://api.deepseek.com"

    llm_timeout_seconds: float = 120.0

    # ------------------------------------------------------------------
    # Document extraction
    # ------------------------------------------------------------------
    # Below this average, a PDF is treated as scanned (no text layer)
    pdf_min_chars_per_page: float = 1.0

    max_upload_bytes: int = 20 * 1024 * 1024   # 20 MB per file

    # ------------------------------------------------------------------
    # Configuration store (equipment registry + provider settings)
    # ------------------------------------------------------------------
    config_store_path: str = "data/gmpc_audit_config.json"

    # ------------------------------------------------------------------
    # Application
    # ------------------------------------------------------------------
    app_env: str = "development"   # development | staging | production
    debug: bool = False

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
