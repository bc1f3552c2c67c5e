import json
from functools import lru_cache
from typing import Literal

from pydantic import computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Application
    app_name: str = "ClipBook API"
    app_version: str = "0.1.0"
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = True
    log_level: str = "INFO"

    # Firebase (auth + Firestore)
    firebase_project_id: str = ""

    # Document store backend. Local store keeps everything in process memory.
    use_local_store: bool = True

    # Shared rate-limit counters. Empty = per-process in-memory limiter.
    redis_url: str = ""

    # Chat rate limiting
    rate_limit_window_ms: int = 60_000
    rate_limit_max_requests: int = 20

    # Context builder
    context_clip_limit: int = 25
    context_library_scan_limit: int = 200
    context_sample_clips: int = 12
    context_max_chars: int = 18_000

    # Chat responder: "rules" answers locally, "model" forwards to a hosted model
    chat_responder: Literal["rules", "model"] = "rules"

    # Hosted model providers
    model_provider: Literal["huggingface", "groq"] = "huggingface"
    model_timeout_seconds: float = 60.0
    hf_api_key: str = ""
    hf_model: str = "google/gemma-2-2b-it"
    hf_router_url: str = "https://router.huggingface.co/models"
    groq_api_key: str = ""
    groq_model: str = "llama-3.1-8b-instant"
    groq_api_url: str = "https://api.groq.com/openai/v1/chat/completions"

    # Video search
    youtube_api_key: str = ""
    search_max_results: int = 8
    search_timeout_seconds: float = 15.0

    # Tagging
    auto_tagging_enabled: bool = True

    # CORS - stored as string, parsed via computed property
    cors_origins_raw: str = "http://localhost:5173,http://localhost:3000"

    @computed_field
    @property
    def cors_origins(self) -> list[str]:
        """Parse CORS origins from pipe/comma-separated string or JSON array."""
        v = self.cors_origins_raw
        if v.startswith("["):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                pass
        # Pipe-separated (for Cloud Run compatibility)
        if "|" in v:
            return [origin.strip() for origin in v.split("|") if origin.strip()]
        return [origin.strip() for origin in v.split(",") if origin.strip()]

    # Development - DEV_USER bypasses Firebase auth
    dev_mode: bool = True  # Set to False in production
    dev_user_id: str = "dev-user-123"
    dev_user_email: str = "dev@example.com"


@lru_cache
def get_settings() -> Settings:
    return Settings()
