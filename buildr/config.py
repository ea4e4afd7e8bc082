from pydantic_settings import BaseSettings


# Models that require max_completion_tokens instead of max_tokens
_MAX_COMPLETION_TOKENS_MODELS = {"gpt-5.2", "gpt-5", "gpt-5-mini", "o1", "o3", "o3-mini", "o1-mini"}


class Settings(BaseSettings):
    database_url: str = "postgresql+asyncpg://postgres@localhost:5432/buildr"
    database_echo: bool = False
    openai_api_key: str = ""
    openai_base_url: str | None = None
    openai_model: str = "gpt-5.2"
    openai_fast_model: str = "gpt-5-mini"
    build_max_tokens: int = 16000
    premium_max_tokens: int = 32000
    chat_max_tokens: int = 2000
    app_env: str = "development"
    cors_origins: str = "http://localhost:3000"

    debug_api_key: str = ""
    unsplash_access_key: str = ""
    pexels_api_key: str = ""

    # Client-side build pipeline
    api_base_url: str = "http://localhost:8000"
    snapshot_dir: str = ".buildr"
    min_partial_chars: int = 500
    min_output_chars: int = 100
    instant_edit_saturation_threshold: float = 0.3
    history_limit: int = 20
    recent_requests_limit: int = 10
    preview_error_limit: int = 10
    save_debounce_seconds: float = 2.0
    recovery_ttl_hours: float = 24
    session_ttl_hours: float = 1

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    def max_tokens_param(self, n: int, model: str | None = None) -> dict:
        """Return the right max-tokens kwarg for the given model (default: the main one)."""
        if (model or self.openai_model) in _MAX_COMPLETION_TOKENS_MODELS:
            return {"max_completion_tokens": n}
        return {"max_tokens": n}


settings = Settings()
