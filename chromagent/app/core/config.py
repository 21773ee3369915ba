import json
from typing import Annotated, Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _parse_csv_list(raw: Any) -> list[str]:
    """Parse a comma separated source list from the environment.

    Accepts plain CSV (``a, b,c``) or a JSON array. Whitespace is trimmed and
    empty items are dropped.
    """
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        items = [str(v).strip() for v in raw]
        return [v for v in items if v]

    raw = str(raw).strip()
    if not raw or raw == "[]":
        return []

    if raw.startswith("["):
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, list):
            items = [str(v).strip() for v in parsed]
            return [v for v in items if v]

    return [part.strip() for part in raw.split(",") if part.strip()]


def _parse_cors_origins(raw: Any) -> list[str]:
    origins = _parse_csv_list(raw)
    if "*" in origins:
        return ["*"]
    return origins


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be configured via environment variables or .env file.
    Source lists (``CHROMIUM_DOCS_SOURCES`` etc.) are comma separated.
    """

    # Debug mode - enables detailed error responses
    debug: bool = False

    # Nia search API
    nia_api_key: str = ""
    nia_api_base: str = "https://apigcp.trynia.ai/v2"
    nia_query_path: str = "/query"
    nia_web_search_path: str = "/web-search"

    # AI gateway (OpenAI-compatible chat completions)
    ai_gateway_api_key: str = ""
    ai_gateway_base_url: str = "https://ai-gateway.vercel.sh/v1"
    default_model: str = "moonshotai/kimi-k2-thinking"
    supported_models: Annotated[list[str], NoDecode] = ["moonshotai/kimi-k2-thinking"]
    max_steps: int = 20
    anthropic_thinking_budget: int = 10000
    anthropic_max_output_tokens: int = 16000

    # Agent profile: chromium | epstein | naval
    agent_profile: str = "chromium"

    # Source lists per profile
    chromium_docs_sources: Annotated[list[str], NoDecode] = []
    chromium_repo_sources: Annotated[list[str], NoDecode] = []
    archive_sources: Annotated[list[str], NoDecode] = []
    biography_sources: Annotated[list[str], NoDecode] = []
    naval_source_id: str = ""

    # Composite id prefix for repository subtrees: <org>/<dataset>/tree/<branch>
    subtree_prefix: str = "chromium/chromium/tree/main"
    default_subtree: str = "base"

    # HTTP Client connection pool settings
    httpx_connect_timeout: float = 10.0  # Time to establish connection
    httpx_read_timeout: float = 120.0  # Long reads for exhaustive grep and model streams
    httpx_write_timeout: float = 10.0  # Time to send request data
    httpx_pool_timeout: float = 5.0  # Time to acquire connection from pool
    httpx_keepalive_expiry: float = 30.0
    httpx_max_connections: int = 100
    httpx_max_keepalive_connections: int = 20

    # Rate limiting settings (fixed window, per client IP)
    rate_limit_requests: int = 10
    rate_limit_window_seconds: int = 60
    rate_limit_sweep_interval_seconds: int = 300
    rate_limit_path_prefix: str = "/api/chat"

    # Maintenance mode
    maintenance_mode: bool = False
    maintenance_retry_after_seconds: int = 300

    # Logging settings
    log_level: str = "INFO"
    log_format: str = "text"  # text | structured | json

    # CORS settings
    cors_origins: Annotated[list[str], NoDecode] = ["*"]

    @field_validator(
        "supported_models",
        "chromium_docs_sources",
        "chromium_repo_sources",
        "archive_sources",
        "biography_sources",
        mode="before",
    )
    @classmethod
    def decode_csv_list(cls, v: Any) -> list[str]:
        return _parse_csv_list(v)

    @field_validator("cors_origins", mode="before")
    @classmethod
    def decode_cors_origins(cls, v: Any) -> list[str]:
        return _parse_cors_origins(v)

    @field_validator("subtree_prefix")
    @classmethod
    def strip_subtree_prefix(cls, v: str) -> str:
        return v.strip().strip("/")

    @field_validator(
        "rate_limit_requests",
        "rate_limit_window_seconds",
        "rate_limit_sweep_interval_seconds",
    )
    @classmethod
    def validate_rate_limit_positive(cls, v: int) -> int:
        """Validate rate limit values are positive."""
        if v < 1:
            raise ValueError("Rate limit values must be at least 1")
        return v

    @field_validator("max_steps")
    @classmethod
    def validate_max_steps(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_steps must be at least 1")
        return v

    @field_validator("httpx_connect_timeout", "httpx_read_timeout", "httpx_write_timeout")
    @classmethod
    def validate_timeout_positive(cls, v: float) -> float:
        """Validate timeout values are positive."""
        if v <= 0:
            raise ValueError("Timeout values must be positive")
        return v

    @property
    def allowed_models(self) -> list[str]:
        """Models a client may request; the default model is always allowed."""
        models = list(self.supported_models)
        if self.default_model not in models:
            models.insert(0, self.default_model)
        return models

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


def get_settings() -> Settings:
    """Build the process settings from the environment."""
    return Settings()
