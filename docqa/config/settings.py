"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ────────────────────────────────────────────────
#
# pydantic-settings reads configuration from two sources (in priority order):
#
#   1. **Environment variables** - e.g. OPENAI_API_KEY=sk-abc123
#   2. **.env file** - key=value lines in the project root .env file
#
# Field ``openai_api_key`` maps to env var ``OPENAI_API_KEY``.  Defaults
# apply when neither source sets a value.  ``.env.example`` lists every
# variable.
#
# Provider selection (embedding / answer / database / blob backend) is
# decided ONCE from these values in docqa/main.py; pipeline code never
# branches on them.
# ──────────────────────────────────────────────────────────────────────
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """docqa application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Model providers ===
    # Empty string = "not configured"; selecting a provider whose key is
    # empty fails at startup with ConfigurationError.
    embedding_provider: Literal["openai", "gemini"] = "openai"
    answer_provider: Literal["anthropic", "openai", "gemini"] = "anthropic"

    openai_api_key: str = ""
    openai_base_url: str = ""  # OpenAI-compatible endpoints (Azure proxy, TogetherAI, ...)
    openai_embedding_model: str = "text-embedding-3-small"
    openai_answer_model: str = "gpt-4o-mini"
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-3-7-sonnet-20250219"
    gemini_api_key: str = ""
    gemini_embedding_model: str = "models/text-embedding-004"
    gemini_answer_model: str = "gemini-1.5-flash"

    answer_temperature: float = 0.5
    answer_max_tokens: int = 1000

    # The one vector dimension every stored chunk shares.  Must equal the
    # selected embedding provider's dimension (checked at startup).
    embedding_dimension: int = Field(default=1536, gt=0)

    # === Persistence ===
    # sqlite:///path/to.db  -> SQLiteDocumentStore (aiosqlite)
    # postgresql://...      -> PgVectorDocumentStore (SQLAlchemy + asyncpg)
    database_url: str = "sqlite:///data/docqa.db"

    # === Blob storage ===
    blob_backend: Literal["s3", "local"] = "local"
    s3_bucket_name: str = ""
    s3_region: str = "eu-north-1"
    s3_endpoint_url: str = ""  # S3-compatible stores (MinIO, R2, ...)
    aws_access_key_id: str = ""
    aws_secret_access_key: str = ""
    local_blob_dir: str = "data/blobs"
    download_url_expires_seconds: int = 3600

    # === Pipeline tuning ===
    chunk_max_size: int = Field(default=1000, gt=0)
    chunk_overlap: int = Field(default=200, ge=0)
    retrieval_limit: int = Field(default=5, gt=0)
    max_upload_bytes: int = 50 * 1024 * 1024  # 50 MB

    # === Timeouts / background work ===
    provider_timeout_seconds: float = 60.0
    search_timeout_seconds: float = 10.0
    ingestion_workers: int = Field(default=1, ge=1)
    # Startup requeues every "processing" document.  While running, the sweep
    # requeues those not updated for ingestion_stale_after_seconds.  A sweep
    # interval of 0 disables the sweep.
    ingestion_stale_after_seconds: int = 900
    ingestion_sweep_interval_seconds: float = Field(default=300.0, ge=0)

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    def get_available_providers(self) -> list[str]:
        """Return the model providers that have non-empty API keys configured."""
        providers: list[str] = []
        if self.openai_api_key:
            providers.append("openai")
        if self.anthropic_api_key:
            providers.append("anthropic")
        if self.gemini_api_key:
            providers.append("gemini")
        return providers
