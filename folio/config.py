"""Application settings loaded from environment variables."""

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_file() -> str | None:
    if os.getenv("PYTEST_CURRENT_TEST"):
        return None
    return ".env"


class Settings(BaseSettings):
    """Folio configuration. All values come from environment variables."""

    # Anthropic (generation)
    anthropic_api_key: str = Field(default="")
    chat_model: str = Field(default="sonnet")

    # OpenAI (embeddings)
    openai_api_key: str = Field(default="")
    embedding_model: str = Field(default="text-embedding-3-small")

    # Chroma (vector index). When chroma_host is set, overrides local chroma_path
    chroma_path: Path = Field(default=Path("data/chroma"))
    chroma_host: str = Field(default="")
    chroma_port: int = Field(default=8000)
    chroma_collection: str = Field(default="portfolio")

    # Database (session history)
    database_path: Path = Field(default=Path("data/folio.db"))

    # Turso (hosted libSQL). When set, overrides local database_path
    turso_database_url: str = Field(default="")
    turso_auth_token: str = Field(default="")

    # HTTP server
    server_host: str = Field(default="0.0.0.0")
    server_port: int = Field(default=8787)
    static_dir: Path = Field(default=Path("public"))
    admin_api_key: str = Field(default="")

    # Conversation
    session_max_messages: int = Field(default=50)
    recent_context_size: int = Field(default=10)

    # Retrieval and generation
    retrieval_top_k: int = Field(default=5)
    generation_max_tokens: int = Field(default=512)
    generation_temperature: float = Field(default=0.7)

    # Ingestion
    ingest_batch_size: int = Field(default=10)

    # Logging
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(env_file=_env_file(), env_file_encoding="utf-8")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        if os.getenv("PYTEST_CURRENT_TEST"):
            return (init_settings,)
        return (init_settings, env_settings, dotenv_settings, file_secret_settings)

    @property
    def admin_auth_enabled(self) -> bool:
        """True when the ingest endpoint requires a bearer token."""
        return bool(self.admin_api_key.strip())


settings = Settings()
