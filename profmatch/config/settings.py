"""Application settings loaded from environment variables via pydantic-settings.

Two sources, highest priority first:

  1. Environment variables, e.g. ``OPENAI_API_KEY=sk-abc123``
  2. ``.env`` in the working directory (local development)

Field ``openai_api_key`` maps to env var ``OPENAI_API_KEY``.  Defaults
apply when neither source sets a value.  Structural, non-secret settings
(HTML selectors, prompt parameters) live in ``config/config.yaml`` and are
merged by :func:`profmatch.config.loader.load_config`.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """ProfMatch application settings."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === LLM / embedding providers ===
    # Empty string = "not configured"; provider selection in container.py skips
    # providers with empty keys and falls through to the next.
    openai_api_key: str = ""
    openai_base_url: str = ""
    openai_text_model: str = ""
    openai_embedding_model: str = ""
    anthropic_api_key: str = ""
    anthropic_model: str = ""
    ollama_base_url: str = "http://localhost:11434"

    # === Vector index ===
    chromadb_persist_dir: str = "./data/chromadb"
    chromadb_collection_prefix: str = "profmatch"
    index_namespace: str = "ns1"
    # 0 = use the embedding provider's native dimension.
    embedding_dimension: int = 0

    # === Retrieval ===
    rag_top_k: int = 3
    embedding_cache_ttl: int = 3600

    # === Per-call timeouts (seconds) ===
    fetch_timeout: float = 10.0
    embed_timeout: float = 15.0
    index_timeout: float = 10.0
    generation_timeout: float = 60.0

    # === App Config ===
    config_path: str = "config/config.yaml"
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"

    def get_available_llm_providers(self) -> list[str]:
        """Return LLM provider names in selection priority order."""
        providers: list[str] = []
        if self.openai_api_key:
            providers.append("openai")
        if self.anthropic_api_key:
            providers.append("anthropic")
        if self.ollama_base_url:
            providers.append("ollama")
        return providers
