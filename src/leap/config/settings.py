"""Application settings — Pydantic-based configuration with YAML and env var support.

Configuration is loaded from (in order of precedence):
  1. YAML config file (if specified)
  2. Environment variables (LEAP_ prefix)
  3. Default values
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings


class ServerSettings(BaseModel):
    """HTTP server configuration."""

    host: str = Field(default="127.0.0.1", description="Server bind address")
    port: int = Field(default=8080, description="Server port")
    workers: int = Field(default=1, description="Number of worker processes")
    cors_origins: list[str] = Field(default=["*"], description="Allowed CORS origins")


class StorageSettings(BaseModel):
    """Catalog store configuration."""

    database_path: str = Field(default="leap.db", description="SQLite database file (':memory:' for tests)")
    tokenizer: str = Field(default="trigram", description="FTS5 tokenizer used for the search index")


class SearchSettings(BaseModel):
    """Search behavior configuration."""

    max_results: int = Field(default=100, ge=1, le=100, description="Maximum number of ranked rows per query")


class FallbackSettings(BaseModel):
    """Fallback suggestion heuristics, used when the index has no match.

    Query text is substituted into ``{query}`` after URL escaping.
    """

    registry_name: str = Field(default="MetaCPAN", description="Package registry display name")
    registry_url: str = Field(
        default="https://metacpan.org/search?q={query}",
        description="Package registry search URL template",
    )
    engine_name: str = Field(default="Google", description="Web search engine display name")
    engine_url: str = Field(
        default="https://www.google.com/search?q={query}",
        description="Web search engine query URL template",
    )
    engine_prefixes: list[str] = Field(
        default=["g ", "google "],
        description="Case-sensitive prefixes that trigger a web search suggestion",
    )
    enable_host_lookup: bool = Field(default=True, description="Resolve hostname-shaped queries")
    resolve_timeout: float = Field(default=1.0, gt=0, description="Hostname resolution timeout in seconds")

    @field_validator("engine_prefixes", mode="before")
    @classmethod
    def _parse_prefixes(cls, v: Any) -> list[str]:
        """Parse prefixes from a JSON string (env var) or list."""
        if isinstance(v, str):
            import json

            try:
                parsed = json.loads(v)
                if isinstance(parsed, list):
                    return [str(p) for p in parsed]
            except (json.JSONDecodeError, TypeError):
                pass
            return [v] if v else []
        return list(v)


class ObservabilitySettings(BaseModel):
    """Observability configuration."""

    log_level: str = Field(default="info", description="Log level: debug, info, warning, error")
    log_format: str = Field(default="json", description="Log format: json, console")


class Settings(BaseSettings):
    """Root application settings.

    Configuration is loaded from environment variables with the LEAP_ prefix.
    Nested settings use double underscores: LEAP_SERVER__PORT=9090

    Example:
        LEAP_SERVER__PORT=9090
        LEAP_STORAGE__DATABASE_PATH=/var/lib/leap/leap.db
        LEAP_FALLBACK__ENGINE_NAME=DuckDuckGo
    """

    model_config = {
        "env_prefix": "LEAP_",
        "env_nested_delimiter": "__",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

    app_name: str = Field(default="Leap", description="Application name")
    debug: bool = Field(default=False, description="Debug mode")

    server: ServerSettings = Field(default_factory=ServerSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    fallback: FallbackSettings = Field(default_factory=FallbackSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    @classmethod
    def from_yaml(cls, path: str | Path) -> Settings:
        """Load settings from a YAML configuration file.

        Keys present in the YAML file win over environment variables; keys
        it omits fall back to the environment and then to defaults.

        Args:
            path: Path to the YAML config file.

        Returns:
            Populated Settings instance.
        """
        import yaml  # type: ignore[import-untyped]

        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path) as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)
