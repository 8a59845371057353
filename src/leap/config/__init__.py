"""Configuration — pydantic-settings models loaded from env vars and YAML."""

from leap.config.settings import Settings

__all__ = ["Settings"]
