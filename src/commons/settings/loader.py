"""Settings loader with layered configuration sources."""

import json
import os
from pathlib import Path
from typing import Any

from src.commons.settings.models import Settings

ENV_PREFIX = "VIDEO_API__"


def _coerce_value(value: str) -> Any:
    """Decode JSON lists and objects; scalars stay strings for pydantic to parse."""
    # e.g. CORS origins or allowed extensions
    if value.startswith(("[", "{")):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return value
    return value


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into a copy of ``base``."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = _deep_merge(current, value)
        else:
            merged[key] = value
    return merged


class SettingsLoader:
    """Loads and merges configuration from multiple sources.

    Precedence, highest first:
    1. ``VIDEO_API__SECTION__KEY`` environment variables
    2. ``appsettings.{environment}.json``
    3. ``appsettings.json``
    """

    ENV_PREFIX = ENV_PREFIX

    def __init__(
        self,
        config_dir: Path | None = None,
        environment: str | None = None,
    ) -> None:
        """Initialize the settings loader.

        Args:
            config_dir: Directory holding the JSON files. Defaults to ./config.
            environment: Environment name. Defaults to
                VIDEO_API__APP__ENVIRONMENT or 'dev'.
        """
        self.config_dir = config_dir or Path("config")
        self.environment = environment or os.getenv(
            f"{ENV_PREFIX}APP__ENVIRONMENT", "dev"
        )

    def load(self) -> Settings:
        """Resolve all sources into a Settings instance."""
        config = self._load_json("appsettings.json")
        config = _deep_merge(
            config, self._load_json(f"appsettings.{self.environment}.json")
        )
        config = _deep_merge(config, self._load_env_vars())
        return Settings(**config)

    def _load_env_vars(self) -> dict[str, Any]:
        """Collect prefixed environment variables as a nested dict.

        ``VIDEO_API__UPLOAD__WORK_DIR=/tmp/x`` becomes
        ``{"upload": {"work_dir": "/tmp/x"}}``.
        """
        overrides: dict[str, Any] = {}

        for key, value in os.environ.items():
            if not key.startswith(ENV_PREFIX):
                continue

            *sections, leaf = key[len(ENV_PREFIX) :].lower().split("__")
            node = overrides
            for section in sections:
                node = node.setdefault(section, {})
            node[leaf] = _coerce_value(value)

        return overrides

    def _load_json(self, filename: str) -> dict[str, Any]:
        """Read a JSON config file, or return {} when it is missing."""
        path = self.config_dir / filename
        if not path.exists():
            return {}
        with path.open(encoding="utf-8") as f:
            return dict(json.load(f))


# Global settings instance
_settings: Settings | None = None


def get_settings(
    config_dir: Path | None = None,
    environment: str | None = None,
    *,
    reload: bool = False,
) -> Settings:
    """Get or create the global settings instance.

    Args:
        config_dir: Optional config directory override.
        environment: Optional environment override.
        reload: Force reload settings from files.

    Returns:
        Settings instance.
    """
    global _settings  # noqa: PLW0603
    if _settings is None or reload:
        _settings = SettingsLoader(
            config_dir=config_dir, environment=environment
        ).load()
    return _settings


def reset_settings() -> None:
    """Reset the global settings instance. Useful for testing."""
    global _settings  # noqa: PLW0603
    _settings = None
