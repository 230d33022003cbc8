"""Configuration settings for the channel ingestion pipeline."""

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables and config.yaml."""

    model_config = SettingsConfigDict(  # type: ignore[assignment]
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Allow extra env vars not defined in model
    )

    # YouTube Data API
    youtube_api_key: str | None = None
    youtube_api_base_url: str = "https://www.googleapis.com/youtube/v3"
    youtube_timedtext_url: str = "https://www.youtube.com/api/timedtext"

    # MongoDB
    mongodb_url: str = "mongodb://localhost:27017"
    mongodb_database: str = "channel_ingest"

    # Logging
    log_level: str = "INFO"
    log_file: str | None = None

    # Catalog / details
    catalog_page_size: int = 50
    detail_batch_size: int = 50
    default_max_videos: int = 50
    all_videos_sentinel: int = 9999
    all_videos_cap: int = 10000

    # Transcripts
    transcript_group_size: int = 3
    transcript_item_delay: float = 0.3
    transcript_group_delay: float = 2.0
    transcript_language_delay: float = 0.5
    transcript_max_retries: int = 3
    transcript_retry_backoff: float = 1.0
    transcript_attempt_timeout: float = 15.0
    transcript_min_chars: int = 50

    # Classification / persistence
    short_max_seconds: int = 180
    large_batch_threshold: int = 20

    @property
    def has_youtube_credentials(self) -> bool:
        """Whether a YouTube API key is configured."""
        return bool(self.youtube_api_key)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def load_yaml_config(config_path: Path | str | None = None) -> dict[str, Any]:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to config file. Defaults to ./config.yaml or ./config.yml

    Returns:
        Dictionary with configuration values
    """
    if config_path is None:
        possible_paths = [
            Path("config.yaml"),
            Path("config.yml"),
            Path(__file__).parent.parent.parent / "config.yaml",
            Path(__file__).parent.parent.parent / "config.yml",
        ]
        for path in possible_paths:
            if path.exists():
                config_path = path
                break

    if config_path is None or not Path(config_path).exists():
        return {}

    try:
        with open(config_path) as f:
            return yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        print(f"Warning: Failed to load config file: {e}")
        return {}


# YAML section -> {yaml key: settings attribute}
_YAML_SECTIONS: dict[str, dict[str, str]] = {
    "youtube_api": {
        "base_url": "youtube_api_base_url",
        "timedtext_url": "youtube_timedtext_url",
    },
    "catalog": {
        "page_size": "catalog_page_size",
        "detail_batch_size": "detail_batch_size",
        "default_max_videos": "default_max_videos",
    },
    "transcripts": {
        "group_size": "transcript_group_size",
        "item_delay": "transcript_item_delay",
        "group_delay": "transcript_group_delay",
        "language_delay": "transcript_language_delay",
        "max_retries": "transcript_max_retries",
        "retry_backoff": "transcript_retry_backoff",
        "attempt_timeout": "transcript_attempt_timeout",
        "min_chars": "transcript_min_chars",
    },
    "persistence": {
        "large_batch_threshold": "large_batch_threshold",
    },
    "logging": {
        "level": "log_level",
        "file": "log_file",
    },
}


def apply_yaml_config(settings: Settings, config: dict[str, Any]) -> Settings:
    """
    Apply YAML configuration to settings object.

    Environment variables take precedence over YAML config: a value is only
    taken from YAML while the setting still holds its default.

    Args:
        settings: Settings object to update
        config: Configuration dictionary from YAML

    Returns:
        Updated Settings object
    """
    fields = Settings.model_fields
    for section, mapping in _YAML_SECTIONS.items():
        values = config.get(section)
        if not isinstance(values, dict):
            continue
        for yaml_key, attr in mapping.items():
            if yaml_key not in values:
                continue
            if getattr(settings, attr) != fields[attr].default:
                continue
            current_type = type(fields[attr].default)
            value = values[yaml_key]
            if fields[attr].default is not None and value is not None:
                value = current_type(value)
            setattr(settings, attr, value)

    return settings


def get_settings_with_yaml(config_path: Path | str | None = None) -> Settings:
    """
    Get settings with YAML configuration applied.

    Priority: Environment Variables > YAML Config > Defaults

    Args:
        config_path: Optional path to config file

    Returns:
        Settings object with YAML configuration applied
    """
    settings = get_settings()
    config = load_yaml_config(config_path)
    return apply_yaml_config(settings, config)
