"""Application configuration management."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_prefix="GRAPH_VOICE_",
        env_file=[
            ".env",  # Project-level defaults (lower priority)
            Path.home() / ".config" / "graph-voice" / ".env",  # User config (higher priority)
        ],
        env_file_encoding="utf-8",
    )

    # Confirmation settings
    confirmation_enabled: bool = Field(
        default=True,
        description="Require confirmation for sending, deleting and meeting actions",
    )
    confirmation_ttl_seconds: int = Field(
        default=3600, ge=1, description="Seconds a pending action stays confirmable"
    )
    sweep_interval_seconds: int = Field(
        default=300, ge=1, description="Seconds between expiry sweeps"
    )

    # Paths
    config_dir: Path = Field(
        default=Path.home() / ".config" / "graph-voice",
        description="Configuration directory",
    )
    kinds_file: str = Field(
        default="action_kinds.yaml", description="Action kind overrides filename"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_dir: Path = Field(
        default=Path.home() / ".local" / "state" / "graph-voice" / "logs",
        description="Directory for log files",
    )
    log_rotation_size_mb: int = Field(
        default=5, ge=1, description="Max size per log file in MB before rotation"
    )
    log_backup_count: int = Field(
        default=3, ge=0, description="Number of rotated log files to keep"
    )

    @property
    def kinds_path(self) -> Path:
        """Full path to the action kind overrides file."""
        return self.config_dir / self.kinds_file

    @property
    def database_path(self) -> Path:
        """Path to SQLite database for pending actions."""
        return self.config_dir / "pending_actions.db"

    def ensure_config_dir(self) -> None:
        """Create config directory if it doesn't exist."""
        self.config_dir.mkdir(parents=True, exist_ok=True)


def load_kind_overrides(path: Path) -> dict[str, dict[str, Any]]:
    """Load per-kind title and field overrides from a YAML file."""
    if not path.exists():
        return {}

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    return data.get("kinds", {}) or {}


def save_kind_overrides(path: Path, overrides: dict[str, dict[str, Any]]) -> None:
    """Save per-kind overrides to a YAML file."""
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w") as f:
        yaml.dump({"kinds": overrides}, f, default_flow_style=False, sort_keys=False)
