"""
Configuration for bulletin-board.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

CONFIG_SECTION = "bulletin-board"


@dataclass
class ServiceConfig:
    """Remote bulletin service connection."""

    api_base: str = "http://127.0.0.1:9010/api/bulletin"
    api_token: str | None = None
    api_token_env: str | None = None
    timeout_seconds: float = 10.0

    def get_api_token(self) -> str | None:
        """Get API token from config or environment."""
        if self.api_token:
            return self.api_token
        if self.api_token_env:
            return os.environ.get(self.api_token_env)
        return None


@dataclass
class FilterConfig:
    """List filter behaviour."""

    page_size: int = 50
    search_debounce_seconds: float = 0.3  # 0 disables debouncing
    persist: bool = True
    storage_path: Path | None = None  # None keeps filters in memory only


@dataclass
class UIConfig:
    """Board presentation settings."""

    saved_ack_seconds: float = 1.6
    default_tab: str = "suggestions"


@dataclass
class BoardConfig:
    """Complete bulletin-board configuration."""

    service: ServiceConfig = field(default_factory=ServiceConfig)
    filters: FilterConfig = field(default_factory=FilterConfig)
    ui: UIConfig = field(default_factory=UIConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BoardConfig":
        """Create config from a dictionary (e.g., from YAML)."""
        config = cls()

        if "service" in data:
            service = data["service"]
            config.service = ServiceConfig(
                api_base=service.get("api_base", config.service.api_base),
                api_token=service.get("api_token"),
                api_token_env=service.get("api_token_env"),
                timeout_seconds=service.get("timeout_seconds", 10.0),
            )

        if "filters" in data:
            filters = data["filters"]
            storage_path = filters.get("storage_path")
            config.filters = FilterConfig(
                page_size=filters.get("page_size", 50),
                search_debounce_seconds=filters.get("search_debounce_seconds", 0.3),
                persist=filters.get("persist", True),
                storage_path=Path(storage_path) if storage_path else None,
            )

        if "ui" in data:
            ui = data["ui"]
            config.ui = UIConfig(
                saved_ack_seconds=ui.get("saved_ack_seconds", 1.6),
                default_tab=ui.get("default_tab", "suggestions"),
            )

        return config

    @classmethod
    def from_yaml(cls, path: Path) -> "BoardConfig":
        """Load config from the bulletin-board section of a YAML file."""
        if not path.exists():
            return cls()

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        return cls.from_dict(data.get(CONFIG_SECTION, {}) or {})

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary for JSON serialization.

        The literal API token is never included.
        """
        return {
            "service": {
                "api_base": self.service.api_base,
                "api_token_env": self.service.api_token_env,
                "timeout_seconds": self.service.timeout_seconds,
            },
            "filters": {
                "page_size": self.filters.page_size,
                "search_debounce_seconds": self.filters.search_debounce_seconds,
                "persist": self.filters.persist,
                "storage_path": (
                    str(self.filters.storage_path) if self.filters.storage_path else None
                ),
            },
            "ui": {
                "saved_ack_seconds": self.ui.saved_ack_seconds,
                "default_tab": self.ui.default_tab,
            },
        }
