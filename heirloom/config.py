"""Configuration management for the Heirloom tagging engine."""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, Field, model_validator, field_validator
from typing import Dict, Optional
from pathlib import Path
import os
import json
import logging

from heirloom.core.models import TagCategory

logger = logging.getLogger(__name__)


class ConfidenceThresholds(BaseModel):
    """Lower bounds of the advisory confidence tiers."""

    high: float = 0.90
    medium: float = 0.70

    @model_validator(mode="after")
    def validate_order(self) -> "ConfidenceThresholds":
        """Tiers must be ordered low < medium <= high within [0, 1]."""
        if not 0.0 <= self.medium <= self.high <= 1.0:
            raise ValueError(
                f"Confidence thresholds must satisfy 0 <= medium <= high <= 1 "
                f"(got medium={self.medium}, high={self.high})"
            )
        return self


class OverlaySettings(BaseModel):
    """Bounding-box overlay display settings."""

    max_zoom: float = 4.0
    show_faces: bool = True
    show_objects: bool = False
    show_text: bool = False

    @field_validator("max_zoom")
    @classmethod
    def validate_max_zoom(cls, v: float) -> float:
        """Zoom is a magnification, never a reduction."""
        if v < 1.0:
            raise ValueError("max_zoom must be >= 1.0")
        return v


class BulkSettings(BaseModel):
    """Bulk tag application limits."""

    batch_size: int = Field(default=100, ge=1)
    max_items: int = Field(default=1000, ge=1)


class TreeSettings(BaseModel):
    """Tag taxonomy settings."""

    max_name_length: int = Field(default=100, ge=1)
    default_color: str = "#6b7280"


def _default_category_colors() -> Dict[TagCategory, str]:
    return {
        TagCategory.PEOPLE: "#3b82f6",  # blue
        TagCategory.OBJECTS: "#eab308",  # yellow
        TagCategory.LOCATIONS: "#10b981",  # green
        TagCategory.EVENTS: "#f97316",  # orange
        TagCategory.EMOTIONS: "#ec4899",  # pink
        TagCategory.TEXT: "#6b7280",  # gray
    }


class TaggingConfig(BaseSettings):
    """
    Tagging engine configuration with environment variable support.

    Nested groups can be set from the environment with a double underscore,
    e.g. HEIRLOOM_CONFIDENCE__HIGH=0.95.
    """

    # Core settings
    log_level: str = "INFO"
    json_logs: bool = False

    # Storage locations used by the bundled adapters and CLI
    sqlite_path: str = "~/.heirloom/items.db"
    snapshot_path: str = "~/.heirloom/tags.json"

    # Feature groups
    confidence: ConfidenceThresholds = Field(default_factory=ConfidenceThresholds)
    overlay: OverlaySettings = Field(default_factory=OverlaySettings)
    bulk: BulkSettings = Field(default_factory=BulkSettings)
    tree: TreeSettings = Field(default_factory=TreeSettings)
    category_colors: Dict[TagCategory, str] = Field(
        default_factory=_default_category_colors
    )

    model_config = SettingsConfigDict(
        env_prefix="HEIRLOOM_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Accept standard logging level names in any case."""
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @model_validator(mode="after")
    def validate_config(self) -> "TaggingConfig":
        """Validate cross-field constraints."""
        if self.bulk.batch_size > self.bulk.max_items:
            raise ValueError("bulk.batch_size must not exceed bulk.max_items")

        missing = [c.value for c in TagCategory if c not in self.category_colors]
        if missing:
            raise ValueError(f"category_colors is missing: {', '.join(missing)}")

        return self

    def color_for(self, category: TagCategory) -> str:
        """Display color for a category, falling back to the tree default."""
        return self.category_colors.get(category, self.tree.default_color)

    def get_expanded_path(self, path: str) -> Path:
        """Expand ~ and environment variables in path."""
        return Path(os.path.expanduser(os.path.expandvars(path)))

    @property
    def sqlite_path_expanded(self) -> Path:
        """Get expanded SQLite item database path."""
        path = self.get_expanded_path(self.sqlite_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        return path

    @property
    def snapshot_path_expanded(self) -> Path:
        """Get expanded tag-tree snapshot path."""
        path = self.get_expanded_path(self.snapshot_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        return path


# Global config instance
_config: Optional[TaggingConfig] = None

# User config file location
_USER_CONFIG_PATH = Path.home() / ".heirloom" / "config.json"


def _load_user_config_overrides() -> dict:
    """
    Load user configuration overrides from ~/.heirloom/config.json.

    Returns:
        Dict of config overrides, or empty dict if no config file exists
    """
    if not _USER_CONFIG_PATH.exists():
        return {}

    try:
        with open(_USER_CONFIG_PATH, "r") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning(f"Failed to load user config from {_USER_CONFIG_PATH}: {e}")
        return {}


def get_config() -> TaggingConfig:
    """
    Get or create global configuration instance.

    Configuration priority (highest to lowest):
    1. User config file (~/.heirloom/config.json)
    2. Environment variables (HEIRLOOM_*)
    3. Built-in defaults
    """
    global _config
    if _config is None:
        user_overrides = _load_user_config_overrides()
        _config = TaggingConfig(**user_overrides)
    return _config


def set_config(config: Optional[TaggingConfig]) -> None:
    """Set global configuration instance (mainly for testing)."""
    global _config
    _config = config
