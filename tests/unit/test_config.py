"""Unit tests for configuration module."""

import json
from pathlib import Path

import pytest
from pydantic import ValidationError as PydanticValidationError

import heirloom.config as config_module
from heirloom.config import (
    BulkSettings,
    ConfidenceThresholds,
    OverlaySettings,
    TaggingConfig,
    get_config,
    set_config,
)
from heirloom.core.models import TagCategory


def test_config_defaults():
    """Test that configuration loads with default values."""
    config = TaggingConfig()
    assert config.log_level == "INFO"
    assert config.json_logs is False
    assert config.confidence.high == 0.90
    assert config.confidence.medium == 0.70
    assert config.overlay.max_zoom == 4.0
    assert config.overlay.show_faces is True
    assert config.overlay.show_objects is False
    assert config.bulk.batch_size == 100
    assert config.bulk.max_items == 1000
    assert config.tree.max_name_length == 100
    assert config.color_for(TagCategory.PEOPLE) == "#3b82f6"
    assert config.color_for(TagCategory.TEXT) == "#6b7280"


def test_config_from_env(monkeypatch):
    """Test that configuration loads from environment variables."""
    monkeypatch.setenv("HEIRLOOM_LOG_LEVEL", "debug")
    monkeypatch.setenv("HEIRLOOM_CONFIDENCE__HIGH", "0.95")
    monkeypatch.setenv("HEIRLOOM_BULK__BATCH_SIZE", "25")
    monkeypatch.setenv("HEIRLOOM_OVERLAY__SHOW_TEXT", "true")

    config = TaggingConfig()
    assert config.log_level == "DEBUG"
    assert config.confidence.high == 0.95
    assert config.confidence.medium == 0.70
    assert config.bulk.batch_size == 25
    assert config.overlay.show_text is True


def test_invalid_log_level():
    with pytest.raises(PydanticValidationError, match="Unknown log level"):
        TaggingConfig(log_level="chatty")


@pytest.mark.parametrize(
    "high,medium",
    [(0.6, 0.7), (1.2, 0.7), (0.9, -0.1)],
    ids=["inverted", "above_one", "negative"],
)
def test_confidence_thresholds_validation(high, medium):
    with pytest.raises(PydanticValidationError):
        ConfidenceThresholds(high=high, medium=medium)


def test_max_zoom_validation():
    with pytest.raises(PydanticValidationError, match="max_zoom"):
        OverlaySettings(max_zoom=0.5)


def test_batch_size_cannot_exceed_max_items():
    with pytest.raises(PydanticValidationError, match="batch_size"):
        TaggingConfig(bulk=BulkSettings(batch_size=50, max_items=10))


def test_category_colors_must_be_complete():
    with pytest.raises(PydanticValidationError, match="category_colors is missing"):
        TaggingConfig(category_colors={TagCategory.PEOPLE: "#000000"})


def test_path_expansion(tmp_path, monkeypatch):
    monkeypatch.setenv("HEIRLOOM_TEST_DIR", str(tmp_path))
    config = TaggingConfig(
        sqlite_path="$HEIRLOOM_TEST_DIR/db/items.db",
        snapshot_path="~/whatever/tags.json",
    )

    assert config.sqlite_path_expanded == tmp_path / "db" / "items.db"
    assert (tmp_path / "db").is_dir()
    assert "~" not in str(config.get_expanded_path(config.snapshot_path))
    assert isinstance(config.get_expanded_path(config.snapshot_path), Path)


def test_global_config():
    """Test global configuration singleton."""
    custom = TaggingConfig(log_level="ERROR")
    set_config(custom)
    assert get_config() is custom
    assert get_config() is get_config()


def test_user_config_overrides(tmp_path, monkeypatch):
    user_config = tmp_path / "config.json"
    user_config.write_text(json.dumps({"log_level": "WARNING", "bulk": {"batch_size": 10}}))
    monkeypatch.setattr(config_module, "_USER_CONFIG_PATH", user_config)
    set_config(None)

    config = get_config()
    assert config.log_level == "WARNING"
    assert config.bulk.batch_size == 10


def test_broken_user_config_ignored(tmp_path, monkeypatch):
    user_config = tmp_path / "config.json"
    user_config.write_text("{not json")
    monkeypatch.setattr(config_module, "_USER_CONFIG_PATH", user_config)
    set_config(None)

    assert get_config().log_level == "INFO"
