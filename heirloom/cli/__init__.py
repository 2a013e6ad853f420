"""Command-line interface for Heirloom tagging."""

from heirloom.cli.tags_command import tags_cli
from heirloom.config import get_config
from heirloom.log_utils import configure_from_config


def main():
    """Console script entry point."""
    configure_from_config(get_config())
    tags_cli(obj={})


__all__ = ["main", "tags_cli"]
