"""Tag annotation and hierarchy engine for family memories."""

__version__ = "0.1.0"
