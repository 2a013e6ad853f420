"""Core models and errors shared across the tagging engine."""
