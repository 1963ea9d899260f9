"""contentsync - Keep a local content database in sync with a GitHub repository."""

__version__ = "0.1.0"
