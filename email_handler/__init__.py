"""Email notification handler for monitoring events."""

__version__ = "1.0.0"
