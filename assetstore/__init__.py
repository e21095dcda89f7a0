"""Asset storage and transformation service."""

__version__ = "0.1.0"
