"""Core configuration and shared enums."""
