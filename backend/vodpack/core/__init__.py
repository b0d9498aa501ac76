"""Core module for configuration and utilities."""

from vodpack.core.config import Settings, settings

__all__ = [
    "Settings",
    "settings",
]
