"""Process-level configuration."""

from .settings import Settings

__all__ = ["Settings"]
