"""Configuration module - exports the Settings class."""

from docqa.config.settings import Settings

__all__ = ["Settings"]
