"""Configuration management for Import-Bot."""

from .settings import ImportSettings, load_settings

__all__ = ["ImportSettings", "load_settings"]
