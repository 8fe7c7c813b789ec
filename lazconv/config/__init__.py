"""Configuration module for lazconv."""

from lazconv.config.settings import LazconvSettings, get_settings, reload_settings

__all__ = ["LazconvSettings", "get_settings", "reload_settings"]
