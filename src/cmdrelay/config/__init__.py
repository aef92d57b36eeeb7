"""Configuration management for cmdrelay.

Loads and validates YAML-based configuration with Pydantic models.
Supports environment variable overrides, including the bare PORT
variable for the listening port.
"""

from cmdrelay.config.settings import Settings, load_settings

__all__ = ["Settings", "load_settings"]
