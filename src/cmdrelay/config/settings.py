"""Configuration management for cmdrelay.

Loads settings from a YAML configuration file with environment variable
overrides. Supports .env files.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

from cmdrelay.domain.models import COMMAND_TIMEOUT, REQUEST_SLACK

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/cmdrelay.yaml")


class ServerConfig(BaseModel):
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000, ge=1, le=65535)


class StoreConfig(BaseModel):
    log_file: Path = Field(default=Path("db/commands.json"))


class ClientConfig(BaseModel):
    base_url: str = Field(default="http://localhost:3000")
    # Must outlast the server's timeout window so 504s are delivered.
    timeout: float = Field(default=COMMAND_TIMEOUT + REQUEST_SLACK, gt=0)


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    format: str = Field(
        default="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    file: str | None = Field(default=None)


class Settings(BaseSettings):
    """Root configuration for cmdrelay.

    Loads from YAML file and supports environment variable overrides.
    Reads .env files automatically.
    """

    model_config = {
        "env_prefix": "CMDRELAY_",
        "env_nested_delimiter": "__",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    server: ServerConfig = Field(default_factory=ServerConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    client: ClientConfig = Field(default_factory=ClientConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_settings(config_path: Path | str | None = None) -> Settings:
    """Load settings from YAML + .env + environment variables.

    Priority: PORT > YAML file > CMDRELAY_* env vars > .env file > defaults
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    _load_dotenv()

    yaml_data = {}
    if path.exists():
        with open(path) as f:
            yaml_data = yaml.safe_load(f) or {}
        logger.info("Loaded configuration from %s", path)
    else:
        logger.warning("Config file %s not found, using defaults + env vars", path)

    _apply_env_overrides(yaml_data)

    return Settings(**yaml_data)


def _load_dotenv() -> None:
    """Load .env file into os.environ if it exists."""
    env_path = Path(".env")
    if not env_path.exists():
        return
    with open(env_path) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" in line:
                key, _, value = line.partition("=")
                key = key.strip()
                value = value.strip()
                if not os.environ.get(key):
                    os.environ[key] = value


def _apply_env_overrides(yaml_data: dict) -> None:
    """Apply the conventional bare PORT variable to the server section."""
    port = os.environ.get("PORT", "")
    if not port:
        return
    server = yaml_data.setdefault("server", {})
    server["port"] = port
