from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from .constants import DEFAULT_CHUNK_SIZE, DEFAULT_INBOX_SIZE, DEFAULT_PORT

ENV_PREFIX = "NETFILE_"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigError(Exception):
    """Raised when configuration values are invalid."""


@dataclass
class Settings:
    """Defaults for the CLI; command-line flags take precedence."""

    host: str = "127.0.0.1"
    port: int = DEFAULT_PORT
    root_dir: Path = field(default_factory=lambda: Path("."))
    chunk_size: int = DEFAULT_CHUNK_SIZE
    deadline: float = 0.0
    inbox_size: int = DEFAULT_INBOX_SIZE
    log_level: str = "INFO"

    def validate(self) -> "Settings":
        if not 0 <= self.port <= 65535:
            raise ConfigError(f"port out of range: {self.port}")
        if self.chunk_size < 0:
            raise ConfigError(f"chunk size must be >= 0, got {self.chunk_size}")
        if self.deadline < 0:
            raise ConfigError(f"deadline must be >= 0, got {self.deadline}")
        if self.inbox_size < 2:
            raise ConfigError(f"inbox size must be >= 2, got {self.inbox_size}")
        if self.log_level not in LOG_LEVELS:
            raise ConfigError(f"unknown log level {self.log_level!r}")
        return self


def _env(name: str, default, cast):
    raw = os.getenv(ENV_PREFIX + name)
    if raw is None or raw == "":
        return default
    try:
        return cast(raw)
    except ValueError as exc:
        raise ConfigError(f"invalid {ENV_PREFIX + name}={raw!r}: {exc}") from exc


def load_settings(env_path: str = ".env") -> Settings:
    """Build Settings from the environment, reading *env_path* first if it exists."""
    if Path(env_path).exists():
        load_dotenv(env_path)
        logging.getLogger(__name__).debug("loaded %s", env_path)

    defaults = Settings()
    settings = Settings(
        host=_env("HOST", defaults.host, str),
        port=_env("PORT", defaults.port, int),
        root_dir=_env("ROOT", defaults.root_dir, Path),
        chunk_size=_env("CHUNK_SIZE", defaults.chunk_size, int),
        deadline=_env("DEADLINE", defaults.deadline, float),
        inbox_size=_env("INBOX_SIZE", defaults.inbox_size, int),
        log_level=_env("LOG_LEVEL", defaults.log_level, str.upper),
    )
    return settings.validate()


__all__ = ["ConfigError", "Settings", "load_settings"]
