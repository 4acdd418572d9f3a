"""Configuration models.

This module provides the Pydantic models for git-meta settings and the
loader that layers defaults, a TOML file, environment variables, and
explicit overrides.
"""

import os
from enum import StrEnum
from pathlib import Path
from typing import Any, ClassVar, Self

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from git_meta.exceptions import ConfigLoadError

from ._loader import deep_merge, parse_env_vars, read_toml_file

# Environment variable naming an explicit config file
CONFIG_PATH_ENV: str = "GIT_META_CONFIG"


class LogLevel(StrEnum):
    """Log level threshold values.

    Values are ordered from most verbose (debug) to least verbose (error).
    """

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LogFormat(StrEnum):
    """Log output format values."""

    JSON = "json"
    TEXT = "text"


class LoggingConfig(BaseModel):
    """Logging configuration section.

    Attributes:
        level: Log level threshold.
        format: Log output format.
        file: Path to log file (empty logs to stderr).
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    level: LogLevel = LogLevel.WARNING
    format: LogFormat = LogFormat.TEXT
    file: str = ""


class GitMetaConfig(BaseModel):
    """git-meta settings.

    Attributes:
        git_executable: Program used for shallow clones.
        shallow_depth: History depth of shallow clones.
        default_remote: Remote name used when a branch has no upstream.
        logging: Logging configuration section.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    git_executable: str = "git"
    shallow_depth: int = Field(default=1, ge=1)
    default_remote: str = "origin"
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],  # pyright: ignore[reportExplicitAny]
        *,
        source: Path | None = None,
    ) -> Self:
        """Validate a configuration dictionary.

        Args:
            data: Raw configuration values.
            source: File the values came from, for error context.

        Returns:
            The validated configuration.

        Raises:
            ConfigLoadError: If validation fails.
        """
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            msg = f"Invalid configuration: {e}"
            raise ConfigLoadError(msg, path=source) from e

    @classmethod
    def from_file(cls, path: Path) -> Self:
        """Load configuration from a single TOML file.

        Raises:
            ConfigLoadError: If the file cannot be read, parsed, or validated.
        """
        return cls.from_dict(read_toml_file(path), source=path)

    @classmethod
    def load(
        cls,
        *,
        config_path: Path | None = None,
        include_env: bool = True,
        overrides: dict[str, Any] | None = None,  # pyright: ignore[reportExplicitAny]
    ) -> Self:
        """Load configuration from all sources.

        Sources, lowest precedence first: defaults, the TOML file (explicit
        `config_path`, else GIT_META_CONFIG when set), GIT_META_* environment
        variables, then `overrides`.

        Args:
            config_path: Explicit path to a TOML config file.
            include_env: Whether to read GIT_META_* environment variables.
            overrides: Highest-precedence values, such as CLI flags.

        Returns:
            The merged, validated configuration.

        Raises:
            ConfigLoadError: If a file cannot be parsed or validation fails.
        """
        data: dict[str, Any] = {}  # pyright: ignore[reportExplicitAny]

        if config_path is None and (env_path := os.environ.get(CONFIG_PATH_ENV)):
            config_path = Path(env_path)
        if config_path is not None:
            if not config_path.is_file():
                msg = f"Config file not found: {config_path}"
                raise ConfigLoadError(msg, path=config_path)
            data = deep_merge(data, read_toml_file(config_path))

        if include_env:
            data = deep_merge(data, parse_env_vars())

        if overrides:
            data = deep_merge(data, overrides)

        return cls.from_dict(data, source=config_path)
