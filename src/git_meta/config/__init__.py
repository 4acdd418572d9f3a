"""git-meta configuration.

Example:
    >>> from git_meta.config import GitMetaConfig
    >>> config = GitMetaConfig.load()
    >>> config.default_remote
    'origin'
"""

from git_meta.exceptions import ConfigError, ConfigLoadError

from ._loader import deep_merge, parse_env_vars, read_toml_file, set_nested_key
from ._models import CONFIG_PATH_ENV, GitMetaConfig, LogFormat, LoggingConfig, LogLevel

__all__ = [
    "CONFIG_PATH_ENV",
    "ConfigError",
    "ConfigLoadError",
    "GitMetaConfig",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "deep_merge",
    "parse_env_vars",
    "read_toml_file",
    "set_nested_key",
]
