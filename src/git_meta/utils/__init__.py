"""Utilities used by git-meta."""

from ._exec import CommandConfig, CommandResult, run_command, truncate_output
from ._git import (
    decode_bytes,
    encode_str,
    get_active_branch,
    get_branch_config,
    get_remote_url,
    get_worktree_dir,
    is_shallow,
    open_repo,
    strip_refs_heads,
)
from ._logging import configure_logging, get_logger
from ._scratch import scratch_directory
from ._url import GitUrl

__all__ = [
    "CommandConfig",
    "CommandResult",
    "GitUrl",
    "configure_logging",
    "decode_bytes",
    "encode_str",
    "get_active_branch",
    "get_branch_config",
    "get_logger",
    "get_remote_url",
    "get_worktree_dir",
    "is_shallow",
    "open_repo",
    "run_command",
    "scratch_directory",
    "strip_refs_heads",
    "truncate_output",
]
