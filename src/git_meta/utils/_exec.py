"""Execution utilities for external commands.

This module runs external programs (the git CLI) with captured output and
reports the outcome as a CommandResult instead of raising, so callers decide
which outcomes are failures.
"""

import os
import subprocess
from dataclasses import dataclass, field
from pathlib import Path

# Maximum output size in bytes
MAX_OUTPUT_BYTES: int = 102400  # 100KB


@dataclass(frozen=True, slots=True)
class CommandConfig:
    """Configuration for command execution.

    Attributes:
        argv: Program and arguments. Never passed through a shell.
        cwd: Working directory for execution.
        env: Additional environment variables to set.
        capture_stderr: Capture standard error; when False it is discarded.
    """

    argv: tuple[str, ...]
    cwd: str | Path | None = None
    env: dict[str, str] = field(default_factory=dict)
    capture_stderr: bool = False


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Result from command execution.

    Attributes:
        started: Whether the process was started at all.
        exit_code: Process exit code, or None if the process did not start.
        stdout: Standard output from the command.
        stderr: Standard error, when captured.
        error: Error message if the process could not be started.
        command_not_found: Whether the program was not found.
    """

    started: bool
    exit_code: int | None = None
    stdout: str = ""
    stderr: str = ""
    error: str | None = None
    command_not_found: bool = False

    @property
    def success(self) -> bool:
        """Whether the process ran and exited with status zero."""
        return self.started and self.exit_code == 0


def truncate_output(output: str, max_bytes: int = MAX_OUTPUT_BYTES) -> str:
    """Truncate output to max bytes, preserving valid UTF-8.

    Args:
        output: The string to truncate.
        max_bytes: Maximum size in bytes.

    Returns:
        Truncated string with indicator if truncated.
    """
    if not output:
        return output

    encoded = output.encode("utf-8")
    if len(encoded) <= max_bytes:
        return output

    # Use 'ignore' to skip incomplete multi-byte sequences at the end
    truncated = encoded[:max_bytes].decode("utf-8", errors="ignore")
    return truncated + "\n... [output truncated]"


def run_command(config: CommandConfig) -> CommandResult:
    """Run a command to completion.

    No timeout is applied; the call blocks until the process exits.

    Args:
        config: Command configuration.

    Returns:
        CommandResult with the execution outcome.
    """
    if not config.argv:
        return CommandResult(started=False, error="No command specified")

    env = {**os.environ, **config.env}
    cwd = str(config.cwd) if config.cwd else None

    try:
        result = subprocess.run(  # noqa: S603
            list(config.argv),
            env=env,
            cwd=cwd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE if config.capture_stderr else subprocess.DEVNULL,
            check=False,
        )
    except FileNotFoundError as e:
        return CommandResult(started=False, error=str(e), command_not_found=True)
    except OSError as e:
        return CommandResult(started=False, error=str(e))

    stdout = result.stdout.decode("utf-8", errors="replace")
    stderr = (
        result.stderr.decode("utf-8", errors="replace") if config.capture_stderr else ""
    )
    return CommandResult(
        started=True,
        exit_code=result.returncode,
        stdout=truncate_output(stdout),
        stderr=truncate_output(stderr),
    )
