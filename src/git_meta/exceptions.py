"""git-meta exceptions."""

from pathlib import Path


class GitMetaError(Exception):
    """Base exception for git-meta errors."""


# =============================================================================
# Repository Exceptions
# =============================================================================


class RepositoryError(GitMetaError):
    """Base exception for repository resolution errors."""


class NotARepositoryError(RepositoryError):
    """Raised when a path does not contain a git repository.

    Attributes:
        path: The path that was opened.
    """

    def __init__(self, message: str, *, path: Path | str) -> None:
        """Initialize with error message and path context."""
        super().__init__(message)
        self.path: Path | str = path


class PathNotFoundError(RepositoryError):
    """Raised when a repository path is unset or cannot be canonicalized.

    Attributes:
        path: The path that could not be resolved, or None if no path was set.
    """

    def __init__(self, message: str, *, path: Path | str | None = None) -> None:
        """Initialize with error message and path context."""
        super().__init__(message)
        self.path: Path | str | None = path


class ShallowCloneUnsupportedError(RepositoryError):
    """Raised when an operation needs history a shallow clone does not have.

    Attributes:
        path: Path to the shallow clone.
        operation: The operation that was refused.
    """

    def __init__(
        self,
        message: str,
        *,
        path: Path | str | None = None,
        operation: str | None = None,
    ) -> None:
        """Initialize with error message and shallow clone context."""
        super().__init__(message)
        self.path: Path | str | None = path
        self.operation: str | None = operation


class RevisionNotFoundError(RepositoryError, KeyError):
    """Raised when a commit id, reference, or HEAD cannot be resolved.

    Attributes:
        revision: The revision that failed to resolve.
        cause: The underlying exception that caused this error.
    """

    def __init__(
        self,
        message: str,
        *,
        revision: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and revision context."""
        super().__init__(message)
        self.revision: str | None = revision
        self.cause: Exception | None = cause

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return str(self.args[0]) if self.args else ""


class InvalidUrlError(GitMetaError, ValueError):
    """Raised when a repository URL cannot be parsed.

    Attributes:
        url: The rejected URL, with credentials removed.
    """

    def __init__(self, message: str, *, url: str) -> None:
        """Initialize with error message and URL context."""
        super().__init__(message)
        self.url: str = url


# =============================================================================
# Clone Exceptions
# =============================================================================


class CloneError(GitMetaError):
    """Base exception for clone errors.

    Attributes:
        url: The remote URL with credentials redacted.
        target: The directory the clone was written into.
    """

    def __init__(
        self,
        message: str,
        *,
        url: str,
        target: Path | str,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and clone context.

        Args:
            message: Human-readable error message.
            url: The remote URL with credentials redacted.
            target: The directory the clone was written into.
            cause: The underlying exception that caused this error.
        """
        super().__init__(message)
        self.url: str = url
        self.target: Path | str = target
        self.cause: Exception | None = cause


class CloneFailedError(CloneError):
    """Raised when a transport clone fails."""


class CloneCommandFailedError(CloneError):
    """Raised when the git clone subprocess cannot be run."""


class OpenClonedDirFailedError(CloneError):
    """Raised when a cloned directory does not open as a repository."""


# =============================================================================
# Remote Exceptions
# =============================================================================


class RemoteError(GitMetaError):
    """Base exception for remote access errors.

    Attributes:
        remote: The remote name or URL (credentials redacted).
    """

    def __init__(
        self,
        message: str,
        *,
        remote: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and remote context."""
        super().__init__(message)
        self.remote: str | None = remote
        self.cause: Exception | None = cause


class NoUpstreamRemoteError(RemoteError):
    """Raised when the upstream remote has no URL and is not a location itself."""


class RemoteNameNotUtf8Error(RemoteError):
    """Raised when a configured remote name is not valid UTF-8."""


class RemoteConnectFailedError(RemoteError):
    """Raised when connecting to or listing a remote fails."""


class CredentialConstructionError(GitMetaError):
    """Raised when credentials cannot be turned into transport authentication.

    This is a local configuration problem (missing or unreadable key file),
    not a transient authentication failure, and is never retried.

    Attributes:
        path: The key file that could not be used, if any.
    """

    def __init__(self, message: str, *, path: Path | str | None = None) -> None:
        """Initialize with error message and key path context."""
        super().__init__(message)
        self.path: Path | str | None = path


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigError(GitMetaError):
    """Base exception for configuration errors."""


class ConfigLoadError(ConfigError):
    """Raised when configuration cannot be loaded or parsed."""

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        """Initialize with error message and optional location context."""
        super().__init__(message)
        self.path: Path | None = path
        self.line: int | None = line
        self.column: int | None = column
