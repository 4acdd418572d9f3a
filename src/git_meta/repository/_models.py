# ruff: noqa: TC003  # Path and datetime needed at runtime for dataclass fields
"""git-meta repository models.

This module defines the value types shared by repository resolution,
cloning, and change detection.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Self

from dulwich.objects import Commit

from git_meta.utils._git import decode_bytes

# Placeholder shown instead of a secret
_MASK: str = "***"


@dataclass(frozen=True, slots=True)
class CommitMeta:
    """Basic information about a single commit.

    Attributes:
        id: Full 40-character commit SHA hex string.
        message: Complete commit message, if known.
        timestamp: Commit time as a UTC datetime, if known.
    """

    id: str
    message: str | None = None
    timestamp: datetime | None = None

    @classmethod
    def from_commit(cls, commit: Commit) -> Self:
        """Build commit metadata from a dulwich commit object.

        The timestamp is the committer time, converted to UTC.

        Args:
            commit: The commit to describe.

        Returns:
            CommitMeta for the commit.
        """
        message = commit.message
        return cls(
            id=decode_bytes(commit.id),
            message=message.decode("utf-8", errors="replace") if message else None,
            timestamp=datetime.fromtimestamp(commit.commit_time, tz=UTC),
        )

    @property
    def short_id(self) -> str:
        """The first seven characters of the commit id."""
        return self.id[:7]


@dataclass(frozen=True, slots=True)
class SshKey:
    """SSH key authentication.

    Attributes:
        username: SSH user name, usually "git".
        private_key: Path to the private key file.
        public_key: Path to the matching public key file, if it is not
            next to the private key.
        passphrase: Passphrase protecting the private key, if any.
    """

    username: str
    private_key: Path
    public_key: Path | None = None
    passphrase: str | None = None

    def __repr__(self) -> str:
        passphrase = _MASK if self.passphrase is not None else None
        return (
            f"SshKey(username={self.username!r}, private_key={self.private_key!r}, "
            f"public_key={self.public_key!r}, passphrase={passphrase!r})"
        )


@dataclass(frozen=True, slots=True)
class UserPassPlaintext:
    """Username and password (or token) authentication over HTTP(S).

    Attributes:
        username: User name.
        password: Password or access token.
    """

    username: str
    password: str

    def __repr__(self) -> str:
        return f"UserPassPlaintext(username={self.username!r}, password={_MASK!r})"


# Closed set of authentication variants
type Credentials = SshKey | UserPassPlaintext

# One remote listing: branch name to the commit at its head
type BranchHeads = Mapping[str, CommitMeta]
