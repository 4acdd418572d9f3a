"""Common git utility functions.

This module provides shared helpers used across the repository package
for opening repositories, reading branch configuration, and converting
between dulwich's bytes and str.
"""

from pathlib import Path

from dulwich.errors import NotGitRepository
from dulwich.repo import Repo

from git_meta.exceptions import NotARepositoryError

# Prefix of local branch references
LOCAL_BRANCH_PREFIX: str = "refs/heads/"


def decode_bytes(value: bytes | str) -> str:
    """Decode bytes to str if needed.

    Args:
        value: A bytes or str value.

    Returns:
        The value as a string.
    """
    if isinstance(value, bytes):
        return value.decode()
    return value


def encode_str(value: bytes | str) -> bytes:
    """Encode str to bytes if needed."""
    if isinstance(value, str):
        return value.encode()
    return value


def strip_refs_heads(branch: bytes | str | None) -> str | None:
    """Strip refs/heads/ prefix from a branch reference.

    Args:
        branch: Branch reference (bytes or str), possibly with refs/heads/ prefix.

    Returns:
        Branch name without prefix, or None if input is None.
    """
    if branch is None:
        return None
    branch_str = decode_bytes(branch)
    return branch_str.removeprefix(LOCAL_BRANCH_PREFIX)


def open_repo(path: Path | str) -> Repo:
    """Open the repository rooted at path.

    Args:
        path: Work tree (or bare repository) path.

    Returns:
        The opened Repo. Callers are responsible for closing it.

    Raises:
        NotARepositoryError: If path does not contain a git repository.
    """
    try:
        return Repo(str(path))
    except NotGitRepository as e:
        msg = f"Not a git repository: {path}"
        raise NotARepositoryError(msg, path=path) from e
    except FileNotFoundError as e:
        msg = f"Repository path does not exist: {path}"
        raise NotARepositoryError(msg, path=path) from e


def get_worktree_dir(repo: Repo) -> Path:
    """Get the worktree directory for a repository.

    Args:
        repo: The repository instance.

    Returns:
        Path to the worktree directory.
    """
    path = Path(decode_bytes(repo.path))
    # If path is .git directory, return parent
    if path.name == ".git":
        return path.parent
    return path


def is_shallow(repo: Repo) -> bool:
    """Check whether a repository is a shallow clone.

    Args:
        repo: The repository instance.

    Returns:
        True if the repository records shallow commits.
    """
    return bool(repo.get_shallow())


def get_active_branch(repo: Repo) -> str | None:
    """Get the local branch HEAD points at.

    Args:
        repo: The repository instance.

    Returns:
        The branch name, or None when HEAD is detached.
    """
    try:
        ref_chain, _ = repo.refs.follow(b"HEAD")
    except KeyError:
        return None
    # A symbolic HEAD yields [b"HEAD", b"refs/heads/<name>"]
    if len(ref_chain) < 2:  # noqa: PLR2004
        return None
    active = decode_bytes(ref_chain[-1])
    if not active.startswith(LOCAL_BRANCH_PREFIX):
        return None
    return strip_refs_heads(active)


def get_branch_config(repo: Repo, branch: str, key: str) -> bytes | None:
    """Read a `branch.<name>.<key>` config value.

    Args:
        repo: The repository instance.
        branch: Local branch name.
        key: Config key, such as "remote" or "merge".

    Returns:
        The raw config value, or None if it is not set.
    """
    config = repo.get_config()
    try:
        return config.get((b"branch", branch.encode()), key.encode())
    except KeyError:
        return None


def get_remote_url(repo: Repo, remote: bytes | str) -> str | None:
    """Read the URL configured for a named remote.

    Args:
        repo: The repository instance.
        remote: Remote name.

    Returns:
        The remote URL, or None if the remote is not configured.
    """
    config = repo.get_config()
    try:
        return decode_bytes(config.get((b"remote", encode_str(remote)), b"url"))
    except KeyError:
        return None
