"""Remote branch head enumeration.

The remote is chosen from the upstream configuration of the checked out
branch, falling back to a default remote name. Its refs are listed over the
dulwich transport without fetching, so every head commit must already be
present in the local object store.
"""

from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING

from dulwich.repo import Repo

from git_meta.exceptions import (
    CredentialConstructionError,
    NoUpstreamRemoteError,
    RemoteConnectFailedError,
    RemoteNameNotUtf8Error,
    RevisionNotFoundError,
)
from git_meta.utils._git import (
    LOCAL_BRANCH_PREFIX,
    decode_bytes,
    get_active_branch,
    get_branch_config,
    get_remote_url,
)
from git_meta.utils._logging import get_logger
from git_meta.utils._url import GitUrl

from ._credentials import display_url, open_transport
from ._models import BranchHeads, CommitMeta, Credentials

if TYPE_CHECKING:
    from collections.abc import Collection

logger = get_logger(__name__)

# Suffix dulwich uses for peeled tag entries in a ref listing
_PEELED_SUFFIX = b"^{}"


def get_remote_name(repo: Repo, default: str = "origin") -> str:
    """Name of the upstream remote of the checked out branch.

    Args:
        repo: The repository.
        default: Remote used when HEAD is detached or has no upstream.

    Returns:
        The remote name.

    Raises:
        RemoteNameNotUtf8Error: If the configured remote name is not UTF-8.
    """
    branch = get_active_branch(repo)
    if branch is None:
        logger.debug("remote_name_default", reason="detached_head", remote=default)
        return default

    raw = get_branch_config(repo, branch, "remote")
    if raw is None:
        logger.debug("remote_name_default", reason="no_upstream", remote=default)
        return default

    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        msg = f"Upstream remote name of branch {branch} is not valid UTF-8"
        raise RemoteNameNotUtf8Error(msg, remote=repr(raw), cause=e) from e


def resolve_remote_url(repo: Repo, remote: str) -> GitUrl:
    """URL of a named remote, or the name itself used as an anonymous URL.

    Raises:
        NoUpstreamRemoteError: If the remote is not configured and its name
            is not a usable location either.
    """
    configured = get_remote_url(repo, remote)
    if configured is not None:
        return GitUrl.parse(configured)

    anonymous = GitUrl.parse(remote)
    if anonymous.is_local and not Path(anonymous.path).expanduser().exists():
        msg = f"No URL configured for remote {remote}"
        raise NoUpstreamRemoteError(msg, remote=remote)
    logger.debug("remote_anonymous", remote=anonymous.redacted())
    return anonymous


def list_remote_branch_heads(
    repo: Repo,
    credentials: Credentials | None = None,
    branch_filter: "Collection[str] | None" = None,
    *,
    default_remote: str = "origin",
) -> BranchHeads:
    """List the head commit of every branch on the upstream remote.

    Args:
        repo: The repository; remote heads are looked up in its object store.
        credentials: Credentials for the remote, if it is private.
        branch_filter: Branch names to leave out of the result.
        default_remote: Remote used when the branch has no upstream.

    Returns:
        Read-only mapping of branch name to head commit.

    Raises:
        RemoteNameNotUtf8Error: If the upstream remote name is not UTF-8.
        NoUpstreamRemoteError: If the remote cannot be located.
        CredentialConstructionError: If an SSH key file is missing.
        RemoteConnectFailedError: If the remote cannot be listed.
        RevisionNotFoundError: If a remote head is missing locally.
    """
    remote = get_remote_name(repo, default_remote)
    url = resolve_remote_url(repo, remote)
    shown_url = display_url(url, credentials)
    excluded = frozenset(branch_filter or ())

    try:
        client, remote_path = open_transport(url, credentials)
        result = client.get_refs(remote_path)
    except CredentialConstructionError:
        raise
    except Exception as e:
        msg = f"Failed to connect to remote {remote} ({shown_url}): {e}"
        raise RemoteConnectFailedError(msg, remote=remote, cause=e) from e

    # Older dulwich returns the refs dict directly
    refs: dict[bytes, bytes | None] = getattr(result, "refs", result)
    prefix = LOCAL_BRANCH_PREFIX.encode()

    heads: dict[str, CommitMeta] = {}
    for ref, sha in refs.items():
        if sha is None or not ref.startswith(prefix) or ref.endswith(_PEELED_SUFFIX):
            continue
        name = decode_bytes(ref.removeprefix(prefix))
        if name in excluded:
            continue
        try:
            commit = repo[sha]
        except KeyError as e:
            msg = f"Head of remote branch {name} is not in the local repository"
            raise RevisionNotFoundError(msg, revision=decode_bytes(sha), cause=e) from e
        heads[name] = CommitMeta.from_commit(commit)

    logger.info(
        "remote_heads_listed",
        remote=remote,
        url=shown_url,
        branches=len(heads),
        excluded=len(excluded),
    )
    return MappingProxyType(heads)

