"""git-meta repository resolution.

This package resolves a git repository into an immutable identity (remote
URL, branch, current commit, credentials, local path) and answers history
and remote questions about it.

Classes:
    GitRepo: Resolved repository identity with with_* builders.
    GitRepoCloneRequest: Projection of GitRepo used for cloning.
    GitRepoInfo: Projection of GitRepo used for history and remote queries.
    ResolvedBranch: A local branch and its upstream configuration.
    TransportAuth: Authentication handed to a dulwich transport.

Models:
    CommitMeta: Metadata about a single commit.
    SshKey: SSH key credentials.
    UserPassPlaintext: Username and password credentials.
    Credentials: Type alias for SshKey | UserPassPlaintext.
    BranchHeads: Type alias for a branch name to CommitMeta mapping.

Example:
    >>> from git_meta.repository import GitRepo
    >>> repo = GitRepo.open(".")
    >>> repo.to_info().list_files_changed_at(repo.head.id)
"""

from ._changes import (
    expand_partial_commit_id,
    has_path_changed,
    has_path_changed_between,
    list_files_changed_at,
    list_files_changed_between,
    path_contains,
)
from ._clone import GitRepoCloneRequest
from ._credentials import (
    CredentialCallback,
    TransportAuth,
    build_credential_callback,
    display_url,
    open_transport,
    shallow_clone_location,
)
from ._info import GitRepoInfo
from ._models import BranchHeads, CommitMeta, Credentials, SshKey, UserPassPlaintext
from ._remote import get_remote_name, list_remote_branch_heads, resolve_remote_url
from ._repo import GitRepo
from ._resolver import ResolvedBranch, resolve_branch, resolve_commit

__all__ = [
    "BranchHeads",
    "CommitMeta",
    "CredentialCallback",
    "Credentials",
    "GitRepo",
    "GitRepoCloneRequest",
    "GitRepoInfo",
    "ResolvedBranch",
    "SshKey",
    "TransportAuth",
    "UserPassPlaintext",
    "build_credential_callback",
    "display_url",
    "expand_partial_commit_id",
    "get_remote_name",
    "has_path_changed",
    "has_path_changed_between",
    "list_files_changed_at",
    "list_files_changed_between",
    "list_remote_branch_heads",
    "open_transport",
    "path_contains",
    "resolve_branch",
    "resolve_commit",
    "resolve_remote_url",
    "shallow_clone_location",
]
