"""Branch and commit resolution.

This module decides which commit a repository identity treats as current,
given optional branch and commit hints:

    branch  commit   resolution
    None    None     peel HEAD
    set     None     the branch's upstream tracking ref, else the local branch
    any     set      the commit id, looked up globally (branch is not used)

A resolved commit is checked for ancestry against the branch head. That
check only logs; it never blocks resolution.
"""

from dataclasses import dataclass
from typing import Final

from dulwich.graph import can_fast_forward
from dulwich.objects import Commit, Tag
from dulwich.objectspec import parse_commit
from dulwich.repo import Repo

from git_meta.exceptions import RevisionNotFoundError
from git_meta.utils._git import (
    LOCAL_BRANCH_PREFIX,
    decode_bytes,
    get_active_branch,
    get_branch_config,
    strip_refs_heads,
)
from git_meta.utils._logging import get_logger

logger = get_logger(__name__)

# Full SHA-1 hex length
SHA_HEX_LENGTH: Final = 40

# Shortest abbreviated commit id accepted
MIN_SHA_ABBREV_LENGTH: Final = 4

# Remote name git uses for "this repository" in branch.<name>.remote
_LOCAL_REMOTE: Final = "."


@dataclass(frozen=True, slots=True)
class ResolvedBranch:
    """A local branch and its upstream tracking configuration.

    Attributes:
        name: Local branch name.
        ref: Full local reference, e.g. b"refs/heads/main".
        remote: Upstream remote name, or None for a local-only branch.
        merge: Upstream branch name on the remote, or None.
    """

    name: str
    ref: bytes
    remote: str | None = None
    merge: str | None = None

    @property
    def remote_branch(self) -> str:
        """Branch name on the upstream, or the local name without one."""
        return self.merge if self.merge is not None else self.name

    @property
    def tracking_ref(self) -> bytes | None:
        """Local ref recording the upstream branch head, if configured."""
        if self.remote is None or self.merge is None:
            return None
        if self.remote == _LOCAL_REMOTE:
            return f"{LOCAL_BRANCH_PREFIX}{self.merge}".encode()
        return f"refs/remotes/{self.remote}/{self.merge}".encode()


# =============================================================================
# Branch Resolution
# =============================================================================


def resolve_branch(repo: Repo, branch: str | None) -> ResolvedBranch | None:
    """Look up a local branch and its upstream configuration.

    Args:
        repo: The repository.
        branch: Local branch name (with or without refs/heads/).

    Returns:
        The resolved branch, or None if branch is None or does not exist.
    """
    if branch is None:
        return None

    name = strip_refs_heads(branch) or branch
    ref = f"{LOCAL_BRANCH_PREFIX}{name}".encode()
    if ref not in repo.refs:
        logger.debug("branch_not_found", branch=name)
        return None

    remote = get_branch_config(repo, name, "remote")
    merge = get_branch_config(repo, name, "merge")
    return ResolvedBranch(
        name=name,
        ref=ref,
        remote=decode_bytes(remote) if remote is not None else None,
        merge=strip_refs_heads(merge) if merge is not None else None,
    )


def resolve_active_branch(repo: Repo) -> ResolvedBranch | None:
    """Resolve the branch HEAD points at, or None when HEAD is detached."""
    return resolve_branch(repo, get_active_branch(repo))


def find_tracking_branch(repo: Repo, remote_branch: str) -> ResolvedBranch | None:
    """Find the local branch whose upstream is remote_branch.

    The active branch wins; otherwise local branches are tried in name order.
    A local branch without an upstream matches on its own name.
    """
    active = resolve_active_branch(repo)
    if active is not None and active.remote_branch == remote_branch:
        return active
    for name in sorted(repo.refs.keys(base=LOCAL_BRANCH_PREFIX.encode())):
        candidate = resolve_branch(repo, decode_bytes(name))
        if candidate is not None and candidate.remote_branch == remote_branch:
            return candidate
    return None


# =============================================================================
# Commit Resolution
# =============================================================================


def resolve_commit(
    repo: Repo,
    branch: ResolvedBranch | None,
    commit_id: str | None,
) -> Commit | None:
    """Resolve the commit an identity should treat as current.

    Args:
        repo: The repository.
        branch: The resolved branch hint, if any.
        commit_id: Full or abbreviated commit id, if any.

    Returns:
        The commit, or None when a branch was requested but resolution
        produced no commit.

    Raises:
        RevisionNotFoundError: If HEAD, the branch ref, or the commit id
            cannot be resolved to a commit.
    """
    if commit_id is not None:
        logger.debug("resolving_commit_id", commit_id=commit_id)
        commit = lookup_commit(repo, commit_id)
        if branch is not None:
            check_commit_in_branch(repo, commit, branch.ref)
        return commit

    if branch is None:
        return peel_head(repo)

    tracking_ref = branch.tracking_ref
    if tracking_ref is not None and tracking_ref in repo.refs:
        logger.debug(
            "resolving_upstream_head",
            branch=branch.name,
            upstream=decode_bytes(tracking_ref),
        )
        commit = peel_ref(repo, tracking_ref)
        check_commit_in_branch(repo, commit, tracking_ref)
        return commit

    # Local-only branch
    logger.debug("resolving_local_head", branch=branch.name)
    commit = peel_ref(repo, branch.ref)
    check_commit_in_branch(repo, commit, branch.ref)
    return commit


def peel_head(repo: Repo) -> Commit:
    """Peel HEAD to a commit.

    Raises:
        RevisionNotFoundError: If HEAD is unborn or does not point at a commit.
    """
    return peel_ref(repo, b"HEAD")


def peel_ref(repo: Repo, ref: bytes) -> Commit:
    """Peel a reference through tags to a commit.

    Args:
        repo: The repository.
        ref: Full reference name.

    Returns:
        The commit the reference points at.

    Raises:
        RevisionNotFoundError: If the reference is missing or does not lead
            to a commit.
    """
    try:
        obj = repo[repo.refs[ref]]
    except KeyError as e:
        msg = f"Unable to resolve {decode_bytes(ref)} to a commit"
        raise RevisionNotFoundError(msg, revision=decode_bytes(ref), cause=e) from e
    return _peel_to_commit(repo, obj, decode_bytes(ref))


def lookup_commit(repo: Repo, commit_id: str) -> Commit:
    """Find a commit by full or abbreviated id.

    Args:
        repo: The repository.
        commit_id: Commit SHA hex string (4-40 characters).

    Returns:
        The commit object.

    Raises:
        RevisionNotFoundError: If the id is unknown, ambiguous, or names a
            non-commit object.
    """
    commit_id = commit_id.strip().lower()
    if len(commit_id) == SHA_HEX_LENGTH:
        try:
            obj = repo[commit_id.encode()]
        except (KeyError, ValueError) as e:
            msg = f"Commit not found: {commit_id}"
            raise RevisionNotFoundError(msg, revision=commit_id, cause=e) from e
        return _peel_to_commit(repo, obj, commit_id)

    full_id = resolve_abbreviated_id(repo, commit_id)
    return _peel_to_commit(repo, repo[full_id.encode()], commit_id)


def resolve_abbreviated_id(repo: Repo, partial: str) -> str:
    """Resolve an abbreviated commit id to its full 40-character id.

    dulwich's revision parser is tried first; a scan of the object store
    for a unique commit with the prefix is the fallback.

    Args:
        repo: The repository.
        partial: Commit id prefix.

    Returns:
        The full commit id.

    Raises:
        RevisionNotFoundError: If no commit, or more than one, matches.
    """
    if len(partial) < MIN_SHA_ABBREV_LENGTH:
        msg = f"Commit id too short (minimum {MIN_SHA_ABBREV_LENGTH} characters): {partial}"
        raise RevisionNotFoundError(msg, revision=partial)

    try:
        return decode_bytes(parse_commit(repo, partial.encode()).id)
    except Exception as e:  # noqa: BLE001
        logger.debug("parse_commit_failed", revision=partial, error=str(e))

    try:
        int(partial, 16)
    except ValueError as e:
        msg = f"Not a commit id: {partial}"
        raise RevisionNotFoundError(msg, revision=partial, cause=e) from e

    prefix = partial.lower()
    matches: list[str] = []
    for obj_id in repo.object_store:
        sha_hex = decode_bytes(obj_id)
        if not sha_hex.startswith(prefix):
            continue
        try:
            if isinstance(repo[obj_id], Commit):
                matches.append(sha_hex)
        except KeyError:
            continue

    if not matches:
        msg = f"Commit not found: {partial}"
        raise RevisionNotFoundError(msg, revision=partial)

    if len(matches) > 1:
        msg = f"Ambiguous commit id: {partial} (matches {len(matches)} commits)"
        raise RevisionNotFoundError(msg, revision=partial)

    return matches[0]


def _peel_to_commit(repo: Repo, obj: object, revision: str) -> Commit:
    while isinstance(obj, Tag):
        _, target = obj.object
        try:
            obj = repo[target]
        except KeyError as e:
            msg = f"Tag target missing for {revision}"
            raise RevisionNotFoundError(msg, revision=revision, cause=e) from e
    if not isinstance(obj, Commit):
        msg = f"{revision} does not point at a commit"
        raise RevisionNotFoundError(msg, revision=revision)
    return obj


# =============================================================================
# Ancestry
# =============================================================================


def check_commit_in_branch(repo: Repo, commit: Commit, branch_ref: bytes) -> bool:
    """Check whether a commit is reachable from a branch head.

    The result is informational: a negative answer or a failed graph walk
    (shallow history, missing objects) is logged and reported as False.

    Args:
        repo: The repository.
        commit: The resolved commit.
        branch_ref: Full reference of the branch head.

    Returns:
        True if commit is the branch head or one of its ancestors.
    """
    try:
        branch_head = repo.refs[branch_ref]
        in_branch = bool(can_fast_forward(repo, commit.id, branch_head))
    except Exception as e:  # noqa: BLE001
        logger.debug(
            "ancestry_check_failed",
            commit=decode_bytes(commit.id),
            branch=decode_bytes(branch_ref),
            error=str(e),
        )
        return False

    if not in_branch:
        logger.info(
            "commit_not_in_branch",
            commit=decode_bytes(commit.id),
            branch=decode_bytes(branch_ref),
        )
    return in_branch
