"""Change detection between commits.

Functions here work on an open dulwich repository. Trees are compared
without rename detection, so a rename shows up as a delete of the old path
and an add of the new one.
"""

import os
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING

from dulwich.diff_tree import tree_changes
from dulwich.repo import Repo

from git_meta.exceptions import RevisionNotFoundError, ShallowCloneUnsupportedError
from git_meta.utils._git import decode_bytes, is_shallow
from git_meta.utils._logging import get_logger

from ._resolver import SHA_HEX_LENGTH, lookup_commit, peel_head, resolve_abbreviated_id

if TYPE_CHECKING:
    from dulwich.diff_tree import TreeChange
    from dulwich.objects import Commit

logger = get_logger(__name__)

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


def expand_partial_commit_id(repo: Repo, partial: str) -> str:
    """Expand an abbreviated commit id to the full 40-character id.

    A full-length hex id is returned unchanged without touching the
    repository.

    Args:
        repo: The repository.
        partial: Full or abbreviated commit id.

    Returns:
        The full commit id.

    Raises:
        ShallowCloneUnsupportedError: If the id is abbreviated and the
            repository is a shallow clone.
        RevisionNotFoundError: If the id matches no commit, or several.
    """
    if len(partial) == SHA_HEX_LENGTH and set(partial) <= _HEX_DIGITS:
        return partial

    if is_shallow(repo):
        msg = f"Cannot expand abbreviated commit id {partial} in a shallow clone"
        raise ShallowCloneUnsupportedError(msg, operation="expand_partial_commit_id")

    full_id = resolve_abbreviated_id(repo, partial)
    logger.debug("commit_id_expanded", partial=partial, commit=full_id)
    return full_id


def list_files_changed_between(
    repo: Repo, commit1: str, commit2: str
) -> list[Path] | None:
    """List the paths that differ between two commits.

    Args:
        repo: The repository.
        commit1: Old side, full or abbreviated id.
        commit2: New side, full or abbreviated id.

    Returns:
        Changed paths relative to the repository root, in diff order, or
        None when the trees are identical.

    Raises:
        ShallowCloneUnsupportedError: If an abbreviated id is used in a
            shallow clone.
        RevisionNotFoundError: If either commit cannot be found.
    """
    old = _load_commit(repo, commit1)
    new = _load_commit(repo, commit2)
    return _diff_commits(repo, old, new)


def list_files_changed_at(repo: Repo, commit_id: str) -> list[Path] | None:
    """List the paths a commit changed relative to each of its parents.

    For a merge commit this is the union of the per-parent diffs.

    Args:
        repo: The repository.
        commit_id: Full or abbreviated id.

    Returns:
        Changed paths, or None for a root commit or an empty change.

    Raises:
        ShallowCloneUnsupportedError: If an abbreviated id is used in a
            shallow clone.
        RevisionNotFoundError: If the commit or a parent cannot be found.
    """
    commit = _load_commit(repo, commit_id)
    parent_ids = _parent_ids(repo, commit)
    if not parent_ids:
        logger.debug("commit_has_no_parent", commit=decode_bytes(commit.id))
        return None

    changed: dict[Path, None] = {}
    for parent_id in parent_ids:
        parent = _load_commit(repo, decode_bytes(parent_id))
        for path in _diff_commits(repo, parent, commit) or ():
            changed[path] = None
    return list(changed) or None


def has_path_changed(
    repo: Repo, path: Path | str, *, prefix_match: bool = False
) -> bool:
    """Check whether HEAD changed a path relative to any of its parents.

    Args:
        repo: The repository.
        path: File or directory path relative to the repository root.
        prefix_match: Match by plain string prefix instead of path segments.

    Returns:
        True on the first parent diff that touches path.

    Raises:
        RevisionNotFoundError: If HEAD or one of its parents is missing.
    """
    head = peel_head(repo)
    for parent_id in _parent_ids(repo, head):
        parent = _load_commit(repo, decode_bytes(parent_id))
        changed = _diff_commits(repo, parent, head) or []
        if any(path_contains(path, item, prefix_match=prefix_match) for item in changed):
            return True
    return False


def has_path_changed_between(
    repo: Repo,
    path: Path | str,
    commit1: str,
    commit2: str,
    *,
    prefix_match: bool = False,
) -> bool:
    """Check whether a path differs between two commits.

    Args:
        repo: The repository.
        path: File or directory path relative to the repository root.
        commit1: Old side, full or abbreviated id.
        commit2: New side, full or abbreviated id.
        prefix_match: Match by plain string prefix instead of path segments.

    Returns:
        True if any changed path is path itself or lies under it.

    Raises:
        ShallowCloneUnsupportedError: If an abbreviated id is used in a
            shallow clone.
        RevisionNotFoundError: If either commit cannot be found.
    """
    changed = list_files_changed_between(repo, commit1, commit2) or []
    return any(path_contains(path, item, prefix_match=prefix_match) for item in changed)


def path_contains(
    path: Path | str, changed: Path, *, prefix_match: bool = False
) -> bool:
    """Whether a changed path is path itself or lies under it.

    Segment-aware by default: "src" matches "src" and "src/lib.py" but not
    "src-old/lib.py". With prefix_match, any string prefix matches.
    """
    if prefix_match:
        return changed.as_posix().startswith(PurePosixPath(path).as_posix())
    target = PurePosixPath(Path(path).as_posix())
    candidate = PurePosixPath(changed.as_posix())
    return candidate == target or target in candidate.parents


# =============================================================================
# Helpers
# =============================================================================


def _load_commit(repo: Repo, commit_id: str) -> "Commit":
    return lookup_commit(repo, expand_partial_commit_id(repo, commit_id))


def _parent_ids(repo: Repo, commit: "Commit") -> list[bytes]:
    """Parents as the commit graph sees them; a shallow boundary has none."""
    return repo.get_parents(commit.id, commit)


def _diff_commits(repo: Repo, old: "Commit", new: "Commit") -> list[Path] | None:
    try:
        changes = list(tree_changes(repo.object_store, old.tree, new.tree))
    except KeyError as e:
        msg = f"Tree missing while comparing {decode_bytes(old.id)}..{decode_bytes(new.id)}"
        raise RevisionNotFoundError(msg, revision=decode_bytes(new.id), cause=e) from e

    changed: dict[Path, None] = {}
    for change in changes:
        changed[Path(os.fsdecode(_change_path(change)))] = None
    logger.debug(
        "trees_compared",
        old=decode_bytes(old.id),
        new=decode_bytes(new.id),
        changed=len(changed),
    )
    return list(changed) or None


def _change_path(change: "TreeChange") -> bytes:
    """New-side path of a change, or the old side for a deletion."""
    if change.new is not None and change.new.path is not None:
        return change.new.path
    return change.old.path
