# ruff: noqa: TC003  # Path needed at runtime for dataclass fields
"""History and remote queries on a resolved repository."""

from collections.abc import Collection, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from dulwich.repo import Repo

from git_meta.config import GitMetaConfig
from git_meta.exceptions import PathNotFoundError
from git_meta.utils._git import open_repo
from git_meta.utils._logging import get_logger
from git_meta.utils._scratch import scratch_directory
from git_meta.utils._url import GitUrl

from . import _changes, _remote
from ._models import BranchHeads, CommitMeta, Credentials

if TYPE_CHECKING:
    from ._repo import GitRepo

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class GitRepoInfo:
    """What is needed to query a repository's history and remote.

    History queries need a local checkout (path). Remote queries shallow
    clone into a scratch directory when there is none.

    Attributes:
        url: Remote URL.
        head: The commit the identity treats as current.
        credentials: Authentication for private remotes.
        branch: Branch name on the remote.
        path: Absolute path of the local checkout, if there is one.
    """

    url: GitUrl
    head: CommitMeta | None = None
    credentials: Credentials | None = None
    branch: str | None = None
    path: Path | None = None

    # =========================================================================
    # History
    # =========================================================================

    def expand_partial_commit_id(self, partial: str) -> str:
        """Expand an abbreviated commit id. See _changes.expand_partial_commit_id."""
        with self._open() as repo:
            return _changes.expand_partial_commit_id(repo, partial)

    def list_files_changed_between(
        self, commit1: str, commit2: str
    ) -> list[Path] | None:
        """Paths that differ between two commits, or None if nothing does."""
        with self._open() as repo:
            return _changes.list_files_changed_between(repo, commit1, commit2)

    def list_files_changed_at(self, commit_id: str) -> list[Path] | None:
        """Paths a commit changed against its parents, or None for a root commit."""
        with self._open() as repo:
            return _changes.list_files_changed_at(repo, commit_id)

    def has_path_changed(self, path: Path | str, *, prefix_match: bool = False) -> bool:
        """Whether HEAD changed path relative to any of its parents."""
        with self._open() as repo:
            return _changes.has_path_changed(repo, path, prefix_match=prefix_match)

    def has_path_changed_between(
        self,
        path: Path | str,
        commit1: str,
        commit2: str,
        *,
        prefix_match: bool = False,
    ) -> bool:
        """Whether path differs between two commits."""
        with self._open() as repo:
            return _changes.has_path_changed_between(
                repo, path, commit1, commit2, prefix_match=prefix_match
            )

    # =========================================================================
    # Remote
    # =========================================================================

    def get_remote_branch_head_refs(
        self,
        branch_filter: Collection[str] | None = None,
        *,
        workdir: Path | None = None,
        config: GitMetaConfig | None = None,
    ) -> BranchHeads:
        """Head commit of every branch on the upstream remote.

        Without a local checkout the repository is shallow cloned first,
        into workdir if given (left in place) or a scratch directory
        (removed afterwards).

        Args:
            branch_filter: Branch names to leave out.
            workdir: Empty directory to clone into when there is no path.
            config: Settings; defaults are used if omitted.

        Returns:
            Read-only mapping of branch name to head commit.

        Raises:
            RemoteConnectFailedError: If the remote cannot be listed.
            RemoteNameNotUtf8Error: If the upstream remote name is not UTF-8.
            CloneError: If the scratch clone fails.
        """
        config = config or GitMetaConfig()
        if self.path is not None:
            with self._open() as repo:
                return _remote.list_remote_branch_heads(
                    repo,
                    self.credentials,
                    branch_filter,
                    default_remote=config.default_remote,
                )

        with _clone_target(workdir) as target:
            cloned = self._repo().git_clone_shallow(target, config=config)
            return cloned.to_info().get_remote_branch_head_refs(
                branch_filter, config=config
            )

    def new_commits_exist(
        self, *, workdir: Path | None = None, config: GitMetaConfig | None = None
    ) -> bool:
        """Whether the remote branch head differs from the stored head.

        A fresh shallow clone of the same url, branch, and credentials is
        compared against head. An identity whose head was never resolved
        always reports new commits.

        Args:
            workdir: Empty directory to clone into; a scratch directory is
                used and removed if omitted.
            config: Settings; defaults are used if omitted.

        Raises:
            CloneError: If the clone fails.
        """
        config = config or GitMetaConfig()
        with _clone_target(workdir) as target:
            latest = self._repo().git_clone_shallow(target, config=config)

        latest_id = latest.head.id if latest.head else None
        current_id = self.head.id if self.head else None
        logger.info(
            "new_commits_checked",
            url=self.url.redacted(),
            branch=self.branch,
            current=current_id,
            latest=latest_id,
        )
        return current_id is None or current_id != latest_id

    # =========================================================================
    # Helpers
    # =========================================================================

    def _open(self) -> Repo:
        if self.path is None:
            msg = "No path to the repository is set"
            raise PathNotFoundError(msg)
        return open_repo(self.path)

    def _repo(self) -> "GitRepo":  # noqa: UP037
        # Deferred import to avoid circular dependency
        from ._repo import GitRepo  # noqa: PLC0415

        return (
            GitRepo.new(self.url)
            .with_branch(self.branch)
            .with_credentials(self.credentials)
        )


@contextmanager
def _clone_target(workdir: Path | None) -> Iterator[Path]:
    """Yield workdir as is, or a scratch directory removed on exit."""
    if workdir is not None:
        yield workdir
        return
    with scratch_directory() as target:
        yield target
