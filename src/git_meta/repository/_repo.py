# ruff: noqa: TC003  # Path needed at runtime for dataclass fields
"""Repository identity.

GitRepo is the resolved description of a repository: where it lives
remotely, which branch and commit are current, how to authenticate, and
where it is checked out locally. It is immutable; the with_* builders return
updated copies.
"""

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Self

from dulwich.objects import Commit
from dulwich.repo import Repo

from git_meta.config import GitMetaConfig
from git_meta.exceptions import PathNotFoundError, ShallowCloneUnsupportedError
from git_meta.utils._git import (
    get_remote_url,
    get_worktree_dir,
    is_shallow,
    open_repo,
)
from git_meta.utils._logging import get_logger
from git_meta.utils._url import GitUrl

from ._clone import GitRepoCloneRequest
from ._info import GitRepoInfo
from ._models import CommitMeta, Credentials
from ._resolver import (
    find_tracking_branch,
    resolve_active_branch,
    resolve_branch,
    resolve_commit,
)

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class GitRepo:
    """A resolved repository identity.

    Use GitRepo.open() to describe a checkout on disk, or GitRepo.new() to
    describe a remote before cloning it with git_clone() or
    git_clone_shallow().

    Attributes:
        url: Remote URL, or the local path for repositories without a remote.
        head: The current commit; None until a commit has been resolved.
        credentials: Authentication for private remotes; None for public ones.
        branch: Branch name on the remote (the upstream of the local branch
            for opened repositories).
        path: Absolute path of the local checkout, if there is one.
    """

    url: GitUrl
    head: CommitMeta | None = None
    credentials: Credentials | None = None
    branch: str | None = None
    path: Path | None = None

    # =========================================================================
    # Construction
    # =========================================================================

    @classmethod
    def new(cls, url: str | GitUrl) -> Self:
        """Describe a repository by URL, before it exists on disk.

        Raises:
            InvalidUrlError: If the URL cannot be parsed.
        """
        parsed = url if isinstance(url, GitUrl) else GitUrl.parse(url)
        return cls(url=parsed)

    @classmethod
    def open(
        cls,
        path: Path | str,
        branch: str | None = None,
        commit_id: str | None = None,
    ) -> Self:
        """Describe an existing checkout.

        Without a branch hint the current HEAD commit is used. A branch hint
        that names a local branch resolves to that branch's upstream head
        (or the branch itself when it has no upstream); an unknown branch
        falls back to detached HEAD semantics. A commit id overrides both and
        is looked up across the whole repository.

        Args:
            path: Path to the work tree.
            branch: Optional local branch name.
            commit_id: Optional full or abbreviated commit id.

        Returns:
            The resolved identity.

        Raises:
            NotARepositoryError: If path is not a git repository.
            ShallowCloneUnsupportedError: If commit_id is given for a shallow
                clone.
            RevisionNotFoundError: If the commit cannot be resolved.
            PathNotFoundError: If path cannot be canonicalized.
        """
        with open_repo(path) as repo:
            url = _remote_url(repo, path)
            resolved_branch = resolve_branch(repo, branch)

            if commit_id is not None and is_shallow(repo):
                msg = "Cannot open by commit id on a shallow clone"
                raise ShallowCloneUnsupportedError(msg, path=path, operation="open")

            commit = resolve_commit(repo, resolved_branch, commit_id)

            # The active branch names the identity when no hint was given
            named_branch = resolved_branch
            if branch is None:
                named_branch = resolve_active_branch(repo)

        identity = (
            cls.new(url)
            .with_path(path)
            .with_branch(named_branch.remote_branch if named_branch else None)
            .with_commit_object(commit)
        )
        logger.debug(
            "repository_opened",
            path=str(identity.path),
            url=identity.url.redacted(),
            branch=identity.branch,
            head=identity.head.id if identity.head else None,
        )
        return identity

    @classmethod
    def from_repository(cls, repo: Repo) -> Self:
        """Describe an already-open dulwich repository at its current HEAD."""
        return cls.open(get_worktree_dir(repo))

    # =========================================================================
    # Builders
    # =========================================================================

    def with_path(self, path: Path | str) -> Self:
        """Set the checkout location, canonicalized to an absolute path.

        Raises:
            PathNotFoundError: If the directory does not exist.
        """
        try:
            resolved = Path(path).resolve(strict=True)
        except OSError as e:
            msg = f"Directory was not found: {path}"
            raise PathNotFoundError(msg, path=path) from e
        return replace(self, path=resolved)

    def with_branch(self, branch: str | None) -> Self:
        """Set the remote branch name. None leaves the current value."""
        if branch is None:
            return self
        return replace(self, branch=branch)

    def with_commit(self, commit_id: str | None) -> Self:
        """Re-open the checkout at a specific commit.

        The branch is mapped back to the local branch tracking it, so an
        identity whose upstream branch name differs from the local one keeps
        its branch. Credentials are carried over to the re-opened identity.

        Raises:
            PathNotFoundError: If no checkout path is set.
            ShallowCloneUnsupportedError: If the checkout is a shallow clone.
            RevisionNotFoundError: If the commit cannot be resolved.
        """
        if self.path is None:
            msg = "No path to the repository is set"
            raise PathNotFoundError(msg)
        local_branch = None
        if self.branch is not None:
            with open_repo(self.path) as repo:
                tracking = find_tracking_branch(repo, self.branch)
            local_branch = tracking.name if tracking is not None else None
        reopened = type(self).open(self.path, local_branch, commit_id)
        return reopened.with_credentials(self.credentials)

    def with_commit_meta(self, head: CommitMeta | None) -> Self:
        """Set the current commit metadata directly."""
        return replace(self, head=head)

    def with_commit_object(self, commit: Commit | None) -> Self:
        """Set the current commit from a dulwich commit object."""
        if commit is None:
            return self.with_commit_meta(None)
        return self.with_commit_meta(CommitMeta.from_commit(commit))

    def with_credentials(self, credentials: Credentials | None) -> Self:
        """Set credentials; None marks the repository as public."""
        return replace(self, credentials=credentials)

    # =========================================================================
    # Projections
    # =========================================================================

    def to_clone(self) -> GitRepoCloneRequest:
        """The fields needed to clone this repository."""
        return GitRepoCloneRequest(
            url=self.url,
            credentials=self.credentials,
            branch=self.branch,
            path=self.path,
        )

    def to_info(self) -> GitRepoInfo:
        """The fields needed to query history and remotes."""
        return GitRepoInfo(
            url=self.url,
            head=self.head,
            credentials=self.credentials,
            branch=self.branch,
            path=self.path,
        )

    def to_repository(self) -> Repo:
        """Open the checkout with dulwich. The caller must close it.

        Raises:
            PathNotFoundError: If no checkout path is set.
            NotARepositoryError: If the path is not a git repository.
        """
        if self.path is None:
            msg = "No path to the repository is set"
            raise PathNotFoundError(msg)
        return open_repo(self.path)

    def is_shallow(self) -> bool:
        """Whether the checkout is a shallow clone."""
        with self.to_repository() as repo:
            return is_shallow(repo)

    # =========================================================================
    # Cloning
    # =========================================================================

    def git_clone(
        self, target: Path | str, *, config: GitMetaConfig | None = None
    ) -> "GitRepo":  # noqa: UP037
        """Clone with full history into target. See GitRepoCloneRequest.git_clone."""
        return self.to_clone().git_clone(target, config=config)

    def git_clone_shallow(
        self, target: Path | str, *, config: GitMetaConfig | None = None
    ) -> "GitRepo":  # noqa: UP037
        """Shallow clone into target. See GitRepoCloneRequest.git_clone_shallow."""
        return self.to_clone().git_clone_shallow(target, config=config)


def _remote_url(repo: Repo, path: Path | str) -> str:
    """The active branch's upstream URL, then origin's, then the path itself."""
    active = resolve_active_branch(repo)
    if active is not None and active.remote is not None:
        url = get_remote_url(repo, active.remote)
        if url is not None:
            return url

    url = get_remote_url(repo, "origin")
    if url is not None:
        return url
    return str(Path(path).absolute())

