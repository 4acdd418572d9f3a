# ruff: noqa: TC003  # Path needed at runtime for dataclass fields
"""Cloning repositories.

Full clones go through dulwich's transport with the credential callback.
Shallow clones run the git CLI, which handles every credential variant at
depth 1; the result is verified by opening the target directory, not by
the process exit status.
"""

from dataclasses import dataclass, replace
from pathlib import Path
from typing import TYPE_CHECKING, Self

from dulwich.repo import Repo

from git_meta.config import GitMetaConfig
from git_meta.exceptions import (
    CloneCommandFailedError,
    CloneFailedError,
    CredentialConstructionError,
    GitMetaError,
    OpenClonedDirFailedError,
)
from git_meta.utils._exec import CommandConfig, run_command
from git_meta.utils._git import LOCAL_BRANCH_PREFIX, encode_str, get_active_branch
from git_meta.utils._logging import get_logger
from git_meta.utils._url import GitUrl

from ._credentials import display_url, open_transport, shallow_clone_location
from ._models import Credentials

if TYPE_CHECKING:
    from ._repo import GitRepo

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class GitRepoCloneRequest:
    """What is needed to clone a repository.

    Attributes:
        url: Remote URL to clone from.
        credentials: Authentication for private remotes.
        branch: Branch to check out; the remote's default branch if None.
        path: Existing checkout path of the identity this came from, if any.
    """

    url: GitUrl
    credentials: Credentials | None = None
    branch: str | None = None
    path: Path | None = None

    @classmethod
    def new(cls, url: str | GitUrl) -> Self:
        """Build a clone request for a URL.

        Raises:
            InvalidUrlError: If the URL cannot be parsed.
        """
        return cls(url=url if isinstance(url, GitUrl) else GitUrl.parse(url))

    def with_credentials(self, credentials: Credentials | None) -> Self:
        """Set credentials; None clones anonymously."""
        return replace(self, credentials=credentials)

    def with_branch(self, branch: str | None) -> Self:
        """Set the branch to check out."""
        return replace(self, branch=branch)

    @property
    def display_url(self) -> str:
        """The URL with secrets masked."""
        return display_url(self.url, self.credentials)

    # =========================================================================
    # Full Clone
    # =========================================================================

    def git_clone(
        self, target: Path | str, *, config: GitMetaConfig | None = None
    ) -> "GitRepo":  # noqa: UP037
        """Clone with full history using dulwich.

        The checked out branch gets upstream tracking configuration, as
        `git clone` would record, so the clone opens with a remote branch.

        Args:
            target: Directory to clone into. Created if missing; must be
                empty if it exists.
            config: Settings; defaults are used if omitted.

        Returns:
            The identity of the new clone, with these credentials attached.

        Raises:
            CredentialConstructionError: If an SSH key file is missing.
            CloneFailedError: If the transport fails.
            OpenClonedDirFailedError: If the clone cannot be opened afterwards.
        """
        config = config or GitMetaConfig()
        target_path = Path(target)
        url = self.display_url
        logger.info("clone_started", url=url, target=str(target_path), branch=self.branch)

        try:
            client, remote_path = open_transport(self.url, self.credentials)
            cloned = client.clone(
                remote_path,
                str(target_path),
                mkdir=not target_path.exists(),
                origin=config.default_remote,
                branch=self.branch,
            )
        except CredentialConstructionError:
            raise
        except Exception as e:
            msg = f"Failed to clone {url}: {e}"
            raise CloneFailedError(msg, url=url, target=target_path, cause=e) from e

        with cloned:
            _record_upstream(cloned, config.default_remote)

        logger.info("clone_finished", url=url, target=str(target_path))
        return self._reopen(target_path)

    # =========================================================================
    # Shallow Clone
    # =========================================================================

    def build_shallow_clone_command(
        self, target: Path | str, *, config: GitMetaConfig | None = None
    ) -> tuple[str, ...]:
        """Build the `git clone` argument vector for a shallow clone.

        All branches are fetched (--no-single-branch) so a later branch-based
        resolution can succeed at depth 1.

        Raises:
            CredentialConstructionError: If an SSH private key is missing.
        """
        config = config or GitMetaConfig()
        clone_url, extra_args = shallow_clone_location(self.url, self.credentials)
        argv = [
            config.git_executable,
            "clone",
            clone_url,
            str(target),
            "--no-single-branch",
            f"--depth={config.shallow_depth}",
        ]
        if self.branch is not None:
            argv.extend(["--branch", self.branch])
        if config.default_remote != "origin":
            argv.extend(["--origin", config.default_remote])
        argv.extend(extra_args)
        return tuple(argv)

    def git_clone_shallow(
        self, target: Path | str, *, config: GitMetaConfig | None = None
    ) -> "GitRepo":  # noqa: UP037
        """Shallow clone (depth 1, all branches) with the git CLI.

        The process exit status is logged but not trusted; the clone succeeds
        if the target opens as a repository afterwards.

        Args:
            target: Directory to clone into.
            config: Settings; defaults are used if omitted.

        Returns:
            The identity of the new clone, with these credentials attached.

        Raises:
            CredentialConstructionError: If an SSH private key is missing.
            CloneCommandFailedError: If git could not be started.
            OpenClonedDirFailedError: If the target is not a repository after
                git exits.
        """
        config = config or GitMetaConfig()
        target_path = Path(target)
        url = self.display_url
        argv = self.build_shallow_clone_command(target_path, config=config)
        logger.info(
            "shallow_clone_started",
            url=url,
            target=str(target_path),
            branch=self.branch,
            depth=config.shallow_depth,
        )

        # Never block on an interactive credential prompt
        result = run_command(CommandConfig(argv=argv, env={"GIT_TERMINAL_PROMPT": "0"}))
        if not result.started:
            msg = f"Failed to run {config.git_executable} clone: {result.error}"
            raise CloneCommandFailedError(msg, url=url, target=target_path)

        logger.debug("shallow_clone_output", stdout=result.stdout)
        if not result.success:
            logger.warning(
                "shallow_clone_nonzero_exit",
                url=url,
                target=str(target_path),
                exit_code=result.exit_code,
            )

        self._scrub_remote_password(target_path, config.default_remote)
        return self._reopen(target_path)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _reopen(self, target: Path) -> "GitRepo":  # noqa: UP037
        # Deferred import to avoid circular dependency
        from ._repo import GitRepo  # noqa: PLC0415

        try:
            repo = GitRepo.open(target, self.branch)
        except GitMetaError as e:
            msg = f"Failed to open cloned directory {target}: {e}"
            raise OpenClonedDirFailedError(
                msg, url=self.display_url, target=target, cause=e
            ) from e
        return repo.with_credentials(self.credentials)

    def _scrub_remote_password(self, target: Path, remote: str) -> None:
        """Drop a password the git CLI stored in the remote URL."""
        if self.url.token is None and self.credentials is None:
            return
        try:
            cloned = Repo(str(target))
        except Exception:  # noqa: BLE001
            # _reopen reports the failure
            return
        with cloned:
            repo_config = cloned.get_config()
            section = (b"remote", encode_str(remote))
            try:
                stored = GitUrl.parse(repo_config.get(section, b"url").decode())
            except KeyError:
                return
            if stored.token is None:
                return
            repo_config.set(section, b"url", str(stored.with_token(None)).encode())
            repo_config.write_to_path()


def _record_upstream(repo: Repo, remote: str) -> None:
    """Set branch.<name>.remote and .merge for the checked out branch."""
    branch = get_active_branch(repo)
    if branch is None:
        return
    tracking_ref = f"refs/remotes/{remote}/{branch}".encode()
    if tracking_ref not in repo.refs:
        return
    repo_config = repo.get_config()
    section = (b"branch", branch.encode())
    repo_config.set(section, b"remote", remote.encode())
    repo_config.set(section, b"merge", f"{LOCAL_BRANCH_PREFIX}{branch}".encode())
    repo_config.write_to_path()
    logger.debug("upstream_recorded", branch=branch, remote=remote)
