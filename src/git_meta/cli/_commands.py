# pyright: reportUnusedCallResult=false, reportUnusedFunction=false
# ruff: noqa: TC003  # Path needed at runtime for cyclopts parameter parsing
"""git-meta CLI commands."""

import os
from pathlib import Path
from typing import Annotated, Never

from cyclopts import App, Parameter
from rich.markup import escape
from rich.table import Table

from git_meta.exceptions import GitMetaError
from git_meta.repository import (
    BranchHeads,
    CommitMeta,
    Credentials,
    GitRepo,
    SshKey,
    UserPassPlaintext,
)

from ._context import CLIContext, OutputFormat
from ._shared import ExitCode, exit_with_error, format_json

# Environment variables holding secrets, so they stay out of shell history
PASSWORD_ENV = "GIT_META_PASSWORD"
SSH_PASSPHRASE_ENV = "GIT_META_SSH_PASSPHRASE"

FormatOption = Annotated[
    OutputFormat, Parameter(name="--format", help="Output format")
]
BranchOption = Annotated[
    str | None, Parameter(name="--branch", help="Local branch to resolve")
]
RepoPathOption = Annotated[
    Path, Parameter(name="--path", help="Path to the repository work tree")
]
SshKeyOption = Annotated[
    Path | None, Parameter(name="--ssh-key", help="SSH private key for the remote")
]
SshUserOption = Annotated[
    str, Parameter(name="--ssh-user", help="SSH user name for --ssh-key")
]
UsernameOption = Annotated[
    str | None,
    Parameter(
        name="--username",
        help=f"HTTP user name; the password is read from {PASSWORD_ENV}",
    ),
]


def _fail(ctx: CLIContext, error: GitMetaError) -> Never:
    exit_with_error(str(error), ExitCode.FAILURE, console=ctx.error_console)


def _emit(ctx: CLIContext, data: dict[str, object]) -> None:
    ctx.console.print(format_json(data), markup=False, highlight=False, soft_wrap=True)


def _commit_data(head: CommitMeta | None) -> dict[str, object] | None:
    if head is None:
        return None
    return {
        "id": head.id,
        "message": head.message,
        "timestamp": head.timestamp.isoformat() if head.timestamp else None,
    }


def _summary(message: str | None) -> str:
    lines = (message or "").strip().splitlines()
    return lines[0] if lines else ""


def build_credentials(
    ssh_key: Path | None,
    ssh_user: str = "git",
    username: str | None = None,
    environ: dict[str, str] | None = None,
) -> Credentials | None:
    """Build credentials from command options and the environment.

    Args:
        ssh_key: SSH private key path, if given.
        ssh_user: SSH user name for the key.
        username: HTTP user name, if given.
        environ: Mapping to read instead of os.environ.

    Returns:
        SshKey when a key is given, UserPassPlaintext when a user name is
        given, otherwise None.
    """
    source = os.environ if environ is None else environ
    if ssh_key is not None:
        return SshKey(
            username=ssh_user,
            private_key=ssh_key,
            passphrase=source.get(SSH_PASSPHRASE_ENV),
        )
    if username is not None:
        return UserPassPlaintext(username=username, password=source.get(PASSWORD_ENV, ""))
    return None


def register_commands(app: App) -> None:  # noqa: C901, PLR0915
    @app.command(name="open")
    def _open(
        path: Path = Path(),
        *,
        branch: BranchOption = None,
        commit: Annotated[
            str | None, Parameter(name="--commit", help="Commit id to resolve")
        ] = None,
        output: FormatOption = OutputFormat.TEXT,
    ) -> None:
        """Resolve and show the identity of a local repository."""
        ctx = CLIContext.get_current()
        try:
            repo = GitRepo.open(path, branch, commit)
            shallow = repo.is_shallow()
        except GitMetaError as e:
            _fail(ctx, e)

        if output is OutputFormat.JSON:
            _emit(
                ctx,
                {
                    "url": repo.url.redacted(),
                    "branch": repo.branch,
                    "path": str(repo.path),
                    "shallow": shallow,
                    "head": _commit_data(repo.head),
                },
            )
            return

        ctx.console.print(f"[bold]URL:[/bold]     {repo.url.redacted()}")
        ctx.console.print(f"[bold]Branch:[/bold]  {repo.branch or '(detached)'}")
        ctx.console.print(f"[bold]Path:[/bold]    {repo.path}")
        ctx.console.print(f"[bold]Shallow:[/bold] {'yes' if shallow else 'no'}")
        if repo.head is not None:
            ctx.console.print(f"[bold]Head:[/bold]    {repo.head.id}")
            if repo.head.timestamp is not None:
                ctx.console.print(
                    f"[bold]Date:[/bold]    {repo.head.timestamp.isoformat()}"
                )
            ctx.console.print(
                f"[bold]Message:[/bold] {escape(_summary(repo.head.message))}",
                highlight=False,
            )

    @app.command(name="expand")
    def _expand(
        partial: str,
        *,
        path: RepoPathOption = Path(),
        output: FormatOption = OutputFormat.TEXT,
    ) -> None:
        """Expand an abbreviated commit id to the full id."""
        ctx = CLIContext.get_current()
        try:
            full_id = GitRepo.open(path).to_info().expand_partial_commit_id(partial)
        except GitMetaError as e:
            _fail(ctx, e)

        if output is OutputFormat.JSON:
            _emit(ctx, {"partial": partial, "id": full_id})
            return
        ctx.console.print(full_id, markup=False, highlight=False)

    @app.command(name="files-changed")
    def _files_changed(
        commit: str,
        other: str | None = None,
        *,
        path: RepoPathOption = Path(),
        output: FormatOption = OutputFormat.TEXT,
    ) -> None:
        """List files changed at a commit, or between two commits.

        Args:
            commit: Commit to inspect, or the old side when OTHER is given.
            other: New side of the comparison.
            path: Path to the repository work tree.
            output: Output format.
        """
        ctx = CLIContext.get_current()
        try:
            info = GitRepo.open(path).to_info()
            if other is None:
                files = info.list_files_changed_at(commit)
            else:
                files = info.list_files_changed_between(commit, other)
        except GitMetaError as e:
            _fail(ctx, e)

        names = [item.as_posix() for item in files or []]
        if output is OutputFormat.JSON:
            _emit(ctx, {"from": commit, "to": other, "files": names})
            return
        if not names:
            ctx.console.print("[dim]No files changed[/dim]")
            return
        for name in names:
            ctx.console.print(name, markup=False, highlight=False)

    @app.command(name="path-changed")
    def _path_changed(
        target: str,
        *,
        since: Annotated[
            str | None, Parameter(name="--from", help="Old side of the comparison")
        ] = None,
        until: Annotated[
            str | None, Parameter(name="--to", help="New side of the comparison")
        ] = None,
        prefix_match: Annotated[
            bool,
            Parameter(
                name="--prefix-match",
                help="Match changed paths by plain string prefix",
            ),
        ] = False,
        path: RepoPathOption = Path(),
        output: FormatOption = OutputFormat.TEXT,
    ) -> None:
        """Check whether a file or directory changed.

        Without --from and --to, HEAD is compared with its parents.
        """
        ctx = CLIContext.get_current()
        if (since is None) != (until is None):
            exit_with_error(
                "--from and --to must be given together",
                ExitCode.USAGE_ERROR,
                console=ctx.error_console,
            )

        try:
            info = GitRepo.open(path).to_info()
            if since is None or until is None:
                changed = info.has_path_changed(target, prefix_match=prefix_match)
            else:
                changed = info.has_path_changed_between(
                    target, since, until, prefix_match=prefix_match
                )
        except GitMetaError as e:
            _fail(ctx, e)

        if output is OutputFormat.JSON:
            _emit(ctx, {"path": target, "changed": changed})
            return
        state = "[yellow]changed[/yellow]" if changed else "[dim]unchanged[/dim]"
        ctx.console.print(f"{escape(target)}: {state}", highlight=False)

    @app.command(name="new-commits")
    def _new_commits(
        path: Path = Path(),
        *,
        branch: BranchOption = None,
        ssh_key: SshKeyOption = None,
        ssh_user: SshUserOption = "git",
        username: UsernameOption = None,
        output: FormatOption = OutputFormat.TEXT,
    ) -> None:
        """Check whether the remote branch has commits the checkout lacks."""
        ctx = CLIContext.get_current()
        try:
            repo = GitRepo.open(path, branch).with_credentials(
                build_credentials(ssh_key, ssh_user, username)
            )
            exists = repo.to_info().new_commits_exist(config=ctx.config)
        except GitMetaError as e:
            _fail(ctx, e)

        if output is OutputFormat.JSON:
            _emit(ctx, {"branch": repo.branch, "new_commits": exists})
            return
        if exists:
            ctx.console.print(f"[yellow]New commits on {repo.branch or 'HEAD'}[/yellow]")
        else:
            ctx.console.print(f"[green]{repo.branch or 'HEAD'} is up to date[/green]")

    @app.command(name="branch-heads")
    def _branch_heads(
        path: Path | None = None,
        *,
        url: Annotated[
            str | None,
            Parameter(name="--url", help="List a remote without a local checkout"),
        ] = None,
        exclude: Annotated[
            list[str] | None,
            Parameter(name="--exclude", help="Branch name to leave out"),
        ] = None,
        ssh_key: SshKeyOption = None,
        ssh_user: SshUserOption = "git",
        username: UsernameOption = None,
        output: FormatOption = OutputFormat.TEXT,
    ) -> None:
        """List the head commit of every branch on the upstream remote."""
        ctx = CLIContext.get_current()
        credentials = build_credentials(ssh_key, ssh_user, username)
        try:
            if url is not None:
                repo = GitRepo.new(url)
            else:
                repo = GitRepo.open(path or Path())
            heads = (
                repo.with_credentials(credentials)
                .to_info()
                .get_remote_branch_head_refs(exclude, config=ctx.config)
            )
        except GitMetaError as e:
            _fail(ctx, e)

        if output is OutputFormat.JSON:
            _emit(ctx, {name: _commit_data(head) for name, head in heads.items()})
            return
        _print_heads(ctx, heads)

    @app.command(name="clone")
    def _clone(
        url: str,
        target: Path,
        *,
        branch: Annotated[
            str | None, Parameter(name="--branch", help="Branch to check out")
        ] = None,
        shallow: Annotated[
            bool, Parameter(name="--shallow", help="Clone at depth 1 with git")
        ] = False,
        ssh_key: SshKeyOption = None,
        ssh_user: SshUserOption = "git",
        username: UsernameOption = None,
    ) -> None:
        """Clone a repository and show the resolved head."""
        ctx = CLIContext.get_current()
        try:
            request = (
                GitRepo.new(url)
                .with_branch(branch)
                .with_credentials(build_credentials(ssh_key, ssh_user, username))
            )
            if shallow:
                repo = request.git_clone_shallow(target, config=ctx.config)
            else:
                repo = request.git_clone(target, config=ctx.config)
        except GitMetaError as e:
            _fail(ctx, e)

        head = repo.head.id if repo.head else "(none)"
        ctx.console.print(
            f"Cloned {repo.url.redacted()} into {repo.path} at {head}",
            markup=False,
            highlight=False,
        )


def _print_heads(ctx: CLIContext, heads: BranchHeads) -> None:
    if not heads:
        ctx.console.print("[dim]No branches[/dim]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Branch")
    table.add_column("Commit")
    table.add_column("Date")
    table.add_column("Message")
    for name in sorted(heads):
        head = heads[name]
        table.add_row(
            name,
            head.short_id,
            head.timestamp.strftime("%Y-%m-%d %H:%M") if head.timestamp else "",
            _summary(head.message),
        )
    ctx.console.print(table)
