"""The command-line interface for git-meta."""
# ruff: noqa: TC003  # Path needed at runtime for cyclopts parameter parsing

from pathlib import Path
from typing import Annotated

from cyclopts import App, Parameter
from rich.console import Console

from git_meta.config import GitMetaConfig, LogLevel
from git_meta.exceptions import ConfigError
from git_meta.utils import configure_logging

from ._commands import register_commands
from ._context import CLIContext
from ._shared import ExitCode, exit_with_error

_HELP = "Resolve repository identity and change history for git repositories."


def create_app(
    console: Console | None = None,
    error_console: Console | None = None,
    *,
    exit_on_error: bool = True,
) -> App:
    if console is None:
        console = Console()
    if error_console is None:
        error_console = Console(stderr=True)
    app = App(
        name="git-meta",
        help=_HELP,
        help_on_error=True,
        console=console,
        error_console=error_console,
        exit_on_error=exit_on_error,
    )

    @app.meta.default
    def _default(  # pyright: ignore[reportUnusedFunction]
        *tokens: Annotated[str, Parameter(show=False, allow_leading_hyphen=True)],
        verbose: Annotated[bool, Parameter(help="Enable debug logging")] = False,
        config: Annotated[
            Path | None, Parameter(name="--config", help="Path to config file")
        ] = None,
    ) -> None:
        """Launch git-meta with global options.

        Args:
            tokens: Command tokens to pass to subcommands.
            verbose: Enable debug logging.
            config: Explicit path to config file.
        """
        # Build CLI overrides from flags
        cli_overrides: dict[str, object] | None = None
        if verbose:
            cli_overrides = {"logging": {"level": LogLevel.DEBUG.value}}

        try:
            loaded_config = GitMetaConfig.load(
                config_path=config, overrides=cli_overrides
            )
        except ConfigError as e:
            exit_with_error(str(e), ExitCode.FAILURE, console=error_console)

        configure_logging(
            level=loaded_config.logging.level.value,
            log_format=loaded_config.logging.format.value,
            log_file=loaded_config.logging.file,
        )

        CLIContext.set_current(
            CLIContext(
                config=loaded_config,
                verbose=verbose,
                console=console,
                error_console=error_console,
            )
        )
        try:
            app(tokens)
        finally:
            CLIContext.reset()

    register_commands(app)
    return app


app = create_app()


def main() -> None:
    """Default entrypoint for the `git-meta` CLI."""
    create_app().meta()


if __name__ == "__main__":
    main()
