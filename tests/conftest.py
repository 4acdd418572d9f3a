"""Shared test fixtures for git-meta tests."""

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
from repo_builders import History, build_history, run_git
from rich.console import Console

from git_meta.cli import CLIContext


@pytest.fixture
def history(tmp_path: Path) -> History:
    """Create a repository with a merge commit at HEAD."""
    return build_history(tmp_path / "history")


@pytest.fixture
def upstream_clone(history: History, tmp_path: Path) -> Path:
    """Clone the history repository with the git CLI; main tracks origin/main."""
    target = tmp_path / "clone"
    run_git(tmp_path, "clone", str(history.root), str(target))
    run_git(target, "config", "user.name", "Test User")
    run_git(target, "config", "user.email", "test@example.com")
    run_git(target, "config", "commit.gpgsign", "false")
    return target


@pytest.fixture
def shallow_clone(history: History, tmp_path: Path) -> Path:
    """Shallow clone (depth 1) of the history repository."""
    target = tmp_path / "shallow"
    run_git(
        tmp_path,
        "clone",
        "--depth=1",
        "--no-single-branch",
        history.root.as_uri(),
        str(target),
    )
    return target


@pytest.fixture
def console() -> Console:
    return Console(
        width=200,
        force_terminal=True,
        highlight=False,
        color_system=None,
        legacy_windows=False,
    )


@pytest.fixture(autouse=True)
def reset_cli_context() -> Iterator[None]:
    yield
    CLIContext.reset()


@pytest.fixture(autouse=True)
def restore_git_meta_logger() -> Iterator[None]:
    """Undo handlers attached by configure_logging during a test."""
    root = logging.getLogger("git_meta")
    handlers = list(root.handlers)
    level = root.level
    propagate = root.propagate
    yield
    for handler in list(root.handlers):
        root.removeHandler(handler)
        if handler not in handlers:
            handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)
    root.propagate = propagate
