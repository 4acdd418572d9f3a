import os
from pathlib import Path

import pytest

from git_meta.repository import GitRepo

# Public repository the network scenarios run against
REMOTE_URL = "https://github.com/tjtelan/git-meta-rs.git"

# Opt-in switch for tests that reach the network
NETWORK_TESTS_ENV = "GIT_META_NETWORK_TESTS"


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    enabled = os.environ.get(NETWORK_TESTS_ENV) == "1"
    skip_network = pytest.mark.skip(reason=f"set {NETWORK_TESTS_ENV}=1 to run")
    for item in items:
        if not Path(item.path).is_relative_to(Path(__file__).parent):
            continue
        item.add_marker(pytest.mark.integration)
        if "network" in item.keywords and not enabled:
            item.add_marker(skip_network)


@pytest.fixture(scope="module")
def deep_clone(tmp_path_factory: pytest.TempPathFactory) -> GitRepo:
    """Full clone of the public repository, shared by the module."""
    target = tmp_path_factory.mktemp("deep")
    return GitRepo.new(REMOTE_URL).git_clone(target)


@pytest.fixture(scope="module")
def shallow_remote_clone(tmp_path_factory: pytest.TempPathFactory) -> GitRepo:
    """Shallow clone of the public repository, shared by the module."""
    target = tmp_path_factory.mktemp("shallow")
    return GitRepo.new(REMOTE_URL).git_clone_shallow(target)
