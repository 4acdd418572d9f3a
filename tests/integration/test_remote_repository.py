"""Scenarios against a public GitHub repository.

Run with GIT_META_NETWORK_TESTS=1.
"""

from pathlib import Path

import pytest

from git_meta.exceptions import ShallowCloneUnsupportedError
from git_meta.repository import GitRepo

FULL_ID = "c097ad2a8c07bf2e3df64e6e603eee0473ad8133"
OLDER_ID = "9c6c5e65c3590e299316d34718674de333bdd9c8"

pytestmark = pytest.mark.network


class TestDeepClone:
    def test_resolves_head(self, deep_clone: GitRepo) -> None:
        assert deep_clone.head is not None
        assert deep_clone.branch is not None
        assert deep_clone.is_shallow() is False

    def test_expands_partial_commit_id(self, deep_clone: GitRepo) -> None:
        assert deep_clone.to_info().expand_partial_commit_id("c097ad2") == FULL_ID

    def test_files_changed_between(self, deep_clone: GitRepo) -> None:
        changed = deep_clone.to_info().list_files_changed_between(OLDER_ID, FULL_ID)

        assert changed is not None
        assert Path("CHANGELOG.md") in changed
        assert Path("Cargo.toml") in changed
        assert Path("README.md") in changed
        assert Path("LICENSE") not in changed

    def test_path_changed_between_abbreviated_ids(self, deep_clone: GitRepo) -> None:
        assert deep_clone.to_info().has_path_changed_between("src", "9c6c5e", "c097ad")

    def test_open_at_commit(self, deep_clone: GitRepo) -> None:
        moved = deep_clone.with_commit("c097ad2")

        assert moved.head is not None
        assert moved.head.id == FULL_ID

    def test_remote_branch_heads(self, deep_clone: GitRepo) -> None:
        heads = deep_clone.to_info().get_remote_branch_head_refs()

        assert deep_clone.branch in heads


class TestShallowClone:
    def test_is_shallow(self, shallow_remote_clone: GitRepo) -> None:
        assert shallow_remote_clone.is_shallow() is True
        assert shallow_remote_clone.head is not None

    def test_expand_partial_commit_id_fails(self, shallow_remote_clone: GitRepo) -> None:
        with pytest.raises(ShallowCloneUnsupportedError):
            shallow_remote_clone.to_info().expand_partial_commit_id("c097ad2")

    def test_open_with_defaults(self, shallow_remote_clone: GitRepo) -> None:
        assert shallow_remote_clone.path is not None

        reopened = GitRepo.open(shallow_remote_clone.path)

        assert reopened.head == shallow_remote_clone.head

    def test_open_with_branch_and_commit_fails(
        self, shallow_remote_clone: GitRepo
    ) -> None:
        assert shallow_remote_clone.path is not None

        with pytest.raises(ShallowCloneUnsupportedError):
            GitRepo.open(shallow_remote_clone.path, shallow_remote_clone.branch, FULL_ID)

    def test_new_commits_against_itself(self, shallow_remote_clone: GitRepo) -> None:
        assert shallow_remote_clone.to_info().new_commits_exist() is False
