from datetime import UTC, datetime
from pathlib import Path

import pytest
from dulwich.objects import Commit
from repo_builders import History

from git_meta.repository import CommitMeta, SshKey, UserPassPlaintext
from git_meta.utils import open_repo


class TestCommitMeta:
    def test_from_commit(self, history: History) -> None:
        with open_repo(history.root) as repo:
            commit = repo[history.update_readme.encode()]
            assert isinstance(commit, Commit)
            meta = CommitMeta.from_commit(commit)

        assert meta.id == history.update_readme
        assert meta.message == "Update README\n"
        assert meta.timestamp is not None
        assert meta.timestamp.tzinfo is UTC

    def test_timestamp_is_committer_time(self, history: History) -> None:
        with open_repo(history.root) as repo:
            commit = repo[history.initial.encode()]
            assert isinstance(commit, Commit)
            meta = CommitMeta.from_commit(commit)

        assert meta.timestamp == datetime.fromtimestamp(commit.commit_time, tz=UTC)

    def test_short_id(self) -> None:
        meta = CommitMeta(id="c097ad2a8c07bf2e3df64e6e603eee0473ad8133")

        assert meta.short_id == "c097ad2"

    def test_defaults(self) -> None:
        meta = CommitMeta(id="c097ad2a8c07bf2e3df64e6e603eee0473ad8133")

        assert meta.message is None
        assert meta.timestamp is None

    def test_is_frozen(self) -> None:
        meta = CommitMeta(id="abc")

        with pytest.raises(AttributeError):
            meta.id = "def"  # pyright: ignore[reportAttributeAccessIssue]


class TestCredentialReprs:
    def test_ssh_key_masks_passphrase(self) -> None:
        key = SshKey(
            username="git", private_key=Path("/keys/id_ed25519"), passphrase="hunter2"
        )

        assert "hunter2" not in repr(key)
        assert "passphrase='***'" in repr(key)

    def test_ssh_key_without_passphrase(self) -> None:
        key = SshKey(username="git", private_key=Path("/keys/id_ed25519"))

        assert "passphrase=None" in repr(key)

    def test_user_pass_masks_password(self) -> None:
        creds = UserPassPlaintext(username="ci", password="ghp_secret")

        assert "ghp_secret" not in repr(creds)
        assert "username='ci'" in repr(creds)

    def test_equality_uses_secrets(self) -> None:
        assert UserPassPlaintext("ci", "a") != UserPassPlaintext("ci", "b")
