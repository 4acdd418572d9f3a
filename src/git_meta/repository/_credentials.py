"""Credential handling for authenticated git operations.

Credentials are a closed set of variants (SshKey, UserPassPlaintext, or no
credentials). Every place that needs to act on the variant lives in this
module so the cases stay in lock-step:

    build_credential_callback: dulwich transport authentication
    shallow_clone_location: git CLI arguments for shallow clones
    display_url: the remote URL as shown in logs and errors
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Final, assert_never

from dulwich.client import GitClient, SSHGitClient, get_transport_and_path

from git_meta.exceptions import CredentialConstructionError
from git_meta.utils._logging import get_logger
from git_meta.utils._url import GitUrl

from ._models import Credentials, SshKey, UserPassPlaintext

logger = get_logger(__name__)

# git config key overriding the ssh program for the git CLI
_SSH_COMMAND_CONFIG: Final = "core.sshcommand"


@dataclass(frozen=True, slots=True)
class TransportAuth:
    """Authentication handed to a dulwich transport client.

    Attributes:
        username: User name for SSH or HTTP basic authentication.
        password: HTTP basic authentication password.
        key_filename: SSH private key path.
        public_key: SSH public key path, when given explicitly.
        passphrase: Passphrase for an encrypted SSH private key.
    """

    username: str | None = None
    password: str | None = field(default=None, repr=False)
    key_filename: str | None = None
    public_key: str | None = None
    passphrase: str | None = field(default=None, repr=False)

    @property
    def is_anonymous(self) -> bool:
        """Whether no authentication is offered."""
        return self.username is None and self.key_filename is None

    def transport_kwargs(self) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
        """Keyword arguments for dulwich.client.get_transport_and_path."""
        kwargs: dict[str, Any] = {}  # pyright: ignore[reportExplicitAny]
        if self.username is not None:
            kwargs["username"] = self.username
        if self.password is not None:
            kwargs["password"] = self.password
        if self.key_filename is not None:
            kwargs["key_filename"] = self.key_filename
        return kwargs

    def apply(self, client: GitClient) -> None:
        """Attach SSH authentication to a client.

        Not every dulwich URL form forwards the key file to the SSH client,
        and only the paramiko vendor can decrypt a passphrase-protected key.

        Args:
            client: The client returned by get_transport_and_path.
        """
        if not isinstance(client, SSHGitClient):
            return
        if self.key_filename is not None:
            client.key_filename = self.key_filename
        if self.username is not None and not client.username:
            client.username = self.username
        if self.passphrase is not None:
            from dulwich.contrib.paramiko_vendor import (  # noqa: PLC0415
                ParamikoSSHVendor,
            )

            client.ssh_vendor = ParamikoSSHVendor(passphrase=self.passphrase)


# Zero-argument factory invoked whenever a transport needs authentication
type CredentialCallback = Callable[[], TransportAuth]


# =============================================================================
# Transport Authentication
# =============================================================================


def build_credential_callback(credentials: Credentials | None) -> CredentialCallback:
    """Build the authentication callback for a set of credentials.

    Key files are checked when the callback runs, so a missing key surfaces
    at the first authenticated operation.

    Args:
        credentials: The credentials to authenticate with, or None for
            public remotes.

    Returns:
        A callable producing the TransportAuth to use.
    """

    def callback() -> TransportAuth:
        match credentials:
            case None:
                return TransportAuth()
            case SshKey():
                return _ssh_key_auth(credentials)
            case UserPassPlaintext(username=username, password=password):
                logger.debug("credentials_user_pass", username=username)
                return TransportAuth(username=username, password=password)
            case _:
                assert_never(credentials)

    return callback


def _ssh_key_auth(credentials: SshKey) -> TransportAuth:
    private_key = _require_key_file(credentials.private_key, kind="private")

    # Fixed precedence: (no pubkey, no passphrase), (no pubkey, passphrase),
    # (pubkey, no passphrase), (pubkey, passphrase)
    match (credentials.public_key, credentials.passphrase):
        case (None, None):
            auth = TransportAuth(
                username=credentials.username,
                key_filename=private_key,
            )
        case (None, passphrase):
            auth = TransportAuth(
                username=credentials.username,
                key_filename=private_key,
                passphrase=passphrase,
            )
        case (public_key, None):
            auth = TransportAuth(
                username=credentials.username,
                key_filename=private_key,
                public_key=_require_key_file(public_key, kind="public"),
            )
        case (public_key, passphrase):
            auth = TransportAuth(
                username=credentials.username,
                key_filename=private_key,
                public_key=_require_key_file(public_key, kind="public"),
                passphrase=passphrase,
            )

    logger.debug(
        "credentials_ssh_key",
        username=credentials.username,
        private_key=private_key,
        public_key=auth.public_key,
        has_passphrase=auth.passphrase is not None,
    )
    return auth


def _require_key_file(path: Path, *, kind: str) -> str:
    try:
        resolved = Path(path).expanduser().resolve(strict=True)
    except OSError as e:
        msg = f"SSH {kind} key not found: {path}"
        raise CredentialConstructionError(msg, path=path) from e
    if not resolved.is_file():
        msg = f"SSH {kind} key is not a file: {path}"
        raise CredentialConstructionError(msg, path=path)
    return str(resolved)


def transport_location(url: GitUrl, credentials: Credentials | None) -> str:
    """Location string handed to dulwich for a remote.

    Secrets travel as transport arguments, never inside the location.

    Args:
        url: The remote URL.
        credentials: Credentials in use, if any.

    Returns:
        The location to pass to get_transport_and_path.
    """
    match credentials:
        case None:
            return str(url)
        case SshKey(username=username):
            return str(url.trim_auth().with_user(username))
        case UserPassPlaintext():
            return str(url.trim_auth())
        case _:
            assert_never(credentials)


def open_transport(
    url: GitUrl,
    credentials: Credentials | None,
    callback: CredentialCallback | None = None,
) -> tuple[GitClient, str]:
    """Create an authenticated dulwich client for a remote.

    Args:
        url: The remote URL.
        credentials: Credentials in use, if any.
        callback: Authentication callback; built from credentials if omitted.

    Returns:
        Tuple of (client, remote path) from get_transport_and_path.

    Raises:
        CredentialConstructionError: If the credentials cannot be used.
    """
    if callback is None:
        callback = build_credential_callback(credentials)
    auth = callback()
    client, path = get_transport_and_path(
        transport_location(url, credentials), **auth.transport_kwargs()
    )
    auth.apply(client)
    logger.debug(
        "transport_opened",
        url=display_url(url, credentials),
        client=type(client).__name__,
        anonymous=auth.is_anonymous,
    )
    return client, path


# =============================================================================
# Shallow Clone Arguments
# =============================================================================


def shallow_clone_location(
    url: GitUrl, credentials: Credentials | None
) -> tuple[str, tuple[str, ...]]:
    """URL and extra arguments for a `git clone` subprocess.

    Args:
        url: The remote URL.
        credentials: Credentials in use, if any.

    Returns:
        Tuple of (clone URL, extra git clone arguments).

    Raises:
        CredentialConstructionError: If an SSH private key is missing, or a
            password is paired with an scp-like location or a local path.
    """
    match credentials:
        case None:
            return str(_cli_url(url.trim_auth())), ()
        case SshKey(username=username, private_key=private_key):
            key_path = _require_key_file(private_key, kind="private")
            clone_url = url.trim_auth().with_user(username)
            return str(clone_url), ("--config", f"{_SSH_COMMAND_CONFIG}=ssh -i {key_path}")
        case UserPassPlaintext(username=username, password=password):
            if url.schemeless:
                msg = f"Password credentials need a URL with a scheme, got {url.redacted()}"
                raise CredentialConstructionError(msg)
            # git has no other non-interactive way to take a password here
            return str(url.with_auth(username, password)), ()
        case _:
            assert_never(credentials)


def _cli_url(url: GitUrl) -> GitUrl:
    """Local paths as file:// URLs; git ignores --depth for a plain path."""
    if url.is_local and url.schemeless:
        return GitUrl.parse(Path(url.path).expanduser().resolve().as_uri())
    return url


# =============================================================================
# Display
# =============================================================================


def display_url(url: GitUrl, credentials: Credentials | None) -> str:
    """Render the remote URL for logs and error messages.

    Args:
        url: The remote URL.
        credentials: Credentials in use, if any.

    Returns:
        The URL with every secret masked.
    """
    match credentials:
        case None:
            return url.redacted()
        case SshKey(username=username):
            return url.trim_auth().with_user(username).redacted()
        case UserPassPlaintext(username=username):
            return url.with_auth(username, "x").redacted()
        case _:
            assert_never(credentials)
