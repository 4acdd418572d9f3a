"""Git remote URL parsing.

This module provides the GitUrl model used to carry a repository location
through the library. A GitUrl can hold embedded authentication (a user and a
token) for handing to transports, and always renders without secrets when
displayed or logged.

Supported forms:
    https://github.com/org/repo.git
    ssh://git@github.com:22/org/repo.git
    git@github.com:org/repo.git (scp-like)
    file:///srv/git/repo.git
    /srv/git/repo (bare local path)
"""

import re
from dataclasses import dataclass, replace
from typing import Final, Self
from urllib.parse import quote, unquote, urlsplit

from git_meta.exceptions import InvalidUrlError

# Schemes accepted in URL form
_SUPPORTED_SCHEMES: Final = frozenset({"http", "https", "ssh", "git", "file"})

# user@host:path with no scheme
_SCP_PATTERN: Final = re.compile(r"^(?:(?P<user>[^@/:]+)@)?(?P<host>[^@/:]+):(?P<path>.+)$")

# Rendered in place of a secret
_REDACTED: Final = "***"


@dataclass(frozen=True, slots=True)
class GitUrl:
    """A parsed git remote location.

    Attributes:
        scheme: Transport scheme (http, https, ssh, git, or file).
        path: Repository path on the host, or the local filesystem path.
        host: Remote host name, or None for local repositories.
        port: Explicit port, if one was given.
        user: Embedded user name, if any.
        token: Embedded password or token, if any.
        schemeless: True when the location is rendered without a scheme
            (scp-like remotes and bare local paths).
    """

    scheme: str
    path: str
    host: str | None = None
    port: int | None = None
    user: str | None = None
    token: str | None = None
    schemeless: bool = False

    @classmethod
    def parse(cls, url: str) -> Self:
        """Parse a URL, scp-like location, or local path.

        Args:
            url: The location to parse.

        Returns:
            The parsed GitUrl.

        Raises:
            InvalidUrlError: If the location is empty or uses an unsupported
                scheme or has no host.
        """
        url = url.strip()
        if not url:
            msg = "Repository URL is empty"
            raise InvalidUrlError(msg, url=url)

        if "://" in url:
            return cls._parse_url(url)

        if not url.startswith(("/", ".", "~")):
            match = _SCP_PATTERN.match(url)
            if match is not None:
                return cls(
                    scheme="ssh",
                    host=match["host"],
                    path=match["path"],
                    user=match["user"],
                    schemeless=True,
                )

        return cls(scheme="file", path=url, schemeless=True)

    @classmethod
    def _parse_url(cls, url: str) -> Self:
        parts = urlsplit(url)
        scheme = parts.scheme.lower()
        if scheme not in _SUPPORTED_SCHEMES:
            msg = f"Unsupported URL scheme: {scheme}"
            raise InvalidUrlError(msg, url=_strip_userinfo(url))

        try:
            port = parts.port
        except ValueError as e:
            msg = f"Invalid port in URL: {_strip_userinfo(url)}"
            raise InvalidUrlError(msg, url=_strip_userinfo(url)) from e

        if scheme != "file" and not parts.hostname:
            msg = f"URL has no host: {_strip_userinfo(url)}"
            raise InvalidUrlError(msg, url=_strip_userinfo(url))

        return cls(
            scheme=scheme,
            host=parts.hostname,
            port=port,
            path=parts.path,
            user=unquote(parts.username) if parts.username else None,
            token=unquote(parts.password) if parts.password else None,
        )

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def is_local(self) -> bool:
        """Whether this location refers to the local filesystem."""
        return self.scheme == "file"

    # =========================================================================
    # Builders
    # =========================================================================

    def trim_auth(self) -> Self:
        """Return a copy with the embedded user and token removed."""
        return replace(self, user=None, token=None)

    def with_user(self, user: str | None) -> Self:
        """Return a copy with the given embedded user."""
        return replace(self, user=user)

    def with_token(self, token: str | None) -> Self:
        """Return a copy with the given embedded password or token."""
        return replace(self, token=token)

    def with_auth(self, user: str | None, token: str | None) -> Self:
        """Return a copy with both the embedded user and token replaced."""
        return replace(self, user=user, token=token)

    # =========================================================================
    # Rendering
    # =========================================================================

    def redacted(self) -> str:
        """Render the location with any token masked, for display and logging."""
        return self._render(token=_REDACTED if self.token else None)

    def _render(self, *, token: str | None) -> str:
        if self.schemeless:
            if self.host is None:
                return self.path
            userinfo = f"{self.user}@" if self.user else ""
            return f"{userinfo}{self.host}:{self.path}"

        userinfo = ""
        if self.user:
            userinfo = quote(self.user, safe="")
            if token:
                userinfo += ":" + (token if token == _REDACTED else quote(token, safe=""))
            userinfo += "@"
        netloc = f"{userinfo}{self.host or ''}"
        if self.port is not None:
            netloc += f":{self.port}"
        return f"{self.scheme}://{netloc}{self.path}"

    def __str__(self) -> str:
        return self._render(token=self.token)

    def __repr__(self) -> str:
        return f"GitUrl({self.redacted()!r})"


def _strip_userinfo(url: str) -> str:
    scheme, sep, rest = url.partition("://")
    if "@" in rest.split("/", 1)[0]:
        rest = rest.split("@", 1)[1]
    return f"{scheme}{sep}{rest}"
