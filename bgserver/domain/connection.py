"""Connection descriptor for a supervised server."""

from collections.abc import Mapping
from dataclasses import dataclass
from urllib.parse import quote, urlencode, urlunsplit


@dataclass(frozen=True)
class ConnectionDescriptor:
    """Structured address a client uses to reach the supervised server.

    Attributes:
        host: Hostname or IP address
        port: TCP port
        scheme: URL scheme (e.g. "postgresql")
        username: Optional user name
        password: Optional password (only rendered when username is set)
        path: Optional path component, such as a database name
        params: Query parameters. Accepts a mapping (e.g. {"sslmode": "disable"})
                or key/value pairs; stored as a sorted tuple of pairs so the
                descriptor stays hashable.

    Raises:
        ValueError: If host is empty or port is out of range.
    """

    host: str
    port: int
    scheme: str = "tcp"
    username: str | None = None
    password: str | None = None
    path: str = ""
    params: tuple[tuple[str, str], ...] = ()

    def __post_init__(self) -> None:
        """Validate descriptor after initialization."""
        if not self.host:
            raise ValueError("host must not be empty")
        if not 0 < self.port < 65536:
            raise ValueError(f"port must be in 1-65535, got {self.port}")
        pairs = self.params.items() if isinstance(self.params, Mapping) else self.params
        normalized = tuple(sorted((str(key), str(value)) for key, value in pairs))
        object.__setattr__(self, "params", normalized)

    @property
    def address(self) -> tuple[str, int]:
        """(host, port) pair suitable for socket.create_connection()."""
        return (self.host, self.port)

    def to_url(self) -> str:
        """Render the descriptor as a URL string.

        Credentials are percent-encoded. IPv6 hosts are bracketed.
        """
        host = f"[{self.host}]" if ":" in self.host else self.host
        netloc = f"{host}:{self.port}"
        if self.username:
            userinfo = quote(self.username, safe="")
            if self.password is not None:
                userinfo += ":" + quote(self.password, safe="")
            netloc = f"{userinfo}@{netloc}"

        path = self.path
        if path and not path.startswith("/"):
            path = "/" + path

        return urlunsplit((self.scheme, netloc, path, urlencode(self.params), ""))

    def __str__(self) -> str:
        return self.to_url()
