"""
Endpoint model and URL parsing
Resolves ftp:// URLs into immutable connection targets
"""

from dataclasses import dataclass
from urllib.parse import unquote, urlsplit

from .config import DEFAULT_PASSWORD, DEFAULT_PORT, DEFAULT_USER
from .errors import InvalidOperationError

SCHEME = 'ftp'


def is_remote(location):
    """
    Check whether a location string names a remote file

    Args:
        location: Local path or ftp:// URL

    Returns:
        bool: True for ftp:// URLs
    """
    return location.lower().startswith(SCHEME + '://')


@dataclass(frozen=True)
class Endpoint:
    """Resolved connection target"""

    host: str
    port: int = DEFAULT_PORT
    user: str = DEFAULT_USER
    password: str = DEFAULT_PASSWORD
    path: str = '/'

    @classmethod
    def from_url(cls, url):
        """
        Parse ftp://[user[:password]@]host[:port][/path]

        Args:
            url: URL string

        Returns:
            Endpoint: Parsed endpoint with defaults applied
        """
        parts = urlsplit(url)
        if parts.scheme.lower() != SCHEME:
            raise InvalidOperationError(f"Not an {SCHEME}:// URL: {url}")
        try:
            port = parts.port
        except ValueError:
            raise InvalidOperationError(f"Invalid port in URL: {url}")
        if not parts.hostname:
            raise InvalidOperationError(f"Missing host in URL: {url}")

        return cls(
            host=parts.hostname,
            port=port or DEFAULT_PORT,
            user=unquote(parts.username) if parts.username else DEFAULT_USER,
            password=unquote(parts.password) if parts.password else DEFAULT_PASSWORD,
            path=unquote(parts.path) or '/',
        )

    def __str__(self):
        # Credentials stay out of log lines
        return f"{SCHEME}://{self.user}@{self.host}:{self.port}{self.path}"
