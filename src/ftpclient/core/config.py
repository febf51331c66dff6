"""
Client configuration
Runtime settings shared by every layer of one invocation
"""

import os
from dataclasses import dataclass, field

from .errors import InvalidOperationError

DEFAULT_PORT = 21
DEFAULT_USER = 'anonymous'
DEFAULT_PASSWORD = ''
DEFAULT_TIMEOUT = 30.0
DEFAULT_CHUNK_SIZE = 8192
DEFAULT_ENCODING = 'utf-8'

TIMEOUT_ENV = 'FTPCLIENT_TIMEOUT'


def _default_timeout():
    raw = os.environ.get(TIMEOUT_ENV)
    if not raw:
        return DEFAULT_TIMEOUT
    try:
        value = float(raw)
    except ValueError:
        raise InvalidOperationError(f"{TIMEOUT_ENV} must be a number, got {raw!r}")
    if value <= 0:
        raise InvalidOperationError(f"{TIMEOUT_ENV} must be positive, got {raw!r}")
    return value


@dataclass(frozen=True)
class ClientConfig:
    """
    Settings for one client invocation

    Attributes:
        timeout: Bound in seconds on every connect, send and receive
        chunk_size: Bytes moved per read on the data connection
        use_control_host: Replace the PASV address with the control peer host
        encoding: Text encoding of control lines
    """

    timeout: float = field(default_factory=_default_timeout)
    chunk_size: int = DEFAULT_CHUNK_SIZE
    use_control_host: bool = False
    encoding: str = DEFAULT_ENCODING

    def __post_init__(self):
        if self.timeout is not None and self.timeout <= 0:
            raise InvalidOperationError(f"timeout must be positive, got {self.timeout}")
        if self.chunk_size <= 0:
            raise InvalidOperationError(f"chunk_size must be positive, got {self.chunk_size}")
