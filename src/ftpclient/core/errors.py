"""
Error taxonomy for the FTP client
Every failure surfaced by the core derives from FTPError
"""


class FTPError(Exception):
    """Base class for all client errors"""

    def __init__(self, message, code=None, phase=None):
        """
        Initialize error

        Args:
            message: Human readable description
            code: Reply code that caused the failure, if any
            phase: Protocol phase the failure happened in, if known
        """
        super().__init__(message)
        self.message = message
        self.code = code
        self.phase = phase

    def __str__(self):
        parts = [self.message]
        if self.phase is not None:
            parts.append(f"phase={self.phase}")
        if self.code is not None:
            parts.append(f"code={self.code}")
        if len(parts) == 1:
            return self.message
        return f"{self.message} ({', '.join(parts[1:])})"


class FTPConnectionError(FTPError, ConnectionError):
    """TCP connect failure, reset or unexpected close"""


class FTPTimeoutError(FTPConnectionError, TimeoutError):
    """A bounded wait on a socket expired"""


class AuthError(FTPError):
    """Credentials rejected by the server"""


class ProtocolError(FTPError):
    """Malformed or unexpected reply"""


class TransferError(FTPError):
    """Preliminary or final transfer reply indicates failure"""


class DirectoryError(FTPError):
    """MKD or RMD was refused"""


class DeleteError(FTPError):
    """DELE was refused"""


class FileSystemError(FTPError):
    """Local read, write or remove failure"""


class InvalidOperationError(FTPError):
    """Operation requested between unsupported locations"""


class DeleteAfterCopyError(FTPError):
    """Move copied the file but could not delete the source"""

    def __init__(self, message, cause=None):
        super().__init__(message,
                         code=getattr(cause, 'code', None),
                         phase='delete-source')
        self.cause = cause
