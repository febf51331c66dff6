"""
Copy and move between local paths and remote URLs
A source is only ever deleted after the server confirmed the copy
"""

import logging
import os
import posixpath
import tempfile

from .client import Session
from .config import ClientConfig
from .endpoint import Endpoint, is_remote
from .errors import (DeleteAfterCopyError, FileSystemError, FTPError,
                     InvalidOperationError, TransferError)

logger = logging.getLogger("ftpclient.copymove")


def _umask():
    mask = os.umask(0)
    os.umask(mask)
    return mask


class CopyMoveCoordinator:
    """Composes sessions into cross-domain copy and move"""

    def __init__(self, config=None, session_factory=Session):
        """
        Initialize coordinator

        Args:
            config: ClientConfig shared by every session it opens
            session_factory: Callable(endpoint, config) returning a Session
        """
        self.config = config or ClientConfig()
        self.session_factory = session_factory

    def copy(self, source, destination):
        """
        Copy a file between a local path and an ftp:// URL

        Args:
            source: Local path or ftp:// URL
            destination: Local path or ftp:// URL (the other kind)

        Returns:
            TransferRequest: Completed transfer
        """
        source_remote = is_remote(source)
        if source_remote == is_remote(destination):
            kind = "remote" if source_remote else "local"
            raise InvalidOperationError(
                f"Copy needs exactly one remote side, got two {kind} paths: {source} -> {destination}")

        if source_remote:
            return self._download(Endpoint.from_url(source), destination)
        return self._upload(source, Endpoint.from_url(destination))

    def move(self, source, destination):
        """
        Copy, then delete the source once the copy is confirmed

        Args:
            source: Local path or ftp:// URL
            destination: Local path or ftp:// URL (the other kind)

        Returns:
            TransferRequest: Completed transfer
        """
        request = self.copy(source, destination)
        if not request.is_completed:
            raise TransferError(f"Copy of {source} did not complete", phase=request.phase.value)

        try:
            if is_remote(source):
                endpoint = Endpoint.from_url(source)
                with self.session_factory(endpoint, self.config) as session:
                    session.delete()
            else:
                os.remove(source)
        except (FTPError, OSError) as e:
            raise DeleteAfterCopyError(
                f"Copied {source} to {destination} but could not delete the source: {e}", cause=e) from e

        logger.info("Moved %s to %s", source, destination)
        return request

    def _download(self, endpoint, local_path):
        if os.path.isdir(local_path):
            local_path = os.path.join(local_path, posixpath.basename(endpoint.path.rstrip('/')))

        # Bytes land in a sibling temporary file and replace local_path
        # only after the server confirmed the transfer
        directory = os.path.dirname(os.path.abspath(local_path))
        prefix = f".{os.path.basename(local_path)}."
        with self.session_factory(endpoint, self.config) as session:
            try:
                fd, part_path = tempfile.mkstemp(prefix=prefix, suffix='.part', dir=directory)
            except OSError as e:
                raise FileSystemError(f"Cannot open {local_path} for writing: {e}")
            try:
                try:
                    with os.fdopen(fd, 'wb') as sink:
                        request = session.retrieve(sink)
                    os.chmod(part_path, 0o666 & ~_umask())
                    os.replace(part_path, local_path)
                except FTPError:
                    raise
                except OSError as e:
                    raise FileSystemError(f"Cannot write {local_path}: {e}") from e
            except BaseException:
                self._discard(part_path)
                raise

        logger.info("Downloaded %s to %s (%d bytes)", endpoint, local_path, request.bytes_transferred)
        return request

    def _upload(self, local_path, endpoint):
        try:
            source = open(local_path, 'rb')
        except OSError as e:
            raise FileSystemError(f"Cannot open {local_path} for reading: {e}")

        with source, self.session_factory(endpoint, self.config) as session:
            request = session.store(source)

        logger.info("Uploaded %s to %s (%d bytes)", local_path, endpoint, request.bytes_transferred)
        return request

    @staticmethod
    def _discard(local_path):
        """Remove the temporary file of a failed download"""
        try:
            os.remove(local_path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Could not remove partial download %s: %s", local_path, e)
