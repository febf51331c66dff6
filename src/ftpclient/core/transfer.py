"""
Transfer orchestration
Runs LIST, RETR and STOR through one two-phase state machine and
handles the single round trip commands MKD, RMD and DELE
"""

import logging
from enum import Enum

from .errors import (DeleteError, DirectoryError, FileSystemError,
                     ProtocolError, TransferError)
from .passive import PassiveDataChannel

logger = logging.getLogger("ftpclient.transfer")

PRELIMINARY_CODES = (125, 150)
COMPLETED_CODES = (226,)


class TransferType(Enum):
    """Types of data transfers"""
    LIST = "list"
    DOWNLOAD = "download"
    UPLOAD = "upload"


class TransferPhase(Enum):
    """Phase of one orchestrated transfer"""
    IDLE = "idle"
    AWAITING_DATA_CONNECTION = "awaiting-data-connection"
    AWAITING_PRELIMINARY_REPLY = "awaiting-preliminary-reply"
    STREAMING = "streaming"
    AWAITING_FINAL_REPLY = "awaiting-final-reply"
    COMPLETED = "completed"
    FAILED = "failed"


# Allowed transitions; FAILED is reachable from every non-terminal phase
_NEXT_PHASE = {
    TransferPhase.IDLE: TransferPhase.AWAITING_DATA_CONNECTION,
    TransferPhase.AWAITING_DATA_CONNECTION: TransferPhase.AWAITING_PRELIMINARY_REPLY,
    TransferPhase.AWAITING_PRELIMINARY_REPLY: TransferPhase.STREAMING,
    TransferPhase.STREAMING: TransferPhase.AWAITING_FINAL_REPLY,
    TransferPhase.AWAITING_FINAL_REPLY: TransferPhase.COMPLETED,
}

REPLY_PENDING_PHASES = (TransferPhase.STREAMING, TransferPhase.AWAITING_FINAL_REPLY)

_TRIGGER = {
    TransferType.LIST: "LIST",
    TransferType.DOWNLOAD: "RETR",
    TransferType.UPLOAD: "STOR",
}


class TransferRequest:
    """Represents a single data transfer"""

    def __init__(self, transfer_type, remote_path, local_target=None):
        """
        Initialize transfer

        Args:
            transfer_type: TransferType enum value
            remote_path: Remote path the command names
            local_target: Sink (download/list) or source (upload) file object
        """
        self.type = transfer_type
        self.remote_path = remote_path
        self.local_target = local_target

        self.phase = TransferPhase.IDLE
        self.bytes_transferred = 0
        self.final_reply = None
        self.error = None

    @property
    def command(self):
        return f"{_TRIGGER[self.type]} {self.remote_path}"

    @property
    def is_completed(self):
        return self.phase is TransferPhase.COMPLETED

    @property
    def is_failed(self):
        return self.phase is TransferPhase.FAILED

    def advance(self, phase):
        """
        Move to the next phase

        Args:
            phase: Target TransferPhase
        """
        if phase is TransferPhase.FAILED and self.phase is not TransferPhase.COMPLETED:
            self.phase = phase
            return
        if _NEXT_PHASE.get(self.phase) is not phase:
            raise ProtocolError(f"Illegal transfer transition {self.phase.value} -> {phase.value}")
        self.phase = phase

    def __repr__(self):
        return (f"TransferRequest(type={self.type.value}, remote_path={self.remote_path!r}, "
                f"phase={self.phase.value}, bytes={self.bytes_transferred})")


class _ListSink:
    """In-memory sink collecting a directory listing"""

    def __init__(self):
        self.chunks = []

    def write(self, data):
        self.chunks.append(data)

    def getvalue(self):
        return b''.join(self.chunks)


class TransferOrchestrator:
    """Sequences control and data channels for one session"""

    def __init__(self, control, config=None):
        """
        Initialize orchestrator

        Args:
            control: Authenticated ControlChannel
            config: ClientConfig (defaults to the control channel's)
        """
        self.control = control
        self.config = config or control.config
        self.passive = PassiveDataChannel(self.config)
        self._binary = False

    # ===== Data commands =====

    def list(self, path):
        """
        Fetch a directory listing

        Args:
            path: Remote directory

        Returns:
            bytes: Raw listing bytes
        """
        sink = _ListSink()
        request = TransferRequest(TransferType.LIST, path, sink)
        self._run(request)
        return sink.getvalue()

    def retrieve(self, path, sink):
        """
        Download a remote file into a writable binary sink

        Args:
            path: Remote file
            sink: Object with write(bytes)

        Returns:
            TransferRequest: Completed request
        """
        self._ensure_binary()
        request = TransferRequest(TransferType.DOWNLOAD, path, sink)
        return self._run(request)

    def store(self, source, path):
        """
        Upload from a readable binary source

        Args:
            source: Object with read(size) -> bytes
            path: Remote file

        Returns:
            TransferRequest: Completed request
        """
        self._ensure_binary()
        request = TransferRequest(TransferType.UPLOAD, path, source)
        return self._run(request)

    # ===== Single round trip commands =====

    def mkdir(self, path):
        """Create a remote directory (MKD, expects 257)"""
        return self._simple(f"MKD {path}", 257, DirectoryError)

    def rmdir(self, path):
        """Remove a remote directory (RMD, expects 250)"""
        return self._simple(f"RMD {path}", 250, DirectoryError)

    def delete(self, path):
        """Delete a remote file (DELE, expects 250)"""
        return self._simple(f"DELE {path}", 250, DeleteError)

    def _simple(self, command, expected, error_class):
        reply = self.control.send_command(command)
        if reply.code != expected:
            verb = command.split(' ', 1)[0]
            raise error_class(f"{verb} failed: {reply}", code=reply.code, phase=verb.lower())
        logger.info("%s", reply)
        return reply

    def _ensure_binary(self):
        if self._binary:
            return
        reply = self.control.send_command("TYPE I")
        if not reply.is_success:
            logger.warning("Server refused binary mode: %s", reply)
        self._binary = True

    # ===== State machine =====

    def _run(self, request):
        """
        Drive one transfer through every phase

        The data connection is connected before the triggering command is
        written, and success is decided by the final control reply only.
        """
        try:
            request.advance(TransferPhase.AWAITING_DATA_CONNECTION)
            with self.passive.negotiate(self.control) as data:
                request.advance(TransferPhase.AWAITING_PRELIMINARY_REPLY)
                reply = self.control.send_command(request.command)
                if reply.code not in PRELIMINARY_CODES:
                    raise TransferError(f"{request.command} refused: {reply}",
                                        code=reply.code, phase=request.phase.value)

                request.advance(TransferPhase.STREAMING)
                if request.type is TransferType.UPLOAD:
                    self._send_source(request, data)
                else:
                    self._receive_sink(request, data)

            request.advance(TransferPhase.AWAITING_FINAL_REPLY)
            reply = self.control.read_reply()
            request.final_reply = reply
            if reply.code not in COMPLETED_CODES:
                raise TransferError(f"{request.command} did not complete: {reply}",
                                    code=reply.code, phase=request.phase.value)
        except Exception as e:
            request.error = e
            if request.phase in REPLY_PENDING_PHASES and request.final_reply is None:
                # The server still owes a final reply for the trigger
                self.control.abandon()
            request.advance(TransferPhase.FAILED)
            logger.debug("transfer failed: %r", request)
            raise

        request.advance(TransferPhase.COMPLETED)
        logger.info("%s complete (%d bytes)", request.command, request.bytes_transferred)
        return request

    def _receive_sink(self, request, data):
        sink = request.local_target
        for chunk in data.iter_chunks(self.config.chunk_size):
            try:
                sink.write(chunk)
            except OSError as e:
                raise FileSystemError(f"Failed to write local data: {e}", phase=request.phase.value)
            request.bytes_transferred += len(chunk)

    def _send_source(self, request, data):
        source = request.local_target
        while True:
            try:
                chunk = source.read(self.config.chunk_size)
            except OSError as e:
                raise FileSystemError(f"Failed to read local data: {e}", phase=request.phase.value)
            if not chunk:
                break
            data.send(chunk)
            request.bytes_transferred += len(chunk)
        data.shutdown_write()
