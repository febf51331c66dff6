"""
Connection module for handling socket communications
Manages control and data connections
"""

import logging
import socket
import threading

from .errors import FTPConnectionError, FTPTimeoutError
from .parser import ResponseParser

logger = logging.getLogger("ftpclient.connection")

CRLF = b'\r\n'
MAX_LINE = 8192


class BaseConnection:
    """Manages a single socket connection"""

    def __init__(self, host=None, port=None, timeout=30):
        """
        Initialize connection

        Args:
            host: Remote host address
            port: Remote port number
            timeout: Socket timeout in seconds (None blocks forever)
        """
        self.host = host
        self.port = port
        self.timeout = timeout
        self.sock = None
        self.is_connected = False
        self._lock = threading.Lock()

    def connect(self, host=None, port=None):
        """
        Establish connection to a server

        Args:
            host: Remote host (overrides init value if provided)
            port: Remote port (overrides init value if provided)
        """
        if host:
            self.host = host
        if port:
            self.port = port

        try:
            self.sock = socket.create_connection((self.host, self.port), timeout=self.timeout)
        except socket.timeout as e:
            self.close()
            raise FTPTimeoutError(f"Timed out connecting to {self.host}:{self.port}: {e}")
        except OSError as e:
            self.close()
            raise FTPConnectionError(f"Failed to connect to {self.host}:{self.port}: {e}")

        self.is_connected = True
        logger.debug("connected to %s:%s", self.host, self.port)

    @property
    def peer_host(self):
        """Host address of the connected peer"""
        if not self.is_connected:
            return None
        return self.sock.getpeername()[0]

    def send(self, data):
        """
        Send data through socket

        Args:
            data: Bytes to send
        """
        if not self.is_connected:
            raise FTPConnectionError("Not connected")

        try:
            with self._lock:
                self.sock.sendall(data)
        except socket.timeout as e:
            self.close()
            raise FTPTimeoutError(f"Timed out sending to {self.host}:{self.port}: {e}")
        except OSError as e:
            # Connection broken - close and re-raise
            self.close()
            raise FTPConnectionError(f"Connection lost: {e}")

    def recv(self, buffer_size=8192):
        """
        Receive data from socket

        Args:
            buffer_size: Maximum bytes to receive

        Returns:
            bytes: Received data, empty at end of stream
        """
        if not self.is_connected:
            raise FTPConnectionError("Not connected")

        try:
            return self.sock.recv(buffer_size)
        except socket.timeout as e:
            self.close()
            raise FTPTimeoutError(f"Timed out reading from {self.host}:{self.port}: {e}")
        except OSError as e:
            self.close()
            raise FTPConnectionError(f"Connection lost: {e}")

    def close(self):
        """Close the connection"""
        if self.sock:
            try:
                self.sock.close()
            except OSError as e:
                logger.debug("error closing socket to %s:%s: %s", self.host, self.port, e)
            self.sock = None
        self.is_connected = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class ControlConnection(BaseConnection):
    """Manages the FTP control connection"""

    def __init__(self, host=None, port=21, timeout=30, encoding='utf-8'):
        """
        Initialize control connection

        Args:
            host: FTP server host
            port: FTP server port (default 21)
            timeout: Connection timeout in seconds
            encoding: Text encoding of control lines
        """
        super().__init__(host, port, timeout)
        self.encoding = encoding
        self._buffer = b''
        self._recv_lock = threading.RLock()

    def send_line(self, text):
        """Send one command line terminated by CRLF"""
        self.send(text.encode(self.encoding) + CRLF)

    def recv_line(self):
        """
        Receive a line of text (until CRLF)

        Returns:
            str: Received line without CRLF
        """
        with self._recv_lock:
            while CRLF not in self._buffer:
                if len(self._buffer) > MAX_LINE:
                    self.close()
                    raise FTPConnectionError("Control line too long")
                chunk = self.recv()
                if not chunk:
                    # Connection closed by remote mid-reply
                    self.close()
                    raise FTPConnectionError("Connection closed by remote")
                self._buffer += chunk
            line, self._buffer = self._buffer.split(CRLF, 1)
            return line.decode(self.encoding, errors='replace')

    def recv_multiline(self):
        """
        Receive multiline response (RFC 959 section 4.2)

        Returns:
            list: List of response lines
        """
        with self._recv_lock:
            lines = []
            first_line = self.recv_line()
            lines.append(first_line)

            # Check if multiline response '-' follows the code
            if len(first_line) >= 4 and first_line[3] == '-':
                code = first_line[:3]
                while True:
                    line = self.recv_line()
                    lines.append(line)
                    # End of multiline when the code reappears without '-'
                    if ResponseParser.is_closing_line(line, code):
                        break

            return lines

    def close(self):
        super().close()
        self._buffer = b''


class DataConnection(BaseConnection):
    """Manages one passive-mode data connection"""

    def iter_chunks(self, chunk_size=8192):
        """
        Yield received chunks until the peer closes the connection

        Args:
            chunk_size: Maximum bytes per chunk
        """
        while True:
            chunk = self.recv(chunk_size)
            if not chunk:
                return
            yield chunk

    def shutdown_write(self):
        """Signal end of data to the peer (half-close)"""
        if not self.is_connected:
            return
        try:
            self.sock.shutdown(socket.SHUT_WR)
        except OSError as e:
            self.close()
            raise FTPConnectionError(f"Failed to close data stream: {e}")
