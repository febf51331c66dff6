"""
Control channel
Owns the control connection: greeting, login and command/reply exchange
"""

import logging
import threading
from enum import Enum

from .config import ClientConfig
from .connection import ControlConnection
from .errors import AuthError, FTPConnectionError, FTPError, ProtocolError
from .parser import ResponseParser

logger = logging.getLogger("ftpclient.control")


class SessionState(Enum):
    """State of a control session"""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    AUTHENTICATING = "authenticating"
    READY = "ready"
    BUSY = "busy"
    CLOSED = "closed"


class ControlChannel:
    """Serialized command/reply exchange over one control connection"""

    def __init__(self, config=None):
        """
        Initialize control channel

        Args:
            config: ClientConfig (defaults apply when None)
        """
        self.config = config or ClientConfig()
        self.conn = ControlConnection(timeout=self.config.timeout, encoding=self.config.encoding)
        self.state = SessionState.DISCONNECTED
        self._exchange_lock = threading.Lock()

    @property
    def peer_host(self):
        return self.conn.peer_host

    def connect(self, endpoint):
        """
        Open the control connection and read the greeting

        Args:
            endpoint: Endpoint to connect to

        Returns:
            Reply: Greeting reply (220)
        """
        if self.state is not SessionState.DISCONNECTED:
            raise ProtocolError(f"Cannot connect from state {self.state.value}")

        self.state = SessionState.CONNECTING
        logger.info("Connecting to %s:%s", endpoint.host, endpoint.port)
        try:
            self.conn.connect(endpoint.host, endpoint.port)
        except FTPConnectionError:
            self.state = SessionState.CLOSED
            raise

        greeting = self.read_reply()
        if greeting.code != 220:
            self.close()
            raise ProtocolError(f"Unexpected greeting: {greeting}", code=greeting.code, phase='greeting')

        self.state = SessionState.READY
        return greeting

    def authenticate(self, user, password):
        """
        Log in with USER and PASS

        Args:
            user: User name
            password: Password (sent in clear text)

        Returns:
            Reply: The 230 reply
        """
        self._require(SessionState.READY)
        self.state = SessionState.AUTHENTICATING
        try:
            reply = self._exchange(f"USER {user}")
            if reply.code == 331:
                reply = self._exchange(f"PASS {password}")
        finally:
            if self.state is SessionState.AUTHENTICATING:
                self.state = SessionState.READY

        if reply.code != 230:
            raise AuthError(f"Login failed for {user}: {reply}", code=reply.code, phase='login')

        logger.info("Logged in as %s", user)
        return reply

    def send_command(self, text):
        """
        Send one command and read its complete reply

        Args:
            text: Command line without CRLF

        Returns:
            Reply: Parsed reply
        """
        self._require(SessionState.READY)
        return self._exchange(text)

    def read_reply(self):
        """
        Read the next complete reply without sending anything

        Returns:
            Reply: Parsed reply
        """
        with self._exchange_lock:
            return self._read()

    def close(self):
        """Send QUIT when possible and close the connection"""
        if self.state is SessionState.CLOSED:
            return
        if self.state is SessionState.READY:
            try:
                self._exchange("QUIT")
            except FTPError as e:
                logger.debug("QUIT failed: %s", e)
        self.conn.close()
        self.state = SessionState.CLOSED

    def abandon(self):
        """
        Close the connection without QUIT

        Used when a reply is still owed for an earlier command, so nothing
        more can be written on this channel.
        """
        if self.state is not SessionState.CLOSED:
            logger.debug("abandoning control connection to %s", self.conn.host)
        self.conn.close()
        self.state = SessionState.CLOSED

    def _require(self, state):
        if self.state is not state:
            raise ProtocolError(f"Control channel is {self.state.value}, expected {state.value}")

    def _exchange(self, text):
        with self._exchange_lock:
            previous = self.state
            self.state = SessionState.BUSY
            try:
                self._log_sent(text)
                self.conn.send_line(text)
                reply = self._read()
            except FTPConnectionError:
                self.state = SessionState.CLOSED
                raise
            self.state = previous
            return reply

    def _read(self):
        try:
            lines = self.conn.recv_multiline()
        except FTPConnectionError:
            self.state = SessionState.CLOSED
            raise
        for line in lines:
            logger.debug("<- %s", line)
        try:
            return ResponseParser.parse(lines)
        except ProtocolError:
            # Framing is lost; nothing after this can be trusted
            self.conn.close()
            self.state = SessionState.CLOSED
            raise

    def _log_sent(self, text):
        if text.upper().startswith("PASS "):
            logger.debug("-> PASS ****")
        else:
            logger.debug("-> %s", text)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
