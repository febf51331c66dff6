"""
Per-invocation FTP session
Owns one control channel and its orchestrator for the lifetime of one operation
"""

import logging

from .config import ClientConfig
from .control import ControlChannel
from .transfer import TransferOrchestrator

logger = logging.getLogger("ftpclient.client")


class Session:
    """Disposable connected and authenticated session against one endpoint"""

    def __init__(self, endpoint, config=None):
        """
        Initialize session

        Args:
            endpoint: Endpoint to operate on
            config: ClientConfig (defaults apply when None)
        """
        self.endpoint = endpoint
        self.config = config or ClientConfig()
        self.control = ControlChannel(self.config)
        self.orchestrator = TransferOrchestrator(self.control, self.config)

    def open(self):
        """Connect and log in"""
        try:
            self.control.connect(self.endpoint)
            self.control.authenticate(self.endpoint.user, self.endpoint.password)
        except BaseException:
            self.close()
            raise
        return self

    def list(self, path=None):
        """List a remote directory (defaults to the endpoint path)"""
        return self.orchestrator.list(path or self.endpoint.path)

    def mkdir(self, path=None):
        return self.orchestrator.mkdir(path or self.endpoint.path)

    def rmdir(self, path=None):
        return self.orchestrator.rmdir(path or self.endpoint.path)

    def delete(self, path=None):
        return self.orchestrator.delete(path or self.endpoint.path)

    def retrieve(self, sink, path=None):
        """Download the endpoint file into sink"""
        return self.orchestrator.retrieve(path or self.endpoint.path, sink)

    def store(self, source, path=None):
        """Upload source to the endpoint file"""
        return self.orchestrator.store(source, path or self.endpoint.path)

    def close(self):
        """Close the control connection (data connections are scoped per transfer)"""
        self.control.close()
        logger.debug("session to %s closed", self.endpoint)

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
