"""
Passive data channel
Negotiates a data connection with PASV and opens it
"""

import logging
from dataclasses import dataclass

from .connection import DataConnection
from .parser import ResponseParser

logger = logging.getLogger("ftpclient.passive")


@dataclass(frozen=True)
class DataChannelDescriptor:
    """Data endpoint advertised by a 227 reply"""

    ip: str
    port: int

    def __str__(self):
        return f"{self.ip}:{self.port}"


class PassiveDataChannel:
    """Opens per-transfer data connections in passive mode"""

    def __init__(self, config):
        """
        Initialize passive data channel

        Args:
            config: ClientConfig with timeout and NAT policy
        """
        self.config = config

    @staticmethod
    def parse_descriptor(reply):
        """
        Build a descriptor from a PASV reply

        Args:
            reply: Reply to PASV

        Returns:
            DataChannelDescriptor: Advertised data endpoint
        """
        ip, port = ResponseParser.parse_pasv_response(reply)
        return DataChannelDescriptor(ip, port)

    def negotiate(self, control):
        """
        Send PASV and connect to the advertised endpoint

        Args:
            control: ControlChannel in READY state

        Returns:
            DataConnection: Connected data socket, owned by the caller
        """
        reply = control.send_command("PASV")
        descriptor = self.resolve(self.parse_descriptor(reply), control.peer_host)

        logger.debug("opening data connection to %s", descriptor)
        conn = DataConnection(descriptor.ip, descriptor.port, timeout=self.config.timeout)
        conn.connect()
        return conn

    def resolve(self, descriptor, control_host):
        """
        Apply the NAT policy to an advertised descriptor

        Args:
            descriptor: Descriptor parsed from 227
            control_host: Peer address of the control connection

        Returns:
            DataChannelDescriptor: Endpoint to actually connect to
        """
        if control_host is None or control_host == descriptor.ip:
            return descriptor

        if self.config.use_control_host:
            logger.warning("PASV advertised %s, using control host %s instead",
                           descriptor.ip, control_host)
            return DataChannelDescriptor(control_host, descriptor.port)

        logger.warning("PASV advertised %s but control peer is %s; server may be behind NAT",
                       descriptor.ip, control_host)
        return descriptor
