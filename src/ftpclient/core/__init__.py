from .client import Session
from .config import ClientConfig
from .connection import ControlConnection, DataConnection
from .control import ControlChannel, SessionState
from .copymove import CopyMoveCoordinator
from .endpoint import Endpoint, is_remote
from .errors import (AuthError, DeleteAfterCopyError, DeleteError,
                     DirectoryError, FileSystemError, FTPConnectionError,
                     FTPError, FTPTimeoutError, InvalidOperationError,
                     ProtocolError, TransferError)
from .parser import Reply, ResponseParser
from .passive import DataChannelDescriptor, PassiveDataChannel
from .transfer import (TransferOrchestrator, TransferPhase, TransferRequest,
                       TransferType)

__all__ = ['Session', 'ClientConfig',
           'ControlConnection', 'DataConnection',
           'ControlChannel', 'SessionState',
           'CopyMoveCoordinator',
           'Endpoint', 'is_remote',
           'FTPError', 'FTPConnectionError', 'FTPTimeoutError', 'AuthError',
           'ProtocolError', 'TransferError', 'DirectoryError', 'DeleteError',
           'FileSystemError', 'InvalidOperationError', 'DeleteAfterCopyError',
           'Reply', 'ResponseParser',
           'DataChannelDescriptor', 'PassiveDataChannel',
           'TransferOrchestrator', 'TransferPhase', 'TransferRequest', 'TransferType']
