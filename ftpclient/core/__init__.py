"""
Core FTP Client logic.
Includes connection managers, reply parser, response model and the command engine.
"""

from .connection import ControlConnectionManager, TcpTransport
from .data_connection import DataConnectionManager, TransferMode
from .commands import ClientState, FtpClient
from .errors import ConnectionClosedError, ConnectionFailedError, FtpError, ProtocolError
from .parser import ReplyParser, parse_directory, parse_listing, parse_pasv_address
from .response import DirectoryResponse, FtpStatus, ListingResponse, Response

__all__ = [
    "ControlConnectionManager",
    "TcpTransport",
    "DataConnectionManager",
    "TransferMode",
    "ClientState",
    "FtpClient",
    "FtpError",
    "ProtocolError",
    "ConnectionFailedError",
    "ConnectionClosedError",
    "ReplyParser",
    "parse_directory",
    "parse_listing",
    "parse_pasv_address",
    "Response",
    "DirectoryResponse",
    "ListingResponse",
    "FtpStatus"
]
