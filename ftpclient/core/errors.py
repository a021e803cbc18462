"""Exceptions passed between the connection layers and the command engine.

None of these escape the public ``FtpClient`` operations: the engine turns
each one into a ``Response`` carrying the matching client sentinel status.
"""


class FtpError(Exception):
    """Base class for client side FTP failures."""


class ProtocolError(FtpError):
    """The server sent something that does not follow the reply grammar."""


class ConnectionFailedError(FtpError, ConnectionError):
    """A control or data connection could not be established."""


class ConnectionClosedError(FtpError, ConnectionError):
    """The peer closed the connection or a send/receive failed."""
