import socket
import logging
from typing import Callable, Optional

from .errors import ConnectionClosedError, ConnectionFailedError
from .parser import ReplyParser
from .response import Response

logger = logging.getLogger(__name__)

RECV_SIZE = 4096


class TcpTransport:
    """Thin blocking wrapper around a TCP socket."""

    def __init__(self, io_timeout: Optional[float] = None):
        self.io_timeout = io_timeout
        self.socket: Optional[socket.socket] = None

    def connect(self, host: str, port: int, timeout: Optional[float] = None):
        if self.socket is not None:
            raise RuntimeError("Connection already established.")
        try:
            # timeout 0/None means the system default
            self.socket = socket.create_connection((host, port), timeout=timeout or None)
            self.socket.settimeout(self.io_timeout)
        except (socket.timeout, ConnectionRefusedError, OSError) as e:
            self.socket = None
            raise ConnectionFailedError(f"Failed to connect to {host}:{port} - {e}") from e

    def send(self, data: bytes):
        if self.socket is None:
            raise ConnectionClosedError("Not connected")
        try:
            self.socket.sendall(data)
        except OSError as e:
            raise ConnectionClosedError(f"Connection lost: {e}") from e

    def recv(self, size: int = RECV_SIZE) -> bytes:
        if self.socket is None:
            raise ConnectionClosedError("Not connected")
        try:
            return self.socket.recv(size)
        except OSError as e:
            raise ConnectionClosedError(f"Connection lost: {e}") from e

    def close(self):
        if self.socket:
            try:
                self.socket.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            self.socket.close()
        self.socket = None


TransportFactory = Callable[[], TcpTransport]


class ControlConnectionManager:
    """Owns the control socket and the buffer of bytes not yet parsed into replies."""

    def __init__(self, host: str, port: int, timeout: float = 10.0,
                 transport_factory: TransportFactory = TcpTransport):
        self.host = host
        self.port = port
        self.timeout = timeout
        self.transport_factory = transport_factory
        self.transport: Optional[TcpTransport] = None
        self.parser = ReplyParser()

    @property
    def is_connected(self) -> bool:
        return self.transport is not None

    def connect(self):
        if self.transport is not None:
            raise RuntimeError("Connection already established.")
        logger.info(f"Connecting to {self.host}:{self.port} (timeout={self.timeout}s)")
        transport = self.transport_factory()
        try:
            transport.connect(self.host, self.port, self.timeout)
        except ConnectionFailedError as e:
            logger.error(f"✗ {e}")
            raise
        self.transport = transport
        self.parser.reset()
        logger.info(f"✓ Connected to {self.host}:{self.port}")

    def disconnect(self):
        if self.transport:
            logger.info(f"Closing connection to {self.host}:{self.port}")
            self.transport.close()
            logger.info(f"✓ Disconnected from {self.host}:{self.port}")
        self.transport = None
        self.parser.reset()

    def send_command(self, command: str, parameter: str = ""):
        if self.transport is None:
            raise ConnectionClosedError("No connection established.")
        line = f"{command} {parameter}" if parameter else command
        shown = f"{command} ****" if command.upper() == "PASS" and parameter else line
        logger.debug(f"→ SEND: {shown}")
        self.transport.send((line + '\r\n').encode('utf-8'))

    def receive_response(self) -> Response:
        """Block until the parser has a complete reply."""
        if self.transport is None:
            raise ConnectionClosedError("No connection established.")
        while True:
            response = self.parser.next_reply()
            if response is not None:
                logger.debug(f"← RECV: {response}")
                return response
            data = self.transport.recv(RECV_SIZE)
            if not data:
                raise ConnectionClosedError(f"Connection closed by {self.host}:{self.port}")
            self.parser.feed(data)
