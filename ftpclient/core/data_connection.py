import logging
from enum import Enum
from typing import BinaryIO, Optional

from .connection import RECV_SIZE, TcpTransport, TransportFactory
from .parser import parse_pasv_address
from .response import Response

logger = logging.getLogger(__name__)


class TransferMode(Enum):
    """Representation type sent with TYPE before each transfer."""
    BINARY = "I"
    ASCII = "A"
    EBCDIC = "E"


class DataConnectionManager:
    def __init__(self, ip: str, port: int, mode: TransferMode = TransferMode.BINARY,
                 transport_factory: TransportFactory = TcpTransport):
        """
        Passive mode data connection, good for a single listing or transfer.
        Bytes are moved as-is in every mode, there is no CRLF translation.
        """
        self.ip = ip
        self.port = port
        self.mode = mode
        self.transport_factory = transport_factory
        self.transport: Optional[TcpTransport] = None
        self.used = False

    @classmethod
    def from_pasv(cls, response: Response, mode: TransferMode = TransferMode.BINARY,
                  transport_factory: TransportFactory = TcpTransport) -> "DataConnectionManager":
        ip, port = parse_pasv_address(response.message)
        return cls(ip, port, mode, transport_factory)

    def connect(self, timeout: Optional[float] = None):
        """
        Open the TCP connection to the address announced by the server.
        Raises ConnectionFailedError if it cannot be reached.
        """
        if self.used:
            raise RuntimeError("Data connection is single use.")
        self.used = True
        transport = self.transport_factory()
        transport.connect(self.ip, self.port, timeout)
        self.transport = transport
        logger.info(f"[DATA] Connected to {self.ip}:{self.port} (mode={self.mode.name})")

    def close(self):
        if self.transport:
            self.transport.close()
            self.transport = None
            logger.info(f"[DATA] Disconnected from {self.ip}:{self.port}")

    def receive_into(self, sink: BinaryIO) -> int:
        """
        Copy everything the server sends into ``sink`` until it closes the connection.
        Returns the number of bytes received.
        """
        total = 0
        while True:
            data = self.transport.recv(RECV_SIZE)
            if not data:
                break
            sink.write(data)
            total += len(data)
        logger.debug(f"[DATA] Received {total} bytes")
        return total

    def receive_all(self) -> bytes:
        chunks = []
        while True:
            data = self.transport.recv(RECV_SIZE)
            if not data:
                break
            chunks.append(data)
        return b''.join(chunks)

    def send_stream(self, source: BinaryIO) -> int:
        """Send the whole content of ``source``. Returns the number of bytes sent."""
        total = 0
        while chunk := source.read(RECV_SIZE):
            self.transport.send(chunk)
            total += len(chunk)
        logger.debug(f"[DATA] Sent {total} bytes")
        return total
