import logging
import os
import posixpath
import tempfile
from contextlib import contextmanager
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Tuple

from .connection import ControlConnectionManager, TcpTransport, TransportFactory
from .data_connection import DataConnectionManager, TransferMode
from .errors import ConnectionClosedError, ConnectionFailedError, ProtocolError
from .parser import parse_directory, parse_listing
from .response import DirectoryResponse, FtpStatus, ListingResponse, Response

logger = logging.getLogger(__name__)

ANONYMOUS_USER = "anonymous"
ANONYMOUS_PASSWORD = "anonymous@"


class ClientState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    AUTHENTICATED = "authenticated"
    TRANSFER = "transfer"


def describe(command: str, parameter: str = "") -> str:
    """Command line as shown in logs and history, with passwords hidden."""
    if command.upper() == "PASS" and parameter:
        return "PASS ****"
    return f"{command} {parameter}".strip()


def reserve_partial(target: str) -> str:
    """Create an empty temporary file beside ``target`` and return its path."""
    directory, name = os.path.split(target)
    fd, partial = tempfile.mkstemp(prefix=f".{name}.", suffix=".part", dir=directory or ".")
    os.close(fd)
    return partial


class FtpClient:
    """
    Blocking FTP client over one control connection.

    Every operation returns a Response (or DirectoryResponse/ListingResponse).
    Server refusals come back as the server's own reply; transport, parsing
    and local file problems come back as the client sentinel statuses
    (FtpStatus.CONNECTION_FAILED, CONNECTION_CLOSED, INVALID_RESPONSE,
    INVALID_FILE). Operations are strictly sequential on one instance.
    """

    def __init__(self, transport_factory: TransportFactory = TcpTransport):
        self.transport_factory = transport_factory
        self.conn: Optional[ControlConnectionManager] = None
        self.state = ClientState.DISCONNECTED
        # history as list of dicts: {"time":..., "command":..., "response":..., "error":bool}
        self.history = []

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.state is not ClientState.DISCONNECTED:
            self.disconnect()

    def __del__(self):
        # close a still open control connection, without QUIT
        if getattr(self, "conn", None) is not None:
            self._drop_connection()

    @property
    def is_connected(self) -> bool:
        return self.state is not ClientState.DISCONNECTED

    @property
    def is_authenticated(self) -> bool:
        return self.state in (ClientState.AUTHENTICATED, ClientState.TRANSFER)

    # Internals ---------------------------------------------------------------

    def _record(self, command: str, response: Response, **extra):
        entry = {
            "time": datetime.now(timezone.utc),
            "command": command,
            "response": response,
            "error": not response.is_success
        }
        entry.update(extra)
        self.history.append(entry)

    def _ensure_idle(self):
        if self.state is ClientState.TRANSFER:
            raise RuntimeError("A transfer is already in progress on this connection.")

    def _drop_connection(self):
        if self.conn is not None:
            self.conn.disconnect()
        self.conn = None
        self.state = ClientState.DISCONNECTED

    def _get_response(self) -> Response:
        if self.conn is None:
            return Response(FtpStatus.CONNECTION_CLOSED, "Not connected")
        try:
            return self.conn.receive_response()
        except ConnectionClosedError as e:
            logger.warning(f"Control connection lost: {e}")
            self._drop_connection()
            return Response(FtpStatus.CONNECTION_CLOSED, str(e))

    def _send_command(self, command: str, parameter: str = "", record: bool = True) -> Response:
        if self.conn is None:
            response = Response(FtpStatus.CONNECTION_CLOSED, "Not connected")
        else:
            try:
                self.conn.send_command(command, parameter)
            except ConnectionClosedError as e:
                logger.warning(f"Control connection lost while sending {command}: {e}")
                self._drop_connection()
                response = Response(FtpStatus.CONNECTION_CLOSED, str(e))
            else:
                response = self._get_response()
        if record:
            self._record(describe(command, parameter), response)
        return response

    def _open_data_channel(self, mode: TransferMode) -> Tuple[Response, Optional[DataConnectionManager]]:
        """TYPE, PASV and connect. Returns the failing reply and no channel on error."""
        response = self._send_command("TYPE", mode.value)
        if not response.is_success:
            return response, None
        response = self._send_command("PASV")
        if not response.is_success:
            return response, None
        try:
            channel = DataConnectionManager.from_pasv(response, mode, self.transport_factory)
        except ProtocolError as e:
            return Response(FtpStatus.INVALID_RESPONSE, str(e), response.lines), None
        try:
            channel.connect(self.conn.timeout)
        except ConnectionFailedError as e:
            logger.error(f"[DATA] {e}")
            return Response(FtpStatus.CONNECTION_FAILED, str(e)), None
        return response, channel

    @contextmanager
    def _transfer(self, channel: DataConnectionManager):
        """Hold the TRANSFER state while ``channel`` is in use, and always close it."""
        previous = self.state
        self.state = ClientState.TRANSFER
        try:
            yield channel
        finally:
            channel.close()
            if self.state is ClientState.TRANSFER:
                self.state = previous

    # Connection --------------------------------------------------------------

    def connect(self, host: str, port: int = 21, timeout: float = 0) -> Response:
        """
        Open the control connection and return the server greeting.

        Args:
            host: Server hostname/IP
            port: Server port (default 21)
            timeout: Connect timeout in seconds, 0 for the system default
        """
        self._ensure_idle()
        if self.conn is not None:
            self._drop_connection()

        conn = ControlConnectionManager(host, port, timeout, self.transport_factory)
        try:
            conn.connect()
        except ConnectionFailedError as e:
            response = Response(FtpStatus.CONNECTION_FAILED, str(e))
            self._record(f"CONNECT {host}:{port}", response)
            return response

        self.conn = conn
        self.state = ClientState.CONNECTED
        response = self._get_response()
        self._record(f"CONNECT {host}:{port}", response)
        return response

    def disconnect(self) -> Response:
        """Send QUIT and close the control connection whatever the reply."""
        self._ensure_idle()
        response = self._send_command("QUIT")
        self._drop_connection()
        return response

    def close(self):
        """Drop the control connection without saying goodbye."""
        self._drop_connection()

    def login(self, user: str = ANONYMOUS_USER, password: str = ANONYMOUS_PASSWORD) -> Response:
        """Log in, anonymously when called without arguments."""
        self._ensure_idle()
        response = self._send_command("USER", user)
        if response.is_intermediate:
            response = self._send_command("PASS", password)
        if 200 <= response.status < 300 and self.state is ClientState.CONNECTED:
            self.state = ClientState.AUTHENTICATED
        return response

    def keep_alive(self) -> Response:
        self._ensure_idle()
        return self._send_command("NOOP")

    def send_command(self, command: str, parameter: str = "") -> Response:
        """Send a raw command and return its reply."""
        self._ensure_idle()
        return self._send_command(command, parameter)

    # Directories -------------------------------------------------------------

    def get_working_directory(self) -> DirectoryResponse:
        self._ensure_idle()
        response = self._send_command("PWD")
        return DirectoryResponse(response, parse_directory(response))

    def change_directory(self, directory: str) -> Response:
        self._ensure_idle()
        return self._send_command("CWD", directory)

    def parent_directory(self) -> Response:
        self._ensure_idle()
        return self._send_command("CDUP")

    def create_directory(self, name: str) -> DirectoryResponse:
        self._ensure_idle()
        response = self._send_command("MKD", name)
        return DirectoryResponse(response, parse_directory(response))

    def delete_directory(self, name: str) -> Response:
        self._ensure_idle()
        return self._send_command("RMD", name)

    def get_directory_listing(self, directory: str = "") -> ListingResponse:
        """Entries of ``directory`` (relative to the working directory) as sent by LIST."""
        return self._listing("LIST", directory)

    def get_name_listing(self, directory: str = "") -> ListingResponse:
        """Like get_directory_listing but with NLST, which sends bare names."""
        return self._listing("NLST", directory)

    def _listing(self, command: str, directory: str) -> ListingResponse:
        self._ensure_idle()
        response, channel = self._open_data_channel(TransferMode.ASCII)
        if channel is None:
            return ListingResponse(response)

        prelim = None
        payload = b''
        with self._transfer(channel):
            response = self._send_command(command, directory, record=False)
            if response.is_success:
                try:
                    payload = channel.receive_all()
                except ConnectionClosedError as e:
                    logger.warning(f"[DATA] Listing interrupted: {e}")
        if response.is_preliminary:
            prelim = response
            response = self._get_response()

        listing = parse_listing(payload) if response.is_success else ()
        self._record(describe(command, directory), response, prelim=prelim, data=payload.decode('utf-8', errors='replace'))
        return ListingResponse(response, listing)

    # Files -------------------------------------------------------------------

    def rename_file(self, old_name: str, new_name: str) -> Response:
        """RNFR then, unless the server refused it, RNTO."""
        self._ensure_idle()
        response = self._send_command("RNFR", old_name)
        if response.is_success:
            response = self._send_command("RNTO", new_name)
        return response

    def delete_file(self, name: str) -> Response:
        self._ensure_idle()
        return self._send_command("DELE", name)

    def download(self, remote_file: str, local_path: str, mode: TransferMode = TransferMode.BINARY) -> Response:
        """
        Download ``remote_file`` into the directory ``local_path``.

        Data goes to a temporary file next to the target, which replaces the
        target (the remote file's base name) only once the server confirms the
        transfer. A failed download leaves any existing local file untouched.
        """
        self._ensure_idle()
        response, channel = self._open_data_channel(mode)
        if channel is None:
            return response

        target = os.path.join(local_path, posixpath.basename(remote_file))
        prelim = None
        write_error = None
        with self._transfer(channel):
            try:
                partial = reserve_partial(target)
            except OSError as e:
                logger.error(f"Cannot create {target}: {e}")
                response = Response(FtpStatus.INVALID_FILE, f"Cannot create {target}: {e}")
                self._record(describe("RETR", remote_file), response, file=target)
                return response

            # open, write and close failures all end up here
            try:
                with open(partial, 'wb') as sink:
                    response = self._send_command("RETR", remote_file, record=False)
                    if response.is_success:
                        try:
                            channel.receive_into(sink)
                        except ConnectionClosedError as e:
                            logger.warning(f"[DATA] Download interrupted: {e}")
            except OSError as e:
                logger.error(f"Cannot write {target}: {e}")
                write_error = e

        if response.is_preliminary:
            prelim = response
            response = self._get_response()

        if write_error is None and response.is_success:
            try:
                os.replace(partial, target)
            except OSError as e:
                logger.error(f"Cannot write {target}: {e}")
                write_error = e
        if write_error is not None:
            response = Response(FtpStatus.INVALID_FILE, f"Cannot write {target}: {write_error}")

        if not response.is_success:
            try:
                os.remove(partial)
            except OSError:
                logger.warning(f"Could not remove partial download {partial}")

        self._record(describe("RETR", remote_file), response, prelim=prelim, file=target)
        return response

    def upload(self, local_file: str, remote_path: str, mode: TransferMode = TransferMode.BINARY,
               append: bool = False) -> Response:
        """
        Upload ``local_file`` into the remote directory ``remote_path``
        (the working directory when empty), appending when ``append`` is set.
        """
        self._ensure_idle()
        command = "APPE" if append else "STOR"
        filename = os.path.basename(local_file)
        remote_file = posixpath.join(remote_path, filename) if remote_path else filename

        try:
            source = open(local_file, 'rb')
        except OSError as e:
            logger.error(f"Cannot read {local_file}: {e}")
            response = Response(FtpStatus.INVALID_FILE, f"Cannot read {local_file}: {e}")
            self._record(describe(command, remote_file), response, file=local_file)
            return response

        with source:
            response, channel = self._open_data_channel(mode)
            if channel is None:
                return response

            prelim = None
            read_error = None
            with self._transfer(channel):
                response = self._send_command(command, remote_file, record=False)
                if response.is_success:
                    try:
                        channel.send_stream(source)
                    except ConnectionClosedError as e:
                        logger.warning(f"[DATA] Upload interrupted: {e}")
                    except OSError as e:
                        logger.error(f"Cannot read {local_file}: {e}")
                        read_error = e

        if response.is_preliminary:
            prelim = response
            response = self._get_response()
        if read_error is not None:
            response = Response(FtpStatus.INVALID_FILE, f"Cannot read {local_file}: {read_error}")

        self._record(describe(command, remote_file), response, prelim=prelim, file=local_file)
        return response

    # Helpers for UI
    def get_history(self):
        """Return a copy of the history list."""
        return list(self.history)

    def clear_history(self):
        self.history.clear()
