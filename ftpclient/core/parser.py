import logging
import re
from typing import List, Optional, Tuple

from .errors import ProtocolError
from .response import FtpStatus, Response, to_status

logger = logging.getLogger(__name__)

# "DDD text", "DDD-text" or a bare "DDD"
REPLY_LINE = re.compile(r'(\d{3})([ -]|\Z)(.*)', re.DOTALL)
PASV_ADDRESS = re.compile(r'(\d+)\s*,\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)')
QUOTED_PATH = re.compile(r'"((?:[^"]|"")*)"')


class ReplyParser:
    """
    Rebuilds complete FTP replies out of the bytes received on a control connection.

    Bytes are appended with ``feed``; ``next_reply`` hands back one reply at a
    time once its last line has arrived and leaves anything incomplete in the
    buffer for the next call.
    """

    def __init__(self):
        self.buffer = bytearray()

    def feed(self, data: bytes):
        self.buffer.extend(data)

    def reset(self):
        self.buffer.clear()

    def _read_line(self, start: int) -> Tuple[Optional[str], int]:
        end = self.buffer.find(b'\n', start)
        if end == -1:
            return None, start
        raw = bytes(self.buffer[start:end])
        if raw.endswith(b'\r'):
            raw = raw[:-1]
        return raw.decode('utf-8', errors='replace'), end + 1

    def next_reply(self) -> Optional[Response]:
        first, pos = self._read_line(0)
        if first is None:
            return None

        match = REPLY_LINE.match(first)
        if not match:
            del self.buffer[:pos]
            logger.error(f"Invalid FTP response format: {first!r}")
            return Response(FtpStatus.INVALID_RESPONSE, first, (first,))

        code, separator, text = match.groups()
        lines: List[str] = [first]
        parts: List[str] = [text]

        if separator == '-':
            # Only "<same code><SP>" (or the bare code) closes a multi-line reply
            while True:
                line, pos = self._read_line(pos)
                if line is None:
                    return None
                lines.append(line)
                if line == code or line.startswith(code + ' '):
                    parts.append(line[4:])
                    break
                parts.append(line)

        del self.buffer[:pos]
        response = Response(to_status(int(code)), '\n'.join(parts), tuple(lines))
        logger.debug(f"Parsed response: code={code}, type={response.type}, message={response.message[:50]}")
        return response


def parse_pasv_address(message: str) -> Tuple[str, int]:
    """
    Extract the data connection address from a PASV reply.

    Example:
        "Entering Passive Mode (192,168,1,10,19,136)."
        Returns: ("192.168.1.10", 5000)  # 19*256 + 136
    """
    start = message.find('(')
    if start != -1:
        text = message[start + 1:]
    else:
        text = message[4:] if REPLY_LINE.match(message) else message

    match = PASV_ADDRESS.search(text)
    if not match:
        logger.error(f"Failed to parse PASV response: {message}")
        raise ProtocolError(f"Invalid PASV response: {message}")

    numbers = [int(part) for part in match.groups()]
    if any(number > 255 for number in numbers):
        raise ProtocolError(f"PASV value out of range: {message}")

    ip = '.'.join(str(number) for number in numbers[:4])
    port = numbers[4] * 256 + numbers[5]
    logger.debug(f"PASV parsed: {ip}:{port}")
    return ip, port


def parse_directory(response: Response) -> str:
    """First quoted path in a successful PWD/MKD reply, "" otherwise."""
    if not response.is_success:
        return ""
    match = QUOTED_PATH.search(response.message)
    if not match:
        return ""
    # RFC 959 doubles quotes that are part of the path
    return match.group(1).replace('""', '"')


def parse_listing(payload: bytes) -> Tuple[str, ...]:
    text = payload.decode('utf-8', errors='replace')
    entries = [line[:-1] if line.endswith('\r') else line for line in text.split('\n')]
    if entries and entries[-1] == '':
        entries.pop()
    return tuple(entries)
