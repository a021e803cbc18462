"""
Client configuration.
Values come from the environment; command line flags in entrypoint.py override them.
"""

import logging
import os
from dataclasses import dataclass
from functools import partial
from typing import Optional

from .core.connection import TcpTransport

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def _env_float(name: str, default: Optional[float]) -> Optional[float]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {value!r}")


def _env_flag(name: str, default: str = '0') -> bool:
    return os.getenv(name, default).lower() in ('1', 'true', 'yes')


@dataclass
class ClientConfig:
    host: str = "127.0.0.1"
    port: int = 21
    connect_timeout: float = 10.0
    io_timeout: Optional[float] = None
    user: Optional[str] = None
    password: Optional[str] = None
    download_dir: str = "/tmp"
    log_level: str = "INFO"
    fast_start: bool = False

    @classmethod
    def from_env(cls) -> "ClientConfig":
        port = os.getenv("FTP_PORT", "21")
        try:
            port = int(port)
        except ValueError:
            raise ValueError(f"FTP_PORT must be an integer, got {port!r}")
        return cls(
            host=os.getenv("FTP_HOST", "127.0.0.1"),
            port=port,
            connect_timeout=_env_float("FTP_CONNECT_TIMEOUT", 10.0),
            io_timeout=_env_float("FTP_IO_TIMEOUT", None),
            user=os.getenv("FTP_USER") or None,
            password=os.getenv("FTP_PASSWORD") or None,
            download_dir=os.getenv("FTP_DOWNLOAD_DIR", "/tmp"),
            log_level=os.getenv("FTP_LOG_LEVEL", "INFO").upper(),
            fast_start=_env_flag("CLIENT_FAST_START"),
        )

    @property
    def anonymous(self) -> bool:
        return self.user is None

    def transport_factory(self):
        """Transport constructor carrying the configured socket timeout."""
        return partial(TcpTransport, io_timeout=self.io_timeout)


def configure_logging(level: str = "INFO"):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT
    )
