"""Blocking passive-mode FTP client with a Streamlit front end."""

from .core import (
    DirectoryResponse,
    FtpClient,
    FtpStatus,
    ListingResponse,
    Response,
    TransferMode,
)

__version__ = "0.1.0"

__all__ = [
    "FtpClient",
    "FtpStatus",
    "Response",
    "DirectoryResponse",
    "ListingResponse",
    "TransferMode"
]
