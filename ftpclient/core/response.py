"""
FTP reply model.
Status codes, the base reply value and the directory/listing results built on it.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Tuple, Union


class FtpStatus(IntEnum):
    """Reply codes the client knows about, plus client-side sentinels."""

    # 1xx: action initiated, another reply follows
    RESTART_MARKER_REPLY = 110
    SERVICE_READY_SOON = 120
    DATA_CONNECTION_ALREADY_OPENED = 125
    OPENING_DATA_CONNECTION = 150

    # 2xx: action completed
    OK = 200
    POINTLESS_COMMAND = 202
    SYSTEM_STATUS = 211
    DIRECTORY_STATUS = 212
    FILE_STATUS = 213
    HELP_MESSAGE = 214
    SYSTEM_TYPE = 215
    SERVICE_READY = 220
    CLOSING_CONNECTION = 221
    DATA_CONNECTION_OPENED = 225
    CLOSING_DATA_CONNECTION = 226
    ENTERING_PASSIVE_MODE = 227
    LOGGED_IN = 230
    FILE_ACTION_OK = 250
    DIRECTORY_OK = 257

    # 3xx: accepted, waiting for more information
    NEED_PASSWORD = 331
    NEED_ACCOUNT_TO_LOGIN = 332
    NEED_INFORMATION = 350

    # 4xx: transient failure
    SERVICE_UNAVAILABLE = 421
    DATA_CONNECTION_UNAVAILABLE = 425
    TRANSFER_ABORTED = 426
    FILE_ACTION_ABORTED = 450
    LOCAL_ERROR = 451
    INSUFFICIENT_STORAGE_SPACE = 452

    # 5xx: permanent failure
    COMMAND_UNKNOWN = 500
    PARAMETERS_UNKNOWN = 501
    COMMAND_NOT_IMPLEMENTED = 502
    BAD_COMMAND_SEQUENCE = 503
    PARAMETER_NOT_IMPLEMENTED = 504
    NOT_LOGGED_IN = 530
    NEED_ACCOUNT_TO_STORE = 532
    FILE_UNAVAILABLE = 550
    PAGE_TYPE_UNKNOWN = 551
    NOT_ENOUGH_MEMORY = 552
    FILENAME_NOT_ALLOWED = 553

    # Never sent by a server, synthesized by the client
    INVALID_RESPONSE = 1000
    CONNECTION_FAILED = 1001
    CONNECTION_CLOSED = 1002
    INVALID_FILE = 1003


RESPONSE_TYPES = {
    '1': 'preliminary',
    '2': 'success',
    '3': 'missing_info',
    '4': 'error',
    '5': 'error'
}


def to_status(code: int) -> Union[FtpStatus, int]:
    """Map a numeric code onto ``FtpStatus``, keeping unknown codes as plain ints."""
    try:
        return FtpStatus(code)
    except ValueError:
        return code


@dataclass(frozen=True)
class Response:
    """A single FTP reply (or a locally synthesized failure)."""

    status: int = FtpStatus.INVALID_RESPONSE
    message: str = ""
    lines: Tuple[str, ...] = field(default=(), compare=False)

    @property
    def is_success(self) -> bool:
        return self.status < 400

    @property
    def is_preliminary(self) -> bool:
        return 100 <= self.status < 200

    @property
    def is_intermediate(self) -> bool:
        return 300 <= self.status < 400

    @property
    def is_error(self) -> bool:
        return not self.is_success

    @property
    def is_sentinel(self) -> bool:
        """True for the statuses the client makes up itself (>= 1000)."""
        return self.status >= 1000

    @property
    def type(self) -> str:
        if self.is_sentinel:
            return 'unknown'
        return RESPONSE_TYPES.get(str(self.status // 100), 'unknown')

    def __str__(self):
        return f"{int(self.status)} {self.message}"


@dataclass(frozen=True)
class DirectoryResponse:
    """Reply to PWD/MKD together with the directory it names."""

    response: Response
    directory: str = ""

    @property
    def status(self) -> int:
        return self.response.status

    @property
    def message(self) -> str:
        return self.response.message

    @property
    def is_success(self) -> bool:
        return self.response.is_success

    def __str__(self):
        return str(self.response)


@dataclass(frozen=True)
class ListingResponse:
    """Final LIST/NLST reply plus the entry lines read from the data channel."""

    response: Response
    listing: Tuple[str, ...] = ()

    @property
    def status(self) -> int:
        return self.response.status

    @property
    def message(self) -> str:
        return self.response.message

    @property
    def is_success(self) -> bool:
        return self.response.is_success

    def __str__(self):
        return str(self.response)
