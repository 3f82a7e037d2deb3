# errors.py
from enum import StrEnum
from typing import Optional


class ErrorKind(StrEnum):
    TIMEOUT = "timeout"
    CONNECTION_RESET = "connection_reset"
    CONNECTION_REFUSED = "connection_refused"
    RATE_LIMITED = "rate_limited"
    BAD_GATEWAY = "bad_gateway"
    SERVICE_UNAVAILABLE = "service_unavailable"
    GATEWAY_TIMEOUT = "gateway_timeout"
    SERVER_ERROR = "server_error"
    CLIENT_ERROR = "client_error"

    @property
    def marker(self) -> Optional[str]:
        """The retry marker this kind answers to, if any."""
        return _MARKERS.get(self)

    @classmethod
    def from_status(cls, status_code: int) -> "ErrorKind":
        if status_code == 429:
            return cls.RATE_LIMITED
        if status_code == 502:
            return cls.BAD_GATEWAY
        if status_code == 503:
            return cls.SERVICE_UNAVAILABLE
        if status_code == 504:
            return cls.GATEWAY_TIMEOUT
        if status_code >= 500:
            return cls.SERVER_ERROR
        return cls.CLIENT_ERROR


_MARKERS = {
    ErrorKind.TIMEOUT: "ETIMEDOUT",
    ErrorKind.CONNECTION_RESET: "ECONNRESET",
    ErrorKind.CONNECTION_REFUSED: "ECONNREFUSED",
    ErrorKind.RATE_LIMITED: "429",
    ErrorKind.BAD_GATEWAY: "502",
    ErrorKind.SERVICE_UNAVAILABLE: "503",
    ErrorKind.GATEWAY_TIMEOUT: "504",
}


class TransportError(Exception):
    """A remote call failed; ``kind`` says whether trying again can help."""

    def __init__(self, message: str, kind: ErrorKind, status_code: Optional[int] = None):
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code


class RetryExhaustedError(Exception):
    def __init__(self, original_error: BaseException, attempts: int):
        super().__init__(f"Failed after {attempts} attempts: {original_error}")
        self.original_error = original_error
        self.attempts = attempts


class ConfigError(Exception):
    """Raised when settings are missing or invalid."""


class ReviewParseError(Exception):
    """Raised when the model's answer holds no usable JSON."""
