"""Failure taxonomy for the poster pipeline.

Every error raised by the pipeline is a :class:`PosterServiceError` tagged with
an :class:`ErrorKind`.  The HTTP layer turns each kind into the
``{"error": message}`` payload and its status code.
"""
from __future__ import annotations

from enum import Enum

TIMEOUT_MESSAGE = "Timed out. Try again (image was likely too large/slow)."


class ErrorKind(str, Enum):
    CONFIGURATION = "configuration"
    VALIDATION = "validation"
    UPSTREAM_PROTOCOL = "upstream_protocol"
    UPSTREAM_TRANSPORT = "upstream_transport"
    TIMEOUT = "timeout"
    STORAGE_WRITE = "storage_write"
    STORAGE_RESOLUTION = "storage_resolution"
    UNKNOWN = "unknown"


STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.CONFIGURATION: 500,
    ErrorKind.VALIDATION: 400,
    ErrorKind.UPSTREAM_PROTOCOL: 502,
    ErrorKind.UPSTREAM_TRANSPORT: 502,
    ErrorKind.TIMEOUT: 500,
    ErrorKind.STORAGE_WRITE: 500,
    ErrorKind.STORAGE_RESOLUTION: 500,
    ErrorKind.UNKNOWN: 500,
}


class PosterServiceError(Exception):
    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def status_code(self) -> int:
        return STATUS_BY_KIND[self.kind]


class ConfigurationError(PosterServiceError):
    """Required credentials or storage settings are missing."""

    kind = ErrorKind.CONFIGURATION


class InputValidationError(PosterServiceError):
    """The caller sent no image or a malformed form."""

    kind = ErrorKind.VALIDATION


class UpstreamProtocolError(PosterServiceError):
    """The image API answered, but with an error status or an unusable payload."""

    kind = ErrorKind.UPSTREAM_PROTOCOL


class UpstreamTransportError(PosterServiceError):
    """The image API could not be reached."""

    kind = ErrorKind.UPSTREAM_TRANSPORT


class GenerationTimeoutError(PosterServiceError):
    kind = ErrorKind.TIMEOUT

    def __init__(self, message: str = TIMEOUT_MESSAGE) -> None:
        super().__init__(message)


class StorageWriteError(PosterServiceError):
    kind = ErrorKind.STORAGE_WRITE


class StorageResolutionError(PosterServiceError):
    kind = ErrorKind.STORAGE_RESOLUTION


class UnknownError(PosterServiceError):
    kind = ErrorKind.UNKNOWN

    @classmethod
    def from_exception(cls, exc: BaseException) -> "UnknownError":
        message = str(exc) or exc.__class__.__name__
        return cls(message)


__all__ = [
    "TIMEOUT_MESSAGE",
    "ErrorKind",
    "STATUS_BY_KIND",
    "PosterServiceError",
    "ConfigurationError",
    "InputValidationError",
    "UpstreamProtocolError",
    "UpstreamTransportError",
    "GenerationTimeoutError",
    "StorageWriteError",
    "StorageResolutionError",
    "UnknownError",
]
