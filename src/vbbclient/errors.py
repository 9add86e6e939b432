"""Exceptions raised by the VBB transit client."""

from typing import Optional


class VBBError(Exception):
    """Base class for all client errors."""

    def __init__(self, message: str, operation: str, path: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.operation = operation
        self.path = path
        self.cause = cause


class RequestError(VBBError):
    """The request could not be built or the transport failed.

    HTTP error statuses are reported here too.
    """


class DecodeError(VBBError):
    """The response body was not JSON or did not have the expected shape."""
