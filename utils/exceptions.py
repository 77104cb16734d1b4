from typing import Optional, Dict, Any
from fastapi import HTTPException
from .errors import ErrorDetail

class APIError(HTTPException):
    def __init__(
        self,
        error: ErrorDetail,
        details: Optional[Dict[str, Any]] = None,
        override_message: Optional[str] = None,
    ):
        self.error_code = error.code
        self.details = details or {}
        #override message if provided
        message = override_message or error.message
        super().__init__(status_code=error.status_code, detail=message)


class FetchError(Exception):
    """
    Raised by the range fetcher when a document could not be obtained.
    The refresh loop treats every subclass the same way.
    """
    def __init__(self, message: str, url: Optional[str] = None):
        self.url = url
        super().__init__(message)

class TransportError(FetchError):
    """Connection failure, timeout or unexpected HTTP status."""
    def __init__(self, message: str, url: Optional[str] = None, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message, url=url)

class DecodeError(FetchError):
    """The response body is not a valid range document."""
