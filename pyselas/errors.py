from __future__ import annotations


class SelasError(Exception):
    """Base error thrown by the Python Selas client."""


class SelasAPIError(SelasError):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class SelasTransportError(SelasError):
    """Raised when the backend cannot be reached at all."""


class SelasConfigError(SelasError):
    """Raised when credentials or settings are missing."""


class SelasJobTimeout(SelasError):
    """Raised when waiting for a job result times out."""
