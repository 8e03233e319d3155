"""
Custom exceptions raised by wallaproxy.
"""

from typing import Optional


class WallaproxyException(Exception):
    """Base exception for all wallaproxy errors."""


class WallaproxyRequestError(WallaproxyException):
    """
    Raised when a request to Wallapop fails.

    Covers transport errors (timeouts, refused connections, proxy failures)
    and non-200 responses. `status_code` holds the upstream HTTP status
    when one was received.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class WallaproxyParsingError(WallaproxyException):
    """Raised when a response body does not have the expected structure."""


class WallaproxyConfigurationError(WallaproxyException):
    """Raised for invalid input parameters (bad numbers, missing values)."""
