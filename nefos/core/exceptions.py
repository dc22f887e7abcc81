"""
Custom exceptions for nefos.

Every failure raised by the library derives from NefosException so
callers can catch the whole family, while the subclasses keep transport,
protocol, authentication and stale-session failures apart.
"""
from typing import Optional, Any


class NefosException(Exception):
    """Base exception for all nefos errors."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        """
        Initialize the exception.

        Args:
            message: Error message
            status_code: HTTP status of the failed response (if any)
        """
        self.status_code = status_code
        super().__init__(message)


class TransportError(NefosException):
    """A request could not be completed (network, timeout, unreadable body)."""
    pass


class ProtocolError(NefosException):
    """A response or blob did not have the expected shape."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        status_code: Optional[int] = None
    ) -> None:
        """
        Initialize the exception.

        Args:
            message: Error message
            field: Header or JSON field that was missing or malformed
            status_code: HTTP status of the response (if any)
        """
        self.field = field
        super().__init__(message, status_code)


class AccountProfileError(ProtocolError):
    """The account profile returned by accountLogin could not be parsed."""
    pass


class SessionDecodeError(ProtocolError):
    """A persisted session blob is corrupt or incomplete."""
    pass


class CookieStoreError(ProtocolError):
    """A persisted cookie store is corrupt."""
    pass


class AuthenticationError(NefosException):
    """The server rejected a sign-in, verification or trust request."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_data: Any = None
    ) -> None:
        """
        Initialize the exception.

        Args:
            message: Error message
            status_code: HTTP status returned by the server
            response_data: Parsed error body (if any)
        """
        self.response_data = response_data
        super().__init__(message, status_code)


class SecondFactorRequiredError(AuthenticationError):
    """A pending two-factor challenge was used as an authenticated session."""
    pass


class SessionExpiredError(NefosException):
    """A resumed session was refused; sign in again with credentials."""
    pass


class ServiceError(NefosException):
    """An authenticated data fetch returned an error status."""

    def __init__(
        self,
        message: str,
        service: Optional[str] = None,
        status_code: Optional[int] = None
    ) -> None:
        self.service = service
        super().__init__(message, status_code)
