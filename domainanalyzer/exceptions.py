"""
Domain Analyzer - Exceptions

Centralized exception hierarchy for backend, stream and validation errors.
"""


class AnalyzerError(Exception):
    """Base exception for all domain analyzer operations."""
    pass


class AnalyzerAuthError(AnalyzerError):
    """Exception for backend authentication errors.

    Raised when:
    - No bearer token is configured and login credentials are missing
    - Login is rejected
    - The backend answers 401/403
    """
    pass


class AnalyzerAPIError(AnalyzerError):
    """Exception for backend API errors.

    Raised when:
    - REST request fails with a non-auth HTTP status
    - Response body is not the expected JSON
    """

    def __init__(self, message: str, status_code: int = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AnalyzerNetworkError(AnalyzerAPIError):
    """Exception for network failures.

    Raised when:
    - Connection to the backend fails
    - A REST request times out
    """
    pass


class StreamError(AnalyzerError):
    """Exception for server-sent event stream failures.

    Raised when:
    - The stream cannot be opened
    - The connection drops mid-stream
    """
    pass


class StreamTimeoutError(StreamError):
    """Raised when a stream stays silent longer than the configured timeout."""
    pass


class DomainValidationError(AnalyzerError, ValueError):
    """Client-side validation error for a submitted domain."""
    pass


class GateStateError(AnalyzerError):
    """Raised on an illegal Completion Gate transition."""
    pass
