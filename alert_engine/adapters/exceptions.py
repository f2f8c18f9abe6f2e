"""Exceptions raised by backend adapters."""


class BackendError(Exception):
    """Base exception for all backend adapter errors.

    Callers catch this to treat any backend problem as a failure of the
    current operation (a run, a buyer lookup) rather than a crash.
    """

    pass


class BackendHTTPError(BackendError):
    """Backend request failed with an HTTP error status or a connection error.

    ``status_code`` is 0 when no response was received.
    """

    def __init__(self, message: str, status_code: int, url: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class BackendTimeoutError(BackendError):
    """Backend request did not complete within the configured timeout."""

    def __init__(self, message: str, url: str) -> None:
        super().__init__(message)
        self.url = url


class BackendResponseError(BackendError):
    """Response received but could not be parsed or had an unexpected shape."""

    pass


class BackendConfigurationError(BackendError):
    """Invalid client configuration (missing URL or key, bad timeout)."""

    pass
