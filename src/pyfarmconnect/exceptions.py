"""Custom exception hierarchy for pyfarmconnect."""

from __future__ import annotations


class FarmConnectError(Exception):
    """Base exception for all pyfarmconnect errors."""


class FarmConnectConfigError(FarmConnectError):
    """Invalid or missing configuration."""


class FarmConnectTransportError(FarmConnectError):
    """HTTP-level failure (network, non-200, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class FarmConnectApiError(FarmConnectError):
    """Backend answered HTTP 200 but did not report success."""

    def __init__(self, message: str, *, endpoint: str = "") -> None:
        self.endpoint = endpoint
        super().__init__(message)


class FarmConnectAuthenticationError(FarmConnectApiError):
    """Driver login was rejected."""


class FarmConnectNotAuthenticatedError(FarmConnectError):
    """No staff identity could be resolved.

    Network and stream operations are skipped while the identity is empty.
    """


class FarmConnectMissingDataError(FarmConnectError):
    """A user action lacks identifiers the backend requires.

    Raised (or returned) before any network call is attempted, e.g. when
    marking a request delivered without a plan id or request id.
    """


class FarmConnectUnsupportedOperationError(FarmConnectError):
    """The action is not available for this kind of request."""


class FarmConnectStorageError(FarmConnectError):
    """Local key-value storage could not be read or written."""
