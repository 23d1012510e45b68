"""Error taxonomy for the BFF.

Services raise these; a single exception handler in main.py turns any
BffError into a JSON response of the form ``{"error": ..., "details": ...}``.
Nothing here is retried automatically: every failure tells the caller which
step to re-invoke.
"""

from __future__ import annotations

from typing import Any


class BffError(Exception):
    """Base class. Carries the HTTP status and the body to render."""

    status_code: int = 500
    error: str = "Internal error"

    def __init__(self, error: str | None = None, *, details: Any = None) -> None:
        self.error = error or type(self).error
        self.details = details
        super().__init__(self.error)


class ConfigMissing(BffError):
    """No client credentials or no access token available."""

    status_code = 401
    error = "Missing access token. Visit /auth first."


class MissingVerifier(BffError):
    """Callback arrived with no matching in-flight PKCE state."""

    status_code = 400
    error = "Missing PKCE code_verifier. Start again at /auth."


class InvalidRequest(BffError):
    """Body parsed but is not something we can act on."""

    status_code = 400
    error = "Invalid request"


class StateStoreUnavailable(BffError):
    """The shared pending-authorization store could not be reached."""

    status_code = 503
    error = "Authorization state store unavailable. Try again shortly."


class NoRefreshToken(BffError):
    status_code = 400
    error = "No refresh_token stored."


class AuthExchangeFailed(BffError):
    status_code = 500
    error = "OAuth token exchange failed"


class RefreshFailed(BffError):
    status_code = 500
    error = "Failed to refresh token"


class DesignCreationFailed(BffError):
    status_code = 500
    error = "Failed to create design"


class WorkflowTriggerFailed(BffError):
    error = "Workflow creation failed"

    def __init__(
        self,
        error: str | None = None,
        *,
        details: Any = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(error, details=details)
        # Mirror the runner's status when it gave one; otherwise it's a gateway fault.
        self.status_code = status_code or 502


class ProviderError(Exception):
    """Raised by the outbound HTTP clients; never rendered directly.

    status_code is None when no response arrived (timeout, DNS, reset).
    """

    def __init__(self, status_code: int | None, body: Any) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"provider error status={status_code}")


__all__ = [
    "BffError",
    "ConfigMissing",
    "MissingVerifier",
    "InvalidRequest",
    "StateStoreUnavailable",
    "NoRefreshToken",
    "AuthExchangeFailed",
    "RefreshFailed",
    "DesignCreationFailed",
    "WorkflowTriggerFailed",
    "ProviderError",
]
