"""Gateway error taxonomy.

Every error carries a stable `code`, the HTTP status the facade answers with,
a human-readable message and, for upstream failures, the processor's error body
verbatim in `details`.
"""

from typing import Any


class GatewayError(Exception):
    """Base class for errors surfaced to HTTP callers."""

    code = "GATEWAY_ERROR"
    status_code = 500

    def __init__(self, message: str, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_payload(self) -> dict[str, Any]:
        return {"error": self.message, "code": self.code, "details": self.details}


class ValidationError(GatewayError):
    """Caller input violates a precondition; raised before any network call."""

    code = "VALIDATION_ERROR"
    status_code = 400


class AuthConfigError(GatewayError):
    """Processor credentials are not configured on this server."""

    code = "AUTH_CONFIG_ERROR"
    status_code = 500


class UpstreamError(GatewayError):
    """The payment processor rejected a call or could not be reached."""

    code = "UPSTREAM_ERROR"
    status_code = 502

    def __init__(self, message: str, details: Any = None, upstream_status: int | None = None) -> None:
        super().__init__(message, details)
        self.upstream_status = upstream_status


class UpstreamAuthError(UpstreamError):
    code = "UPSTREAM_AUTH_ERROR"


class UpstreamOrderError(UpstreamError):
    code = "UPSTREAM_ORDER_ERROR"


class UpstreamCaptureError(UpstreamError):
    code = "UPSTREAM_CAPTURE_ERROR"
    # Decoded processor issue, set by the orchestrator when capture is rejected.
    issue = None


class UpstreamVaultError(UpstreamError):
    code = "UPSTREAM_VAULT_ERROR"
