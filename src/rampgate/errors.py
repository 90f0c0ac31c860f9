"""Error taxonomy for the upstream gateway.

Every error carries a ``category`` so the UI can tell "we cannot authenticate"
from "the request was rejected" from "try again later" without inspecting
exception types.
"""

from typing import Optional


class GatewayError(Exception):
    """Base class for all gateway errors."""

    category = "internal"
    user_message = "Something went wrong. Please try again."

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_dict(self) -> dict:
        """Serialize for the web layer."""
        return {
            "error": self.user_message,
            "category": self.category,
            "detail": self.detail,
        }


class CredentialError(GatewayError):
    """API credential is absent or malformed. Fatal configuration error."""

    category = "configuration"
    user_message = "Service is not configured correctly."


class SigningError(GatewayError):
    """Key material could not produce a signature, or the request cannot be signed."""

    category = "configuration"
    user_message = "Service is not configured correctly."


class UpstreamRejected(GatewayError):
    """Upstream answered with a non-2xx status."""

    category = "rejected"
    user_message = "The request was rejected."

    def __init__(self, status_code: int, detail: Optional[str] = None):
        super().__init__(f"Upstream rejected request with HTTP {status_code}", detail)
        self.status_code = status_code


class AuthenticationFailed(UpstreamRejected):
    """Upstream rejected our token (HTTP 401/403)."""

    category = "authentication"
    user_message = "Could not authenticate with the payment provider."


class UpstreamProtocolError(GatewayError):
    """Upstream answered 2xx with a body we cannot use."""

    category = "protocol"
    user_message = "Temporarily unavailable, try again."


class SchemaMismatch(UpstreamProtocolError):
    """A required identifier field is missing from an upstream payload."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, detail=field)
        self.field = field


class TransportError(GatewayError):
    """Network failure talking to the upstream."""

    category = "unavailable"
    user_message = "Temporarily unavailable, try again."


class UpstreamTimeout(TransportError):
    """Upstream call exceeded its deadline."""


class SelectionError(GatewayError):
    """A selection cannot be submitted (e.g. no network resolved for the asset)."""

    category = "invalid"
    user_message = "Please review your selection."


# Errors that no cached or static fallback can stand in for.
FATAL_ERRORS = (CredentialError, SigningError)
