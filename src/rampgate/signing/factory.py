"""Signer factory."""

import logging

from rampgate.config import Settings, get_settings
from rampgate.signing.base import Credential
from rampgate.signing.jwt_signer import RequestSigner

logger = logging.getLogger(__name__)

# Singleton instance
_signer_instance: RequestSigner | None = None


def create_signer(settings: Settings) -> RequestSigner:
    """Build a signer from settings.

    Raises:
        CredentialError: If the credential is absent or malformed
    """
    credential = Credential.from_settings(settings)
    signer = RequestSigner(
        credential,
        host=settings.api_host_name,
        ttl_seconds=settings.jwt_ttl_seconds,
    )
    logger.info(f"Request signer ready: {signer!r}")
    return signer


def get_signer() -> RequestSigner:
    """Get the process-wide request signer.

    Returns:
        Configured RequestSigner instance
    """
    global _signer_instance

    if _signer_instance is None:
        _signer_instance = create_signer(get_settings())

    return _signer_instance


def reset_signer() -> None:
    """Reset signer instance (useful for testing)."""
    global _signer_instance
    _signer_instance = None
