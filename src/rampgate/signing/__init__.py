"""Request signing for the upstream API.

Provides:
- Credential: the process-wide key pair
- RequestSigner: short-lived, path-bound JWTs (ES256 or EdDSA)
"""

from rampgate.signing.base import (
    Credential,
    KeyAlgorithm,
    SignedRequest,
    load_signing_key,
)
from rampgate.signing.factory import get_signer, reset_signer
from rampgate.signing.jwt_signer import RequestSigner, sign

__all__ = [
    "Credential",
    "KeyAlgorithm",
    "SignedRequest",
    "RequestSigner",
    "load_signing_key",
    "get_signer",
    "reset_signer",
    "sign",
]
