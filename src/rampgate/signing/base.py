"""Base types for request signing.

Signing flow:
1. Load the credential once at startup (key name + private key)
2. For every outbound call, sign exactly the (method, path) being dispatched
3. Send the resulting JWT as a bearer token
4. Never reuse a token across retries or endpoints
"""

import base64
import binascii
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519

from rampgate.errors import CredentialError

logger = logging.getLogger(__name__)

PrivateKey = Union[ec.EllipticCurvePrivateKey, ed25519.Ed25519PrivateKey]


class KeyAlgorithm(str, Enum):
    """JWT algorithm implied by the key material."""
    ES256 = "ES256"   # PEM-encoded EC P-256 key
    EDDSA = "EdDSA"   # base64 Ed25519 key (seed || public key)


@dataclass(frozen=True)
class Credential:
    """API key pair used to authenticate against the upstream.

    Attributes:
        key_name: Key identifier, sent as JWT ``kid`` and ``sub``
        private_key: Raw private key text as supplied by the operator
    """
    key_name: str
    private_key: str = field(repr=False)

    @classmethod
    def from_settings(cls, settings) -> "Credential":
        """Build the credential from settings.

        Raises:
            CredentialError: If either half is missing
        """
        if not settings.cdp_api_key_name or not settings.cdp_api_key_secret:
            raise CredentialError("Missing CDP API credentials (CDP_API_KEY / CDP_API_SECRET)")
        return cls(
            key_name=settings.cdp_api_key_name,
            private_key=settings.cdp_api_key_secret,
        )

    def __post_init__(self):
        if not isinstance(self.key_name, str) or not self.key_name.strip():
            raise CredentialError("Credential key name is empty")
        if not isinstance(self.private_key, str) or not self.private_key.strip():
            raise CredentialError("Credential private key is empty")


@dataclass(frozen=True)
class SignedRequest:
    """A token bound to one (method, host, path) triple.

    Attributes:
        method: HTTP method, upper case
        path: Path component only (no query string)
        host: Upstream host the token is valid for
        issued_at: Unix time the token becomes valid (nbf)
        expires_at: Unix time the token expires (exp)
        nonce: Random per-token nonce
        token: Encoded JWT
    """
    method: str
    path: str
    host: str
    issued_at: int
    expires_at: int
    nonce: str
    token: str = field(repr=False)

    @property
    def uri(self) -> str:
        return format_uri(self.method, self.host, self.path)

    @property
    def authorization(self) -> str:
        return f"Bearer {self.token}"

    def is_valid_at(self, now: float) -> bool:
        return self.issued_at <= now < self.expires_at


def format_uri(method: str, host: str, path: str) -> str:
    """Format the ``uri`` claim the upstream compares against the dispatched call."""
    return f"{method.upper()} {host}{path}"


def load_signing_key(secret: str) -> tuple[PrivateKey, KeyAlgorithm]:
    """Parse operator-supplied key material.

    Accepts a PEM EC private key (``\\n`` escapes allowed, as produced by most
    env files) or a base64 Ed25519 key of 32 (seed) or 64 (seed || public) bytes.

    Args:
        secret: Key text

    Returns:
        Tuple of (private key object, JWT algorithm)

    Raises:
        CredentialError: If the key cannot be parsed
    """
    text = secret.strip().replace("\\n", "\n")

    if text.startswith("-----BEGIN"):
        try:
            key = serialization.load_pem_private_key(text.encode(), password=None)
        except (ValueError, TypeError) as e:
            raise CredentialError(f"Malformed PEM private key: {e}")

        if isinstance(key, ec.EllipticCurvePrivateKey):
            return key, KeyAlgorithm.ES256
        if isinstance(key, ed25519.Ed25519PrivateKey):
            return key, KeyAlgorithm.EDDSA
        raise CredentialError(f"Unsupported private key type: {type(key).__name__}")

    try:
        raw = base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError):
        raise CredentialError("Private key is neither PEM nor base64")

    if len(raw) not in (32, 64):
        raise CredentialError(f"Ed25519 key must be 32 or 64 bytes, got {len(raw)}")

    key = ed25519.Ed25519PrivateKey.from_private_bytes(raw[:32])
    return key, KeyAlgorithm.EDDSA

