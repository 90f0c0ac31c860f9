"""JWT request signer for the upstream API.

Each token binds the caller's key to exactly one ``"<METHOD> <host><path>"``
string and expires shortly after issue. Query strings are stripped by the
upstream before it compares the ``uri`` claim, so they never enter the signed
material here either.
"""

import logging
import secrets
import time
from typing import Callable

import jwt

from rampgate.errors import SigningError
from rampgate.signing.base import (
    Credential,
    KeyAlgorithm,
    SignedRequest,
    format_uri,
    load_signing_key,
)

logger = logging.getLogger(__name__)

ISSUER = "cdp"
DEFAULT_TTL_SECONDS = 120


def _validate_path(path: str) -> None:
    if not isinstance(path, str) or not path.startswith("/"):
        raise SigningError(f"Path must be absolute, got {path!r}")
    if "?" in path or "#" in path:
        raise SigningError(f"Path must not include a query string or fragment: {path!r}")


class RequestSigner:
    """Signs outbound requests with the process-wide credential.

    Example:
        signer = RequestSigner(credential, host="api.developer.coinbase.com")
        signed = signer.sign("GET", "/onramp/v1/sell/config")
        headers = {"Authorization": signed.authorization}
    """

    def __init__(
        self,
        credential: Credential,
        host: str,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the signer.

        Args:
            credential: API key pair
            host: Upstream host name (no scheme)
            ttl_seconds: Token validity window
            clock: Unix time source

        Raises:
            CredentialError: If the key material cannot be parsed
        """
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")

        self.credential = credential
        self.host = host
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._key, self.algorithm = load_signing_key(credential.private_key)

    def sign(self, method: str, path: str) -> SignedRequest:
        """Create a fresh token for one (method, path) pair.

        Args:
            method: HTTP method
            path: Path component only, e.g. ``/onramp/v1/sell/options``

        Returns:
            SignedRequest with the encoded token

        Raises:
            SigningError: If the path is not signable or encoding fails
        """
        _validate_path(path)
        method = method.upper()

        issued_at = int(self._clock())
        expires_at = issued_at + self.ttl_seconds
        nonce = secrets.token_hex(16)
        uri = format_uri(method, self.host, path)

        claims = {
            "iss": ISSUER,
            "sub": self.credential.key_name,
            "nbf": issued_at,
            "exp": expires_at,
            "uri": uri,
        }
        headers = {
            "kid": self.credential.key_name,
            "nonce": nonce,
            "typ": "JWT",
        }

        try:
            token = jwt.encode(claims, self._key, algorithm=self.algorithm.value, headers=headers)
        except (jwt.PyJWTError, ValueError, TypeError) as e:
            raise SigningError(f"Failed to sign {uri}: {e}")

        logger.debug(f"Signed token for {uri} (exp in {self.ttl_seconds}s)")

        return SignedRequest(
            method=method,
            path=path,
            host=self.host,
            issued_at=issued_at,
            expires_at=expires_at,
            nonce=nonce,
            token=token,
        )

    def verify(self, token: str, method: str, path: str) -> bool:
        """Check that a token is ours, unexpired, and bound to (method, path).

        Args:
            token: Encoded JWT
            method: HTTP method of the dispatched call
            path: Path of the dispatched call

        Returns:
            True only if signature, validity window and ``uri`` binding all match
        """
        try:
            claims = jwt.decode(
                token,
                self._key.public_key(),
                algorithms=[self.algorithm.value],
                issuer=ISSUER,
                options={"verify_exp": False, "verify_nbf": False},
            )
        except jwt.PyJWTError as e:
            logger.debug(f"Token verification failed: {e}")
            return False

        now = self._clock()
        if not claims.get("nbf", 0) <= now < claims.get("exp", 0):
            return False

        return claims.get("uri") == format_uri(method, self.host, path)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(kid={self.credential.key_name}, alg={self.algorithm.value})"


def sign(
    credential: Credential,
    method: str,
    path: str,
    host: str,
    ttl_seconds: int = DEFAULT_TTL_SECONDS,
) -> SignedRequest:
    """One-shot signing helper.

    Raises:
        CredentialError: If the credential's key is malformed
        SigningError: If the request cannot be signed
    """
    return RequestSigner(credential, host, ttl_seconds=ttl_seconds).sign(method, path)


__all__ = ["RequestSigner", "KeyAlgorithm", "sign"]
