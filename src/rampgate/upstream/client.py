"""HTTP client for the upstream onramp/offramp API.

Every call is signed for exactly the path it dispatches. Failures come back as
an ``UpstreamResult`` with a typed error instead of being raised, so that the
caller (the resilience cache for catalog lookups, the gateway for quotes)
decides what to do with them. Signing and credential errors are the exception:
no fallback can stand in for them, so they are raised.

No retries happen here. Retrying a POST that creates a quote or a session would
duplicate side effects upstream.
"""

import asyncio
import json
import logging
from typing import Any, Callable, Optional, TypeVar

import httpx
from pydantic import ValidationError

from rampgate.errors import (
    AuthenticationFailed,
    GatewayError,
    TransportError,
    UpstreamProtocolError,
    UpstreamRejected,
    UpstreamTimeout,
)
from rampgate.signing.jwt_signer import RequestSigner
from rampgate.upstream.base import UpstreamEnvelope, UpstreamResult

logger = logging.getLogger(__name__)

T = TypeVar("T")

AUTH_STATUS_CODES = (401, 403)


def _extract_detail(raw_body: str) -> Optional[str]:
    """Pull a human-readable reason out of an error body."""
    if not raw_body:
        return None
    try:
        data = json.loads(raw_body)
    except ValueError:
        return raw_body[:500]
    if isinstance(data, dict):
        for key in ("message", "error", "errorMessage", "details"):
            value = data.get(key)
            if isinstance(value, str) and value:
                return value
    return raw_body[:500]


class UpstreamClient:
    """Signed JSON client for the upstream API.

    Example:
        client = UpstreamClient(signer, base_url="https://api.developer.coinbase.com")
        result = await client.call("GET", "/onramp/v1/sell/config")
        if result.success:
            countries = result.data["countries"]
    """

    def __init__(
        self,
        signer: RequestSigner,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the client.

        Args:
            signer: Request signer holding the credential
            base_url: Upstream base URL (scheme + host)
            timeout: Total deadline per call in seconds
            transport: Optional httpx transport override (tests)
        """
        self.signer = signer
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._http: Optional[httpx.AsyncClient] = None

    def _client(self) -> httpx.AsyncClient:
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._http

    async def aclose(self) -> None:
        """Close the underlying connection pool."""
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def __aenter__(self) -> "UpstreamClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
        return False

    async def call(
        self,
        method: str,
        path: str,
        query: Optional[dict[str, Any]] = None,
        body: Optional[dict[str, Any]] = None,
        parse: Optional[Callable[[Any], T]] = None,
    ) -> UpstreamResult[T]:
        """Perform one signed call.

        Args:
            method: HTTP method
            path: Path component only; query parameters go in ``query``
            query: Optional query parameters (never signed)
            body: Optional JSON body
            parse: Optional mapping applied to the decoded JSON on success

        Returns:
            UpstreamResult with parsed data or a typed error

        Raises:
            CredentialError: If the credential is unusable
            SigningError: If the request cannot be signed
        """
        method = method.upper()
        signed = self.signer.sign(method, path)

        headers = {
            "Accept": "application/json",
            "Authorization": signed.authorization,
        }
        if body is not None:
            headers["Content-Type"] = "application/json"

        params = {k: v for k, v in (query or {}).items() if v not in (None, "")}

        try:
            envelope = await asyncio.wait_for(
                self._send(method, path, headers, params, body),
                timeout=self.timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            logger.warning(f"Upstream {method} {path} timed out after {self.timeout}s")
            return UpstreamResult.fail(UpstreamTimeout(f"{method} {path} timed out", detail=str(e) or None))
        except httpx.HTTPError as e:
            logger.warning(f"Upstream {method} {path} transport failure: {e}")
            return UpstreamResult.fail(TransportError(f"{method} {path} failed: {e}"))

        return self._classify(method, path, envelope, parse)

    async def _send(
        self,
        method: str,
        path: str,
        headers: dict[str, str],
        params: dict[str, Any],
        body: Optional[dict[str, Any]],
    ) -> UpstreamEnvelope:
        response = await self._client().request(
            method,
            path,
            headers=headers,
            params=params or None,
            json=body,
        )
        # Read the whole body before any parsing
        raw = await response.aread()
        return UpstreamEnvelope(
            status_code=response.status_code,
            raw_body=raw.decode(response.encoding or "utf-8", errors="replace"),
        )

    def _classify(
        self,
        method: str,
        path: str,
        envelope: UpstreamEnvelope,
        parse: Optional[Callable[[Any], T]],
    ) -> UpstreamResult[T]:
        status = envelope.status_code

        if not envelope.is_success:
            detail = _extract_detail(envelope.raw_body)
            if status in AUTH_STATUS_CODES:
                logger.error(f"Upstream {method} {path} rejected our credentials (HTTP {status}): {detail}")
                return UpstreamResult.fail(AuthenticationFailed(status, detail), status)

            logger.warning(f"Upstream {method} {path} rejected with HTTP {status}: {detail}")
            return UpstreamResult.fail(UpstreamRejected(status, detail), status)

        try:
            data = json.loads(envelope.raw_body)
        except ValueError:
            logger.error(f"Upstream {method} {path} returned unparseable body (HTTP {status})")
            return UpstreamResult.fail(
                UpstreamProtocolError(
                    f"{method} {path} returned a non-JSON body",
                    detail=envelope.raw_body[:200],
                ),
                status,
            )

        if parse is None:
            return UpstreamResult.ok(data, status)

        try:
            return UpstreamResult.ok(parse(data), status)
        except GatewayError as e:
            logger.error(f"Upstream {method} {path} payload could not be normalized: {e}")
            return UpstreamResult.fail(e, status)
        except ValidationError as e:
            logger.error(f"Upstream {method} {path} payload failed validation: {e.error_count()} error(s)")
            return UpstreamResult.fail(
                UpstreamProtocolError(f"{method} {path} returned an invalid payload", detail=str(e)[:200]),
                status,
            )
