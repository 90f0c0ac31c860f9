"""Pytest configuration and fixtures."""

import asyncio
import base64
import os
from typing import Any, Optional

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["DEBUG"] = "true"
for _name in ("CDP_API_KEY", "CDP_API_KEY_NAME", "CDP_API_SECRET", "CDP_API_KEY_PRIVATE_KEY"):
    os.environ.pop(_name, None)

from rampgate.cache import ResilienceCache
from rampgate.services.gateway import RampGateway
from rampgate.signing.base import Credential
from rampgate.signing.jwt_signer import RequestSigner
from rampgate.upstream.client import UpstreamClient

API_HOST = "api.developer.coinbase.com"
API_BASE_URL = f"https://{API_HOST}"
KEY_NAME = "organizations/test-org/apiKeys/test-key"


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeUpstream:
    """Scripted upstream behind an httpx MockTransport.

    Example:
        upstream.on("GET", "/onramp/v1/sell/config", json={"countries": []})
        upstream.on("GET", "/onramp/v1/sell/options", raises=httpx.ConnectError("down"))
    """

    def __init__(self):
        self.routes: dict[tuple[str, str], dict[str, Any]] = {}
        self.requests: list[httpx.Request] = []

    def on(
        self,
        method: str,
        path: str,
        status: int = 200,
        json: Any = None,
        text: Optional[str] = None,
        raises: Optional[Exception] = None,
        delay: float = 0.0,
    ) -> None:
        self.routes[(method, path)] = {
            "status": status,
            "json": json,
            "text": text,
            "raises": raises,
            "delay": delay,
        }

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"message": "not found"})

        if route["delay"]:
            await asyncio.sleep(route["delay"])
        if route["raises"] is not None:
            raise route["raises"]
        if route["text"] is not None:
            return httpx.Response(route["status"], text=route["text"])
        return httpx.Response(route["status"], json=route["json"])

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


def ec_private_pem() -> str:
    key = ec.generate_private_key(ec.SECP256R1())
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()


def ed25519_private_b64() -> str:
    key = ed25519.Ed25519PrivateKey.generate()
    seed = key.private_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PrivateFormat.Raw,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public = key.public_key().public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )
    return base64.b64encode(seed + public).decode()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def ec_credential() -> Credential:
    return Credential(key_name=KEY_NAME, private_key=ec_private_pem())


@pytest.fixture
def ed_credential() -> Credential:
    return Credential(key_name=KEY_NAME, private_key=ed25519_private_b64())


@pytest.fixture
def signer(ec_credential, clock) -> RequestSigner:
    return RequestSigner(ec_credential, host=API_HOST, clock=clock)


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
async def upstream_client(signer, upstream):
    """Signed client talking to the scripted upstream."""
    client = UpstreamClient(signer, base_url=API_BASE_URL, timeout=0.5, transport=upstream.transport())
    yield client
    await client.aclose()


@pytest.fixture
def cache(clock) -> ResilienceCache:
    return ResilienceCache(ttl_seconds=900, clock=clock)


@pytest.fixture
def gateway(upstream_client, cache) -> RampGateway:
    return RampGateway(upstream_client, cache)
