"""Tests for the FastAPI endpoints."""

import json

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from rampgate.errors import CredentialError
from rampgate.services.gateway import get_gateway
from rampgate.web.app import create_app

from tests.test_gateway import CONFIG_PAYLOAD, OPTIONS_PAYLOAD, WALLET

QUOTE_BODY = {
    "asset": "USDC",
    "network": "base",
    "amount": "25",
    "fiat_currency": "USD",
    "payment_method": "ACH_BANK_ACCOUNT",
    "country": "US",
    "subdivision": "CA",
    "address": WALLET,
    "redirect_url": "https://example.com/offramp",
    "partner_user_id": WALLET,
}


@pytest.fixture
def test_app(gateway):
    """Create test application wired to the scripted upstream."""
    app = create_app()
    app.dependency_overrides[get_gateway] = lambda: gateway
    return app


@pytest.fixture
async def client(test_app):
    """Create async test client."""
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


class TestHealthEndpoints:
    """Tests for health check endpoints."""

    @pytest.mark.asyncio
    async def test_health_check(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "service": "rampgate"}

    @pytest.mark.asyncio
    async def test_detailed_health(self, client):
        response = await client.get("/health/detailed")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["config"]["cdp_api_key_secret"] == "(not set)"
        assert data["cache"]["auth_failures"] == 0

    @pytest.mark.asyncio
    async def test_detailed_health_reports_auth_failures(self, client, upstream):
        upstream.on("GET", "/onramp/v1/sell/config", status=401, json={"message": "Unauthorized"})
        await client.get("/api/sell-config")

        data = (await client.get("/health/detailed")).json()

        assert data["status"] == "degraded"
        assert data["cache"]["auth_failures"] == 1


class TestCatalogEndpoints:
    """Tests for config and options endpoints."""

    @pytest.mark.asyncio
    async def test_sell_config(self, client, upstream):
        upstream.on("GET", "/onramp/v1/sell/config", json=CONFIG_PAYLOAD)

        response = await client.get("/api/sell-config")

        assert response.status_code == 200
        data = response.json()
        assert data["direction"] == "sell"
        assert data["is_fallback"] is False
        assert data["countries"][0]["name"] == "United States"

    @pytest.mark.asyncio
    async def test_config_fallback_is_still_200(self, client, upstream):
        upstream.on("GET", "/onramp/v1/buy/config", raises=httpx.ConnectError("down"))

        response = await client.get("/api/buy-config")

        assert response.status_code == 200
        assert response.json()["is_fallback"] is True

    @pytest.mark.asyncio
    async def test_sell_options(self, client, upstream):
        upstream.on("GET", "/onramp/v1/sell/options", json=OPTIONS_PAYLOAD)

        response = await client.get("/api/sell-options", params={"country": "US", "subdivision": "NY"})

        assert response.status_code == 200
        data = response.json()
        assert data["subdivision"] == "NY"
        assert [a["code"] for a in data["assets"]] == ["USDC", "BTC"]

    @pytest.mark.asyncio
    async def test_options_require_country(self, client):
        response = await client.get("/api/sell-options")
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_unknown_direction(self, client):
        response = await client.get("/api/swap-config")
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_missing_credentials_is_configuration_error(self, test_app, client):
        def no_gateway():
            raise CredentialError("Missing CDP API credentials")

        test_app.dependency_overrides[get_gateway] = no_gateway

        response = await client.get("/api/sell-config")

        assert response.status_code == 500
        assert response.json()["category"] == "configuration"


class TestSelectionEndpoint:
    """Tests for server-side selection repair."""

    @pytest.mark.asyncio
    async def test_country_change(self, client, upstream):
        upstream.on("GET", "/onramp/v1/sell/config", json=CONFIG_PAYLOAD)
        upstream.on("GET", "/onramp/v1/sell/options", json=OPTIONS_PAYLOAD)

        response = await client.post(
            "/api/selection",
            json={"selection": {"country": "US", "subdivision": "NY"}, "field": "country", "value": "GB"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["selection"]["country"] == "GB"
        assert data["selection"]["subdivision"] is None

        (request,) = upstream.calls("GET", "/onramp/v1/sell/options")
        assert request.url.params["country"] == "GB"

    @pytest.mark.asyncio
    async def test_asset_change_returns_network_choices(self, client, upstream):
        upstream.on("GET", "/onramp/v1/sell/config", json=CONFIG_PAYLOAD)
        upstream.on("GET", "/onramp/v1/sell/options", json=OPTIONS_PAYLOAD)

        response = await client.post("/api/selection", json={"field": "asset", "value": "BTC"})

        data = response.json()
        assert data["selection"]["network"] == "bitcoin"
        assert [n["id"] for n in data["networks"]] == ["bitcoin"]
        assert data["is_fallback"] is False

    @pytest.mark.asyncio
    async def test_unknown_field(self, client, upstream):
        upstream.on("GET", "/onramp/v1/sell/options", json=OPTIONS_PAYLOAD)

        response = await client.post("/api/selection", json={"field": "colour", "value": "blue"})

        assert response.status_code == 422
        assert response.json()["category"] == "invalid"


class TestCheckoutEndpoints:
    """Tests for quote, session and checkout endpoints."""

    @pytest.mark.asyncio
    async def test_sell_quote_uses_forwarded_ip(self, client, upstream):
        upstream.on("POST", "/onramp/v1/sell/quote", json={"offramp_url": "https://pay.coinbase.com/x", "quote_id": "q"})

        response = await client.post("/api/sell-quote", json=QUOTE_BODY, headers={"X-Forwarded-For": "8.8.4.4"})

        assert response.status_code == 200
        assert response.json()["url"] == "https://pay.coinbase.com/x"
        (request,) = upstream.calls("POST", "/onramp/v1/sell/quote")
        assert json.loads(request.content)["clientIp"] == "8.8.4.4"

    @pytest.mark.asyncio
    async def test_buy_quote_route_sets_direction(self, client, upstream):
        upstream.on("POST", "/onramp/v1/buy/quote", json={"onramp_url": "https://pay.coinbase.com/buy"})

        response = await client.post("/api/buy-quote", json={**QUOTE_BODY, "payment_method": "CARD"})

        assert response.status_code == 200
        assert response.json()["direction"] == "buy"

    @pytest.mark.asyncio
    async def test_quote_rejection_passes_status_through(self, client, upstream):
        upstream.on("POST", "/onramp/v1/sell/quote", status=400, json={"message": "amount below minimum"})

        response = await client.post("/api/sell-quote", json=QUOTE_BODY)

        assert response.status_code == 400
        assert response.json() == {
            "error": "The request was rejected.",
            "category": "rejected",
            "detail": "amount below minimum",
        }

    @pytest.mark.asyncio
    async def test_quote_auth_failure_is_bad_gateway(self, client, upstream):
        upstream.on("POST", "/onramp/v1/sell/quote", status=401, json={"message": "Unauthorized"})

        response = await client.post("/api/sell-quote", json=QUOTE_BODY)

        assert response.status_code == 502
        assert response.json()["category"] == "authentication"

    @pytest.mark.asyncio
    async def test_quote_transport_failure_is_unavailable(self, client, upstream):
        upstream.on("POST", "/onramp/v1/sell/quote", raises=httpx.ConnectError("down"))

        response = await client.post("/api/sell-quote", json=QUOTE_BODY)

        assert response.status_code == 503
        assert response.json()["category"] == "unavailable"

    @pytest.mark.asyncio
    async def test_incompatible_network_is_invalid_selection(self, client, upstream):
        response = await client.post("/api/sell-quote", json={**QUOTE_BODY, "asset": "BTC", "network": "base"})

        assert response.status_code == 422
        assert response.json()["category"] == "invalid"
        assert upstream.calls("POST", "/onramp/v1/sell/quote") == []

    @pytest.mark.asyncio
    async def test_quote_validation(self, client):
        response = await client.post("/api/sell-quote", json={**QUOTE_BODY, "amount": "0"})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_session(self, client, upstream):
        upstream.on("POST", "/onramp/v1/token", json={"token": "tok-1"})

        response = await client.post("/api/session", json={"address": WALLET, "blockchains": ["base"]})

        assert response.status_code == 200
        assert response.json()["token"] == "tok-1"

    @pytest.mark.asyncio
    async def test_sell_checkout(self, client, upstream):
        upstream.on("GET", "/onramp/v1/sell/config", json=CONFIG_PAYLOAD)
        upstream.on("GET", "/onramp/v1/sell/options", json=OPTIONS_PAYLOAD)
        upstream.on("POST", "/onramp/v1/token", json={"token": "tok-1"})

        response = await client.post(
            "/api/sell-checkout",
            json={"selection": {"asset": "USDC"}, "address": WALLET, "redirect_url": "https://example.com"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["url"].startswith("https://pay.coinbase.com/v3/sell/input?")
        assert "sessionToken=tok-1" in data["url"]
        assert data["selection"]["network"] == "base"
