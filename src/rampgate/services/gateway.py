"""Authenticated upstream gateway.

The four request/response pairs the UI needs:

- config: countries and payment methods for a direction (cached)
- options: currencies, assets, networks and limits for a jurisdiction (cached)
- quote: a hosted checkout URL for a concrete transaction (never cached)
- session: a single-use token for the hosted checkout page (never cached)

Catalog lookups never fail because of the upstream; they degrade to stale or
static data in the resilience cache. Quote and session calls are side-effecting
and surface typed errors instead.
"""

import ipaddress
import logging
from typing import Any, Optional

from rampgate.cache import ResilienceCache
from rampgate.catalog.compatibility import CompatibilityTable
from rampgate.catalog.fallback import fallback_config, fallback_options
from rampgate.catalog.models import ConfigCatalog, Direction, OptionsCatalog
from rampgate.catalog.names import US_SUBDIVISIONS, DisplayNames
from rampgate.catalog.normalizer import SchemaNormalizer
from rampgate.config import Settings, get_settings
from rampgate.errors import SelectionError, UpstreamProtocolError
from rampgate.selection.resolver import (
    US,
    SelectionDefaults,
    SelectionState,
    compatible_networks,
    resolve,
)
from rampgate.services.contracts import (
    PARTNER_USER_ID_MAX_LENGTH,
    CheckoutLink,
    QuoteLink,
    QuoteRequest,
    SessionRequest,
    SessionToken,
)
from rampgate.services.quote_link import QuoteLinkBuilder
from rampgate.signing.factory import get_signer
from rampgate.upstream.client import UpstreamClient

logger = logging.getLogger(__name__)

API_PREFIX = "/onramp/v1"
SESSION_PATH = f"{API_PREFIX}/token"

# RFC 5737 documentation address, sent instead of private/loopback client IPs
PLACEHOLDER_CLIENT_IP = "192.0.2.1"


def public_client_ip(client_ip: Optional[str]) -> str:
    """Return ``client_ip`` if it is a routable address, else the placeholder."""
    if not client_ip:
        return PLACEHOLDER_CLIENT_IP
    # X-Forwarded-For may carry a chain; the first hop is the client
    candidate = client_ip.split(",")[0].strip()
    try:
        address = ipaddress.ip_address(candidate)
    except ValueError:
        return PLACEHOLDER_CLIENT_IP
    if address.is_private or address.is_loopback or address.is_link_local or address.is_unspecified:
        return PLACEHOLDER_CLIENT_IP
    return candidate


def canonical_subdivision(country: str, subdivision: Optional[str]) -> Optional[str]:
    """US state code for a US lookup, ``None`` for anything else."""
    code = subdivision.strip().upper() if subdivision else None
    if country != US or code not in US_SUBDIVISIONS:
        return None
    return code


def canonical_networks(networks: Optional[str], table: CompatibilityTable) -> Optional[str]:
    """Sorted, deduplicated filter of known network ids, ``None`` if empty."""
    if not networks:
        return None
    known = table.network_ids
    ids = sorted({n.strip().lower() for n in networks.split(",")} & known)
    return ",".join(ids) or None


def _sell_quote_body(request: QuoteRequest, client_ip: str) -> dict[str, Any]:
    return {
        "sellCurrency": request.asset,
        "sellAmount": str(request.amount),
        "sellNetwork": request.network,
        "cashoutCurrency": request.fiat_currency,
        "paymentMethod": request.payment_method,
        "country": request.country,
        "subdivision": request.subdivision,
        "sourceAddress": request.address,
        "redirectUrl": request.redirect_url,
        "partnerUserId": request.partner_user_id[:PARTNER_USER_ID_MAX_LENGTH],
        "clientIp": client_ip,
    }


def _buy_quote_body(request: QuoteRequest, client_ip: str) -> dict[str, Any]:
    return {
        "purchaseCurrency": request.asset,
        "purchaseNetwork": request.network,
        "paymentAmount": str(request.amount),
        "paymentCurrency": request.fiat_currency,
        "paymentMethod": request.payment_method,
        "country": request.country,
        "subdivision": request.subdivision,
        "destinationAddress": request.address,
        "redirectUrl": request.redirect_url,
        "partnerUserId": request.partner_user_id[:PARTNER_USER_ID_MAX_LENGTH],
        "clientIp": client_ip,
    }


def _quote_parser(direction: Direction):
    url_key = "offramp_url" if direction == Direction.SELL else "onramp_url"

    def parse(raw: Any) -> QuoteLink:
        url = raw.get(url_key) if isinstance(raw, dict) else None
        if not url:
            raise UpstreamProtocolError(f"{direction.value} quote response has no '{url_key}'", detail=url_key)
        quote_id = raw.get("quote_id")
        return QuoteLink(direction=direction, url=url, quote_id=str(quote_id) if quote_id else None)

    return parse


def _parse_session(raw: Any) -> SessionToken:
    token = raw.get("token") if isinstance(raw, dict) else None
    if not token:
        raise UpstreamProtocolError("session response has no 'token'", detail="token")
    channel_id = raw.get("channel_id") or raw.get("channelId")
    return SessionToken(token=token, channel_id=channel_id)


class RampGateway:
    """Signed, cached access to the onramp/offramp API.

    Example:
        gateway = RampGateway(client, cache)
        config = await gateway.get_config(Direction.SELL)
        options = await gateway.get_options(Direction.SELL, "US", "NY")
    """

    def __init__(
        self,
        client: UpstreamClient,
        cache: ResilienceCache,
        table: Optional[CompatibilityTable] = None,
        names: Optional[DisplayNames] = None,
        links: Optional[QuoteLinkBuilder] = None,
        defaults: Optional[SelectionDefaults] = None,
    ):
        """Initialize the gateway.

        Args:
            client: Signed upstream client
            cache: Resilience cache for catalog lookups
            table: Static compatibility table
            names: Display name lookups for normalization
            links: Hosted checkout URL builder
            defaults: Preferred values for selection repairs
        """
        self.client = client
        self.cache = cache
        self.table = table or CompatibilityTable()
        self.names = names or DisplayNames()
        self.links = links or QuoteLinkBuilder()
        self.defaults = defaults or SelectionDefaults()
        self.domain = client.base_url.split("://", 1)[-1]
        self._normalizers = {d: SchemaNormalizer(d, self.names) for d in Direction}

    async def aclose(self) -> None:
        await self.client.aclose()

    async def get_config(self, direction: Direction) -> ConfigCatalog:
        """Countries and payment methods for a direction.

        Never raises for upstream failures; serves stale or static data instead.
        """
        direction = Direction(direction)
        normalizer = self._normalizers[direction]
        path = f"{API_PREFIX}/{direction.value}/config"

        return await self.cache.get_or_fetch(
            (self.domain, "config", direction.value),
            fetcher=lambda: self.client.call("GET", path, parse=normalizer.config_parser()),
            fallback=lambda: fallback_config(direction, self.names),
        )

    async def get_options(
        self,
        direction: Direction,
        country: str,
        subdivision: Optional[str] = None,
        networks: Optional[str] = None,
    ) -> OptionsCatalog:
        """Currencies, assets and networks for a jurisdiction.

        Args:
            direction: sell or buy
            country: ISO 3166-1 alpha-2 code
            subdivision: US state code, if any
            networks: Optional comma-separated network filter

        Raises:
            ValueError: If ``country`` is empty
        """
        direction = Direction(direction)
        country = (country or "").strip().upper()
        if not country:
            raise ValueError("country is required")
        subdivision = canonical_subdivision(country, subdivision)
        networks = canonical_networks(networks, self.table)

        normalizer = self._normalizers[direction]
        path = f"{API_PREFIX}/{direction.value}/options"
        query = {"country": country, "subdivision": subdivision, "networks": networks}

        return await self.cache.get_or_fetch(
            (self.domain, "options", direction.value, country, subdivision, networks),
            fetcher=lambda: self.client.call(
                "GET", path, query=query, parse=normalizer.options_parser(country, subdivision)
            ),
            fallback=lambda: fallback_options(direction, country, subdivision, self.names),
        )

    async def create_quote(self, request: QuoteRequest) -> QuoteLink:
        """Request a quote and its hosted checkout URL.

        Raises:
            SelectionError: If the network cannot carry the asset
            UpstreamRejected: Upstream refused the quote (AuthenticationFailed for 401/403)
            UpstreamProtocolError: Response had no checkout URL
            TransportError: Upstream unreachable or timed out
        """
        direction = Direction(request.direction)
        options = await self.get_options(direction, request.country, request.subdivision)
        candidates = compatible_networks(request.asset, self.table, options)
        if not request.network:
            request = request.model_copy(update={"network": candidates[0] if candidates else None})
        if request.network not in candidates:
            raise SelectionError(
                f"{request.asset} cannot be sent on {request.network}",
                detail=f"{request.asset}/{request.network}",
            )

        client_ip = public_client_ip(request.client_ip)
        if direction == Direction.SELL:
            body = _sell_quote_body(request, client_ip)
        else:
            body = _buy_quote_body(request, client_ip)
        body = {k: v for k, v in body.items() if v is not None}

        path = f"{API_PREFIX}/{direction.value}/quote"
        logger.info(
            f"Requesting {direction.value} quote: {request.amount} {request.asset} "
            f"on {request.network} -> {request.fiat_currency} via {request.payment_method}"
        )
        result = await self.client.call("POST", path, body=body, parse=_quote_parser(direction))
        link = result.unwrap()
        logger.info(f"{direction.value} quote ready (quote_id={link.quote_id})")
        return link

    async def create_session(self, request: SessionRequest) -> SessionToken:
        """Create a single-use hosted checkout session token.

        Raises:
            UpstreamRejected: Upstream refused the request
            UpstreamProtocolError: Response had no token
            TransportError: Upstream unreachable or timed out
        """
        body: dict[str, Any] = {
            "addresses": [{"address": request.address, "blockchains": list(request.blockchains)}],
        }
        if request.assets:
            body["assets"] = list(request.assets)

        result = await self.client.call("POST", SESSION_PATH, body=body, parse=_parse_session)
        return result.unwrap()

    async def start_checkout(
        self,
        selection: SelectionState,
        address: str,
        redirect_url: str,
        partner_user_id: Optional[str] = None,
    ) -> CheckoutLink:
        """Resolve the selection, create a session and build the hosted URL.

        Raises:
            SelectionError: If no network could be resolved for the asset
            UpstreamRejected: Upstream refused the session request
            TransportError: Upstream unreachable or timed out
        """
        config = await self.get_config(selection.direction)
        options = await self.get_options(selection.direction, selection.country, selection.subdivision)
        selection = resolve(selection, self.table, options, config, self.defaults)

        if selection.network is None:
            raise SelectionError(f"No network available for {selection.asset}", detail=selection.asset)

        session = await self.create_session(
            SessionRequest(address=address, blockchains=[selection.network], assets=[selection.asset])
        )
        url = self.links.build(
            session.token,
            selection,
            partner_user_id=partner_user_id or address,
            redirect_url=redirect_url,
        )
        logger.info(f"Checkout link ready: {selection.direction.value} {selection.asset} on {selection.network}")
        return CheckoutLink(direction=selection.direction, url=url, selection=selection)


def create_gateway(settings: Settings) -> RampGateway:
    """Build a gateway from settings.

    Raises:
        CredentialError: If the credential is absent or malformed
    """
    client = UpstreamClient(
        get_signer(),
        base_url=settings.cdp_api_base_url,
        timeout=settings.upstream_timeout_seconds,
    )
    return RampGateway(
        client,
        ResilienceCache(ttl_seconds=settings.catalog_cache_ttl_seconds),
        table=CompatibilityTable.from_settings(settings),
        names=DisplayNames.from_settings(settings),
        links=QuoteLinkBuilder(settings.checkout_base_url),
        defaults=SelectionDefaults.from_settings(settings),
    )


# Singleton instance
_gateway_instance: Optional[RampGateway] = None


def get_gateway() -> RampGateway:
    """Get the process-wide gateway."""
    global _gateway_instance

    if _gateway_instance is None:
        _gateway_instance = create_gateway(get_settings())

    return _gateway_instance


async def close_gateway() -> None:
    """Close and forget the gateway (shutdown and tests)."""
    global _gateway_instance

    if _gateway_instance is not None:
        await _gateway_instance.aclose()
        _gateway_instance = None
