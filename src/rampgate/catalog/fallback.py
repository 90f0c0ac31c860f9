"""Static fallback datasets.

Served when the upstream is unavailable and no cached catalog exists for a key,
so the UI always has something usable to render. The data is written in the
upstream wire shape and goes through the same normalizer as live payloads.
"""

import logging
from typing import Optional

from rampgate.catalog.models import ConfigCatalog, Direction, OptionsCatalog
from rampgate.catalog.names import US_SUBDIVISIONS, DisplayNames
from rampgate.catalog.normalizer import SchemaNormalizer

logger = logging.getLogger(__name__)

CA_PROVINCES = ["AB", "BC", "MB", "NB", "NL", "NS", "NT", "NU", "ON", "PE", "QC", "SK", "YT"]


def _methods(*ids: str) -> list[dict]:
    return [{"id": method_id} for method_id in ids]


def _limits(*rows: tuple[str, str, str]) -> list[dict]:
    return [{"id": method_id, "min": lo, "max": hi} for method_id, lo, hi in rows]


def _network(name: str, display_name: str, chain_id: int = 0, contract_address: str = "") -> dict:
    return {
        "name": name,
        "display_name": display_name,
        "chain_id": chain_id,
        "contract_address": contract_address,
    }


SELL_CONFIG = {
    "countries": [
        {
            "id": "US",
            "payment_methods": _methods("ACH_BANK_ACCOUNT", "PAYPAL", "FIAT_WALLET", "RTP"),
            "subdivisions": list(US_SUBDIVISIONS),
        },
        {"id": "GB", "payment_methods": _methods("SEPA_BANK_ACCOUNT", "PAYPAL", "FIAT_WALLET")},
        {
            "id": "CA",
            "payment_methods": _methods("EFT_BANK_ACCOUNT", "PAYPAL", "FIAT_WALLET"),
            "subdivisions": CA_PROVINCES,
        },
        {"id": "DE", "payment_methods": _methods("SEPA_BANK_ACCOUNT", "PAYPAL", "FIAT_WALLET")},
        {"id": "FR", "payment_methods": _methods("SEPA_BANK_ACCOUNT", "PAYPAL", "FIAT_WALLET")},
        {"id": "ES", "payment_methods": _methods("SEPA_BANK_ACCOUNT", "PAYPAL", "FIAT_WALLET")},
        {"id": "IT", "payment_methods": _methods("SEPA_BANK_ACCOUNT", "PAYPAL", "FIAT_WALLET")},
        {"id": "AU", "payment_methods": _methods("PAYPAL", "FIAT_WALLET")},
    ]
}

BUY_CONFIG = {
    "countries": [
        {
            "id": "US",
            "payment_methods": _methods("CARD", "ACH_BANK_ACCOUNT", "APPLE_PAY", "PAYPAL"),
            "subdivisions": list(US_SUBDIVISIONS),
        },
        {"id": "GB", "payment_methods": _methods("CARD", "PAYPAL")},
        {"id": "CA", "payment_methods": _methods("CARD")},
        {"id": "DE", "payment_methods": _methods("CARD")},
        {"id": "FR", "payment_methods": _methods("CARD")},
        {"id": "AU", "payment_methods": _methods("CARD")},
    ]
}

SELL_OPTIONS = {
    "cashout_currencies": [
        {
            "id": "USD",
            "limits": _limits(
                ("ACH_BANK_ACCOUNT", "10", "25000"),
                ("PAYPAL", "10", "5000"),
                ("FIAT_WALLET", "1", "50000"),
                ("RTP", "10", "5000"),
            ),
        },
        {
            "id": "EUR",
            "limits": _limits(
                ("SEPA_BANK_ACCOUNT", "10", "25000"),
                ("PAYPAL", "10", "5000"),
                ("FIAT_WALLET", "1", "50000"),
            ),
        },
        {
            "id": "GBP",
            "limits": _limits(
                ("SEPA_BANK_ACCOUNT", "10", "25000"),
                ("PAYPAL", "10", "5000"),
                ("FIAT_WALLET", "1", "50000"),
            ),
        },
        {
            "id": "CAD",
            "limits": _limits(
                ("EFT_BANK_ACCOUNT", "10", "25000"),
                ("PAYPAL", "10", "5000"),
                ("FIAT_WALLET", "1", "50000"),
            ),
        },
        {
            "id": "AUD",
            "limits": _limits(
                ("PAYID", "10", "25000"),
                ("PAYPAL", "10", "5000"),
                ("FIAT_WALLET", "1", "50000"),
            ),
        },
    ],
    "sell_currencies": [
        {"id": "USDC", "symbol": "USDC", "name": "USD Coin", "networks": [
            _network("ethereum", "Ethereum"),
            _network("base", "Base"),
            _network("optimism", "Optimism"),
            _network("polygon", "Polygon"),
            _network("arbitrum", "Arbitrum"),
            _network("solana", "Solana"),
            _network("avalanche-c-chain", "Avalanche"),
            _network("unichain", "Unichain"),
            _network("aptos", "Aptos"),
            _network("bnb-chain", "BNB Chain"),
        ]},
        {"id": "BTC", "symbol": "BTC", "name": "Bitcoin", "networks": [_network("bitcoin", "Bitcoin")]},
        {"id": "ETH", "symbol": "ETH", "name": "Ethereum", "networks": [
            _network("ethereum", "Ethereum"),
            _network("base", "Base"),
            _network("optimism", "Optimism"),
            _network("arbitrum", "Arbitrum"),
        ]},
        {"id": "SOL", "symbol": "SOL", "name": "Solana", "networks": [_network("solana", "Solana")]},
        {"id": "MATIC", "symbol": "MATIC", "name": "Polygon", "networks": [
            _network("ethereum", "Ethereum"),
            _network("polygon", "Polygon"),
        ]},
        {"id": "AVAX", "symbol": "AVAX", "name": "Avalanche", "networks": [
            _network("ethereum", "Ethereum"),
            _network("avalanche-c-chain", "Avalanche"),
        ]},
        {"id": "LINK", "symbol": "LINK", "name": "Chainlink", "networks": [
            _network("ethereum", "Ethereum"),
            _network("base", "Base"),
            _network("arbitrum", "Arbitrum"),
        ]},
        {"id": "UNI", "symbol": "UNI", "name": "Uniswap", "networks": [
            _network("ethereum", "Ethereum"),
            _network("polygon", "Polygon"),
        ]},
        {"id": "DOGE", "symbol": "DOGE", "name": "Dogecoin", "networks": [_network("dogecoin", "Dogecoin")]},
        {"id": "SHIB", "symbol": "SHIB", "name": "Shiba Inu", "networks": [_network("ethereum", "Ethereum")]},
        {"id": "XRP", "symbol": "XRP", "name": "XRP", "networks": [_network("ripple", "XRP Ledger")]},
        {"id": "LTC", "symbol": "LTC", "name": "Litecoin", "networks": [_network("litecoin", "Litecoin")]},
        {"id": "BCH", "symbol": "BCH", "name": "Bitcoin Cash", "networks": [_network("bitcoin-cash", "Bitcoin Cash")]},
    ],
}

BUY_OPTIONS = {
    "payment_currencies": [
        {
            "id": "USD",
            "limits": _limits(
                ("CARD", "10.00", "1000.00"),
                ("ACH_BANK_ACCOUNT", "10.00", "25000.00"),
                ("APPLE_PAY", "10.00", "1000.00"),
                ("PAYPAL", "10.00", "1000.00"),
            ),
        },
        {
            "id": "EUR",
            "limits": _limits(
                ("CARD", "10.00", "1000.00"),
                ("SEPA_BANK_ACCOUNT", "10.00", "25000.00"),
            ),
        },
        {
            "id": "GBP",
            "limits": _limits(
                ("CARD", "10.00", "1000.00"),
                ("PAYPAL", "10.00", "1000.00"),
            ),
        },
    ],
    "purchase_currencies": [
        {"id": "ETH", "symbol": "ETH", "name": "Ethereum", "networks": [
            _network("ethereum", "Ethereum", 1),
            _network("optimism", "Optimism", 10),
            _network("arbitrum", "Arbitrum", 42161),
            _network("base", "Base", 8453),
        ]},
        {"id": "USDC", "symbol": "USDC", "name": "USD Coin", "networks": [
            _network("ethereum", "Ethereum", 1, "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"),
            _network("optimism", "Optimism", 10, "0x7f5c764cbc14f9669b88837ca1490cca17c31607"),
            _network("arbitrum", "Arbitrum", 42161, "0xff970a61a04b1ca14834a43f5de4533ebddb5cc8"),
            _network("base", "Base", 8453, "0x833589fcd6edb6e08f4c7c32d4f71b54bda02913"),
            _network("polygon", "Polygon", 137, "0x2791bca1f2de4661ed88a30c99a7a9449aa84174"),
            _network("solana", "Solana", 0, "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"),
        ]},
        {"id": "BTC", "symbol": "BTC", "name": "Bitcoin", "networks": [_network("bitcoin", "Bitcoin")]},
        {"id": "SOL", "symbol": "SOL", "name": "Solana", "networks": [_network("solana", "Solana")]},
        {"id": "MATIC", "symbol": "MATIC", "name": "Polygon", "networks": [
            _network("ethereum", "Ethereum", 1, "0x7d1afa7b718fb893db30a3abc0cfc608aacfebb0"),
            _network("polygon", "Polygon", 137),
        ]},
    ],
}

_CONFIGS = {Direction.SELL: SELL_CONFIG, Direction.BUY: BUY_CONFIG}
_OPTIONS = {Direction.SELL: SELL_OPTIONS, Direction.BUY: BUY_OPTIONS}


def fallback_config(direction: Direction, names: Optional[DisplayNames] = None) -> ConfigCatalog:
    """Static config catalog for a direction."""
    direction = Direction(direction)
    logger.warning(f"Using static {direction.value} config. Real upstream data may differ.")
    catalog = SchemaNormalizer(direction, names).normalize_config(_CONFIGS[direction])
    return catalog.model_copy(update={"is_fallback": True})


def fallback_options(
    direction: Direction,
    country: str,
    subdivision: Optional[str] = None,
    names: Optional[DisplayNames] = None,
) -> OptionsCatalog:
    """Static options catalog for a direction, tagged with the requested jurisdiction."""
    direction = Direction(direction)
    logger.warning(
        f"Using static {direction.value} options for {country}"
        f"{'-' + subdivision if subdivision else ''}. Real upstream data may differ."
    )
    catalog = SchemaNormalizer(direction, names).normalize_options(
        _OPTIONS[direction], country, subdivision
    )
    return catalog.model_copy(update={"is_fallback": True})
