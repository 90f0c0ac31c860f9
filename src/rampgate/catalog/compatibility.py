"""Static asset -> network compatibility table.

This table is the source of truth for validating a selection when no live
options payload has arrived (startup, offline fallback). Order matters: the
first network is the default choice for an asset.
"""

from types import MappingProxyType
from typing import Mapping, Optional

ASSET_NETWORKS: dict[str, tuple[str, ...]] = {
    "ETH": ("ethereum", "base", "optimism", "arbitrum", "polygon"),
    "USDC": (
        "ethereum",
        "base",
        "optimism",
        "arbitrum",
        "polygon",
        "solana",
        "avalanche-c-chain",
        "unichain",
        "aptos",
        "bnb-chain",
    ),
    "BTC": ("bitcoin",),
    "SOL": ("solana",),
    "MATIC": ("polygon", "ethereum"),
    "AVAX": ("avalanche-c-chain", "ethereum"),
    "LINK": ("ethereum", "base", "arbitrum"),
    "UNI": ("ethereum", "polygon"),
    "DOGE": ("dogecoin",),
    "SHIB": ("ethereum",),
    "XRP": ("ripple",),
    "LTC": ("litecoin",),
    "BCH": ("bitcoin-cash",),
}


class CompatibilityTable:
    """Read-only mapping of asset code to ordered network ids."""

    def __init__(self, entries: Optional[Mapping[str, tuple[str, ...]]] = None):
        source = ASSET_NETWORKS if entries is None else entries
        self._entries = MappingProxyType(
            {asset.upper(): tuple(networks) for asset, networks in source.items()}
        )

    @classmethod
    def from_settings(cls, settings) -> "CompatibilityTable":
        """Default table extended with ``extra_asset_networks`` from settings."""
        entries = dict(ASSET_NETWORKS)
        for asset, networks in settings.extra_asset_networks.items():
            entries[asset.upper()] = tuple(networks)
        return cls(entries)

    def __contains__(self, asset: str) -> bool:
        return asset.upper() in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def networks_for(self, asset: str) -> tuple[str, ...]:
        """Compatible networks for an asset, empty if the asset is unknown."""
        return self._entries.get(asset.upper(), ())

    def is_compatible(self, asset: str, network: str) -> bool:
        return network in self.networks_for(asset)

    def default_network(self, asset: str) -> Optional[str]:
        networks = self.networks_for(asset)
        return networks[0] if networks else None

    @property
    def assets(self) -> list[str]:
        return list(self._entries)

    @property
    def network_ids(self) -> frozenset[str]:
        """Every network id any asset may use."""
        return frozenset(n for networks in self._entries.values() for n in networks)


DEFAULT_TABLE = CompatibilityTable()
