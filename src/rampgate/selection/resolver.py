"""Selection state and its repair rules.

``resolve`` is a pure function: given a selection and whatever catalogs are
known, it returns the nearest consistent selection. Every field change funnels
through ``apply_change`` before it is rendered or submitted, so the invariants
below hold at all times:

- ``network`` is compatible with ``asset``
- a US selection carries one of the 51 US subdivision codes; other countries
  carry none

Validation source for networks: the static compatibility table when it knows
the asset (narrowed to the live list when one has arrived), otherwise the live
options list. The live list drives the choices shown to the user.

``resolve(resolve(s)) == resolve(s)`` for every ``s``.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from rampgate.catalog.compatibility import DEFAULT_TABLE, CompatibilityTable
from rampgate.catalog.models import ConfigCatalog, Direction, Network, OptionsCatalog
from rampgate.catalog.names import US_SUBDIVISIONS, DisplayNames

logger = logging.getLogger(__name__)

US = "US"


class SelectionState(BaseModel):
    """What the user has picked so far."""

    model_config = ConfigDict(frozen=True)

    direction: Direction = Direction.SELL
    country: str = Field(default=US, description="ISO 3166-1 alpha-2 country code")
    subdivision: Optional[str] = Field(default="CA", description="US state code, US only")
    asset: str = Field(default="USDC", description="Crypto asset code")
    network: Optional[str] = Field(default="base", description="Network id, None if unresolved")
    fiat_currency: str = Field(default="USD", description="Fiat currency code")
    payment_method: Optional[str] = Field(default=None, description="Payment method id")
    amount: Optional[Decimal] = Field(default=None, gt=0, description="Amount to sell/spend")

    @field_validator("country", "subdivision", "asset", "fiat_currency")
    @classmethod
    def normalize_code(cls, v: Optional[str]) -> Optional[str]:
        """Codes compare upper-case everywhere."""
        return v.strip().upper() if v else v


@dataclass(frozen=True)
class SelectionDefaults:
    """Preferred values used when a repair has to pick something."""

    subdivision: str = "CA"
    asset: str = "USDC"
    fiat_currency: str = "USD"
    payment_methods: tuple[str, ...] = field(
        default=("ACH_BANK_ACCOUNT", "SEPA_BANK_ACCOUNT", "FIAT_WALLET")
    )

    @classmethod
    def from_settings(cls, settings) -> "SelectionDefaults":
        return cls(
            subdivision=settings.default_subdivision,
            asset=settings.default_asset,
            fiat_currency=settings.default_fiat_currency,
            payment_methods=tuple(settings.preferred_payment_methods),
        )

    def __post_init__(self):
        if self.subdivision not in US_SUBDIVISIONS:
            raise ValueError(f"Default subdivision must be a US state code, got {self.subdivision!r}")


DEFAULTS = SelectionDefaults()

CHANGEABLE_FIELDS = (
    "direction",
    "country",
    "subdivision",
    "asset",
    "network",
    "fiat_currency",
    "payment_method",
    "amount",
)


def _live_options(state: SelectionState, options: Optional[OptionsCatalog]) -> Optional[OptionsCatalog]:
    if options is None or options.direction != state.direction:
        return None
    return options


def _pick(preferred: tuple[str, ...], available: list[str]) -> Optional[str]:
    for candidate in preferred:
        if candidate in available:
            return candidate
    return available[0] if available else None


def compatible_networks(
    asset: str,
    table: CompatibilityTable = DEFAULT_TABLE,
    options: Optional[OptionsCatalog] = None,
) -> list[str]:
    """Network ids a selection of ``asset`` may validly use, in preference order."""
    static = list(table.networks_for(asset))
    live_asset = options.find_asset(asset) if options is not None else None
    live = live_asset.network_ids if live_asset is not None else []

    if static:
        narrowed = [n for n in static if n in live]
        return narrowed or static
    return live


def available_networks(
    asset: str,
    table: CompatibilityTable = DEFAULT_TABLE,
    options: Optional[OptionsCatalog] = None,
    names: Optional[DisplayNames] = None,
) -> list[Network]:
    """Network choices to show for ``asset``.

    A live options list for the asset takes precedence; otherwise the static
    table is rendered with local display names.
    """
    live_asset = options.find_asset(asset) if options is not None else None
    if live_asset is not None and live_asset.networks:
        return list(live_asset.networks)

    names = names or DisplayNames()
    return [Network(id=n, name=names.network(n)) for n in table.networks_for(asset)]


def _resolve_subdivision(state: SelectionState, defaults: SelectionDefaults) -> Optional[str]:
    if state.country != US:
        return None
    if state.subdivision in US_SUBDIVISIONS:
        return state.subdivision
    return defaults.subdivision


def _resolve_asset(state: SelectionState, options: Optional[OptionsCatalog], defaults: SelectionDefaults) -> str:
    if options is None or not options.assets:
        return state.asset
    codes = [a.code for a in options.assets]
    if state.asset in codes:
        return state.asset
    return _pick((defaults.asset,), codes)


def _resolve_network(
    asset: str,
    network: Optional[str],
    table: CompatibilityTable,
    options: Optional[OptionsCatalog],
) -> Optional[str]:
    candidates = compatible_networks(asset, table, options)
    if network in candidates:
        return network
    # Unknown asset with no live list: leave unresolved
    return candidates[0] if candidates else None


def _resolve_fiat(state: SelectionState, options: Optional[OptionsCatalog], defaults: SelectionDefaults) -> str:
    if options is None or not options.fiat_currencies:
        return state.fiat_currency
    codes = [c.code for c in options.fiat_currencies]
    if state.fiat_currency in codes:
        return state.fiat_currency
    return _pick((defaults.fiat_currency,), codes)


def _offered_payment_methods(
    country: str,
    fiat_currency: str,
    options: Optional[OptionsCatalog],
    config: Optional[ConfigCatalog],
) -> Optional[list[str]]:
    """Payment method ids the catalogs offer, or None if nothing is known."""
    if options is not None and options.fiat_currencies:
        currency = options.find_currency(fiat_currency)
        return [m.id for m in currency.payment_methods] if currency is not None else []
    if config is not None:
        found = config.find_country(country)
        if found is not None:
            return [m.id for m in found.payment_methods]
    return None


def resolve(
    state: SelectionState,
    table: CompatibilityTable = DEFAULT_TABLE,
    options: Optional[OptionsCatalog] = None,
    config: Optional[ConfigCatalog] = None,
    defaults: SelectionDefaults = DEFAULTS,
) -> SelectionState:
    """Repair a selection so that every invariant holds.

    Args:
        state: Selection to repair
        table: Static compatibility table
        options: Latest options catalog for the selection's jurisdiction, if any
        config: Latest config catalog for the selection's direction, if any
        defaults: Preferred values for repairs

    Returns:
        A consistent selection (``state`` itself if nothing changed)
    """
    options = _live_options(state, options)
    if config is not None and config.direction != state.direction:
        config = None

    subdivision = _resolve_subdivision(state, defaults)
    asset = _resolve_asset(state, options, defaults)
    network = _resolve_network(asset, state.network, table, options)
    fiat_currency = _resolve_fiat(state, options, defaults)

    payment_method = state.payment_method
    offered = _offered_payment_methods(state.country, fiat_currency, options, config)
    if offered is not None and payment_method not in offered:
        payment_method = _pick(defaults.payment_methods, offered)

    repaired = {
        "subdivision": subdivision,
        "asset": asset,
        "network": network,
        "fiat_currency": fiat_currency,
        "payment_method": payment_method,
    }
    changes = {k: v for k, v in repaired.items() if getattr(state, k) != v}
    if not changes:
        return state

    logger.debug(f"Selection repaired: {changes}")
    return state.model_copy(update=changes)


def apply_change(
    state: SelectionState,
    field_name: str,
    value: Any,
    table: CompatibilityTable = DEFAULT_TABLE,
    options: Optional[OptionsCatalog] = None,
    config: Optional[ConfigCatalog] = None,
    defaults: SelectionDefaults = DEFAULTS,
) -> SelectionState:
    """Set one field and repair the rest.

    A country, subdivision or direction change makes the options catalog stale,
    so it is not consulted; a direction change also drops the config catalog.
    A direct network change that is not compatible with the asset is rejected
    and the previous (valid) network is kept.

    Raises:
        ValueError: If ``field_name`` is not a selection field or the value is invalid
    """
    if field_name not in CHANGEABLE_FIELDS:
        raise ValueError(f"Unknown selection field: {field_name}")

    if field_name in ("country", "subdivision", "direction"):
        options = None
    if field_name == "direction":
        config = None

    if field_name == "network":
        current = resolve(state, table, options, config, defaults)
        if value not in compatible_networks(current.asset, table, _live_options(current, options)):
            logger.info(f"Rejected network {value!r} for {current.asset}; keeping {current.network!r}")
            return current
        return resolve(current.model_copy(update={"network": value}), table, options, config, defaults)

    updated = SelectionState.model_validate({**state.model_dump(), field_name: value})
    return resolve(updated, table, options, config, defaults)
