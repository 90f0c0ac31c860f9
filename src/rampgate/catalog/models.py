"""Normalized catalog model.

These models are provider-agnostic: the UI only ever sees these shapes, never
the raw upstream payloads. Codes and ids are unique within each collection.
"""

from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Direction(str, Enum):
    """Flow direction."""
    SELL = "sell"   # crypto -> fiat (offramp)
    BUY = "buy"     # fiat -> crypto (onramp)


class CatalogModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class Network(CatalogModel):
    """A blockchain network an asset can move on."""

    id: str = Field(..., description="Network id (e.g., ethereum, base)")
    name: str = Field(..., description="Display name (e.g., Ethereum)")
    chain_id: Optional[int] = Field(None, description="EVM chain id, if any")
    contract_address: Optional[str] = Field(None, description="Token contract on this network")


class Asset(CatalogModel):
    """A crypto asset that can be sold or bought."""

    code: str = Field(..., description="Asset symbol (e.g., USDC)")
    name: str = Field(..., description="Asset display name")
    networks: list[Network] = Field(default_factory=list)
    icon_url: Optional[str] = None

    @property
    def network_ids(self) -> list[str]:
        return [n.id for n in self.networks]


class CurrencyLimit(CatalogModel):
    """Min/max transaction amount for one payment method in one currency."""

    min: Optional[Decimal] = None
    max: Optional[Decimal] = None

    def allows(self, amount: Decimal) -> bool:
        if self.min is not None and amount < self.min:
            return False
        if self.max is not None and amount > self.max:
            return False
        return True


class PaymentMethod(CatalogModel):
    """A payout (sell) or payment (buy) method."""

    id: str = Field(..., description="Method id (e.g., ACH_BANK_ACCOUNT)")
    name: str = Field(..., description="Display name")
    description: Optional[str] = None
    limits: dict[str, CurrencyLimit] = Field(
        default_factory=dict, description="Limits indexed by fiat currency code"
    )


class FiatCurrency(CatalogModel):
    """A fiat currency and the payment methods available in it."""

    code: str = Field(..., description="ISO 4217 code (e.g., USD)")
    name: str
    payment_methods: list[PaymentMethod] = Field(default_factory=list)

    def find_payment_method(self, method_id: str) -> Optional[PaymentMethod]:
        return next((m for m in self.payment_methods if m.id == method_id), None)


class Country(CatalogModel):
    """A supported country and its payment methods."""

    code: str = Field(..., description="ISO 3166-1 alpha-2 code")
    name: str
    payment_methods: list[PaymentMethod] = Field(default_factory=list)
    subdivisions: Optional[list[str]] = Field(
        None, description="Subdivision codes, only returned for some countries (US)"
    )


class ConfigCatalog(CatalogModel):
    """Countries x payment methods for one direction."""

    direction: Direction
    countries: list[Country] = Field(default_factory=list)
    is_fallback: bool = Field(default=False, description="Served from the static dataset")

    def find_country(self, code: str) -> Optional[Country]:
        return next((c for c in self.countries if c.code == code), None)


class OptionsCatalog(CatalogModel):
    """Currencies, assets, networks and limits for one jurisdiction."""

    direction: Direction
    country: str
    subdivision: Optional[str] = None
    fiat_currencies: list[FiatCurrency] = Field(default_factory=list)
    assets: list[Asset] = Field(default_factory=list)
    is_fallback: bool = Field(default=False, description="Served from the static dataset")

    def find_asset(self, code: str) -> Optional[Asset]:
        return next((a for a in self.assets if a.code == code), None)

    def find_currency(self, code: str) -> Optional[FiatCurrency]:
        return next((c for c in self.fiat_currencies if c.code == code), None)

    @property
    def payment_methods(self) -> list[PaymentMethod]:
        """Payment methods aggregated across currencies.

        Each method appears once, exposing its limits indexed by every currency
        it is offered in. Order follows first appearance.
        """
        merged: dict[str, PaymentMethod] = {}
        for currency in self.fiat_currencies:
            for method in currency.payment_methods:
                existing = merged.get(method.id)
                if existing is None:
                    merged[method.id] = method
                else:
                    merged[method.id] = existing.model_copy(
                        update={"limits": {**existing.limits, **method.limits}}
                    )
        return list(merged.values())
