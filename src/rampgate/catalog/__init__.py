"""Normalized catalog: models, display names, compatibility table, fallbacks."""

from rampgate.catalog.compatibility import DEFAULT_TABLE, CompatibilityTable
from rampgate.catalog.fallback import fallback_config, fallback_options
from rampgate.catalog.models import (
    Asset,
    ConfigCatalog,
    Country,
    CurrencyLimit,
    Direction,
    FiatCurrency,
    Network,
    OptionsCatalog,
    PaymentMethod,
)
from rampgate.catalog.names import US_SUBDIVISIONS, DisplayNames
from rampgate.catalog.normalizer import SchemaNormalizer

__all__ = [
    "Asset",
    "CompatibilityTable",
    "ConfigCatalog",
    "Country",
    "CurrencyLimit",
    "DEFAULT_TABLE",
    "Direction",
    "DisplayNames",
    "FiatCurrency",
    "Network",
    "OptionsCatalog",
    "PaymentMethod",
    "SchemaNormalizer",
    "US_SUBDIVISIONS",
    "fallback_config",
    "fallback_options",
]
