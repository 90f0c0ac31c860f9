"""Map upstream payloads into the normalized catalog model.

Buy and sell payloads share one shape and differ only in collection keys, so a
single normalizer parameterized by direction covers both, over the two
capabilities {config, options}.

Rules:
- Unknown ids keep their raw code as display name; data is never dropped
  because a name is missing.
- Asset ``symbol`` becomes ``code``; network ``name`` becomes ``id`` and
  ``display_name`` becomes ``name``.
- Currency ``limits[]`` rows become ``PaymentMethod.limits[currency]``.
- A record missing a required identifier raises ``SchemaMismatch``; inside a
  collection that record is logged and skipped, the rest survives.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Optional, TypeVar

from pydantic import ValidationError

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
from rampgate.catalog.names import DisplayNames
from rampgate.errors import SchemaMismatch

logger = logging.getLogger(__name__)

T = TypeVar("T")

# direction -> (fiat collection key, crypto collection key)
OPTIONS_KEYS: dict[Direction, tuple[str, str]] = {
    Direction.SELL: ("cashout_currencies", "sell_currencies"),
    Direction.BUY: ("payment_currencies", "purchase_currencies"),
}


def _require(raw: dict, key: str, record: str) -> str:
    value = raw.get(key) if isinstance(raw, dict) else None
    if value is None or (isinstance(value, str) and not value.strip()):
        raise SchemaMismatch(f"{record} record is missing required field '{key}'", field=key)
    return str(value).strip()


def _optional_str(raw: dict, key: str) -> Optional[str]:
    value = raw.get(key)
    if value is None or value == "":
        return None
    return str(value)


def _decimal(value: Any) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        logger.warning(f"Ignoring non-numeric limit value: {value!r}")
        return None
    if not amount.is_finite():
        logger.warning(f"Ignoring non-finite limit value: {value!r}")
        return None
    return amount


def _list(raw: dict, key: str) -> list:
    value = raw.get(key)
    return value if isinstance(value, list) else []


def _collect(
    rows: list,
    build: Callable[[Any], T],
    key: Callable[[T], str],
    record: str,
) -> list[T]:
    """Build every row, skipping unusable and duplicate records."""
    items: list[T] = []
    seen: set[str] = set()
    for row in rows:
        try:
            item = build(row)
        except SchemaMismatch as e:
            logger.error(f"Upstream contract change? Skipping {record}: {e}")
            continue
        except ValidationError as e:
            logger.error(f"Upstream contract change? Skipping invalid {record}: {e.error_count()} error(s)")
            continue
        item_key = key(item)
        if item_key in seen:
            logger.warning(f"Duplicate {record} '{item_key}' in upstream payload, keeping first")
            continue
        seen.add(item_key)
        items.append(item)
    return items


def normalize_network(raw: dict, names: DisplayNames) -> Network:
    network_id = _require(raw, "name", "network")
    chain_id = raw.get("chain_id")
    return Network(
        id=network_id,
        name=_optional_str(raw, "display_name") or names.network(network_id),
        chain_id=chain_id if isinstance(chain_id, int) and chain_id > 0 else None,
        contract_address=_optional_str(raw, "contract_address"),
    )


def normalize_asset(raw: dict, names: DisplayNames) -> Asset:
    code = _require(raw, "symbol", "asset")
    return Asset(
        code=code,
        name=_optional_str(raw, "name") or code,
        networks=_collect(
            _list(raw, "networks"),
            lambda n: normalize_network(n, names),
            key=lambda n: n.id,
            record=f"{code} network",
        ),
        icon_url=_optional_str(raw, "icon_url"),
    )


def normalize_payment_method(raw: dict, names: DisplayNames) -> PaymentMethod:
    method_id = _require(raw, "id", "payment method")
    name, description = names.payment_method(method_id)
    return PaymentMethod(id=method_id, name=name, description=description)


def normalize_fiat_currency(raw: dict, names: DisplayNames) -> FiatCurrency:
    code = _require(raw, "id", "fiat currency")

    def build_method(row: dict) -> PaymentMethod:
        method = normalize_payment_method(row, names)
        limit = CurrencyLimit(min=_decimal(row.get("min")), max=_decimal(row.get("max")))
        return method.model_copy(update={"limits": {code: limit}})

    return FiatCurrency(
        code=code,
        name=names.currency(code),
        payment_methods=_collect(
            _list(raw, "limits"),
            build_method,
            key=lambda m: m.id,
            record=f"{code} limit",
        ),
    )


def normalize_country(raw: dict, names: DisplayNames) -> Country:
    code = _require(raw, "id", "country")
    subdivisions = raw.get("subdivisions")
    return Country(
        code=code,
        name=names.country(code),
        payment_methods=_collect(
            _list(raw, "payment_methods"),
            lambda pm: normalize_payment_method(pm, names),
            key=lambda m: m.id,
            record=f"{code} payment method",
        ),
        subdivisions=[str(s) for s in subdivisions] if isinstance(subdivisions, list) else None,
    )


class SchemaNormalizer:
    """Normalizer for one flow direction.

    Example:
        normalizer = SchemaNormalizer(Direction.SELL)
        catalog = normalizer.normalize_options(payload, country="US", subdivision="NY")
    """

    def __init__(self, direction: Direction, names: Optional[DisplayNames] = None):
        self.direction = Direction(direction)
        self.names = names or DisplayNames()
        self.fiat_key, self.crypto_key = OPTIONS_KEYS[self.direction]

    def normalize_config(self, raw: Any) -> ConfigCatalog:
        """Normalize a ``/{direction}/config`` payload.

        Raises:
            SchemaMismatch: If the payload has no ``countries`` collection
        """
        if not isinstance(raw, dict) or not isinstance(raw.get("countries"), list):
            raise SchemaMismatch(f"{self.direction.value} config payload has no 'countries' list", field="countries")

        return ConfigCatalog(
            direction=self.direction,
            countries=_collect(
                raw["countries"],
                lambda c: normalize_country(c, self.names),
                key=lambda c: c.code,
                record="country",
            ),
        )

    def normalize_options(
        self,
        raw: Any,
        country: str,
        subdivision: Optional[str] = None,
    ) -> OptionsCatalog:
        """Normalize a ``/{direction}/options`` payload.

        Raises:
            SchemaMismatch: If either currency collection is absent
        """
        if not isinstance(raw, dict):
            raise SchemaMismatch(f"{self.direction.value} options payload is not an object")
        for key in (self.fiat_key, self.crypto_key):
            if not isinstance(raw.get(key), list):
                raise SchemaMismatch(f"{self.direction.value} options payload has no '{key}' list", field=key)

        return OptionsCatalog(
            direction=self.direction,
            country=country,
            subdivision=subdivision or None,
            fiat_currencies=_collect(
                raw[self.fiat_key],
                lambda c: normalize_fiat_currency(c, self.names),
                key=lambda c: c.code,
                record="fiat currency",
            ),
            assets=_collect(
                raw[self.crypto_key],
                lambda a: normalize_asset(a, self.names),
                key=lambda a: a.code,
                record="asset",
            ),
        )

    def config_parser(self) -> Callable[[Any], ConfigCatalog]:
        return self.normalize_config

    def options_parser(self, country: str, subdivision: Optional[str] = None) -> Callable[[Any], OptionsCatalog]:
        return lambda raw: self.normalize_options(raw, country, subdivision)
