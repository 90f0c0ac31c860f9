"""Display-name lookup tables.

The upstream returns bare identifiers (``US``, ``ACH_BANK_ACCOUNT``). These
tables supply the names shown to the user. Unknown identifiers are never
dropped: they display as their raw code. Operators can extend or override the
tables through settings without code changes.
"""

from dataclasses import dataclass, field
from typing import Optional

COUNTRY_NAMES: dict[str, str] = {
    # North America
    "US": "United States",
    "CA": "Canada",
    "MX": "Mexico",
    # Europe
    "GB": "United Kingdom",
    "DE": "Germany",
    "FR": "France",
    "ES": "Spain",
    "IT": "Italy",
    "NL": "Netherlands",
    "CH": "Switzerland",
    "SE": "Sweden",
    "NO": "Norway",
    "DK": "Denmark",
    "FI": "Finland",
    "IE": "Ireland",
    "AT": "Austria",
    "BE": "Belgium",
    "PT": "Portugal",
    "GR": "Greece",
    "PL": "Poland",
    "CZ": "Czech Republic",
    "SK": "Slovakia",
    "HU": "Hungary",
    "RO": "Romania",
    "BG": "Bulgaria",
    "HR": "Croatia",
    "SI": "Slovenia",
    "LT": "Lithuania",
    "LV": "Latvia",
    "EE": "Estonia",
    "CY": "Cyprus",
    "MT": "Malta",
    "LU": "Luxembourg",
    "IS": "Iceland",
    "LI": "Liechtenstein",
    "MC": "Monaco",
    # Asia Pacific
    "AU": "Australia",
    "NZ": "New Zealand",
    "JP": "Japan",
    "SG": "Singapore",
    "HK": "Hong Kong",
    "KR": "South Korea",
    "TW": "Taiwan",
    "TH": "Thailand",
    "MY": "Malaysia",
    "PH": "Philippines",
    "ID": "Indonesia",
    "VN": "Vietnam",
    "IN": "India",
    # Middle East & Africa
    "AE": "United Arab Emirates",
    "SA": "Saudi Arabia",
    "QA": "Qatar",
    "BH": "Bahrain",
    "KW": "Kuwait",
    "OM": "Oman",
    "IL": "Israel",
    "ZA": "South Africa",
    "NG": "Nigeria",
    "KE": "Kenya",
    # Latin America
    "BR": "Brazil",
    "AR": "Argentina",
    "CL": "Chile",
    "CO": "Colombia",
    "PE": "Peru",
    "UY": "Uruguay",
    "CR": "Costa Rica",
    "PA": "Panama",
    # Other
    "TR": "Turkey",
    "UA": "Ukraine",
    "KZ": "Kazakhstan",
}

# id -> (name, description)
PAYMENT_METHOD_NAMES: dict[str, tuple[str, Optional[str]]] = {
    "ACH_BANK_ACCOUNT": ("Bank Transfer (ACH)", "US only, 1-3 business days"),
    "RTP": ("Real-Time Payments (RTP)", "US only, instant"),
    "SEPA_BANK_ACCOUNT": ("SEPA Bank Transfer", "1-3 business days"),
    "EFT_BANK_ACCOUNT": ("EFT Bank Transfer", "1-3 business days"),
    "PAYID": ("PayID", "Australia, instant"),
    "PAYPAL": ("PayPal", "Available in select countries"),
    "FIAT_WALLET": ("Coinbase Fiat Wallet", "Instant transfer to your Coinbase account"),
    "CARD": ("Debit/Credit Card", "Available in 90+ countries"),
    "APPLE_PAY": ("Apple Pay", "Available on iOS devices"),
    "CRYPTO_ACCOUNT": ("Crypto Account", "Coinbase crypto account"),
    "GUEST_CHECKOUT_CARD": ("Guest Checkout Card", "Card payment without account"),
    "GUEST_CHECKOUT_APPLE_PAY": ("Guest Checkout Apple Pay", "Apple Pay without account"),
    "UNSPECIFIED": ("Unspecified", "Payment method not specified"),
}

CURRENCY_NAMES: dict[str, str] = {
    "USD": "US Dollar",
    "EUR": "Euro",
    "GBP": "British Pound",
    "CAD": "Canadian Dollar",
    "AUD": "Australian Dollar",
    "JPY": "Japanese Yen",
    "CHF": "Swiss Franc",
    "NZD": "New Zealand Dollar",
    "SGD": "Singapore Dollar",
    "HKD": "Hong Kong Dollar",
    "MXN": "Mexican Peso",
    "BRL": "Brazilian Real",
}

NETWORK_NAMES: dict[str, str] = {
    "ethereum": "Ethereum",
    "base": "Base",
    "optimism": "Optimism",
    "polygon": "Polygon",
    "arbitrum": "Arbitrum",
    "avalanche-c-chain": "Avalanche",
    "solana": "Solana",
    "bitcoin": "Bitcoin",
    "bitcoin-lightning": "Bitcoin Lightning",
    "bitcoin-cash": "Bitcoin Cash",
    "litecoin": "Litecoin",
    "dogecoin": "Dogecoin",
    "ripple": "XRP Ledger",
    "unichain": "Unichain",
    "aptos": "Aptos",
    "bnb-chain": "BNB Chain",
    "cardano": "Cardano",
    "polkadot": "Polkadot",
    "cosmos": "Cosmos",
    "near": "NEAR Protocol",
    "algorand": "Algorand",
    "stellar": "Stellar",
    "tron": "TRON",
    "filecoin": "Filecoin",
}

# 50 states + DC
US_STATES: dict[str, str] = {
    "AL": "Alabama",
    "AK": "Alaska",
    "AZ": "Arizona",
    "AR": "Arkansas",
    "CA": "California",
    "CO": "Colorado",
    "CT": "Connecticut",
    "DE": "Delaware",
    "FL": "Florida",
    "GA": "Georgia",
    "HI": "Hawaii",
    "ID": "Idaho",
    "IL": "Illinois",
    "IN": "Indiana",
    "IA": "Iowa",
    "KS": "Kansas",
    "KY": "Kentucky",
    "LA": "Louisiana",
    "ME": "Maine",
    "MD": "Maryland",
    "MA": "Massachusetts",
    "MI": "Michigan",
    "MN": "Minnesota",
    "MS": "Mississippi",
    "MO": "Missouri",
    "MT": "Montana",
    "NE": "Nebraska",
    "NV": "Nevada",
    "NH": "New Hampshire",
    "NJ": "New Jersey",
    "NM": "New Mexico",
    "NY": "New York",
    "NC": "North Carolina",
    "ND": "North Dakota",
    "OH": "Ohio",
    "OK": "Oklahoma",
    "OR": "Oregon",
    "PA": "Pennsylvania",
    "RI": "Rhode Island",
    "SC": "South Carolina",
    "SD": "South Dakota",
    "TN": "Tennessee",
    "TX": "Texas",
    "UT": "Utah",
    "VT": "Vermont",
    "VA": "Virginia",
    "WA": "Washington",
    "WV": "West Virginia",
    "WI": "Wisconsin",
    "WY": "Wyoming",
    "DC": "District of Columbia",
}

US_SUBDIVISIONS: tuple[str, ...] = tuple(US_STATES)


@dataclass
class DisplayNames:
    """Display-name tables used by the normalizer."""

    countries: dict[str, str] = field(default_factory=lambda: dict(COUNTRY_NAMES))
    payment_methods: dict[str, tuple[str, Optional[str]]] = field(
        default_factory=lambda: dict(PAYMENT_METHOD_NAMES)
    )
    currencies: dict[str, str] = field(default_factory=lambda: dict(CURRENCY_NAMES))
    networks: dict[str, str] = field(default_factory=lambda: dict(NETWORK_NAMES))

    @classmethod
    def from_settings(cls, settings) -> "DisplayNames":
        """Default tables extended with operator overrides."""
        names = cls()
        names.countries.update(settings.extra_country_names)
        for method_id, name in settings.extra_payment_method_names.items():
            _, description = names.payment_methods.get(method_id, (None, None))
            names.payment_methods[method_id] = (name, description)
        return names

    def country(self, code: str) -> str:
        return self.countries.get(code, code)

    def currency(self, code: str) -> str:
        return self.currencies.get(code, code)

    def network(self, network_id: str) -> str:
        return self.networks.get(network_id, network_id)

    def payment_method(self, method_id: str) -> tuple[str, Optional[str]]:
        return self.payment_methods.get(method_id, (method_id, None))
