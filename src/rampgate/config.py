"""Application configuration using pydantic-settings.

Credentials for the upstream onramp/offramp API are supplied out-of-band through
environment variables (or a ``.env`` file) and loaded once per process.
"""

from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from rampgate.catalog.names import US_SUBDIVISIONS


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # Upstream credentials
    # ======================
    cdp_api_key_name: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("CDP_API_KEY", "CDP_API_KEY_NAME", "cdp_api_key_name"),
        description="CDP API key identifier (used as JWT kid/sub)",
    )
    cdp_api_key_secret: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "CDP_API_SECRET", "CDP_API_KEY_PRIVATE_KEY", "cdp_api_key_secret"
        ),
        description="CDP private signing key (PEM EC key or base64 Ed25519 key)",
    )

    # ======================
    # Upstream API
    # ======================
    cdp_api_base_url: str = Field(
        default="https://api.developer.coinbase.com",
        description="Base URL of the onramp/offramp API",
    )
    checkout_base_url: str = Field(
        default="https://pay.coinbase.com",
        description="Base URL of the hosted checkout page",
    )
    jwt_ttl_seconds: int = Field(default=120, description="Signed token validity window")
    upstream_timeout_seconds: float = Field(
        default=10.0, description="Total deadline for a single upstream call"
    )

    # ======================
    # Catalog cache
    # ======================
    catalog_cache_ttl_seconds: float = Field(
        default=15 * 60, description="TTL for config/options lookups (15 minutes)"
    )

    # ======================
    # Selection defaults
    # ======================
    default_subdivision: str = Field(default="CA", description="Default US subdivision")
    default_asset: str = Field(default="USDC", description="Preferred crypto asset")
    default_fiat_currency: str = Field(default="USD", description="Preferred fiat currency")
    preferred_payment_methods: list[str] = Field(
        default_factory=lambda: ["ACH_BANK_ACCOUNT", "SEPA_BANK_ACCOUNT", "FIAT_WALLET"],
        description="Payment methods tried in order when repairing a selection",
    )

    # ======================
    # Catalog extensions (JSON values)
    # ======================
    extra_country_names: dict[str, str] = Field(
        default_factory=dict, description="Additional/overriding country display names"
    )
    extra_payment_method_names: dict[str, str] = Field(
        default_factory=dict, description="Additional/overriding payment method display names"
    )
    extra_asset_networks: dict[str, list[str]] = Field(
        default_factory=dict, description="Additional/overriding asset -> networks entries"
    )

    # ======================
    # API / Environment
    # ======================
    api_host: str = Field(default="0.0.0.0", description="API server host")
    api_port: int = Field(default=8000, description="API server port")
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=True, description="Enable debug mode")

    @field_validator("default_subdivision")
    @classmethod
    def validate_default_subdivision(cls, v: str) -> str:
        """Default subdivision must be a US state code."""
        code = v.strip().upper()
        if code not in US_SUBDIVISIONS:
            raise ValueError(f"Unknown US subdivision: {v!r}")
        return code

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    @property
    def has_credentials(self) -> bool:
        """Check if both halves of the API credential are configured."""
        return bool(self.cdp_api_key_name and self.cdp_api_key_secret)

    @property
    def api_host_name(self) -> str:
        """Host component of the upstream base URL, as bound into signed tokens."""
        return self.cdp_api_base_url.split("://", 1)[-1].rstrip("/")

    def get_safe_dict(self) -> dict:
        """Return settings dict with secrets redacted."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "api_host": self.api_host,
            "api_port": self.api_port,
            "cdp_api_base_url": self.cdp_api_base_url,
            "cdp_api_key_name": self.cdp_api_key_name or "(not set)",
            "cdp_api_key_secret": "***" if self.cdp_api_key_secret else "(not set)",
            "jwt_ttl_seconds": self.jwt_ttl_seconds,
            "upstream_timeout_seconds": self.upstream_timeout_seconds,
            "catalog_cache_ttl_seconds": self.catalog_cache_ttl_seconds,
            "defaults": {
                "subdivision": self.default_subdivision,
                "asset": self.default_asset,
                "fiat_currency": self.default_fiat_currency,
                "payment_methods": self.preferred_payment_methods,
            },
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
