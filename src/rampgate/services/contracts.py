"""Request and response contracts for quotes, sessions and checkout."""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from rampgate.catalog.models import Direction
from rampgate.selection.resolver import SelectionState

PARTNER_USER_ID_MAX_LENGTH = 49


class QuoteRequest(BaseModel):
    """Request for a sell or buy quote."""

    direction: Direction = Field(default=Direction.SELL, description="sell or buy")
    asset: str = Field(..., min_length=1, description="Crypto asset (e.g., USDC)")
    network: Optional[str] = Field(None, description="Network the asset moves on")
    amount: Decimal = Field(..., gt=0, description="Crypto amount to sell, or fiat amount to spend")
    fiat_currency: str = Field(..., min_length=1, description="Cashout (sell) or payment (buy) currency")
    payment_method: str = Field(..., min_length=1, description="Payment method id")
    country: str = Field(..., min_length=2, max_length=2, description="ISO 3166-1 alpha-2 code")
    subdivision: Optional[str] = Field(None, description="US state code")
    address: str = Field(..., min_length=1, description="Source (sell) or destination (buy) wallet")
    redirect_url: str = Field(..., min_length=1, description="Where the hosted page returns to")
    partner_user_id: str = Field(..., min_length=1, description="Partner-side user id")
    client_ip: Optional[str] = Field(None, description="End user's IP address")


class QuoteLink(BaseModel):
    """Hosted checkout URL returned by a quote."""

    direction: Direction
    url: str = Field(..., description="Ready-to-use hosted checkout URL")
    quote_id: Optional[str] = Field(None, description="Upstream quote id (sell only)")


class SessionRequest(BaseModel):
    """Request for a hosted-checkout session token."""

    address: str = Field(..., min_length=1, description="Wallet address")
    blockchains: list[str] = Field(..., min_length=1, description="Networks the address is valid on")
    assets: Optional[list[str]] = Field(None, description="Restrict the session to these assets")


class SessionToken(BaseModel):
    """Single-use session token for the hosted checkout page."""

    model_config = ConfigDict(frozen=True)

    token: str
    channel_id: Optional[str] = None


class CheckoutRequest(BaseModel):
    """Start a hosted checkout from the current selection."""

    selection: SelectionState
    address: str = Field(..., min_length=1, description="Wallet address")
    redirect_url: str = Field(..., min_length=1, description="Where the hosted page returns to")
    partner_user_id: Optional[str] = Field(
        None, description="Partner-side user id (defaults to the address)"
    )


class CheckoutLink(BaseModel):
    """Hosted checkout URL built from a session token."""

    direction: Direction
    url: str
    selection: SelectionState = Field(..., description="Selection the link was built from, after repair")
