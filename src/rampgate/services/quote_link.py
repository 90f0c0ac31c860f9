"""Hosted checkout URL construction."""

from decimal import Decimal
from typing import Optional

import httpx

from rampgate.catalog.models import Direction
from rampgate.services.contracts import PARTNER_USER_ID_MAX_LENGTH
from rampgate.selection.resolver import SelectionState

SELL_PATH = "/v3/sell/input"
BUY_PATH = "/buy/select-asset"


class QuoteLinkBuilder:
    """Build hosted checkout URLs from a session token and a selection.

    Example:
        builder = QuoteLinkBuilder("https://pay.coinbase.com")
        url = builder.build(token, selection, partner_user_id=address, redirect_url=return_to)
    """

    def __init__(self, base_url: str = "https://pay.coinbase.com"):
        self.base_url = base_url.rstrip("/")

    def build(
        self,
        session_token: str,
        selection: SelectionState,
        partner_user_id: str,
        redirect_url: str,
        amount: Optional[Decimal] = None,
    ) -> str:
        """Return the hosted checkout URL for a selection.

        Args:
            session_token: Token from the session endpoint
            selection: Resolved selection
            partner_user_id: Partner-side user id, truncated to the upstream limit
            redirect_url: Where the hosted page returns to
            amount: Optional preset fiat amount (defaults to the selection's amount)

        Returns:
            Absolute URL string
        """
        params: dict[str, str] = {
            "sessionToken": session_token,
            "partnerUserId": partner_user_id[:PARTNER_USER_ID_MAX_LENGTH],
            "redirectUrl": redirect_url,
            "defaultAsset": selection.asset,
        }
        if selection.network:
            params["defaultNetwork"] = selection.network

        if selection.direction == Direction.SELL:
            path = SELL_PATH
            if selection.payment_method:
                params["defaultCashoutMethod"] = selection.payment_method
        else:
            path = BUY_PATH
            if selection.payment_method:
                params["defaultPaymentMethod"] = selection.payment_method

        params["fiatCurrency"] = selection.fiat_currency

        preset = amount if amount is not None else selection.amount
        if preset is not None:
            params["presetFiatAmount"] = str(preset)

        return str(httpx.URL(self.base_url + path, params=params))
