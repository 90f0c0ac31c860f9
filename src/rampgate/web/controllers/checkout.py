"""Quote, session and checkout endpoints.

Side-effecting upstream calls: never cached, never retried. Failures reach
the client as typed errors (see ``rampgate.web.app``).
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request

from rampgate.catalog.models import Direction
from rampgate.services.contracts import (
    CheckoutLink,
    CheckoutRequest,
    QuoteLink,
    QuoteRequest,
    SessionRequest,
    SessionToken,
)
from rampgate.services.gateway import RampGateway, get_gateway

router = APIRouter(prefix="/api", tags=["checkout"])


def client_ip_of(request: Request) -> Optional[str]:
    """Best-effort end-user IP: proxy headers first, then the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else None


@router.post("/{direction}-quote", response_model=QuoteLink)
async def create_quote(
    direction: Direction,
    body: QuoteRequest,
    request: Request,
    gateway: RampGateway = Depends(get_gateway),
) -> QuoteLink:
    """Request a quote; the response carries a ready-to-use hosted checkout URL."""
    updates = {"direction": direction}
    if body.client_ip is None:
        updates["client_ip"] = client_ip_of(request)
    return await gateway.create_quote(body.model_copy(update=updates))


@router.post("/session", response_model=SessionToken)
async def create_session(body: SessionRequest, gateway: RampGateway = Depends(get_gateway)) -> SessionToken:
    """Create a single-use session token for the hosted checkout page."""
    return await gateway.create_session(body)


@router.post("/{direction}-checkout", response_model=CheckoutLink)
async def start_checkout(
    direction: Direction,
    body: CheckoutRequest,
    gateway: RampGateway = Depends(get_gateway),
) -> CheckoutLink:
    """Resolve the selection and return a hosted checkout URL for it."""
    selection = body.selection
    if selection.direction != direction:
        selection = selection.model_copy(update={"direction": direction})
    return await gateway.start_checkout(
        selection,
        address=body.address,
        redirect_url=body.redirect_url,
        partner_user_id=body.partner_user_id,
    )
