"""Catalog and selection endpoints.

These never fail because of the upstream: they answer with live, stale or
static data.
"""

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from rampgate.catalog.models import ConfigCatalog, Direction, Network, OptionsCatalog
from rampgate.selection.resolver import (
    CHANGEABLE_FIELDS,
    SelectionState,
    apply_change,
    available_networks,
    resolve,
)
from rampgate.selection.session import JURISDICTION_FIELDS
from rampgate.services.gateway import RampGateway, get_gateway

router = APIRouter(prefix="/api", tags=["catalog"])


class SelectionChange(BaseModel):
    """A selection plus an optional single-field change."""

    selection: SelectionState = Field(default_factory=SelectionState)
    field: Optional[str] = Field(None, description=f"One of: {', '.join(CHANGEABLE_FIELDS)}")
    value: Any = None


class SelectionResponse(BaseModel):
    selection: SelectionState
    networks: list[Network] = Field(default_factory=list, description="Network choices for the asset")
    is_fallback: bool = Field(default=False, description="Options came from the static dataset")


@router.get("/{direction}-config", response_model=ConfigCatalog)
async def get_config(direction: Direction, gateway: RampGateway = Depends(get_gateway)) -> ConfigCatalog:
    """Supported countries and payment methods for a direction."""
    return await gateway.get_config(direction)


@router.get("/{direction}-options", response_model=OptionsCatalog)
async def get_options(
    direction: Direction,
    country: str = Query(..., min_length=2, max_length=2, description="ISO 3166-1 alpha-2 code"),
    subdivision: Optional[str] = Query(None, description="US state code"),
    networks: Optional[str] = Query(None, description="Comma-separated network filter"),
    gateway: RampGateway = Depends(get_gateway),
) -> OptionsCatalog:
    """Currencies, assets, networks and limits for a jurisdiction."""
    return await gateway.get_options(direction, country, subdivision, networks)


@router.post("/selection", response_model=SelectionResponse)
async def change_selection(
    change: SelectionChange,
    gateway: RampGateway = Depends(get_gateway),
) -> SelectionResponse:
    """Apply a field change to a selection and return the repaired result.

    The jurisdiction is resolved first so that options are fetched for the
    country the user is moving to, not the one they are leaving.
    """
    state = change.selection
    if change.field in JURISDICTION_FIELDS:
        state = apply_change(state, change.field, change.value, gateway.table, defaults=gateway.defaults)
    elif change.field is not None:
        options = await gateway.get_options(state.direction, state.country, state.subdivision)
        state = apply_change(
            state, change.field, change.value, gateway.table, options=options, defaults=gateway.defaults
        )

    config = await gateway.get_config(state.direction)
    options = await gateway.get_options(state.direction, state.country, state.subdivision)
    state = resolve(state, gateway.table, options, config, gateway.defaults)

    return SelectionResponse(
        selection=state,
        networks=available_networks(state.asset, gateway.table, options, gateway.names),
        is_fallback=options.is_fallback,
    )
