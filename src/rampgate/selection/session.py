"""Per-user selection session.

Holds one user's selection together with the catalogs it was resolved against.
Changes are applied synchronously through the resolver, so the selection is
always consistent before any options fetch is issued.

Options responses are tagged with the jurisdiction they were requested for. A
response that arrives after the user moved to another country, subdivision or
direction is discarded instead of overwriting newer state.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol

from rampgate.catalog.compatibility import DEFAULT_TABLE, CompatibilityTable
from rampgate.catalog.models import ConfigCatalog, Direction, Network, OptionsCatalog
from rampgate.selection.resolver import (
    DEFAULTS,
    SelectionDefaults,
    SelectionState,
    apply_change,
    available_networks,
    resolve,
)

logger = logging.getLogger(__name__)

# Fields whose change invalidates the loaded options catalog
JURISDICTION_FIELDS = ("direction", "country", "subdivision")


class OptionsSource(Protocol):
    async def get_options(
        self,
        direction: Direction,
        country: str,
        subdivision: Optional[str] = None,
        networks: Optional[str] = None,
    ) -> OptionsCatalog: ...


@dataclass(frozen=True)
class OptionsTicket:
    """Snapshot of the selection an options request was issued for."""

    generation: int
    direction: Direction
    country: str
    subdivision: Optional[str]


class SelectionSession:
    """One user's selection state plus its latest catalogs.

    Example:
        session = SelectionSession()
        session.change("country", "GB")
        await session.refresh_options(gateway)
        session.change("asset", "BTC")
    """

    def __init__(
        self,
        state: Optional[SelectionState] = None,
        table: CompatibilityTable = DEFAULT_TABLE,
        defaults: SelectionDefaults = DEFAULTS,
    ):
        self.table = table
        self.defaults = defaults
        self.config: Optional[ConfigCatalog] = None
        self.options: Optional[OptionsCatalog] = None
        self.generation = 0
        self.discarded = 0
        self.state = resolve(state or SelectionState(), table, defaults=defaults)

    def change(self, field_name: str, value: Any) -> SelectionState:
        """Apply one field change and repair the selection."""
        previous = self.state
        self.state = apply_change(
            previous,
            field_name,
            value,
            self.table,
            options=self.options,
            config=self.config,
            defaults=self.defaults,
        )

        if any(getattr(previous, f) != getattr(self.state, f) for f in JURISDICTION_FIELDS):
            self.generation += 1
            self.options = None
            if previous.direction != self.state.direction:
                self.config = None

        return self.state

    def options_ticket(self) -> OptionsTicket:
        return OptionsTicket(
            generation=self.generation,
            direction=self.state.direction,
            country=self.state.country,
            subdivision=self.state.subdivision,
        )

    def accept_options(self, ticket: OptionsTicket, catalog: OptionsCatalog) -> bool:
        """Install an options catalog if its ticket still matches the selection.

        Returns:
            True if the catalog was applied, False if it was stale and dropped
        """
        if ticket != self.options_ticket():
            self.discarded += 1
            logger.info(
                f"Discarding options for {ticket.country}/{ticket.subdivision} "
                f"(generation {ticket.generation}, now {self.generation})"
            )
            return False

        self.options = catalog
        self.state = resolve(self.state, self.table, self.options, self.config, self.defaults)
        return True

    def accept_config(self, catalog: ConfigCatalog) -> bool:
        if catalog.direction != self.state.direction:
            return False
        self.config = catalog
        self.state = resolve(self.state, self.table, self.options, self.config, self.defaults)
        return True

    async def refresh_options(self, gateway: OptionsSource) -> bool:
        """Fetch options for the current jurisdiction and apply them if still current."""
        ticket = self.options_ticket()
        catalog = await gateway.get_options(ticket.direction, ticket.country, ticket.subdivision)
        return self.accept_options(ticket, catalog)

    def network_choices(self) -> list[Network]:
        return available_networks(self.state.asset, self.table, self.options)
