"""Selection state, repair rules and per-user sessions."""

from rampgate.selection.resolver import (
    SelectionDefaults,
    SelectionState,
    apply_change,
    available_networks,
    compatible_networks,
    resolve,
)
from rampgate.selection.session import OptionsTicket, SelectionSession

__all__ = [
    "OptionsTicket",
    "SelectionDefaults",
    "SelectionSession",
    "SelectionState",
    "apply_change",
    "available_networks",
    "compatible_networks",
    "resolve",
]
