"""Gateway services: catalog lookups, quotes, sessions and checkout links."""

from rampgate.services.gateway import RampGateway, close_gateway, get_gateway
from rampgate.services.quote_link import QuoteLinkBuilder

__all__ = [
    "QuoteLinkBuilder",
    "RampGateway",
    "close_gateway",
    "get_gateway",
]
