"""HTTP controllers for the web API."""

from rampgate.web.controllers.catalog import router as catalog_router
from rampgate.web.controllers.checkout import router as checkout_router
from rampgate.web.controllers.health import router as health_router

__all__ = [
    "catalog_router",
    "checkout_router",
    "health_router",
]
