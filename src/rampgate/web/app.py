"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from rampgate.config import get_settings
from rampgate.errors import GatewayError, UpstreamRejected
from rampgate.services.gateway import close_gateway

logger = logging.getLogger(__name__)

# category -> HTTP status
CATEGORY_STATUS = {
    "configuration": 500,
    "authentication": 502,
    "rejected": 502,
    "protocol": 502,
    "unavailable": 503,
    "invalid": 422,
    "internal": 500,
}


def status_for(error: GatewayError) -> int:
    """HTTP status to answer with for a gateway error.

    Upstream 4xx rejections (other than auth) are the caller's fault and pass
    through; everything else upstream-related is a bad gateway.
    """
    if (
        isinstance(error, UpstreamRejected)
        and error.category == "rejected"
        and 400 <= error.status_code < 500
    ):
        return error.status_code
    return CATEGORY_STATUS.get(error.category, 500)


async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    status = status_for(exc)
    if status >= 500:
        logger.error(f"{request.method} {request.url.path} failed ({exc.category}): {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected ({exc.category}): {exc.message}")
    return JSONResponse(status_code=status, content=exc.to_dict())


async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={"error": "Invalid request.", "category": "invalid", "detail": str(exc)},
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    yield
    await close_gateway()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Rampgate API",
        description="Signed, cached gateway for crypto onramp/offramp flows",
        version="0.1.0",
        lifespan=lifespan,
        debug=settings.debug,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.debug else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(GatewayError, gateway_error_handler)
    app.add_exception_handler(ValueError, value_error_handler)

    from rampgate.web.controllers import catalog_router, checkout_router, health_router

    app.include_router(health_router, tags=["Health"])
    app.include_router(catalog_router)
    app.include_router(checkout_router)

    return app


# Default app instance
app = create_app()
