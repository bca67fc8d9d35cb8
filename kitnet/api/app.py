"""
FastAPI application for the Kit Network backend.

This is the HTTP API the Kit Network clients talk to. The store and the
authenticator are built in the lifespan and hung on `app.state`; routes get
them through dependencies, never through module globals.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute

from kitnet.api.routes import router as resource_router
from kitnet.auth import AuthError, Authenticator, CredentialStore, auth_router
from kitnet.config import Settings, get_settings
from kitnet.integrations.sentry import capture_exception, init_sentry
from kitnet.storage import SQLStore, StoreUnavailable

logger = logging.getLogger(__name__)

STORE_ERROR_MESSAGE = "Whoops! Error connecting to the database, please try again!"


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the API for the given settings (defaults to the environment)."""
    settings = settings or get_settings()

    # =========================================================================
    # Lifespan
    # =========================================================================

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Open the store at startup, close it at shutdown."""
        init_sentry(settings)

        store = SQLStore(settings.database_url, echo=settings.database_echo)
        await store.open()
        app.state.store = store
        app.state.authenticator = Authenticator(CredentialStore(store))

        logger.info("Kit Network API starting in %s mode", settings.environment)
        try:
            yield
        finally:
            await store.close()
            logger.info("Kit Network API shut down")

    # =========================================================================
    # App Setup
    # =========================================================================

    app = FastAPI(
        title="Kit Network API",
        description="This is the API that directly communicates with Kit Network",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=["GET", "PUT", "POST", "DELETE"],
        allow_headers=["*"],
    )

    _register_error_handlers(app)

    app.include_router(auth_router)
    app.include_router(resource_router)

    @app.get("/api")
    async def index():
        """API info and the list of registered endpoints."""
        return {
            "title": app.title,
            "intro": app.description,
            "routes": _list_endpoints(app.routes, auth_router.routes, resource_router.routes),
        }

    return app


def _list_endpoints(*route_lists) -> list[str]:
    """
    "METHOD /path" for every API route, without duplicates.

    Router paths already carry their "/api" prefix. Depending on the FastAPI
    version, `app.routes` holds either copies of included routes or opaque
    router entries, so the routers are read directly.
    """
    endpoints = (
        f"{method} {route.path}"
        for routes in route_lists
        for route in routes
        if isinstance(route, APIRoute)
        for method in sorted(route.methods)
    )
    return list(dict.fromkeys(endpoints))


# =============================================================================
# Error Handlers
# =============================================================================


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AuthError)
    async def auth_error_handler(request: Request, exc: AuthError):
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": exc.message},
        )

    @app.exception_handler(StoreUnavailable)
    async def store_error_handler(request: Request, exc: StoreUnavailable):
        logger.error("Store unavailable during %s %s", request.method, request.url.path)
        capture_exception(exc, path=request.url.path)
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": STORE_ERROR_MESSAGE},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        fields = [".".join(str(p) for p in err.get("loc", ())) for err in exc.errors()]
        return JSONResponse(
            status_code=400,
            content={"success": False, "message": "Invalid request.", "fields": fields},
        )


app = create_app()
