"""
Main entrypoint for the Contacts API.

This module assembles the FastAPI application: it configures logging,
opens the store, wires the directory service into ``app.state``,
registers the error handler for directory errors and includes the
versioned routers.  ``create_app`` builds the app; an instance is
created at import time as ``app`` so it can be served with::

    uvicorn contacts_api.app.main:app --reload
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .api.v1.router import router as v1_router
from .core.config import Settings, settings
from .core.db import Store
from .core.exceptions import DirectoryError, InternalConsistencyError, NoAccount
from .core.logging_config import setup_logging
from .services.directory_service import DirectoryService

logger = logging.getLogger(__name__)


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure a FastAPI application.

    Parameters
    ----------
    app_settings : Optional[Settings]
        Settings to use instead of the module-level ``settings``.  Tests
        pass their own to point the store at a temporary database.

    Returns
    -------
    FastAPI
        A configured application whose ``state`` holds ``settings``,
        ``store`` and ``directory``.
    """
    app_settings = app_settings or settings
    # Initialise logging before anything else so that the store can log
    # applied migrations.
    setup_logging(app_settings.log_level, app_settings.log_file or None)

    app = FastAPI(title=app_settings.project_name, version=app_settings.api_version, debug=app_settings.debug)

    store = Store(app_settings.database_url)
    app.state.settings = app_settings
    app.state.store = store
    app.state.directory = DirectoryService(store)

    @app.exception_handler(DirectoryError)
    async def directory_error_handler(request: Request, exc: DirectoryError) -> JSONResponse:
        if isinstance(exc, InternalConsistencyError):
            logger.error("Consistency failure on %s %s: %s %s", request.method, request.url.path, exc.message, exc.details)
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, NoAccount) else None
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message, "code": exc.code},
            headers=headers,
        )

    app.include_router(v1_router, prefix="/api/v1")

    @app.on_event("shutdown")
    async def shutdown_event() -> None:
        store.close()

    logger.info("%s %s using database %s", app_settings.project_name, app_settings.api_version, store.path)
    return app


app = create_app()
