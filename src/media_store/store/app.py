"""Media Store Server."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from loguru import logger

from ..common.events import ALL_ENTITIES, EventDispatcher
from ..common.exceptions import FileRemovalError, MessageDispatchError, ResourceNotFoundError
from ..db_service import WriteEvent, database
from ..messaging.bus import reset_message_bus
from .routes import router


def log_write_event(event: WriteEvent) -> None:
    logger.debug(f"Write event: {event.model_dump_json()}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler:
    - Startup: load configuration, initialize database and event dispatcher
    - Shutdown: close the message bus
    """
    # -------- Startup --------
    from .config import get_config

    if getattr(app.state, "config", None) is None:
        app.state.config = get_config()
    config = app.state.config
    logger.info("Loaded core configuration via get_config()")

    database.init_db(create_tables=not config.no_migrate)

    if getattr(app.state, "event_dispatcher", None) is None:
        dispatcher = EventDispatcher()
        dispatcher.add_listener(ALL_ENTITIES, log_write_event)
        app.state.event_dispatcher = dispatcher

    app.state.message_bus = getattr(app.state, "message_bus", None)
    mode = "async" if config.async_file_removal else "sync"
    logger.info(f"Media store initialized (file removal: {mode})")

    try:
        yield  # ---- application runs here ----
    finally:
        # -------- Shutdown --------
        reset_message_bus()
        app.state.message_bus = None
        logger.info("Media store shutdown complete")


app = FastAPI(
    title="Media Store",
    version="v1",
    lifespan=lifespan,
)

app.include_router(router)


@app.exception_handler(HTTPException)
async def validation_exception_handler(_request: Request, exc: HTTPException):
    """
    Preserve the default FastAPI HTTPException handling shape so callers
    can rely on the same error response structure.
    """
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
    )


@app.exception_handler(ValueError)
async def value_error_handler(_request: Request, exc: ValueError):
    """
    Handle ValueError as 422 Unprocessable Entity.
    Commonly used for business logic validation errors in service layer.
    """
    return JSONResponse(
        status_code=422,
        content={"detail": str(exc)},
    )


@app.exception_handler(ResourceNotFoundError)
async def not_found_handler(_request: Request, exc: ResourceNotFoundError):
    return JSONResponse(
        status_code=404,
        content={"detail": str(exc)},
    )


@app.exception_handler(FileRemovalError)
@app.exception_handler(MessageDispatchError)
async def deletion_failed_handler(_request: Request, exc: Exception):
    """Deletion did not complete as a unit; callers must re-query state."""
    logger.error(f"Media deletion failed: {exc}")
    return JSONResponse(
        status_code=500,
        content={"detail": f"Failed to delete media: {exc}"},
    )
