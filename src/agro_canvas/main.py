"""FastAPI application entry point."""

import logging
import sys
import traceback

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from agro_canvas import __version__
from agro_canvas.config import settings
from agro_canvas.routes import (
    preferences_router,
    projects_router,
    storage_router,
    transfer_router,
)

logger = logging.getLogger(__name__)


def setup_logging() -> None:
    """Configure logging for the service."""
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )


app = FastAPI(
    title="Agro Canvas API",
    description="Project storage, validation and export for the agroecological design canvas",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(projects_router)
app.include_router(preferences_router)
app.include_router(storage_router)
app.include_router(transfer_router)


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "agro-canvas"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    """Handle pydantic validation errors raised outside request parsing."""
    logger.warning("Validation error on %s %s: %s", request.method, request.url, exc)
    return JSONResponse(
        status_code=422,
        content={
            "detail": "Data validation failed",
            "errors": exc.errors(include_url=False, include_context=False),
            "error_type": "ValidationError",
        },
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Log unexpected errors and return a JSON 500 the front end can show."""
    logger.error(
        "Unhandled exception on %s %s: %s\n%s",
        request.method,
        request.url,
        exc,
        traceback.format_exc(),
    )
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "error_type": type(exc).__name__,
        },
    )


def run() -> None:
    """Entry point for ``agro-canvas``: serve the API with uvicorn."""
    import uvicorn

    setup_logging()
    logger.info("Agro Canvas API starting...")
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    run()
