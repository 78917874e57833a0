"""FastAPI application for the pool quote service.

Note: Rate limiting is intentionally not implemented at the application level.
It should be handled at the infrastructure layer (reverse proxy / load balancer).
"""

import os

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from poolside import __version__
from poolside.api.endpoints import router
from poolside.api.models import ErrorResponse
from poolside.log_config import configure_logging
from poolside.pool.errors import PoolError

# Configuration from environment variables with sensible defaults
HOST = os.environ.get("POOLSIDE_HOST", "0.0.0.0")
PORT = int(os.environ.get("POOLSIDE_PORT", "8000"))
DEBUG = os.environ.get("POOLSIDE_DEBUG", "false").lower() in ("true", "1", "yes")
LOG_LEVEL = os.environ.get("POOLSIDE_LOG_LEVEL", "INFO")

# Maximum request body size (64 KB); quote requests are tiny
MAX_REQUEST_SIZE = 64 * 1024

logger = structlog.get_logger()

app = FastAPI(
    title="poolside",
    description="Quotes and safety ceilings for weighted two-asset pools",
    version=__version__,
)


@app.middleware("http")
async def limit_request_size(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Reject requests with body larger than MAX_REQUEST_SIZE."""
    content_length = request.headers.get("content-length")
    if content_length and int(content_length) > MAX_REQUEST_SIZE:
        return JSONResponse(status_code=413, content={"detail": "Request too large"})
    return await call_next(request)


@app.exception_handler(PoolError)
async def pool_error_handler(request: Request, exc: PoolError) -> JSONResponse:
    """Map typed pool errors to 400 responses that name the error kind."""
    logger.info("request_rejected", path=request.url.path, error=exc.kind, detail=str(exc))
    body = ErrorResponse(error=exc.kind, detail=str(exc))
    return JSONResponse(status_code=400, content=body.model_dump())


app.include_router(router)


@app.get("/health")
async def health() -> dict[str, object]:
    """Health check endpoint."""
    return {"status": "ok", "version": __version__}


def run() -> None:
    """Run the quote service.

    Configuration via environment variables:
    - POOLSIDE_HOST: Host to bind to (default: 0.0.0.0)
    - POOLSIDE_PORT: Port to bind to (default: 8000)
    - POOLSIDE_DEBUG: Enable debug/reload mode (default: false)
    - POOLSIDE_LOG_LEVEL: Log level (default: INFO)
    """
    configure_logging(LOG_LEVEL)
    uvicorn.run(
        "poolside.api.main:app",
        host=HOST,
        port=PORT,
        reload=DEBUG,
    )


if __name__ == "__main__":
    run()
