# ==============================================================================
# Heartbeat - Liveness Endpoint
# ==============================================================================
"""
Minimal liveness endpoint.

GET /health returns {"ok": true, "name": "chad", "ts": ..., "version": ...}.
Every other path or method returns 404. No state, no database access.
"""

import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from chad.utils.versions import get_chad_version

logger = logging.getLogger(__name__)

SERVICE_NAME = "chad"


def create_app(version: str | None = None) -> FastAPI:
    """Create the heartbeat application."""
    service_version = version or get_chad_version()
    app = FastAPI(
        title="Chad Heartbeat",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    @app.get("/health")
    async def health():
        return {
            "ok": True,
            "name": SERVICE_NAME,
            "ts": datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "version": service_version,
        }

    @app.exception_handler(StarletteHTTPException)
    async def not_found(request: Request, exc: StarletteHTTPException):
        # Unknown paths and wrong methods both answer 404
        return PlainTextResponse("Not Found", status_code=404)

    return app


def serve(host: str = "0.0.0.0", port: int = 5401) -> None:
    """Run the heartbeat server until interrupted."""
    import uvicorn

    logger.info("Heartbeat listening on %s:%d/health - v%s", host, port, get_chad_version())
    uvicorn.run(create_app(), host=host, port=port, log_level="warning")
