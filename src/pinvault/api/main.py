# Vault API - FastAPI application
#
# REST API for the browser client: account/PIN routes and credential CRUD.
# A built frontend placed in ./dist is served from / when present.

import logging
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from .. import __version__
from ..core import EventSeverity, EventType, get_settings, log_security_event
from .auth_routes import router as auth_router
from .password_routes import router as password_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    log_security_event(
        event_type=EventType.SYSTEM_START,
        severity=EventSeverity.INFO,
        message="PinVault API started",
        details={"version": __version__, "db_path": str(settings.db_path)},
    )
    yield
    log_security_event(
        event_type=EventType.SYSTEM_STOP,
        severity=EventSeverity.INFO,
        message="PinVault API stopped",
    )


app = FastAPI(
    title="PinVault API",
    description="Password vault storing client-side encrypted credentials",
    version=__version__,
    lifespan=lifespan,
)

# The browser client is served by this app or by a dev server on :3000/:5173
_allowed_origins = [
    "http://localhost:3000", "http://127.0.0.1:3000",
    "http://localhost:5173", "http://127.0.0.1:5173",
]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(auth_router)
app.include_router(password_router)


@app.get("/api/health")
async def health():
    """Liveness probe."""
    return {"status": "ok", "version": __version__}


# Serve the built frontend (must be mounted after the API routes)
FRONTEND_DIR = Path.cwd() / "dist"
if FRONTEND_DIR.exists():
    app.mount("/", StaticFiles(directory=str(FRONTEND_DIR), html=True), name="frontend")


def start_api_server(host: str = None, port: int = None):
    """
    Start the uvicorn server.

    Args:
        host: Host to bind to (default: Settings.host, localhost only)
        port: Port to listen on (default: Settings.port)
    """
    settings = get_settings()
    host = host or settings.host
    port = port or settings.port
    logger.info("Starting PinVault API on http://%s:%d", host, port)
    uvicorn.run(app, host=host, port=port, log_level="info")


if __name__ == "__main__":
    start_api_server()
