"""ScreenLink Server - FastAPI Application Entry Point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlmodel import Session

from screenlink.config import settings
from screenlink.database import engine, init_db

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize database and reconcile orphaned devices on startup."""
    init_db()

    if settings.reconcile_on_startup:
        from screenlink.services.devices import reconcile_orphans
        from screenlink.stores.sql import SqlDeviceStore, SqlPairingStore

        with Session(engine) as session:
            flagged = reconcile_orphans(SqlPairingStore(session), SqlDeviceStore(session))
        if flagged:
            logger.warning("Flagged %d orphaned device(s) on startup", len(flagged))

    yield


app = FastAPI(
    title="ScreenLink",
    description="Digital-signage device pairing, presence and playback control",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Register API routers ---
from screenlink.api.auth import router as auth_router  # noqa: E402
from screenlink.api.pairing import router as pairing_router  # noqa: E402
from screenlink.api.devices import router as devices_router  # noqa: E402
from screenlink.api.system import router as system_router  # noqa: E402

API_PREFIX = "/api/v1"

app.include_router(auth_router, prefix=API_PREFIX)
app.include_router(pairing_router, prefix=API_PREFIX)
app.include_router(devices_router, prefix=API_PREFIX)
app.include_router(system_router, prefix=API_PREFIX)


@app.get("/")
def root():
    """Health check / server info."""
    return {
        "name": settings.server_name,
        "version": "0.1.0",
        "status": "running",
    }


@app.get("/api/v1/health")
def health():
    return {"status": "ok"}


def run() -> None:
    import uvicorn

    uvicorn.run("screenlink.main:app", host=settings.host, port=settings.port)
