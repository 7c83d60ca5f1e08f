"""
FastAPI Application — Driver Dedup Pipeline.

Architecture:
  - PostgreSQL (prod) / SQLite (dev) for storage
  - Cadastro oficial + quarentena de aprovação
  - Upload em massa de planilhas (.xlsx / .csv)
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.dependencies import get_driver_store, get_pending_store
from src.api.routes.drivers import router as drivers_router
from src.api.routes.pending import router as pending_router
from src.api.routes.uploads import router as uploads_router
from src.config.settings import get_settings
from src.core.exceptions import StoreOperationError
from src.infrastructure.db.database import get_database_url, init_db

logger = logging.getLogger(__name__)

settings = get_settings()

app = FastAPI(
    title="Driver Dedup Pipeline",
    description="Bulk driver ingestion with duplicate detection, approval queue and merged view.",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Startup ──
@app.on_event("startup")
async def startup():
    """Configure logging and create tables."""
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    init_db()
    logger.info("Driver Dedup Pipeline started")


# Register routes
app.include_router(uploads_router, prefix="/api/v1", tags=["Uploads"])
app.include_router(drivers_router, prefix="/api/v1", tags=["Drivers"])
app.include_router(pending_router, prefix="/api/v1", tags=["Pending"])


# ── Health ──
@app.get("/health")
async def health():
    db_url = get_database_url()
    db_type = "PostgreSQL" if "postgres" in db_url else "SQLite"
    try:
        drivers = len(get_driver_store().list_keys())
        pending = len(get_pending_store().list_pending())
    except StoreOperationError as e:
        logger.warning(f"Health check could not reach the database: {e}")
        return {"status": "degraded", "version": "1.0.0", "database": db_type, "detail": str(e)}
    return {
        "status": "ok",
        "version": "1.0.0",
        "database": db_type,
        "drivers": drivers,
        "pending": pending,
    }
