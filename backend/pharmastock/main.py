"""
Pharmacy batch inventory backend.

ARCHITECTURE:
- FastAPI: batch entry, FEFO selection, stock merges, inventory alerts
- SQLAlchemy: batches and merge logs (SQLite locally, any SQL database in production)
- Frontend and auth live elsewhere; the acting user arrives in X-User-Id

STOCK SAFETY:
- New stock for an existing batch goes through Check -> Confirm -> Merge
- Merges are conditional updates; concurrent merges on one batch conflict (409)
  instead of silently overwriting each other
- Expired batches never absorb new stock
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pharmastock.api.routes import alerts, batches
from pharmastock.core.config import settings
from pharmastock.db.init_db import init_db

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables on startup."""
    logger.info("Initializing database...")
    init_db()
    logger.info("Database initialized")
    yield


app = FastAPI(
    title="Pharmacy Batch Inventory API",
    description="Batch entry, FEFO allocation and stock merges. Check -> Confirm -> Merge.",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=[
        "Content-Type",
        "Authorization",
        "Accept",
        "Origin",
        "X-User-Id",
    ],
    max_age=600,
)


@app.middleware("http")
async def add_security_headers(request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    return response

app.include_router(batches.router, prefix="/batches", tags=["batches"])
app.include_router(alerts.router, prefix="/alerts", tags=["alerts"])


@app.get("/health")
def health():
    return {"status": "ok"}
