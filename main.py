"""
Service Dashboard Backend - Main Application

Job metrics, payout and client analytics for a service business,
backed by Supabase.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import os
import logging

from app.analytics import BackfillService, ClientRollupService, ImportService, MetricsAggregator, PartRequestService, PayoutService
from app.routers import auth, technicians, dashboard, clients, payout, part_requests, maintenance, imports
from app.services.auth import AuthService
from app.services.database import DashboardDatabase
from app.services.sheet_client import SheetClient
from app.services.supabase_client import create_backend_clients
from app.settings import load_settings

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)


def init_services(app: FastAPI, settings, backend) -> None:
    """Wire every service onto app.state"""
    db = DashboardDatabase(backend.client, backend.admin, page_size=settings.jobs_page_size)

    app.state.settings = settings
    app.state.db = db
    app.state.auth = AuthService(backend.auth, db)
    app.state.metrics = MetricsAggregator(db)
    app.state.payout = PayoutService(db)
    app.state.clients = ClientRollupService(db)
    app.state.backfill = BackfillService(
        db,
        batch_size=settings.backfill_batch_size,
        batch_delay=settings.batch_delay_seconds
    )
    app.state.importer = ImportService(
        db,
        SheetClient(),
        batch_size=settings.import_batch_size,
        batch_delay=settings.batch_delay_seconds
    )
    app.state.part_requests = PartRequestService(db)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    # Startup
    logger.info("Starting Service Dashboard Backend...")
    settings = load_settings()
    backend = await create_backend_clients(settings)
    init_services(app, settings, backend)
    yield
    # Shutdown
    logger.info("Shutting down Service Dashboard Backend...")
    app.state.db = None


# Initialize FastAPI app
app = FastAPI(
    title="Service Dashboard API",
    description="Job metrics, payout and client analytics for technicians and admins",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware (configure for your domains)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
app.include_router(technicians.router, prefix="/api/technicians", tags=["Technicians"])
app.include_router(dashboard.router, prefix="/api/dashboard", tags=["Dashboard"])
app.include_router(clients.router, prefix="/api/clients", tags=["Clients"])
app.include_router(payout.router, prefix="/api/payout", tags=["Payout"])
app.include_router(part_requests.router, prefix="/api/part-requests", tags=["Part Cost Requests"])
app.include_router(maintenance.router, prefix="/api/maintenance", tags=["Data Cleanup"])
app.include_router(imports.router, prefix="/api/imports", tags=["Import"])


@app.get("/")
def read_root():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": "Service Dashboard Backend",
        "version": "1.0.0",
        "docs": "/docs"
    }


@app.get("/health")
async def health_check():
    """Detailed health check"""
    db = getattr(app.state, "db", None)
    database = await db.ping() if db else {"success": False, "message": "Not initialized"}
    return {
        "status": "healthy" if database["success"] else "degraded",
        "supabase_url": os.getenv("SUPABASE_URL", "not configured"),
        "service_key_configured": bool(os.getenv("SUPABASE_SERVICE_KEY")),
        "database": database
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=int(os.getenv("PORT", 8000)), reload=True)
