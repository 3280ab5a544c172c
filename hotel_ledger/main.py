import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm.exc import StaleDataError

from hotel_ledger.config import settings
from hotel_ledger.database import init_db, async_session_factory
from hotel_ledger.core.exceptions import LedgerError, http_status_for
from hotel_ledger.api.v1.router import api_router
from hotel_ledger.jobs.scheduler import start_scheduler, shutdown_scheduler


logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


async def auto_seed_superadmin():
    """Create the configured superadmin account on first start."""
    from hotel_ledger.services.auth_service import AuthService

    async with async_session_factory() as session:
        try:
            await AuthService(session).ensure_superadmin()
            await session.commit()
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    await init_db()
    await auto_seed_superadmin()

    start_scheduler()

    yield

    shutdown_scheduler()
    logger.info("Shutting down...")


OPENAPI_TAGS = [
    {"name": "Authentication", "description": "JWT login for back office staff"},
    {"name": "Invoices", "description": "Guest invoices, charge revisions and payments"},
    {"name": "Payments", "description": "Guest payments with or without an invoice"},
    {"name": "Vendors", "description": "Vendor profiles, payables and vendor payments"},
    {"name": "Transactions", "description": "Revenue and expense ledger"},
    {"name": "Audit Logs", "description": "Field level change history"},
    {"name": "Dashboard", "description": "Accounting summary and aggregate reconciliation"},
]


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Invoice, vendor payable and transaction ledger for the hotel back office.",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=OPENAPI_TAGS,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.exception_handler(LedgerError)
async def ledger_exception_handler(request: Request, exc: LedgerError):
    """Service errors that escaped an endpoint without translation."""
    return JSONResponse(
        status_code=http_status_for(exc),
        content={"detail": exc.message, "type": type(exc).__name__},
    )


@app.exception_handler(StaleDataError)
async def stale_data_handler(request: Request, exc: StaleDataError):
    logger.warning(f"Version conflict on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"detail": "Record was modified by another request, retry", "type": "ConcurrentModification"},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    if isinstance(exc, HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "Internal server error",
            "type": type(exc).__name__,
            "path": str(request.url.path),
            "method": request.method,
        },
    )


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": settings.APP_VERSION}


@app.get("/")
async def root():
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }
