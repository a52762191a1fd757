from fastapi import Depends, FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.orm import Session
import os
import logging

from ..database.connection import DatabaseManager, get_db
from .errors import register_exception_handlers
from .routes import (
    auth, organizations, clients, documents, appointments, tax_calculations, invoices, audit_logs
)

# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app with metadata
app = FastAPI(
    title="GK-Nexus API",
    description="Practice management API for Guyanese professional-services firms, with strict per-organization data isolation and a complete audit trail.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {
            "name": "Authentication",
            "description": "User registration, login and organization selection"
        },
        {
            "name": "Organizations",
            "description": "Current organization settings and memberships"
        },
        {
            "name": "Clients",
            "description": "Client records (individuals, companies, trusts, ...)"
        },
        {
            "name": "Documents",
            "description": "Client document metadata and version chains"
        },
        {
            "name": "Appointments",
            "description": "Client appointments and staff assignment"
        },
        {
            "name": "Tax Calculations",
            "description": "Stored PAYE, VAT, NIS and corporate tax computations"
        },
        {
            "name": "Invoices",
            "description": "Invoices with VAT computed from line items"
        },
        {
            "name": "Audit Logs",
            "description": "Read-only audit trail of every change in the organization"
        }
    ]
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("ALLOWED_ORIGINS", "*").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


# Startup event
@app.on_event("startup")
async def startup_event():
    """Initialize database and perform startup tasks."""
    logger.info("Starting up GK-Nexus API...")

    try:
        DatabaseManager.init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise


# Shutdown event
@app.on_event("shutdown")
async def shutdown_event():
    """Perform cleanup tasks on shutdown."""
    logger.info("Shutting down GK-Nexus API...")


# Health check endpoint
@app.get("/", tags=["Health"])
def health_check():
    """
    Health check endpoint.

    Returns basic API status and version information.
    """
    return {
        "message": "GK-Nexus API is healthy",
        "version": "1.0.0",
        "status": "operational"
    }


@app.get("/health", tags=["Health"])
def detailed_health_check(db: Session = Depends(get_db)):
    """
    Detailed health check endpoint.

    Returns health status including database connectivity.
    """
    try:
        db.execute(text("SELECT 1")).scalar()
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service unhealthy - database connection failed"
        )
    return {
        "status": "healthy",
        "version": "1.0.0",
        "database": "connected",
    }


# Include routers
app.include_router(auth.router, prefix="/api/v1")
app.include_router(organizations.router, prefix="/api/v1")
app.include_router(clients.router, prefix="/api/v1")
app.include_router(documents.router, prefix="/api/v1")
app.include_router(appointments.router, prefix="/api/v1")
app.include_router(tax_calculations.router, prefix="/api/v1")
app.include_router(invoices.router, prefix="/api/v1")
app.include_router(audit_logs.router, prefix="/api/v1")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "gk_nexus.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=os.getenv("LOG_LEVEL", "info").lower()
    )
