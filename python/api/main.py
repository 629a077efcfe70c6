"""
FastAPI Main Application

Entry point for the statement import and bill payment API.
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from statement_import import RulesCache

from .database import init_db
from .routes import (
    bill_payments_router,
    imports_router,
    ocr_router,
    rules_router,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    logger.info("Starting Personal Finance API...")
    init_db()
    yield
    # Shutdown
    app.state.rules_cache.invalidate()
    logger.info("Shutting down Personal Finance API...")


def create_app() -> FastAPI:
    """Build the application and its process-wide state."""
    app = FastAPI(
        title="Personal Finance API",
        description="Statement import and credit card bill reconciliation",
        version="1.0.0",
        lifespan=lifespan,
    )

    # Category rules cached per user for the lifetime of the process
    app.state.rules_cache = RulesCache()

    # CORS configuration
    cors_origins = os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(imports_router, prefix="/api")
    app.include_router(ocr_router, prefix="/api")
    app.include_router(bill_payments_router, prefix="/api")
    app.include_router(rules_router, prefix="/api")

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "name": "Personal Finance API",
            "version": "1.0.0",
            "status": "running",
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}

    @app.get("/api")
    async def api_info():
        """API information endpoint."""
        return {
            "endpoints": {
                "import": "/api/import",
                "import_csv": "/api/import/csv",
                "ocr_parse": "/api/ocr/parse",
                "bill_payments": "/api/bill-payments",
                "rules": "/api/rules",
            },
            "authentication": "X-User-ID header required",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host=os.getenv("API_HOST", "0.0.0.0"),
        port=int(os.getenv("API_PORT", "8000")),
        reload=os.getenv("ENVIRONMENT", "development") == "development",
    )
