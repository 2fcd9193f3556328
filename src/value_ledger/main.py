"""Main FastAPI application for the Value Ledger."""

import time

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .api import admin, members, tokens
from .api.middleware import (
    ProblemDetailsMiddleware,
    http_exception_handler,
    ledger_error_handler,
    request_validation_handler,
)
from .config import get_config, validate_startup_security
from .db.database import SessionLocal, init_database
from .domain.errors import LedgerError
from .utils.logging_config import get_logger, initialize_logging

config = get_config()

# Create FastAPI app
app = FastAPI(
    title=config.app.app_name,
    description=config.app.description,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(ProblemDetailsMiddleware)

app.add_exception_handler(LedgerError, ledger_error_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)

# Add CORS middleware with secure configuration
allowed_origins = list(config.server.allowed_origins or []) or [
    "http://127.0.0.1:8000",
    "http://localhost:8000",
]

# In development mode, allow additional localhost ports
if config.server.debug:
    allowed_origins.extend([
        "http://127.0.0.1:3000",  # Development frontend
        "http://localhost:3000",
        "http://127.0.0.1:5173",
        "http://localhost:5173",
    ])

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "Accept", "Origin", "X-Requested-With"],
)

# Register API routers
app.include_router(tokens.router)
app.include_router(members.router)
app.include_router(admin.router)


@app.on_event("startup")
async def startup_event():
    """Validate security settings, start logging and create tables."""
    initialize_logging()
    validate_startup_security()
    init_database()
    get_logger("main").info(f"Value Ledger {__version__} started")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "value-ledger", "version": __version__}


@app.get("/ready")
async def readiness_check():
    """Readiness check endpoint that validates database connectivity and dependencies."""
    start_time = time.time()
    checks = {"database": False, "config": False}
    errors = []

    try:
        # Check database connectivity
        db = SessionLocal()
        try:
            db.execute(text("SELECT 1"))
            checks["database"] = True
        finally:
            db.close()
    except Exception as e:
        errors.append(f"Database check failed: {str(e)}")

    try:
        # Check configuration
        if get_config():
            checks["config"] = True
    except Exception as e:
        errors.append(f"Config check failed: {str(e)}")

    response_time_ms = round((time.time() - start_time) * 1000, 2)
    all_ready = all(checks.values())

    response = {
        "status": "ready" if all_ready else "not_ready",
        "service": "value-ledger",
        "version": __version__,
        "checks": checks,
        "response_time_ms": response_time_ms,
    }

    if errors:
        response["errors"] = errors

    # Return appropriate status code
    status_code = 200 if all_ready else 503
    return JSONResponse(content=response, status_code=status_code)


def run():
    """Console entry point: serve the API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "value_ledger.main:app",
        host=config.server.host,
        port=config.server.port,
        reload=config.app.is_development,
    )


if __name__ == "__main__":
    run()
