"""
Sales Platform API - Main Application.

FastAPI application with CORS enabled for the storefront, and exception
handlers translating the domain error taxonomy into HTTP status codes.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import __version__
from config import configure_logging, get_settings
from domain.errors import (
    DependencyError,
    DuplicateEmailError,
    NotFoundError,
    PersistenceError,
    StateConflictError,
    ValidationError,
)

configure_logging(get_settings().log_level)
logger = logging.getLogger(__name__)

# Create FastAPI application
app = FastAPI(
    title="Sales Platform API",
    description="REST API for retail sales with inventory and dispatch integration",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Configure CORS - Allow all origins for development
# TODO: Restrict origins to the storefront host in production
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error(status_code: int, error: str, detail: str | None = None, fields: list | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "detail": detail, "fields": fields or [], "status_code": status_code},
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    fields = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg", "Invalid value"),
        }
        for err in exc.errors()
    ]
    return _error(400, "Validation failed", fields=fields)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    fields = [{"field": e.field, "message": e.message} for e in exc.errors]
    return _error(400, "Validation failed", fields=fields)


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return _error(404, f"{exc.entity} not found", detail=str(exc))


@app.exception_handler(StateConflictError)
async def state_conflict_handler(request: Request, exc: StateConflictError):
    return _error(400, str(exc))


@app.exception_handler(DuplicateEmailError)
async def duplicate_email_handler(request: Request, exc: DuplicateEmailError):
    return _error(409, "Customer already exists", detail=str(exc))


@app.exception_handler(PersistenceError)
async def persistence_error_handler(request: Request, exc: PersistenceError):
    logger.error("Persistence failure on %s %s: %s", request.method, request.url.path, exc)
    return _error(500, "Internal Server Error")


@app.exception_handler(DependencyError)
async def dependency_error_handler(request: Request, exc: DependencyError):
    logger.error("Upstream failure on %s %s: %s", request.method, request.url.path, exc)
    return _error(502, "Upstream service unavailable", detail=exc.operation)


@app.get("/health", tags=["Health"])
def health_check():
    """
    Health check endpoint.

    Returns the API status and version.
    """
    return {
        "status": "healthy",
        "version": __version__,
        "service": "sales-platform-api"
    }


@app.get("/", tags=["Root"])
def root():
    """
    Root endpoint with API information.
    """
    return {
        "message": "Sales Platform API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health"
    }


# Import and include routers
from api.routers import customers, products, sales

app.include_router(sales.router, prefix="/api/v1", tags=["Sales"])
app.include_router(customers.router, prefix="/api/v1", tags=["Customers"])
app.include_router(products.router, prefix="/api/v1", tags=["Products"])
