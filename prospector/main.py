"""
Prospector Backend - FastAPI Application
Main entry point with all routes configured.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

from prospector.config import settings
from prospector.database import init_db
from prospector.core.exceptions import ProspectorException

# Import all API routers
from prospector.api import company_lists, scoring

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    # Startup
    await init_db()
    yield
    # Shutdown


app = FastAPI(
    title="Prospector API",
    description="Company lists, access control and lead scoring for B2B prospecting",
    version="1.0.0",
    lifespan=lifespan
)

# CORS Configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ProspectorException)
async def prospector_exception_handler(request: Request, exc: ProspectorException):
    """Render domain errors as ``{code, message}``."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"code": exc.public_code, "message": exc.message},
        headers=headers,
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed parameters or bodies are reported as typed INVALID_* errors."""
    code = "INVALID_REQUEST"
    for error in exc.errors():
        location = error.get("loc", ())
        if "limit" in location:
            code = "INVALID_LIMIT"
        elif "page" in location:
            code = "INVALID_PAGE"
        elif "companyIds" in location:
            code = "INVALID_COMPANY_IDS"
        elif location and location[0] == "body" and error.get("type") == "json_invalid":
            code = "INVALID_JSON"
        if code != "INVALID_REQUEST":
            break
    return JSONResponse(status_code=400, content={"code": code, "message": "Request validation failed"})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error in {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"code": "INTERNAL_ERROR", "message": "Internal server error"},
    )


# Include all routers
app.include_router(company_lists.router)
app.include_router(scoring.router)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": "1.0.0"
    }
