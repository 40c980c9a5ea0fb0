"""
Main FastAPI application.
"""
import logging

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from compliance_training.api.v1 import api_router
from compliance_training.core.analytics import AnalyticsError
from compliance_training.core.config import settings
from compliance_training.db.base import SessionLocal, engine
from compliance_training.models import Base

VERSION = "0.1.0"

# Configure logging BEFORE creating the app
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format='%(levelname)s:\t%(name)s\t%(message)s',
    handlers=[logging.StreamHandler()]
)
logging.getLogger("uvicorn").setLevel(logging.INFO)

logger = logging.getLogger(__name__)

# Local development only; the hosted record store is managed by its owner
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Performance analytics for compliance training: worker learning needs, "
                "organization overviews, detailed reports and report digests",
    version=VERSION,
    openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc",
)

cors_origins = settings.BACKEND_CORS_ORIGINS or ["*"]
if cors_origins == "*":
    cors_origins = ["*"]
logger.info(f"CORS enabled for origins: {cors_origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[str(origin) for origin in cors_origins],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Handle malformed path or query parameters.

    Args:
        request: Request object
        exc: Validation exception

    Returns:
        JSON response with error details
    """
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=jsonable_encoder({"detail": exc.errors()}),
    )


@app.exception_handler(AnalyticsError)
async def analytics_exception_handler(request: Request, exc: AnalyticsError):
    """Report an analytics failure that escaped the service layer as an unsuccessful result."""
    logger.error(f"Analytics failure on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"success": False, "error": str(exc)},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle all unhandled exceptions."""
    logger.error(f"Unhandled error on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error", "message": str(exc)},
    )


@app.on_event("startup")
async def startup_event():
    logger.info(f"Starting {settings.PROJECT_NAME} v{VERSION} ({settings.ENV})")
    logger.info(
        f"Needs-support threshold {settings.NEEDS_SUPPORT_THRESHOLD}%, "
        f"default pass mark {settings.DEFAULT_PASS_MARK}%"
    )


@app.on_event("shutdown")
async def shutdown_event():
    logger.info(f"Shutting down {settings.PROJECT_NAME}")
    engine.dispose()


@app.get("/", tags=["Health"])
async def root():
    """
    Root endpoint.

    Returns:
        Service name, version and documentation path
    """
    return {
        "message": "Compliance Training Analytics API",
        "status": "healthy",
        "version": VERSION,
        "docs": "/docs",
    }


@app.get("/health", tags=["Health"])
def health_check():
    """
    Check that the record store answers queries.

    Returns:
        Health status

    Raises:
        HTTPException: 503 if the record store is unreachable
    """
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Health check failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Record store unavailable",
        )
    finally:
        db.close()
    return {"status": "healthy", "database": "ok"}


app.include_router(api_router, prefix=settings.API_V1_PREFIX)
