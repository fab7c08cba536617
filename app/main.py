from fastapi import FastAPI, Request
from contextlib import asynccontextmanager
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Import core components
from app.core.logging_config import setup_logging
from app.core.settings import settings
from app.middleware.logging import LoggingMiddleware
from app.middleware.rate_limit import RateLimitMiddleware

# Import configuration
from app.config import init_firebase

# Import route modules
from app.routes import health, user, profiles, mentors, bookings
from app.exceptions import (
    UnauthorizedException, ForbiddenException,
    NotFoundException, ValidationException, ConflictException
)

# Set up logging first
logger = setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("=" * 50)
    logger.info("Mentor Booking API starting up")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"CORS origins: {settings.cors_origins}")
    logger.info(f"Rate limiting: {'enabled' if settings.rate_limit_enabled else 'disabled'}")
    logger.info(f"SQL Debug: {'enabled' if settings.sql_debug else 'disabled'}")
    logger.info("=" * 50)
    yield
    logger.info("Mentor Booking API shutting down gracefully")

app = FastAPI(
    title="Mentor Booking API",
    description="Mentor profiles and session bookings with per-row access rules",
    version="1.0.0",
    docs_url="/docs" if settings.docs_enabled else None,
    redoc_url="/redoc" if settings.docs_enabled else None,
    lifespan=lifespan,
)

# Add middleware in correct order (last added = first executed)
app.add_middleware(LoggingMiddleware)

if settings.rate_limit_enabled:
    app.add_middleware(
        RateLimitMiddleware,
        calls_per_minute=settings.rate_limit_per_minute,
        trust_forwarded_for=settings.trust_forwarded_for,
    )

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_origins != ["*"],
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

# Initialize Firebase (skip in test environment)
if not settings.is_test:
    init_firebase()

# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(user.router, prefix="/users", tags=["Users"])
app.include_router(profiles.router)
app.include_router(mentors.router)
app.include_router(bookings.router)


def _error_response(request: Request, status_code: int, detail, level: str = "warning"):
    correlation_id = getattr(request.state, 'correlation_id', 'unknown')
    getattr(logger, level)(f"[{correlation_id}] {status_code} on {request.url.path}: {detail}")
    return JSONResponse(
        status_code=status_code,
        content={"detail": detail, "correlation_id": correlation_id}
    )

# Exception handlers
@app.exception_handler(UnauthorizedException)
async def unauthorized_exception_handler(request: Request, exc: UnauthorizedException):
    return _error_response(request, 401, exc.detail)

@app.exception_handler(ForbiddenException)
async def forbidden_exception_handler(request: Request, exc: ForbiddenException):
    return _error_response(request, 403, exc.detail)

@app.exception_handler(ValidationException)
async def validation_exception_handler(request: Request, exc: ValidationException):
    return _error_response(request, 400, exc.detail)

@app.exception_handler(NotFoundException)
async def not_found_exception_handler(request: Request, exc: NotFoundException):
    return _error_response(request, 404, exc.detail, level="info")

@app.exception_handler(ConflictException)
async def conflict_exception_handler(request: Request, exc: ConflictException):
    return _error_response(request, 409, exc.detail)

@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    correlation_id = getattr(request.state, 'correlation_id', 'unknown')
    logger.error(f"[{correlation_id}] Unhandled exception on {request.url.path}: {str(exc)}", exc_info=True)

    content = {"detail": "Internal server error", "correlation_id": correlation_id}
    if settings.is_development:
        content["error"] = str(exc)
        content["type"] = type(exc).__name__
    return JSONResponse(status_code=500, content=content)

# Root endpoint
@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information."""
    return {
        "message": "Mentor Booking API",
        "version": "1.0.0",
        "environment": settings.environment,
        "docs_url": "/docs" if settings.docs_enabled else None,
        "health_check": "/health",
        "status": "running"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=8000,
        log_level="info" if settings.is_development else "warning"
    )
