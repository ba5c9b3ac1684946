import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from . import config
from .database import Database
from .domain.bookings.router import router as bookings_router
from .domain.dashboard.router import router as dashboard_router
from .domain.payments.router import router as payments_router
from .domain.quotes.router import router as quotes_router
from .domain.users.router import auth_router
from .domain.users.router import router as users_router
from .errors import ConfigurationError, RateLimitError, ServiceError
from .rate_limiter import RateLimiter
from .security_headers import SecurityHeadersMiddleware

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("passlib").setLevel(logging.ERROR)

SECURITY_HEADERS_ENABLED = os.getenv("SECURITY_HEADERS_ENABLED", "true").lower() == "true"

# CORS Configuration
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    f"{config.FRONTEND_URL},http://localhost:5173,http://localhost:3000",
).split(",")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    database: Database = app.state.database
    try:
        database.init()
        database.create_schema()
        logger.info("Database ready")
    except ConfigurationError as e:
        # Keep serving /health; data endpoints answer with a configuration error
        logger.error(f"❌ Database unavailable: {e.message}")
        database.dispose()
    except SQLAlchemyError as e:
        logger.error(f"❌ Database unreachable on startup: {e}")
        database.dispose()

    yield

    logger.info("Application shutting down...")
    database.dispose()
    app.state.rate_limiter.close()


def service_error_response(exc: ServiceError) -> JSONResponse:
    content = {"detail": exc.message, "error": exc.error_code, **exc.details}
    headers = None
    if isinstance(exc, RateLimitError):
        content["retry_after"] = exc.retry_after
        headers = {"Retry-After": str(exc.retry_after)}
    return JSONResponse(status_code=exc.status_code, content=content, headers=headers)


def create_app(
    database: Optional[Database] = None, rate_limiter: Optional[RateLimiter] = None
) -> FastAPI:
    """
    Build the API. The database handle is owned by the app: it is initialized
    on startup and disposed on shutdown.
    """
    app = FastAPI(title="Event Booking API", version="1.0.0", lifespan=lifespan)
    app.state.database = database or Database(config.DATABASE_URL)
    app.state.rate_limiter = rate_limiter or RateLimiter()

    @app.exception_handler(ServiceError)
    async def service_exception_handler(request: Request, exc: ServiceError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} - {exc.error_code}: {exc.message}")
        else:
            logger.warning(f"{request.method} {request.url.path} - {exc.error_code}: {exc.message}")
        return service_error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"Validation error for {request.url.path}: {exc.errors()}")
        return JSONResponse(
            status_code=422, content={"detail": jsonable_errors(exc), "error": "invalid_request"}
        )

    if SECURITY_HEADERS_ENABLED:
        app.add_middleware(
            SecurityHeadersMiddleware, exclude_paths=["/health", "/docs", "/openapi.json"]
        )
    else:
        logger.warning("Security headers DISABLED - only use in development!")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=False,  # Bearer tokens, no cookies
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
        allow_headers=["*"],
    )

    # Routes
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(bookings_router)
    app.include_router(quotes_router)
    app.include_router(payments_router)
    app.include_router(dashboard_router)

    @app.get("/health")
    def health():
        db_ready = app.state.database.is_initialized
        return {"status": "healthy" if db_ready else "degraded", "database": db_ready}

    return app


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    """Pydantic error entries without the raw input or exception context"""
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]


app = create_app()
