import logging
import re
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from odysea.api import activities, ai, auth, destinations, trips
from odysea.core.rate_limit import limiter
from odysea.core.settings import get_settings
from odysea.core.validation import PayloadValidationError, format_issues
from odysea.db.session import db_manager
from odysea.middleware.logging import RequestLoggingMiddleware

API_KEY_PARAM = re.compile(r'([?&]key=)[^&\s]+')
GOOGLE_API_KEY = re.compile(r'(AIza[0-9A-Za-z\-_]{35})')
UNSPLASH_CLIENT_ID = re.compile(r'(Client-ID\s+)\S+')


def redact_api_keys(logger, method_name, event_dict):
    """structlog processor scrubbing API keys from every string in the event"""

    def scrub(v):
        if isinstance(v, str):
            v = API_KEY_PARAM.sub(r'\1REDACTED', v)
            v = GOOGLE_API_KEY.sub('REDACTED', v)
            v = UNSPLASH_CLIENT_ID.sub(r'\1REDACTED', v)
            return v
        if isinstance(v, list):
            return [scrub(x) for x in v]
        if isinstance(v, dict):
            return {k: scrub(vv) for k, vv in v.items()}
        return v

    for k, v in list(event_dict.items()):
        event_dict[k] = scrub(v)
    return event_dict


structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        redact_api_keys,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

settings = get_settings()

handlers = [logging.StreamHandler()]
if settings.LOG_FILE:
    handlers.append(logging.FileHandler(settings.LOG_FILE))

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(message)s',  # structlog handles formatting
    handlers=handlers,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting application...")
    try:
        await db_manager.initialize()
    except Exception:
        logger.exception("Failed to initialize database manager")
        raise

    yield

    logger.info("Shutting down application...")
    try:
        await db_manager.close()
    except Exception as e:
        logger.error("database_cleanup_failed", error=str(e))


app = FastAPI(
    title="Odysea API",
    description="Travel planning with AI-generated itineraries",
    version="1.0.0",
    lifespan=lifespan
)

app.state.limiter = limiter

app.add_middleware(RequestLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.APP_ORIGIN,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

Instrumentator().instrument(app).expose(app, endpoint="/metrics")


def error_response(status_code: int, message, details=None, headers=None) -> JSONResponse:
    content = {"error": message}
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content, headers=headers)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, exc.detail, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return error_response(
        status.HTTP_400_BAD_REQUEST, "Validation failed", details=format_issues(exc.errors())
    )


@app.exception_handler(PayloadValidationError)
async def payload_validation_handler(request: Request, exc: PayloadValidationError):
    return error_response(status.HTTP_400_BAD_REQUEST, exc.message, details=exc.issues)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    logger.warning("rate_limit_exceeded", path=request.url.path, limit=str(exc.detail))
    return error_response(
        status.HTTP_429_TOO_MANY_REQUESTS, f"Rate limit exceeded: {exc.detail}"
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        method=request.method,
        exc_info=True
    )
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


@app.get("/")
def root():
    return {"status": "ok", "message": "Odysea API is running"}


@app.get("/health")
async def health_check():
    """Liveness probe; database trouble is reported, not raised"""
    database = await db_manager.health_check()
    return {
        "status": "ok",
        "version": app.version,
        "components": {
            "database": database["status"],
            "api": "healthy",
        },
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(trips.router, prefix="/api/trips", tags=["trips"])
app.include_router(activities.router, prefix="/api/activities", tags=["activities"])
app.include_router(destinations.router, prefix="/api/destinations", tags=["destinations"])
app.include_router(ai.router, prefix="/api/ai", tags=["ai"])
