"""FastAPI application entrypoint. No business logic; only wiring, middleware and error mapping."""

from dotenv import load_dotenv

load_dotenv()

import logging
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.v1 import router as v1_router
from app.core import message_keys
from app.core.config import settings
from app.core.database import SessionLocal
from app.core.errors import AppError
from app.core.security import ensure_signing_configured
from app.schemas.common import ApiResponse, ErrorResponse, envelope
from app.schemas.health import ServiceInfo
from app.services.bootstrap import seed_super_admin

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)

_HTTP_STATUS_KEYS = {
    400: message_keys.BAD_REQUEST,
    401: message_keys.UNAUTHORIZED,
    403: message_keys.FORBIDDEN,
    404: message_keys.NOT_FOUND,
}


@asynccontextmanager
async def lifespan(_app: FastAPI):
    # Refuse to start without a signing secret.
    ensure_signing_configured(settings)
    with SessionLocal() as db:
        seed_super_admin(db, settings)
    yield


app = FastAPI(
    title="Rental Hub API",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_response(
    request: Request,
    status_code: int,
    message: str,
    message_key: str,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = ErrorResponse(
        status_code=status_code,
        message=message,
        message_key=message_key,
        path=request.url.path,
        timestamp=datetime.now(UTC),
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json", by_alias=True),
        headers=headers,
    )


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    logger.warning(
        "%s %s -> %s %s: %s",
        request.method,
        request.url.path,
        exc.status_code,
        exc.message_key,
        exc.message,
    )
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return _error_response(request, exc.status_code, exc.message, exc.message_key, headers)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        loc = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{loc}: {first.get('msg')}" if loc else str(first.get("msg"))
    else:
        message = "Invalid request"
    logger.info("%s %s -> 422 validation: %s", request.method, request.url.path, message)
    return _error_response(request, 422, message, message_keys.VALIDATION_ERROR)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    key = _HTTP_STATUS_KEYS.get(exc.status_code, message_keys.ERROR)
    logger.info("%s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc.detail)
    return _error_response(
        request, exc.status_code, str(exc.detail), key, getattr(exc, "headers", None)
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error_response(request, 500, "Internal server error", message_keys.INTERNAL_ERROR)


app.include_router(v1_router, prefix=settings.API_V1_PREFIX)


@app.get("/", response_model=ApiResponse[ServiceInfo])
def root() -> ApiResponse[ServiceInfo]:
    """Root route; minimal payload for discovery."""
    return envelope(
        200,
        "Rental Hub API",
        message_keys.SERVICE_INFO,
        ServiceInfo(name=app.title, version=app.version, docs_url=app.docs_url),
    )
