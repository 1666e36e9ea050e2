import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from application_service.core.config import settings, require_jwt_secret
from application_service.core.exceptions import ApplicationServiceError
from application_service.core.logging import configure_logging
from application_service.core.rate_limit import limiter
from application_service.routes.applications import router as applications_router

logger = logging.getLogger(__name__)

require_jwt_secret()
configure_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # One pooled client for every call to sibling services; timeouts are set per request.
    app.state.http_client = httpx.Client(timeout=settings.SERVICE_TIMEOUT_SECONDS)
    try:
        yield
    finally:
        app.state.http_client.close()


app = FastAPI(title="Application Service", lifespan=lifespan)
logger.info(
    "Startup config: ENV=%s JOBS_SERVICE_URL=%s PROFILE_SERVICE_URL=%s UPLOADS_DIR=%s",
    settings.ENV,
    settings.JOBS_SERVICE_URL or "<unset>",
    settings.PROFILE_SERVICE_URL or "<unset>",
    settings.UPLOADS_DIR,
)

_ERROR_CODE_BY_STATUS: dict[int, str] = {
    400: "VALIDATION_ERROR",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    413: "PAYLOAD_TOO_LARGE",
    422: "VALIDATION_ERROR",
    429: "RATE_LIMITED",
    500: "INTERNAL_ERROR",
}


def _error_code(status_code: int) -> str:
    return _ERROR_CODE_BY_STATUS.get(int(status_code), "HTTP_ERROR")


@app.exception_handler(ApplicationServiceError)
def application_error_handler(request: Request, exc: ApplicationServiceError):  # noqa: ARG001
    payload: dict = {"error": exc.code, "message": exc.message}
    if exc.details:
        payload["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=payload)


@app.exception_handler(StarletteHTTPException)
def http_exception_handler(request: Request, exc: StarletteHTTPException):  # noqa: ARG001
    detail = exc.detail
    message: str
    details: dict | None = None

    if isinstance(detail, str):
        message = detail
    elif isinstance(detail, dict):
        msg = detail.get("message")
        message = msg if isinstance(msg, str) and msg else "Request failed"
        det = detail.get("details")
        details = det if isinstance(det, dict) else None
    else:
        message = str(detail) if detail is not None else "Request failed"

    payload: dict = {"error": _error_code(exc.status_code), "message": message}
    if details:
        payload["details"] = details
    return JSONResponse(status_code=exc.status_code, content=payload, headers=getattr(exc, "headers", None))


def _jsonable_errors(exc: RequestValidationError) -> list[dict]:
    # Pydantic may put non-JSON values (exceptions, bytes) into "ctx"/"input".
    out: list[dict] = []
    for err in exc.errors():
        out.append({k: (v if k in {"loc", "msg", "type"} else str(v)) for k, v in err.items()})
    return out


@app.exception_handler(RequestValidationError)
def validation_exception_handler(request: Request, exc: RequestValidationError):  # noqa: ARG001
    return JSONResponse(
        status_code=422,
        content={
            "error": "VALIDATION_ERROR",
            "message": "Invalid request payload",
            "details": {"errors": _jsonable_errors(exc)},
        },
    )


@app.exception_handler(Exception)
def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    payload: dict = {"error": "INTERNAL_ERROR", "message": "Internal server error"}
    if not settings.is_prod:
        payload["details"] = {"exception": type(exc).__name__, "reason": str(exc)}
    return JSONResponse(status_code=500, content=payload)


if settings.ENABLE_RATE_LIMITING:
    app.state.limiter = limiter
    # Provide our standard error shape for rate limits, instead of slowapi's default.
    app.add_exception_handler(
        RateLimitExceeded,
        lambda request, exc: JSONResponse(  # noqa: ARG005
            status_code=429,
            content={"error": "RATE_LIMITED", "message": "Too many requests"},
        ),
    )

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

app.include_router(applications_router)


@app.get("/health")
def health_check():
    return {"status": "ok"}
