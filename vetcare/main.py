from __future__ import annotations

import asyncio
import logging
import time
import uuid

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError
from starlette.middleware.base import BaseHTTPMiddleware

from vetcare.core.config import settings
from vetcare.errors import DomainError
from vetcare.logging_utils import (
    configure_logging,
    get_current_clinic,
    _clinic_id_ctx_var,
    _request_id_ctx_var,
    _user_id_ctx_var,
)
from vetcare.routers import (
    appointments,
    auth,
    clinics,
    encounters,
    memberships,
    owners,
    patients,
    prescriptions,
    users,
)

configure_logging()

app = FastAPI(title=settings.app_name, version="0.1.0")

logger = logging.getLogger(__name__)

REQUEST_COUNTER = Counter(
    "vetcare_api_requests_total",
    "Total number of processed HTTP requests.",
    ["method", "path", "status", "clinic"],
)
REQUEST_LATENCY = Histogram(
    "vetcare_api_request_duration_seconds",
    "HTTP request latency in seconds.",
    ["method", "path"],
)


class SimpleRateLimiter:
    """In-memory rate limiter keyed by IP and clinic."""

    def __init__(self, limit: int, window_seconds: int) -> None:
        self.limit = max(1, limit)
        self.window_seconds = max(1, window_seconds)
        self._entries: dict[str, tuple[int, float]] = {}
        self._lock = asyncio.Lock()

    async def allow(self, key: str) -> bool:
        now = time.monotonic()
        async with self._lock:
            count, window_start = self._entries.get(key, (0, now))
            if now - window_start >= self.window_seconds:
                self._entries[key] = (1, now)
                return True
            if count >= self.limit:
                return False
            self._entries[key] = (count + 1, window_start)
            return True


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Populate request and clinic context for logging."""

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        clinic_hint = request.headers.get("X-Clinic-ID")

        request.state.request_id = request_id
        request_id_token = _request_id_ctx_var.set(request_id)
        clinic_token = _clinic_id_ctx_var.set(clinic_hint)
        user_token = _user_id_ctx_var.set(None)

        try:
            response = await call_next(request)
        finally:
            _request_id_ctx_var.reset(request_id_token)
            _clinic_id_ctx_var.reset(clinic_token)
            _user_id_ctx_var.reset(user_token)

        response.headers["X-Request-ID"] = request_id
        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Apply a coarse rate limit per IP and clinic."""

    def __init__(self, app: FastAPI, limiter: SimpleRateLimiter) -> None:  # type: ignore[override]
        super().__init__(app)
        self.limiter = limiter

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        if request.method == "OPTIONS":
            return await call_next(request)

        client_host = request.client.host if request.client else "unknown"
        clinic_key = _clinic_id_ctx_var.get() or request.headers.get("X-Clinic-ID")
        clinic_value = clinic_key or "anonymous"
        rate_key = f"{client_host}:{clinic_value}"

        allowed = await self.limiter.allow(rate_key)
        if not allowed:
            logger.warning(
                "rate limit exceeded",
                extra={"client_ip": client_host, "clinic": clinic_value},
            )
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"detail": "Rate limit exceeded"},
            )

        return await call_next(request)


class AccessLogMiddleware(BaseHTTPMiddleware):
    """Emit structured access logs and feed metrics."""

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        start_time = time.perf_counter()
        path = request.scope.get("root_path", "") + request.scope.get("path", request.url.path)
        method = request.method

        try:
            response = await call_next(request)
        except Exception:
            elapsed = time.perf_counter() - start_time
            clinic_label = get_current_clinic()
            REQUEST_COUNTER.labels(method=method, path=path, status="500", clinic=clinic_label).inc()
            REQUEST_LATENCY.labels(method=method, path=path).observe(elapsed)
            logger.exception(
                "request failed",
                extra={
                    "method": method,
                    "path": path,
                    "duration_ms": round(elapsed * 1000, 2),
                },
            )
            raise

        elapsed = time.perf_counter() - start_time
        status_code = response.status_code
        clinic_label = get_current_clinic()

        REQUEST_COUNTER.labels(
            method=method,
            path=path,
            status=str(status_code),
            clinic=clinic_label,
        ).inc()
        REQUEST_LATENCY.labels(method=method, path=path).observe(elapsed)

        logger.info(
            "request completed",
            extra={
                "method": method,
                "path": path,
                "status_code": status_code,
                "duration_ms": round(elapsed * 1000, 2),
            },
        )

        return response


rate_limiter = SimpleRateLimiter(
    settings.rate_limit_requests, settings.rate_limit_window_seconds
)


app.add_middleware(RequestContextMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RateLimitMiddleware, limiter=rate_limiter)
app.add_middleware(AccessLogMiddleware)


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("collaborator failure", extra={"detail": exc.detail})
    else:
        logger.info(
            "request rejected",
            extra={"status_code": exc.status_code, "detail": exc.detail},
        )
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed payloads as 400 with one entry per offending field."""

    errors = []
    for error in exc.errors():
        location = [
            str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")
        ]
        errors.append({"field": ".".join(location), "message": error.get("msg", "")})
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Invalid request", "errors": errors},
    )


@app.exception_handler(StaleDataError)
async def stale_data_handler(request: Request, exc: StaleDataError) -> JSONResponse:
    logger.warning("concurrent modification detected", extra={"error": str(exc)})
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"detail": "Record was modified by another request"},
    )


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    logger.warning("integrity error", extra={"error": str(exc.orig)})
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"detail": "Request conflicts with existing data"},
    )


for module in (auth, users, clinics, memberships, owners, patients, encounters):
    app.include_router(module.router)
app.include_router(appointments.router)
app.include_router(appointments.provider_router)
app.include_router(prescriptions.router)
app.include_router(prescriptions.item_router)


@app.get("/metrics")
def metrics() -> Response:
    """Expose Prometheus metrics for scraping."""

    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@app.get("/health")
def health() -> dict[str, str]:
    """Health check endpoint used by infrastructure probes."""

    return {"status": "ok"}
