import time
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncGenerator, Optional

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import employee_routes
import payment_routes
import post_routes
import user_routes
from config import Settings, get_settings
from database import Database
from logging_config import get_logger, setup_logging
from throttle import SlidingWindowLimiter

logger = get_logger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains; preload",
    "Content-Security-Policy": (
        "default-src 'self'; style-src 'self' 'unsafe-inline'; "
        "script-src 'self'; img-src 'self' data: https:"
    ),
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, Any]:
    db: Database = app.state.db
    if not db.connected:
        try:
            db.connect()
        except Exception as e:
            logger.error("database_initialization_failed", error=str(e))
            raise
    logger.info("application_startup", env=app.state.settings.app_env)

    yield

    logger.info("application_shutdown")
    db.close()


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.log_level, settings.app_env)

    app = FastAPI(title="Payment Portal API", version="1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.db = database or Database(settings.database_url, settings.database_name)
    app.state.rate_limiter = SlidingWindowLimiter(
        settings.rate_limit_requests, settings.rate_limit_window_seconds
    )
    app.state.login_limiter = SlidingWindowLimiter(
        settings.login_max_failures, settings.login_lockout_seconds
    )

    # ----------------------
    # Middleware (the last one added runs first)
    # ----------------------

    @app.middleware("http")
    async def rate_limit(request: Request, call_next):
        ip = request.client.host if request.client else "unknown"
        limiter: SlidingWindowLimiter = request.app.state.rate_limiter
        if request.method != "OPTIONS" and not limiter.hit(ip):
            logger.warning("rate_limited", ip=ip, path=request.url.path)
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"detail": "Too many requests from this IP"},
                headers={"Retry-After": str(limiter.retry_after(ip))},
            )
        return await call_next(request)

    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)
        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        return response

    @app.middleware("http")
    async def request_logging(request: Request, call_next):
        request_id = str(uuid.uuid4())
        start_time = time.time()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )
        logger.info("request_started")
        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            logger.info(
                "request_completed",
                status_code=response.status_code,
                duration_seconds=round(time.time() - start_time, 4),
            )
            return response
        except Exception as e:
            logger.error("request_failed", error=str(e), duration_seconds=round(time.time() - start_time, 4))
            raise
        finally:
            structlog.contextvars.clear_contextvars()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_allowed_origins_list(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
    )

    # ----------------------
    # Error handling
    # ----------------------

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = [
            f"{'.'.join(str(part) for part in err.get('loc', ()) if part != 'body')}: {err.get('msg')}"
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": "Invalid request payload", "errors": errors},
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(
            "unhandled_exception",
            error=str(exc),
            error_type=type(exc).__name__,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )

    # ----------------------
    # Routes
    # ----------------------

    app.include_router(user_routes.router)
    app.include_router(employee_routes.router)
    app.include_router(payment_routes.router)
    app.include_router(post_routes.router)
    if settings.enable_debug_routes:
        logger.warning("debug_routes_enabled")
        app.include_router(payment_routes.debug_router)

    @app.get("/")
    def root():
        return {"name": "Payment Portal API", "status": "ok"}

    @app.get("/health")
    def health():
        return {
            "status": "OK",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "secure": settings.tls_enabled,
            "protocol": "HTTPS" if settings.tls_enabled else "HTTP",
            "cors": "Enabled",
            "allowed_origins": settings.get_allowed_origins_list(),
        }

    @app.get("/cors-test")
    def cors_test(request: Request):
        return {
            "message": "CORS is working!",
            "origin": request.headers.get("origin"),
            "cors_enabled": True,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    return app


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        ssl_keyfile=settings.ssl_keyfile if settings.tls_enabled else None,
        ssl_certfile=settings.ssl_certfile if settings.tls_enabled else None,
        log_level=settings.log_level.lower(),
    )
