# authgate/main.py

"""
Application factory for the authgate FastAPI service.

`create_app()` assembles:
- JSON logging and correlation ids
- JWT authentication (`authgate.wiring`) with its initialize/session middleware
- a uniform JSON error handler for `AuthError`
- Prometheus request metrics and a `/metrics` endpoint
- a liveness probe and a protected `/v1/auth/me` route

Run it with:  uvicorn authgate.main:create_app --factory
"""

from typing import Any, Dict

from asgi_correlation_id import CorrelationIdMiddleware
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from authgate.config import Settings, get_settings
from authgate.exceptions import AuthError
from authgate.logging_config import configure_logging
from authgate.metrics import MetricsMiddleware, render_metrics
from authgate.middlewares import LoggingMiddleware
from authgate.strategies.jwt_strategy import FetchUser
from authgate.wiring import configure_auth, install_auth_middleware, require_user


def claims_as_user(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Default user lookup for stateless deployments: the verified claims are the user."""
    return payload


def create_app(fetch_user: FetchUser = claims_as_user, settings: Settings | None = None) -> FastAPI:
    """
    Build the application.

    Args:
        fetch_user (FetchUser): Resolves a verified token payload to a user.
        settings (Settings): Defaults to the process-wide `get_settings()`.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="authgate",
        version="0.1.0",
        description="JWT bearer authentication for FastAPI services.",
    )

    # ─── Authentication ───────────────────────────────────────────────────────
    configure_auth(app, fetch_user, settings.auth_config(), session=settings.jwt_session)
    install_auth_middleware(
        app,
        session_secret=(settings.session_secret_key or settings.jwt_secret_key)
        if settings.jwt_session else None,
    )

    # ─── Global Exception Handling ────────────────────────────────────────────
    @app.exception_handler(AuthError)
    async def handle_auth_error(request: Request, exc: AuthError):
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=headers,
        )

    # ─── Middleware Stack ─────────────────────────────────────────────────────
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(CorrelationIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin).rstrip("/") for origin in settings.cors_origins],
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
        max_age=3600,
    )
    app.add_middleware(MetricsMiddleware)

    # ─── Routes ───────────────────────────────────────────────────────────────
    @app.get("/metrics", include_in_schema=False)
    async def metrics():
        return render_metrics()

    @app.get("/healthz", tags=["health"])
    async def healthz():
        return {"status": "ok"}

    @app.get("/v1/auth/me", tags=["auth"])
    async def me(user: Any = Depends(require_user)):
        """Return the user resolved from the presented token."""
        return {"user": user}

    return app
