from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware

from api.core.config import Settings, get_settings
from api.core.errors import install_error_handlers
from api.core.logging import RequestLoggingMiddleware, configure_logging
from api.core.utils import utcnow
from api.db.session import dispose_engine, init_db
from api.repositories.sql_repository import SQLRepository
from api.routers import admin as admin_router
from api.routers import analytics as analytics_router
from api.routers import auth as auth_router
from api.routers import cards as cards_router
from api.routers import companies as companies_router
from api.routers import finances as finances_router
from api.routers import profiles as profiles_router
from api.routers import subscriptions as subscriptions_router
from api.routers import templates as templates_router
from api.routers import users as users_router

DOCS_PATHS = ("/docs", "/openapi.json")
API_CSP = "default-src 'none'; frame-ancestors 'none'"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Inject baseline security headers (CSP, anti clickjacking, referrer policy)."""

    def __init__(self, app, *, enforce_hsts: bool) -> None:
        super().__init__(app)
        self._enforce_hsts = enforce_hsts

    async def dispatch(self, request, call_next):
        response = await call_next(request)
        # Swagger UI loads its assets from a CDN
        if not request.url.path.startswith(DOCS_PATHS):
            response.headers.setdefault("Content-Security-Policy", API_CSP)
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "no-referrer-when-downgrade")
        if self._enforce_hsts:
            response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
        return response


def allowed_origins(settings: Settings) -> list[str]:
    origins = {settings.frontend_url}
    if not settings.is_prod:
        origins.update(
            {
                "http://localhost:3000",
                "http://127.0.0.1:3000",
                "http://localhost:5173",
                "http://127.0.0.1:5173",
            }
        )
    return sorted(origin for origin in origins if origin)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings.log_level)
    if settings.is_prod and settings.uses_dev_secret:
        logger.warning("JWT_SECRET is the development placeholder; set a real secret in production")
    init_db()
    app.state.settings = settings
    app.state.repository = SQLRepository()
    logger.info("Inutile Cards API started (env={})", settings.app_env)
    try:
        yield
    finally:
        dispose_engine()
        logger.info("Inutile Cards API stopped")


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        title="Inutile Cards API",
        description="Profiles, NFC cards, orders, subscriptions and companies",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.add_middleware(SecurityHeadersMiddleware, enforce_hsts=settings.is_prod)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins(settings),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    install_error_handlers(app)

    @app.get("/health", tags=["health"])
    def health():
        return {"status": "ok", "timestamp": utcnow().isoformat()}

    for module in (
        auth_router,
        users_router,
        profiles_router,
        templates_router,
        cards_router,
        admin_router,
        companies_router,
        subscriptions_router,
        finances_router,
        analytics_router,
    ):
        app.include_router(module.router)
    return app


app = create_app()
