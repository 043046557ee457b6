"""
═══════════════════════════════════════════════════════════════════════════════
Samaj — Service entry point (Application Entry Point)
═══════════════════════════════════════════════════════════════════════════════

Application factory of the membership service: routers, CORS, lifespan
(database pool, migrations, NATS) and the single SamajError handler.
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path

import uvicorn
from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from samaj import __version__
from samaj.config import get_settings
from samaj.database import close_pool, get_pool
from samaj.exceptions import SamajError, ValidationError

from samaj.api.access import router as access_router
from samaj.api.admin import router as admin_router
from samaj.api.auth import router as auth_router
from samaj.api.health import router as health_router
from samaj.api.profile import router as profile_router

# ═══════════════════════════════════════════════════════════════════════════════
# Logging
# ═══════════════════════════════════════════════════════════════════════════════
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)

STATUS_MAP = {
    "SAMAJ_NOT_FOUND": 404,
    "SAMAJ_UNKNOWN_FEATURE": 404,
    "SAMAJ_CONFLICT": 409,
    "SAMAJ_VALIDATION_ERROR": 422,
    "SAMAJ_AUTH_ERROR": 401,
    "SAMAJ_AUTHZ_ERROR": 403,
    "SAMAJ_STORE_ERROR": 503,
}

_REQUEST_PARTS = {"body", "query", "path", "header"}


def _error_response(exc: SamajError) -> JSONResponse:
    return JSONResponse(
        status_code=STATUS_MAP.get(exc.code, 500),
        content={
            "error": {
                "code": exc.code,
                "message": exc.message,
                "details": exc.details,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }
        },
    )


def _as_validation_error(exc: RequestValidationError) -> ValidationError:
    """Converts FastAPI's request validation failure into the domain error."""
    errors = exc.errors()
    locs = [
        [str(part) for part in err.get("loc", ()) if part not in _REQUEST_PARTS]
        for err in errors
    ]
    fields = sorted({loc[0] for loc in locs if loc})
    if not errors:
        return ValidationError("Invalid request", details={"fields": fields})
    first = ".".join(locs[0]) or "body"
    return ValidationError(f"{first}: {errors[0]['msg']}", details={"fields": fields})


# ═══════════════════════════════════════════════════════════════════════════════
# SQL migrations
# ═══════════════════════════════════════════════════════════════════════════════

async def _apply_migrations(pool) -> None:
    """Applies the SQL files of ``samaj/db/migrations/`` not applied yet."""
    migrations_dir = Path(__file__).parent / "db" / "migrations"
    sql_files = sorted(migrations_dir.glob("*.sql")) if migrations_dir.is_dir() else []
    if not sql_files:
        logger.info("No SQL migration files found — skipping")
        return

    async with pool.acquire() as conn:
        await conn.execute("""
            CREATE TABLE IF NOT EXISTS _applied_migrations (
                filename TEXT PRIMARY KEY,
                applied_at TIMESTAMPTZ DEFAULT NOW()
            )
        """)

        rows = await conn.fetch("SELECT filename FROM _applied_migrations")
        applied = {row["filename"] for row in rows}

        for sql_file in sql_files:
            if sql_file.name in applied:
                continue

            logger.info("Applying migration: %s", sql_file.name)
            async with conn.transaction():
                await conn.execute(sql_file.read_text(encoding="utf-8"))
                await conn.execute(
                    "INSERT INTO _applied_migrations (filename) VALUES ($1)",
                    sql_file.name,
                )
            logger.info("Migration applied: %s", sql_file.name)

    logger.info("All migrations up to date (%d files checked)", len(sql_files))


# ═══════════════════════════════════════════════════════════════════════════════
# Lifespan
# ═══════════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup:
        1. Create the PostgreSQL pool.
        2. Apply migrations.
        3. Database unreachable → memory store (graceful degradation).
        4. Connect the NATS publisher.

    Shutdown:
        NATS, then the pool.
    """
    settings = get_settings()
    logger.info("Samaj v%s starting (log level %s)", __version__, settings.log_level)

    pool = None
    try:
        pool = await get_pool()
        logger.info("Samaj database pool initialized")
    except Exception as e:
        logger.warning("Samaj DB not available — activating memory store: %s", e)
        from samaj.memory_store import activate_samaj_memory_store
        activate_samaj_memory_store()

    if pool is not None:
        try:
            await _apply_migrations(pool)
        except Exception as e:
            logger.warning("Migration apply failed (non-fatal): %s", e)

    from samaj.events import connect as nats_connect, disconnect as nats_disconnect
    await nats_connect()

    yield

    try:
        await nats_disconnect()
    except Exception as e:
        logger.warning("NATS disconnect failed: %s", e)
    try:
        await close_pool()
    except Exception as e:
        logger.warning("DB pool close failed: %s", e)
    logger.info("Samaj stopped")


# ═══════════════════════════════════════════════════════════════════════════════
# Application factory
# ═══════════════════════════════════════════════════════════════════════════════

def create_app(use_lifespan: bool = True) -> FastAPI:
    """Creates and configures the FastAPI application."""
    settings = get_settings()

    _is_production = settings.app_env == "production"

    app = FastAPI(
        redirect_slashes=False,
        title="Samaj Membership Service",
        description=(
            "Community membership service: registration, lineage verification "
            "workflow, role resolution and feature access gating."
        ),
        version=__version__,
        lifespan=lifespan if use_lifespan else None,
        docs_url=None if _is_production else "/docs",
        redoc_url=None if _is_production else "/redoc",
        openapi_url=None if _is_production else "/api/v1/openapi.json",
    )

    # ── CORS middleware ──────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Accept", "X-Request-ID"],
    )

    # ── API routers ──────────────────────────────────────────────────────
    v1_router = APIRouter(prefix="/api/v1")
    v1_router.include_router(auth_router)
    v1_router.include_router(profile_router)
    v1_router.include_router(access_router)
    v1_router.include_router(admin_router)
    v1_router.include_router(health_router)
    app.include_router(v1_router)

    # ── Global SamajError handler ────────────────────────────────────────
    @app.exception_handler(SamajError)
    async def samaj_error_handler(request: Request, exc: SamajError) -> JSONResponse:
        """Maps domain codes to HTTP statuses."""
        return _error_response(exc)

    # ── Request body validation → SAMAJ_VALIDATION_ERROR ─────────────────
    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Form errors use the same envelope as domain errors, with the failing fields."""
        return _error_response(_as_validation_error(exc))

    @app.get("/")
    async def root():
        return {
            "name": "Samaj Membership Service",
            "version": __version__,
            "docs": "/docs",
            "api": {
                "v1": {
                    "health": "/api/v1/health",
                    "signup": "/api/v1/signup",
                    "login": "/api/v1/login",
                    "me": "/api/v1/me",
                    "access": "/api/v1/access",
                },
            },
        }

    return app


# ═══════════════════════════════════════════════════════════════════════════════
# Module-level singleton
# ═══════════════════════════════════════════════════════════════════════════════
app = create_app()


def main() -> None:
    """Runs the service with Uvicorn."""
    settings = get_settings()
    logger.info("Starting Samaj server on %s:%s", settings.api_host, settings.api_port)
    uvicorn.run(
        "samaj.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=False,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
