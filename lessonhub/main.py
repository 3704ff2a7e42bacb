"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, Response, status
from fastapi.responses import HTMLResponse
from sqlalchemy import text

from lessonhub.core.config import get_settings
from lessonhub.core.database import SessionLocal, close_engine
from lessonhub.core.metrics import build_metrics_response, instrument_http_request
from lessonhub.modules.availability.router import router as availability_router
from lessonhub.modules.booking.router import router as booking_router
from lessonhub.modules.identity.repository import IdentityRepository
from lessonhub.modules.identity.router import router as identity_router
from lessonhub.modules.identity.service import IdentityService
from lessonhub.modules.realtime.service import close_change_notifier
from lessonhub.shared.exceptions import register_exception_handlers
from lessonhub.shared.utils import utc_now

settings = get_settings()
logger = logging.getLogger(__name__)


_LANDING_LINKS = (
    ("/docs", "API docs"),
    ("/health", "Health"),
    ("/ready", "Ready"),
    ("/metrics", "Metrics"),
)


def _landing_page_html() -> str:
    """Build minimal landing page for root path."""
    links = "\n".join(f'          <li><a href="{href}">{label}</a></li>' for href, label in _LANDING_LINKS)
    return f"""
<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <title>{settings.app_name} API</title>
    <style>
      body {{ font-family: system-ui, sans-serif; max-width: 640px; margin: 48px auto; color: #1f2933; }}
      ul {{ list-style: none; padding: 0; display: flex; gap: 12px; }}
      a {{ color: #0b6e4f; }}
      code {{ background: #eef2f5; padding: 2px 6px; border-radius: 4px; }}
    </style>
  </head>
  <body>
    <main>
      <h1>{settings.app_name} API</h1>
      <p>Teachers publish availability, students request slots, teachers approve.</p>
      <nav>
        <ul>
{links}
        </ul>
      </nav>
      <p>API prefix: <code>{settings.api_prefix}</code></p>
    </main>
  </body>
</html>
"""


@asynccontextmanager
async def lifespan(_: FastAPI):
    """Application startup and shutdown hooks."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    logger.info("Starting %s (realtime backend: %s)", settings.app_name, settings.realtime_backend)

    async with SessionLocal() as session:
        try:
            service = IdentityService(IdentityRepository(session))
            await service.ensure_default_roles()
            await session.commit()
            logger.info("Default roles ensured")
        except Exception:
            await session.rollback()
            logger.exception("Failed during startup initialization")
            raise

    yield

    logger.info("Shutting down %s", settings.app_name)
    await close_change_notifier()
    await close_engine()


app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    lifespan=lifespan,
)
app.middleware("http")(instrument_http_request)

register_exception_handlers(app)

app.include_router(identity_router, prefix=settings.api_prefix)
app.include_router(availability_router, prefix=settings.api_prefix)
app.include_router(booking_router, prefix=settings.api_prefix)


@app.get("/", include_in_schema=False, response_class=HTMLResponse)
async def landing_page() -> HTMLResponse:
    """Root page with quick navigation links."""
    return HTMLResponse(content=_landing_page_html())


@app.get("/health")
async def healthcheck() -> dict[str, str]:
    """Liveness probe endpoint."""
    return {"status": "ok"}


async def _is_database_ready() -> bool:
    """Return True if DB accepts basic queries."""
    try:
        async with SessionLocal() as session:
            await session.execute(text("SELECT 1"))
        return True
    except Exception:
        logger.exception("Database readiness check failed")
        return False


@app.get("/ready")
async def readiness_check() -> dict[str, str]:
    """Readiness probe: database reachable; reports the realtime backend in use."""
    if not await _is_database_ready():
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database is not ready",
        )
    return {
        "status": "ready",
        "database": "ok",
        "realtime_backend": settings.realtime_backend,
        "timestamp": utc_now().isoformat(),
    }


@app.get("/metrics", include_in_schema=False)
async def metrics_endpoint(_: Request) -> Response:
    """Prometheus metrics endpoint."""
    return build_metrics_response()
