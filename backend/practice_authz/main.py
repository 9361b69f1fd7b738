import asyncio
import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from practice_authz.config import settings
from practice_authz.database import async_session, engine, run_migrations
from practice_authz.errors import AuthzError, SeedFailure
from practice_authz.middleware.logging_config import configure_logging

configure_logging(settings.log_level, settings.log_format)

from practice_authz.api.auth import router as auth_router  # noqa: E402
from practice_authz.api.cases import router as cases_router  # noqa: E402
from practice_authz.api.groups import router as groups_router  # noqa: E402
from practice_authz.api.permissions import router as permissions_router  # noqa: E402
from practice_authz.api.settings import router as settings_router  # noqa: E402
from practice_authz.api.users import router as users_router  # noqa: E402
from practice_authz.bootstrap.seed_gate import BootstrapState, SeedGate  # noqa: E402
from practice_authz.seed.dev_seed import is_dev_mode, make_dev_seed  # noqa: E402

logger = logging.getLogger("practice_authz")


def build_bootstrap_state() -> BootstrapState:
    """One per process, created on the running loop its asyncio primitives bind to."""
    return BootstrapState(seed_gate=SeedGate(make_dev_seed(async_session), name="dev-seed"))


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: migrate, then seed the dev admin
    await asyncio.to_thread(run_migrations)
    app.state.bootstrap = build_bootstrap_state()
    if is_dev_mode():
        try:
            await app.state.bootstrap.seed_gate.ensure_seeded()
        except SeedFailure:
            # The gate has reset; /api/auth/dev-credentials will retry
            logger.warning("Dev seed failed at startup")
    yield
    await engine.dispose()


app = FastAPI(
    title="Practice Authz",
    description="Authorization core for the legal-practice dashboard",
    version="0.1.0",
    lifespan=lifespan,
)

# ── CORS ─────────────────────────────────────────────────────────────────────
origins = [o.strip() for o in settings.allowed_origins.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
)

# ── Request context middleware (request ID + timing) ─────────────────────────
from practice_authz.middleware.request_context import RequestContextMiddleware  # noqa: E402

app.add_middleware(RequestContextMiddleware)


@app.exception_handler(AuthzError)
async def authz_exception_handler(request: Request, exc: AuthzError):
    """The one place authorization failures become HTTP statuses."""
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc)
    detail = exc.message
    if exc.status_code >= 500 and settings.environment != "development":
        detail = "Internal Server Error"
    return JSONResponse(status_code=exc.status_code, content={"detail": detail})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Return detailed error info in development mode so 500s are debuggable."""
    tb = traceback.format_exc()
    logger.error(
        "Unhandled %s on %s %s: %s\n%s",
        type(exc).__name__, request.method, request.url.path, exc, tb,
    )
    detail = f"{type(exc).__name__}: {exc}"
    if settings.environment == "development":
        return JSONResponse(
            status_code=500,
            content={"detail": detail, "traceback": tb.splitlines()[-5:]},
        )
    return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


# Register API routers
app.include_router(auth_router)
app.include_router(groups_router)
app.include_router(users_router)
app.include_router(settings_router)
app.include_router(permissions_router)
app.include_router(cases_router)


@app.get("/api/health")
async def health_check():
    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
        database = {"status": "connected"}
    except Exception as exc:
        database = {"status": "disconnected", "error": str(exc)}

    return {
        "status": "healthy" if database["status"] == "connected" else "unhealthy",
        "environment": settings.environment,
        "components": {"database": database},
    }
