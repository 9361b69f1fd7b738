"""
API Dependencies: the DB session and the guards built from the verified identity.

Handlers declare what they need and receive the authorized user:

    @router.get("/api/ocr")
    async def list_jobs(user: User = Depends(require(Permission.OCR_READ))):
        ...

Guard failures raise AuthzError subclasses; the handler registered in
``practice_authz.main`` turns them into 401/403 responses.
"""

import logging
from typing import AsyncGenerator

from fastapi import Depends, Request
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from practice_authz.database import async_session
from practice_authz.auth.context import Identity
from practice_authz.auth.guards import AuthorizationGuard
from practice_authz.auth.jwt import decode_access_token
from practice_authz.auth.permissions import Permission
from practice_authz.bootstrap.seed_gate import BootstrapState
from practice_authz.middleware.request_context import set_actor
from practice_authz.models import User

logger = logging.getLogger(__name__)


# ── Database session ─────────────────────────────────────────────────────────

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield a DB session per request, commit on success, rollback on error."""
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


# ── Identity (verified by the session layer) ─────────────────────────────────

async def get_identity(request: Request) -> Identity | None:
    """Decode the Bearer token into an Identity; None when absent or invalid."""
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return None

    token = auth_header[7:]  # strip "Bearer "
    try:
        claims = decode_access_token(token)
    except JWTError as e:
        logger.debug("JWT decode failed: %s", e)
        return None
    identity = Identity.from_claims(claims)
    set_actor(identity.actor)
    return identity


async def get_guard(
    identity: Identity | None = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
) -> AuthorizationGuard:
    return AuthorizationGuard(db, identity)


# ── Bootstrap state ──────────────────────────────────────────────────────────

def get_bootstrap(request: Request) -> BootstrapState:
    return request.app.state.bootstrap


# ── Guards ───────────────────────────────────────────────────────────────────

async def require_auth(guard: AuthorizationGuard = Depends(get_guard)) -> User:
    return await guard.require_auth()


async def require_admin(guard: AuthorizationGuard = Depends(get_guard)) -> User:
    return await guard.require_admin()


def require(permission: str | Permission):
    """
    FastAPI dependency that checks the caller holds ``permission``.

    Usage:
        @router.post("/api/vaults/{vault_id}/upload")
        async def upload(user: User = Depends(require(Permission.VAULTS_UPLOAD))):
            ...
    """
    async def _check(guard: AuthorizationGuard = Depends(get_guard)) -> User:
        return await guard.require_permission(permission)
    return _check
