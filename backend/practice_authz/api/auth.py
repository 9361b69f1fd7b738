"""Auth API: setup state and signup, plus what the current caller may do."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from practice_authz.api.deps import get_db, get_guard, get_bootstrap, require_auth
from practice_authz.auth.guards import AuthorizationGuard
from practice_authz.auth.resolver import effective_permissions
from practice_authz.auth.roles import Role
from practice_authz.bootstrap.seed_gate import BootstrapState
from practice_authz.models import User
from practice_authz.schemas.schemas import (
    DevCredentialsResponse,
    MeResponse,
    SetupStatusResponse,
    SignupRequest,
    SignupResponse,
    UserOut,
)
from practice_authz.seed.dev_seed import get_dev_credentials, is_dev_mode
from practice_authz.services.group_store import GroupStore
from practice_authz.services.setup_service import SetupService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def user_out(user: User) -> UserOut:
    return UserOut(
        id=user.id,
        email=user.email,
        name=user.name,
        role=user.role,
        profile_image_url=user.profile_image_url,
        last_active_at=user.last_active_at,
        created_at=user.created_at,
    )


@router.get("/status", response_model=SetupStatusResponse)
async def setup_status(db: AsyncSession = Depends(get_db),
                       bootstrap: BootstrapState = Depends(get_bootstrap)):
    """Report whether the next signup creates the first admin and whether signup is open."""
    status = await SetupService(db, bootstrap).get_setup_status()
    return SetupStatusResponse(
        has_users=not status.is_first_user,
        signup_enabled=status.signup_enabled,
        is_first_user=status.is_first_user,
        setup_in_progress=status.setup_in_progress,
        db_ready=status.db_ready,
    )


@router.post("/signup", response_model=SignupResponse)
async def signup(body: SignupRequest,
                 db: AsyncSession = Depends(get_db),
                 bootstrap: BootstrapState = Depends(get_bootstrap)):
    """Create an account. The first account on an empty system becomes admin."""
    user = await SetupService(db, bootstrap).signup(body.email, body.password, body.name)
    message = (
        "Admin account created successfully! You can now log in."
        if user.role == Role.ADMIN.value
        else "Account created successfully! You can now log in."
    )
    return SignupResponse(user=user_out(user), message=message)


@router.get("/dev-credentials", response_model=DevCredentialsResponse)
async def dev_credentials(bootstrap: BootstrapState = Depends(get_bootstrap)):
    """Dev mode only: wait for the dev seed, then hand out its login."""
    if not is_dev_mode():
        raise HTTPException(status_code=404, detail="Not available in production")

    await bootstrap.seed_gate.ensure_seeded()
    return DevCredentialsResponse(credentials=get_dev_credentials())


@router.get("/me", response_model=MeResponse)
async def me(user: User = Depends(require_auth), db: AsyncSession = Depends(get_db)):
    """Current user with group names and effective permissions."""
    permissions = await effective_permissions(db, user)
    groups = await GroupStore(db).groups_for_user(user.id)
    return MeResponse(
        **user_out(user).model_dump(),
        groups=sorted(g.name for g in groups),
        permissions="*" if permissions.is_universal else permissions.keys(),
    )


@router.get("/permissions/{key}")
async def check_permission(key: str, guard: AuthorizationGuard = Depends(get_guard)):
    """Check a single permission; 403 when the caller lacks it."""
    await guard.require_permission(key)
    return {"permission": key, "granted": True}
