"""Signup settings API (admin only)."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from practice_authz.api.deps import get_db, require_admin
from practice_authz.models import User
from practice_authz.schemas.schemas import SignupSettings, SignupSettingsUpdate
from practice_authz.services.settings_store import DEFAULT_USER_ROLE, SettingsStore

router = APIRouter(prefix="/api/settings", tags=["settings"])


async def _current(store: SettingsStore) -> SignupSettings:
    return SignupSettings(
        signup_enabled=await store.is_signup_enabled(),
        default_user_role=await store.default_user_role(),
    )


@router.get("/signup", response_model=SignupSettings)
async def get_signup_settings(admin: User = Depends(require_admin), db: AsyncSession = Depends(get_db)):
    return await _current(SettingsStore(db))


@router.put("/signup", response_model=SignupSettings)
async def update_signup_settings(body: SignupSettingsUpdate,
                                 admin: User = Depends(require_admin),
                                 db: AsyncSession = Depends(get_db)):
    store = SettingsStore(db)
    if body.signup_enabled is not None:
        await store.set_signup_enabled(body.signup_enabled)
    if body.default_user_role is not None:
        await store.set(DEFAULT_USER_ROLE, body.default_user_role.value)
    return await _current(store)
