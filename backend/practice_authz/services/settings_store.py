"""Settings Store: global key/value switches (signup policy)."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from practice_authz.auth.roles import Role
from practice_authz.config import settings as app_settings
from practice_authz.models import Setting

ENABLE_SIGNUP = "ENABLE_SIGNUP"
DEFAULT_USER_ROLE = "DEFAULT_USER_ROLE"


class SettingsStore:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, key: str) -> str | None:
        row = (await self.session.execute(
            select(Setting).where(Setting.key == key)
        )).scalar_one_or_none()
        return row.value if row else None

    async def set(self, key: str, value: str) -> None:
        row = await self.session.get(Setting, key)
        if row is None:
            self.session.add(Setting(key=key, value=value))
        else:
            row.value = value
        await self.session.flush()

    async def is_signup_enabled(self) -> bool:
        # Missing row means disabled: only the first user may sign up unprompted
        return await self.get(ENABLE_SIGNUP) == "true"

    async def set_signup_enabled(self, enabled: bool) -> None:
        await self.set(ENABLE_SIGNUP, "true" if enabled else "false")

    async def default_user_role(self) -> Role:
        value = await self.get(DEFAULT_USER_ROLE)
        if value in (Role.USER.value, Role.PENDING.value):
            return Role(value)
        return Role(app_settings.default_signup_role)
