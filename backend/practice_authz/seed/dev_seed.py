"""
Development seed: a zero-config admin account for local work.

Runs only when IS_DEV=true, through the process's SeedGate, so concurrent
requests at startup seed exactly once:

    gate = SeedGate(make_dev_seed(async_session), name="dev-seed")
    await gate.ensure_seeded()

Seeding is skipped when any account already exists.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from practice_authz.auth.roles import Role
from practice_authz.config import settings
from practice_authz.services.settings_store import DEFAULT_USER_ROLE, SettingsStore
from practice_authz.services.user_store import UserStore

logger = logging.getLogger(__name__)

DEV_ADMIN = {
    "email": "admin-dev@case.dev",
    "password": "password",
    "name": "Dev Admin",
}


def is_dev_mode() -> bool:
    return settings.is_dev


def get_dev_credentials() -> dict | None:
    if not is_dev_mode():
        return None
    return {"email": DEV_ADMIN["email"], "password": DEV_ADMIN["password"]}


async def seed_dev_data(session: AsyncSession) -> bool:
    """Create the dev admin if the system has no accounts. Returns True if it seeded."""
    users = UserStore(session)
    if await users.has_any_users():
        logger.info("[DevSeed] Users already exist, skipping seed")
        return False

    logger.info("[DevSeed] Seeding dev admin user...")
    await users.create_user(
        email=DEV_ADMIN["email"],
        password=DEV_ADMIN["password"],
        name=DEV_ADMIN["name"],
        role=Role.ADMIN,
    )

    store = SettingsStore(session)
    await store.set_signup_enabled(False)
    await store.set(DEFAULT_USER_ROLE, Role.USER.value)

    logger.info("[DevSeed] Dev admin created: %s", DEV_ADMIN["email"])
    return True


def make_dev_seed(session_factory: async_sessionmaker[AsyncSession]):
    """Bind the dev seed to a session factory, committing its own transaction."""

    async def _routine() -> None:
        async with session_factory() as session:
            try:
                await seed_dev_data(session)
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    return _routine
