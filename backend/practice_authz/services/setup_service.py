"""
Setup Service: first-admin bootstrap and self-service signup.

The first account ever created becomes an admin, whatever role was asked
for, and signup is switched off behind it. After that, signup requires the
ENABLE_SIGNUP setting.

State reads fail in opposite directions:

* "are there any users?" fails OPEN (assume first user). Refusing here would
  lock an empty system out of bootstrap forever.
* "is signup enabled?" fails CLOSED (deny).
* "which role do new users get?" fails CLOSED (pending).

Only SQLAlchemyError (a failed read) is caught; policy errors propagate.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from practice_authz.auth.roles import Role
from practice_authz.bootstrap.seed_gate import BootstrapState
from practice_authz.errors import SignupDisabled
from practice_authz.models import User
from practice_authz.services.settings_store import SettingsStore
from practice_authz.services.user_store import UserStore

logger = logging.getLogger(__name__)


@dataclass
class SetupStatus:
    is_first_user: bool
    signup_enabled: bool
    setup_in_progress: bool
    db_ready: bool


class SetupService:
    def __init__(self, session: AsyncSession, bootstrap: BootstrapState):
        self.session = session
        self.bootstrap = bootstrap
        self.users = UserStore(session)
        self.settings = SettingsStore(session)

    # ── Guarded reads ──

    async def _has_users(self) -> tuple[bool, bool]:
        """(has_users, db_ready). Unreadable → assume empty system."""
        try:
            return await self.users.has_any_users(), True
        except SQLAlchemyError as exc:
            logger.warning("[Setup] User count unreadable, assuming first user: %s", exc)
            return False, False

    async def _signup_enabled(self) -> bool:
        try:
            return await self.settings.is_signup_enabled()
        except SQLAlchemyError as exc:
            logger.warning("[Setup] Signup setting unreadable, denying signup: %s", exc)
            return False

    async def _default_role(self) -> Role:
        try:
            return await self.settings.default_user_role()
        except SQLAlchemyError as exc:
            logger.warning("[Setup] Default role unreadable, using pending: %s", exc)
            return Role.PENDING

    # ── Operations ──

    async def get_setup_status(self) -> SetupStatus:
        if self.bootstrap.setup_in_progress:
            return SetupStatus(
                is_first_user=True,
                signup_enabled=False,
                setup_in_progress=True,
                db_ready=True,
            )

        has_users, db_ready = await self._has_users()
        if not has_users:
            return SetupStatus(
                is_first_user=True,
                signup_enabled=True,
                setup_in_progress=False,
                db_ready=db_ready,
            )

        return SetupStatus(
            is_first_user=False,
            signup_enabled=await self._signup_enabled(),
            setup_in_progress=False,
            db_ready=True,
        )

    async def signup(self, email: str, password: str, name: str, role: Role | None = None) -> User:
        """Create an account through self-service signup.

        ``role`` is honoured by neither path: the first user is always an
        admin, later users get the configured default role.
        """
        has_users, _ = await self._has_users()
        if not has_users:
            admin = await self._create_first_admin(email, password, name)
            if admin is not None:
                return admin
            # Someone else became the first admin; treat as a regular signup

        if not await self._signup_enabled():
            raise SignupDisabled()

        user = await self.users.create_user(email, password, name, await self._default_role())
        logger.info("[Signup] User created: %s (role: %s)", user.email, user.role)
        return user

    async def _create_first_admin(self, email: str, password: str, name: str) -> User | None:
        async with self.bootstrap.first_admin_lock:
            has_users, _ = await self._has_users()
            if has_users:
                logger.info("[Setup] Users already exist, aborting first-admin creation")
                return None

            logger.info("[Setup] Creating first admin user: %s", email)
            admin = await self.users.create_user(email, password, name, Role.ADMIN)
            await self.settings.set_signup_enabled(False)
            # Commit while holding the lock so the next waiter sees the admin
            await self.session.commit()

        logger.info("[Setup] First admin created: %s", admin.email)
        return admin
