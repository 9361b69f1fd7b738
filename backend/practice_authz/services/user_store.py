"""
User Store: account lookup and creation, plus role changes.

Emails are normalized (stripped, lower-cased) on every read and write so the
unique constraint behaves case-insensitively.
"""

import logging

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from practice_authz.auth.passwords import hash_password
from practice_authz.auth.roles import Role
from practice_authz.errors import DuplicateEmail, NotFound
from practice_authz.models import User

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserStore:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def has_any_users(self) -> bool:
        count = (await self.session.execute(select(func.count()).select_from(User))).scalar_one()
        return count > 0

    async def user_exists(self, user_id: str) -> bool:
        found = (await self.session.execute(
            select(User.id).where(User.id == user_id)
        )).scalar_one_or_none()
        return found is not None

    async def get_user(self, user_id: str) -> User | None:
        return (await self.session.execute(
            select(User).where(User.id == user_id)
        )).scalar_one_or_none()

    async def get_user_by_email(self, email: str) -> User | None:
        return (await self.session.execute(
            select(User).where(User.email == normalize_email(email))
        )).scalar_one_or_none()

    async def list_users(self) -> list[User]:
        result = await self.session.execute(select(User).order_by(User.created_at.desc()))
        return list(result.scalars())

    async def create_user(
        self,
        email: str,
        password: str,
        name: str,
        role: Role = Role.USER,
    ) -> User:
        """Create an account. Raises DuplicateEmail if the email is taken."""
        email = normalize_email(email)
        if await self.get_user_by_email(email) is not None:
            raise DuplicateEmail(email)

        user = User(
            email=email,
            name=name.strip(),
            password_hash=hash_password(password),
            role=Role(role).value,
        )
        self.session.add(user)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            # Lost a race with a concurrent insert of the same email
            raise DuplicateEmail(email) from exc

        logger.info("User created: %s (%s)", user.email, user.role)
        return user

    async def set_user_role(self, user_id: str, role: Role) -> User:
        user = await self.get_user(user_id)
        if user is None:
            raise NotFound("user", user_id)
        user.role = Role(role).value
        await self.session.flush()
        logger.info("Role changed: %s -> %s", user.email, user.role)
        return user
