"""
Authorization Guards: the three checks every protected operation starts with.

Each guard raises instead of returning a boolean, so a handler reads as
"guard; proceed" and the error-to-status mapping lives in one place
(`practice_authz.main`).

    guard = AuthorizationGuard(session, identity)
    user = await guard.require_permission("ocr.read")
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from practice_authz.auth.context import Identity
from practice_authz.auth.permissions import Permission
from practice_authz.auth.resolver import effective_permissions
from practice_authz.auth.roles import Role
from practice_authz.errors import AdminRequired, PermissionDenied, Unauthorized
from practice_authz.models import User
from practice_authz.services.user_store import UserStore

logger = logging.getLogger(__name__)


class AuthorizationGuard:
    def __init__(self, session: AsyncSession, identity: Identity | None):
        self.session = session
        self.identity = identity

    async def require_auth(self) -> User:
        """Return the calling user, or raise Unauthorized.

        The user row is re-read so a deleted account or a changed role is
        honoured immediately rather than at token expiry.
        """
        if self.identity is None:
            raise Unauthorized()
        user = await UserStore(self.session).get_user(self.identity.user_id)
        if user is None:
            logger.info("Token subject %s has no account", self.identity.user_id)
            raise Unauthorized()
        return user

    async def require_admin(self) -> User:
        user = await self.require_auth()
        if user.role != Role.ADMIN.value:
            logger.warning("Admin action refused for %s (%s)", user.email, user.role)
            raise AdminRequired()
        return user

    async def require_permission(self, key: str | Permission) -> User:
        key = key.value if isinstance(key, Permission) else key
        user = await self.require_auth()
        permissions = await effective_permissions(self.session, user)
        if not permissions.contains(key):
            logger.info("Permission %s denied for %s", key, user.email)
            raise PermissionDenied(key)
        return user
