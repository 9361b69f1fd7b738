"""
Role Resolver: base role + group memberships → effective permission set.

Recomputed on every check. Group membership and group permissions can
change between requests; nothing here is cached.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from practice_authz.auth.permissions import PermissionSet
from practice_authz.auth.roles import Role
from practice_authz.models import User
from practice_authz.services.group_store import GroupStore


async def effective_permissions(session: AsyncSession, user: User) -> PermissionSet:
    """Admins hold everything; everyone else holds the union of their groups."""
    if user.role == Role.ADMIN.value:
        return PermissionSet.universal()

    combined = PermissionSet.empty()
    for group in await GroupStore(session).groups_for_user(user.id):
        combined = combined | group.permissions
    return combined
