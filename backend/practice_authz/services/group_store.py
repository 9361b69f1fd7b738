"""
Group Store: named permission groups and their memberships.

A permission granted to a group applies to every member identically; there
are no per-member overrides. Replacing a group's permission set therefore
changes every member's effective permissions at their next check.

Group names are unique after normalization: surrounding whitespace is
stripped and comparison is case-insensitive. The display name keeps the
casing it was created with.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from sqlalchemy import select, delete
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from practice_authz.auth.permissions import Permission, PermissionSet
from practice_authz.database import utcnow
from practice_authz.errors import DuplicateName, NotFound
from practice_authz.models import Group, UserGroup
from practice_authz.services.user_store import UserStore

logger = logging.getLogger(__name__)

# Supported backends (see DATABASE_URL) and their INSERT ... ON CONFLICT builders
_CONFLICT_INSERTS = {
    "sqlite": sqlite_insert,
    "postgresql": postgresql_insert,
}


def normalize_group_name(name: str) -> str:
    return name.strip().casefold()


@dataclass(frozen=True)
class GroupInfo:
    id: str
    name: str
    description: str | None
    permissions: PermissionSet
    created_at: datetime | None
    updated_at: datetime | None

    @classmethod
    def from_row(cls, group: Group) -> "GroupInfo":
        return cls(
            id=group.id,
            name=group.name,
            description=group.description,
            permissions=PermissionSet.deserialize(group.permissions),
            created_at=group.created_at,
            updated_at=group.updated_at,
        )


class GroupStore:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def _get_row(self, group_id: str) -> Group:
        group = await self.session.get(Group, group_id)
        if group is None:
            raise NotFound("group", group_id)
        return group

    async def create_group(
        self,
        name: str,
        description: str | None,
        permission_keys: Iterable[str | Permission],
    ) -> str:
        """Create a group and return its id. Raises DuplicateName."""
        display_name = name.strip()
        if not display_name:
            raise ValueError("Group name must not be blank")
        name_key = normalize_group_name(display_name)

        existing = (await self.session.execute(
            select(Group.id).where(Group.name_key == name_key)
        )).scalar_one_or_none()
        if existing is not None:
            raise DuplicateName(display_name)

        group = Group(
            name=display_name,
            name_key=name_key,
            description=description,
            permissions=PermissionSet(permission_keys).serialize(),
        )
        self.session.add(group)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            raise DuplicateName(display_name) from exc

        logger.info("Group created: %s (%s)", group.name, group.id)
        return group.id

    async def get_group(self, group_id: str) -> GroupInfo:
        return GroupInfo.from_row(await self._get_row(group_id))

    async def list_groups(self) -> list[GroupInfo]:
        result = await self.session.execute(select(Group).order_by(Group.name_key.asc()))
        return [GroupInfo.from_row(g) for g in result.scalars()]

    async def update_group_permissions(
        self,
        group_id: str,
        permission_keys: Iterable[str | Permission],
    ) -> GroupInfo:
        """Replace the group's permission set wholesale."""
        group = await self._get_row(group_id)
        group.permissions = PermissionSet(permission_keys).serialize()
        group.updated_at = utcnow()
        await self.session.flush()
        logger.info("Group permissions replaced: %s -> %s", group.name, group.permissions)
        return GroupInfo.from_row(group)

    async def add_member(self, user_id: str, group_id: str) -> None:
        """Add a user to a group. Adding an existing member is a no-op."""
        await self._get_row(group_id)
        if not await UserStore(self.session).user_exists(user_id):
            raise NotFound("user", user_id)

        # Another session may insert the same pair after the checks above
        insert = _CONFLICT_INSERTS[self.session.get_bind().dialect.name]
        result = await self.session.execute(
            insert(UserGroup.__table__)
            .values(user_id=user_id, group_id=group_id, added_at=utcnow())
            .on_conflict_do_nothing(index_elements=["user_id", "group_id"])
        )
        if result.rowcount:
            logger.info("Member added: user %s -> group %s", user_id, group_id)
        else:
            logger.debug("Already a member: user %s -> group %s", user_id, group_id)

    async def remove_member(self, user_id: str, group_id: str) -> None:
        """Remove a user from a group. Removing a non-member is a no-op."""
        await self.session.execute(
            delete(UserGroup).where(
                UserGroup.user_id == user_id,
                UserGroup.group_id == group_id,
            )
        )
        await self.session.flush()

    async def member_ids(self, group_id: str) -> list[str]:
        await self._get_row(group_id)
        result = await self.session.execute(
            select(UserGroup.user_id).where(UserGroup.group_id == group_id)
        )
        return sorted(result.scalars())

    async def group_ids_for_user(self, user_id: str) -> list[str]:
        result = await self.session.execute(
            select(UserGroup.group_id).where(UserGroup.user_id == user_id)
        )
        return list(result.scalars())

    async def groups_for_user(self, user_id: str) -> list[GroupInfo]:
        result = await self.session.execute(
            select(Group)
            .join(UserGroup, UserGroup.group_id == Group.id)
            .where(UserGroup.user_id == user_id)
        )
        return [GroupInfo.from_row(g) for g in result.scalars()]
