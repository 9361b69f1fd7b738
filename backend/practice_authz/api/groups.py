"""Groups API: permission groups and their members (admin only)."""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from practice_authz.api.deps import get_db, require_admin
from practice_authz.models import User
from practice_authz.schemas.schemas import (
    GroupCreate,
    GroupCreated,
    GroupListResponse,
    GroupMemberAdd,
    GroupOut,
    GroupPermissionsUpdate,
)
from practice_authz.services.group_store import GroupInfo, GroupStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/groups", tags=["groups"])


def _group_out(group: GroupInfo, member_ids: list[str]) -> GroupOut:
    return GroupOut(
        id=group.id,
        name=group.name,
        description=group.description,
        permissions=group.permissions.keys(),
        member_ids=member_ids,
        created_at=group.created_at,
        updated_at=group.updated_at,
    )


@router.get("", response_model=GroupListResponse)
async def list_groups(admin: User = Depends(require_admin), db: AsyncSession = Depends(get_db)):
    store = GroupStore(db)
    groups = []
    for group in await store.list_groups():
        groups.append(_group_out(group, await store.member_ids(group.id)))
    return GroupListResponse(groups=groups)


@router.post("", response_model=GroupCreated, status_code=201)
async def create_group(body: GroupCreate,
                       admin: User = Depends(require_admin),
                       db: AsyncSession = Depends(get_db)):
    group_id = await GroupStore(db).create_group(body.name, body.description, body.permissions)
    logger.info("Group %s created by %s", body.name, admin.email)
    return GroupCreated(group_id=group_id)


@router.patch("/{group_id}", response_model=GroupOut)
async def update_group_permissions(group_id: str,
                                   body: GroupPermissionsUpdate,
                                   admin: User = Depends(require_admin),
                                   db: AsyncSession = Depends(get_db)):
    """Replace (not merge) the group's permissions."""
    store = GroupStore(db)
    group = await store.update_group_permissions(group_id, body.permissions)
    logger.info("Group %s permissions replaced by %s", group.name, admin.email)
    return _group_out(group, await store.member_ids(group_id))


@router.post("/{group_id}/members")
async def add_member(group_id: str,
                     body: GroupMemberAdd,
                     admin: User = Depends(require_admin),
                     db: AsyncSession = Depends(get_db)):
    await GroupStore(db).add_member(body.user_id, group_id)
    return {"success": True}


@router.delete("/{group_id}/members")
async def remove_member(group_id: str,
                        user_id: str = Query(...),
                        admin: User = Depends(require_admin),
                        db: AsyncSession = Depends(get_db)):
    await GroupStore(db).remove_member(user_id, group_id)
    return {"success": True}
