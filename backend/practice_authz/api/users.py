"""Admin user management: accounts and their roles."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from practice_authz.api.auth import user_out
from practice_authz.api.deps import get_db, require_admin
from practice_authz.auth.roles import Role
from practice_authz.errors import SelfDemotion
from practice_authz.models import User
from practice_authz.schemas.schemas import CreateUserRequest, UpdateRoleRequest, UserListResponse, UserOut
from practice_authz.services.user_store import UserStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("", response_model=UserListResponse)
async def list_users(admin: User = Depends(require_admin), db: AsyncSession = Depends(get_db)):
    return UserListResponse(users=[user_out(u) for u in await UserStore(db).list_users()])


@router.post("/add", response_model=UserOut)
async def add_user(body: CreateUserRequest,
                   admin: User = Depends(require_admin),
                   db: AsyncSession = Depends(get_db)):
    """Create an account with an explicit role (bypasses signup policy)."""
    user = await UserStore(db).create_user(body.email, body.password, body.name, body.role)
    logger.info("User %s (%s) added by %s", user.email, user.role, admin.email)
    return user_out(user)


@router.patch("/{user_id}/role")
async def update_role(user_id: str,
                      body: UpdateRoleRequest,
                      admin: User = Depends(require_admin),
                      db: AsyncSession = Depends(get_db)):
    if user_id == admin.id and body.role is not Role.ADMIN:
        raise SelfDemotion()

    user = await UserStore(db).set_user_role(user_id, body.role)
    logger.info("Role of %s set to %s by %s", user.email, user.role, admin.email)
    return {"success": True, "role": user.role}
