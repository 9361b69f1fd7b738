"""Permission catalog: the keys the dashboard checks, for the group editor."""

from fastapi import APIRouter, Depends

from practice_authz.api.deps import require_auth
from practice_authz.auth.permissions import PERMISSION_DESCRIPTIONS, Permission
from practice_authz.models import User
from practice_authz.schemas.schemas import PermissionCatalog, PermissionInfo

router = APIRouter(prefix="/api/permissions", tags=["permissions"])


@router.get("", response_model=PermissionCatalog)
async def list_permissions(user: User = Depends(require_auth)):
    return PermissionCatalog(permissions=[
        PermissionInfo(key=p.value, description=PERMISSION_DESCRIPTIONS.get(p))
        for p in Permission
    ])
