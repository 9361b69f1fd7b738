from practice_authz.auth.permissions import Permission, PermissionSet, PERMISSION_DESCRIPTIONS
from practice_authz.auth.roles import Role
from practice_authz.auth.context import Identity

__all__ = ["Permission", "PermissionSet", "PERMISSION_DESCRIPTIONS", "Role", "Identity"]
