"""
Base roles: coarse account status, separate from fine-grained permissions.

    ADMIN    implicitly holds every permission
    USER     holds whatever their groups grant
    PENDING  awaiting approval; same resolution as USER

Role-to-permission resolution lives in `practice_authz.auth.resolver`.
"""

from enum import Enum


class Role(str, Enum):
    ADMIN = "admin"
    USER = "user"
    PENDING = "pending"
