"""
Pydantic schemas for API request/response models.
"""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator

from practice_authz.auth.passwords import password_problem
from practice_authz.auth.roles import Role


def _check_password(value: str) -> str:
    problem = password_problem(value)
    if problem:
        raise ValueError(problem)
    return value


# ── Auth / setup ──

class SignupRequest(BaseModel):
    email: EmailStr
    password: str
    name: str = Field(min_length=1, max_length=200)

    check_password = field_validator("password")(_check_password)


class SetupStatusResponse(BaseModel):
    has_users: bool
    signup_enabled: bool
    is_first_user: bool
    setup_in_progress: bool
    db_ready: bool


class DevCredentialsResponse(BaseModel):
    is_dev_mode: bool = True
    credentials: dict[str, str]


# ── Users ──

class UserOut(BaseModel):
    id: str
    email: str
    name: str
    role: str
    profile_image_url: str | None = None
    last_active_at: datetime | None = None
    created_at: datetime | None = None


class MeResponse(UserOut):
    groups: list[str]
    permissions: list[str] | str  # "*" for administrators


class SignupResponse(BaseModel):
    success: bool = True
    user: UserOut
    message: str


class CreateUserRequest(BaseModel):
    email: EmailStr
    password: str
    name: str = Field(min_length=1, max_length=200)
    role: Role = Role.USER

    check_password = field_validator("password")(_check_password)


class UpdateRoleRequest(BaseModel):
    role: Role


class UserListResponse(BaseModel):
    users: list[UserOut]


# ── Groups ──

class GroupCreate(BaseModel):
    model_config = {"str_strip_whitespace": True}

    name: str = Field(min_length=1, max_length=100)
    description: str | None = Field(None, max_length=500)
    permissions: list[str]


class GroupPermissionsUpdate(BaseModel):
    permissions: list[str]


class GroupMemberAdd(BaseModel):
    user_id: str


class GroupOut(BaseModel):
    id: str
    name: str
    description: str | None
    permissions: list[str]
    member_ids: list[str] = []
    created_at: datetime | None = None
    updated_at: datetime | None = None


class GroupListResponse(BaseModel):
    groups: list[GroupOut]


class GroupCreated(BaseModel):
    success: bool = True
    group_id: str


# ── Settings ──

class SignupSettings(BaseModel):
    signup_enabled: bool
    default_user_role: Role


class SignupSettingsUpdate(BaseModel):
    signup_enabled: bool | None = None
    default_user_role: Role | None = None

    @field_validator("default_user_role")
    @classmethod
    def reject_admin(cls, value: Role | None) -> Role | None:
        if value is Role.ADMIN:
            raise ValueError("New users cannot default to admin")
        return value


# ── Permissions catalog ──

class PermissionInfo(BaseModel):
    key: str
    description: str | None = None


class PermissionCatalog(BaseModel):
    permissions: list[PermissionInfo]


# ── Cases ──

class SharedPartyOut(BaseModel):
    contact_id: str
    role: str
    is_primary: bool


class CaseAccessOut(BaseModel):
    id: str
    owner_id: str
    visibility: str
    vault_id: str | None = None
    shared_parties: list[SharedPartyOut] = []
    can_modify: bool


class CaseListResponse(BaseModel):
    cases: list[CaseAccessOut]
    total: int
