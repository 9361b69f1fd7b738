from practice_authz.models.user import User, Setting  # noqa: F401
from practice_authz.models.group import Group, UserGroup  # noqa: F401
from practice_authz.models.case import Case, CaseParty  # noqa: F401
