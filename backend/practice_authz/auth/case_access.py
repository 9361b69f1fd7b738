"""
Case Access Decision: may this user read (or change) this case?

    admin                          → always
    owner                          → always
    listed as a shared party       → read; write only if primary
    visibility "organization"      → read for every account
    member of an allowed group     → read ("private" and "team" cases)

Decisions are pure functions of their inputs and are re-evaluated on every
request, since sharing can be revoked at any time.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Iterable

from practice_authz.auth.roles import Role
from practice_authz.models import Case

logger = logging.getLogger(__name__)


def parse_group_ids(raw: str | None, case_id: str | None = None) -> tuple[str, ...]:
    """
    Read the stored JSON array of group ids.

    Anything other than a JSON array of strings grants no group access; the
    case stays reachable by its owner and its shared parties.
    """
    if not raw:
        return ()
    try:
        value = json.loads(raw)
    except ValueError:
        value = None
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        logger.warning("Case %s has malformed allowed_group_ids %r; ignoring group access", case_id, raw[:100])
        return ()
    return tuple(value)


@dataclass(frozen=True)
class SharedParty:
    contact_id: str
    role: str
    is_primary: bool = False


@dataclass(frozen=True)
class CaseRecord:
    id: str
    owner_id: str
    shared_parties: tuple[SharedParty, ...] | None = None
    visibility: str = "private"
    allowed_group_ids: tuple[str, ...] = field(default_factory=tuple)
    vault_id: str | None = None

    @classmethod
    def from_row(cls, case: Case, parties: Iterable | None = None) -> CaseRecord:
        shared = None
        if parties is not None:
            shared = tuple(
                SharedParty(contact_id=p.contact_id, role=p.role, is_primary=bool(p.is_primary))
                for p in parties
            )
        allowed = parse_group_ids(case.allowed_group_ids, case.id)
        return cls(
            id=case.id,
            owner_id=case.user_id,
            shared_parties=shared,
            visibility=case.visibility or "private",
            allowed_group_ids=allowed,
            vault_id=case.vault_id,
        )

    def party_for(self, user_id: str) -> SharedParty | None:
        for party in self.shared_parties or ():
            if party.contact_id == user_id:
                return party
        return None


def _role_value(role: str | Role) -> str:
    return role.value if isinstance(role, Role) else role


def can_access_case(
    user_id: str,
    user_role: str | Role,
    case: CaseRecord,
    group_ids: Iterable[str] = (),
) -> bool:
    if _role_value(user_role) == Role.ADMIN.value:
        return True
    if case.owner_id == user_id:
        return True
    if case.party_for(user_id) is not None:
        return True
    if case.visibility == "organization":
        return True
    if case.visibility in ("private", "team") and case.allowed_group_ids:
        return not set(case.allowed_group_ids).isdisjoint(group_ids)
    return False


def can_modify_case(user_id: str, user_role: str | Role, case: CaseRecord) -> bool:
    if _role_value(user_role) == Role.ADMIN.value or case.owner_id == user_id:
        return True
    party = case.party_for(user_id)
    return party is not None and party.is_primary
