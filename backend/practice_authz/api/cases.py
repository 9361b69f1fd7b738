"""
Cases API: access decisions over cases.

Case CRUD lives elsewhere; these routes confirm a case exists, then ask the
case access decision whether the caller may see it.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from practice_authz.api.deps import get_db, require_auth
from practice_authz.auth.case_access import CaseRecord, can_access_case, can_modify_case
from practice_authz.errors import CaseAccessDenied, NotFound
from practice_authz.models import User
from practice_authz.schemas.schemas import CaseAccessOut, CaseListResponse, SharedPartyOut
from practice_authz.services.case_store import CaseStore
from practice_authz.services.group_store import GroupStore

router = APIRouter(prefix="/api/cases", tags=["cases"])


def _case_out(case: CaseRecord, user: User) -> CaseAccessOut:
    return CaseAccessOut(
        id=case.id,
        owner_id=case.owner_id,
        visibility=case.visibility,
        vault_id=case.vault_id,
        shared_parties=[
            SharedPartyOut(contact_id=p.contact_id, role=p.role, is_primary=p.is_primary)
            for p in case.shared_parties or ()
        ],
        can_modify=can_modify_case(user.id, user.role, case),
    )


@router.get("", response_model=CaseListResponse)
async def list_cases(user: User = Depends(require_auth), db: AsyncSession = Depends(get_db)):
    group_ids = await GroupStore(db).group_ids_for_user(user.id)
    cases = await CaseStore(db).accessible_cases(user, group_ids)
    return CaseListResponse(cases=[_case_out(c, user) for c in cases], total=len(cases))


@router.get("/{case_id}", response_model=CaseAccessOut)
async def get_case(case_id: str, user: User = Depends(require_auth), db: AsyncSession = Depends(get_db)):
    case = await CaseStore(db).get_case(case_id)
    if case is None:
        raise NotFound("case", case_id)

    group_ids = await GroupStore(db).group_ids_for_user(user.id)
    if not can_access_case(user.id, user.role, case, group_ids):
        raise CaseAccessDenied()
    return _case_out(case, user)
