"""Case Store: read-only view of cases for access decisions."""

from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from practice_authz.auth.case_access import CaseRecord, can_access_case
from practice_authz.models import Case, User


class CaseStore:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_case(self, case_id: str) -> CaseRecord | None:
        case = (await self.session.execute(
            select(Case).options(selectinload(Case.parties)).where(Case.id == case_id)
        )).scalar_one_or_none()
        if case is None:
            return None
        return CaseRecord.from_row(case, case.parties)

    async def accessible_cases(self, user: User, group_ids: Iterable[str] = ()) -> list[CaseRecord]:
        """Every case the user may read, oldest first."""
        group_ids = list(group_ids)
        result = await self.session.execute(
            select(Case).options(selectinload(Case.parties)).order_by(Case.created_at.asc())
        )
        records = [CaseRecord.from_row(c, c.parties) for c in result.scalars()]
        return [r for r in records if can_access_case(user.id, user.role, r, group_ids)]
