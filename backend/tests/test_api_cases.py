"""Tests for case access over HTTP."""

import json

import pytest
import pytest_asyncio

from practice_authz.models import Case, CaseParty
from practice_authz.services.group_store import GroupStore


@pytest_asyncio.fixture
async def people(make_user):
    return {
        "owner": await make_user("owner@firm.com"),
        "counsel": await make_user("counsel@firm.com"),
        "stranger": await make_user("stranger@firm.com"),
    }


@pytest_asyncio.fixture
async def doe_case(db_session, people) -> Case:
    case = Case(
        user_id=people["owner"].id,
        case_number="2026-CV-0001",
        title="Doe v. Acme",
        vault_id="vault-doe",
    )
    case.parties.append(CaseParty(contact_id=people["counsel"].id, role="co-counsel"))
    db_session.add(case)
    await db_session.flush()
    return case


@pytest.mark.asyncio
class TestGetCase:
    async def test_owner_can_modify(self, anon_client, auth_header, people, doe_case):
        resp = await anon_client.get(f"/api/cases/{doe_case.id}", headers=auth_header(people["owner"]))
        assert resp.status_code == 200
        data = resp.json()
        assert data["vault_id"] == "vault-doe"
        assert data["can_modify"] is True

    async def test_co_counsel_reads_only(self, anon_client, auth_header, people, doe_case):
        resp = await anon_client.get(f"/api/cases/{doe_case.id}", headers=auth_header(people["counsel"]))
        assert resp.status_code == 200
        data = resp.json()
        assert data["can_modify"] is False
        assert data["shared_parties"] == [
            {"contact_id": people["counsel"].id, "role": "co-counsel", "is_primary": False}
        ]

    async def test_stranger_denied(self, anon_client, auth_header, people, doe_case):
        resp = await anon_client.get(f"/api/cases/{doe_case.id}", headers=auth_header(people["stranger"]))
        assert resp.status_code == 403
        assert resp.json()["detail"] == "Access denied"

    async def test_admin_allowed(self, admin_client, doe_case):
        resp = await admin_client.get(f"/api/cases/{doe_case.id}")
        assert resp.status_code == 200
        assert resp.json()["can_modify"] is True

    async def test_missing_case(self, admin_client):
        resp = await admin_client.get("/api/cases/does-not-exist")
        assert resp.status_code == 404

    async def test_anonymous(self, anon_client, doe_case):
        resp = await anon_client.get(f"/api/cases/{doe_case.id}")
        assert resp.status_code == 401

    async def test_team_case_through_group(self, anon_client, auth_header, db_session, people):
        group_id = await GroupStore(db_session).create_group("Litigation", None, [])
        case = Case(
            user_id=people["owner"].id,
            case_number="2026-CV-0002",
            title="Roe v. Beta",
            visibility="team",
            allowed_group_ids=json.dumps([group_id]),
        )
        db_session.add(case)
        await db_session.flush()
        headers = auth_header(people["stranger"])

        assert (await anon_client.get(f"/api/cases/{case.id}", headers=headers)).status_code == 403
        await GroupStore(db_session).add_member(people["stranger"].id, group_id)
        assert (await anon_client.get(f"/api/cases/{case.id}", headers=headers)).status_code == 200


@pytest.mark.asyncio
async def test_list_only_accessible_cases(anon_client, auth_header, db_session, people, doe_case):
    db_session.add(Case(
        user_id=people["stranger"].id,
        case_number="2026-CV-0003",
        title="Stranger's matter",
    ))
    await db_session.flush()

    data = (await anon_client.get("/api/cases", headers=auth_header(people["counsel"]))).json()
    assert data["total"] == 1
    assert data["cases"][0]["id"] == doe_case.id

    data = (await anon_client.get("/api/cases", headers=auth_header(people["stranger"]))).json()
    assert data["total"] == 1
    assert data["cases"][0]["owner_id"] == people["stranger"].id


@pytest.mark.asyncio
async def test_malformed_group_ids_do_not_break_listing(anon_client, auth_header, db_session, people, doe_case):
    db_session.add(Case(
        user_id=people["stranger"].id,
        case_number="2026-CV-0004",
        title="Hand-edited matter",
        visibility="team",
        allowed_group_ids="not json",
    ))
    await db_session.flush()

    resp = await anon_client.get("/api/cases", headers=auth_header(people["owner"]))
    assert resp.status_code == 200
    assert [c["id"] for c in resp.json()["cases"]] == [doe_case.id]
