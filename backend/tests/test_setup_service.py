"""Tests for first-user bootstrap, signup policy, and degraded reads."""

import asyncio

import pytest
from sqlalchemy.exc import OperationalError

from practice_authz.auth.roles import Role
from practice_authz.bootstrap.seed_gate import BootstrapState, SeedGate
from practice_authz.errors import DuplicateEmail, SignupDisabled
from practice_authz.services.settings_store import DEFAULT_USER_ROLE, SettingsStore
from practice_authz.services.setup_service import SetupService
from practice_authz.services.user_store import UserStore


async def _noop() -> None:
    return None


@pytest.fixture
def bootstrap() -> BootstrapState:
    return BootstrapState(seed_gate=SeedGate(_noop))


def _unreadable():
    async def _raise():
        raise OperationalError("SELECT ...", {}, Exception("database is locked"))
    return _raise


@pytest.mark.asyncio
class TestSetupStatus:
    async def test_empty_system(self, db_session, bootstrap):
        status = await SetupService(db_session, bootstrap).get_setup_status()
        assert status.is_first_user
        assert status.signup_enabled
        assert not status.setup_in_progress
        assert status.db_ready

    async def test_after_first_user(self, db_session, bootstrap, admin_user):
        status = await SetupService(db_session, bootstrap).get_setup_status()
        assert not status.is_first_user
        assert not status.signup_enabled

    async def test_signup_enabled_setting(self, db_session, bootstrap, admin_user):
        await SettingsStore(db_session).set_signup_enabled(True)
        status = await SetupService(db_session, bootstrap).get_setup_status()
        assert status.signup_enabled

    async def test_in_progress_while_first_admin_is_created(self, db_session, bootstrap):
        async with bootstrap.first_admin_lock:
            status = await SetupService(db_session, bootstrap).get_setup_status()
        assert status.setup_in_progress
        assert status.is_first_user
        assert not status.signup_enabled

    async def test_user_count_fails_open(self, db_session, bootstrap):
        service = SetupService(db_session, bootstrap)
        service.users.has_any_users = _unreadable()
        status = await service.get_setup_status()
        assert status.is_first_user
        assert not status.db_ready

    async def test_signup_setting_fails_closed(self, db_session, bootstrap, admin_user):
        service = SetupService(db_session, bootstrap)
        service.settings.is_signup_enabled = _unreadable()
        status = await service.get_setup_status()
        assert not status.signup_enabled


@pytest.mark.asyncio
class TestSignup:
    async def test_first_user_becomes_admin(self, db_session, bootstrap):
        service = SetupService(db_session, bootstrap)
        user = await service.signup("founder@firm.com", "Secret123!", "Founder", role=Role.PENDING)

        assert user.role == Role.ADMIN.value
        assert await SettingsStore(db_session).is_signup_enabled() is False

    async def test_second_user_refused_by_default(self, db_session, bootstrap):
        service = SetupService(db_session, bootstrap)
        await service.signup("founder@firm.com", "Secret123!", "Founder")
        with pytest.raises(SignupDisabled):
            await service.signup("second@firm.com", "Secret123!", "Second")

    async def test_open_signup_uses_default_role(self, db_session, bootstrap, admin_user):
        await SettingsStore(db_session).set_signup_enabled(True)
        user = await SetupService(db_session, bootstrap).signup(
            "second@firm.com", "Secret123!", "Second", role=Role.ADMIN
        )
        assert user.role == Role.PENDING.value

    async def test_configured_default_role(self, db_session, bootstrap, admin_user):
        settings = SettingsStore(db_session)
        await settings.set_signup_enabled(True)
        await settings.set(DEFAULT_USER_ROLE, Role.USER.value)
        user = await SetupService(db_session, bootstrap).signup("second@firm.com", "Secret123!", "Second")
        assert user.role == Role.USER.value

    async def test_duplicate_email(self, db_session, bootstrap, admin_user):
        await SettingsStore(db_session).set_signup_enabled(True)
        with pytest.raises(DuplicateEmail):
            await SetupService(db_session, bootstrap).signup("ADMIN@firm.com", "Secret123!", "Again")

    async def test_unreadable_signup_setting_denies(self, db_session, bootstrap, admin_user):
        await SettingsStore(db_session).set_signup_enabled(True)
        service = SetupService(db_session, bootstrap)
        service.settings.is_signup_enabled = _unreadable()
        with pytest.raises(SignupDisabled):
            await service.signup("second@firm.com", "Secret123!", "Second")

    async def test_unreadable_default_role_is_pending(self, db_session, bootstrap, admin_user):
        settings = SettingsStore(db_session)
        await settings.set_signup_enabled(True)
        await settings.set(DEFAULT_USER_ROLE, Role.USER.value)
        service = SetupService(db_session, bootstrap)
        service.settings.default_user_role = _unreadable()
        user = await service.signup("second@firm.com", "Secret123!", "Second")
        assert user.role == Role.PENDING.value

    async def test_unreadable_user_count_still_single_admin(self, db_session, bootstrap, admin_user):
        # Fail-open routes to the first-admin path; the re-check under the
        # lock sees the existing admin and falls back to regular signup.
        service = SetupService(db_session, bootstrap)
        real_count = service.users.has_any_users
        calls = []

        async def flaky():
            calls.append(1)
            if len(calls) == 1:
                raise OperationalError("SELECT ...", {}, Exception("database is locked"))
            return await real_count()

        service.users.has_any_users = flaky
        with pytest.raises(SignupDisabled):
            await service.signup("second@firm.com", "Secret123!", "Second")


@pytest.mark.asyncio
async def test_concurrent_first_signups_create_one_admin(file_session_factory, bootstrap):
    async def attempt(i: int):
        async with file_session_factory() as session:
            try:
                user = await SetupService(session, bootstrap).signup(
                    f"racer{i}@firm.com", "Secret123!", f"Racer {i}"
                )
                await session.commit()
                return user.role
            except SignupDisabled:
                await session.rollback()
                return "refused"

    outcomes = await asyncio.gather(*(attempt(i) for i in range(5)))

    assert outcomes.count(Role.ADMIN.value) == 1
    assert outcomes.count("refused") == 4
    async with file_session_factory() as session:
        users = await UserStore(session).list_users()
    assert len(users) == 1
