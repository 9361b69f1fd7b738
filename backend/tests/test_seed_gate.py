"""Tests for the single-flight bootstrap seeding gate and the dev seed."""

import asyncio

import pytest

from practice_authz import main
from practice_authz.auth.roles import Role
from practice_authz.bootstrap.seed_gate import BootstrapState, SeedGate, SeedState
from practice_authz.errors import SeedFailure
from practice_authz.seed.dev_seed import DEV_ADMIN, make_dev_seed, seed_dev_data
from practice_authz.services.settings_store import SettingsStore
from practice_authz.services.user_store import UserStore


class CountingRoutine:
    def __init__(self, fail_times: int = 0, delay: float = 0.01):
        self.calls = 0
        self.fail_times = fail_times
        self.delay = delay

    async def __call__(self) -> None:
        self.calls += 1
        await asyncio.sleep(self.delay)
        if self.calls <= self.fail_times:
            raise RuntimeError(f"boom {self.calls}")


@pytest.mark.asyncio
class TestSeedGate:
    async def test_concurrent_callers_share_one_run(self):
        routine = CountingRoutine()
        gate = SeedGate(routine)

        await asyncio.gather(*(gate.ensure_seeded() for _ in range(50)))

        assert routine.calls == 1
        assert gate.attempts == 1
        assert gate.state is SeedState.DONE

    async def test_done_gate_returns_immediately(self):
        routine = CountingRoutine()
        gate = SeedGate(routine)
        await gate.ensure_seeded()
        await gate.ensure_seeded()
        assert routine.calls == 1

    async def test_failure_is_shared_then_retryable(self):
        routine = CountingRoutine(fail_times=1)
        gate = SeedGate(routine)

        results = await asyncio.gather(
            *(gate.ensure_seeded() for _ in range(50)), return_exceptions=True
        )

        assert routine.calls == 1
        assert all(isinstance(r, SeedFailure) for r in results)
        assert all(r is results[0] for r in results)
        assert isinstance(results[0].cause, RuntimeError)
        assert gate.state is SeedState.NOT_STARTED

        await gate.ensure_seeded()
        assert routine.calls == 2
        assert gate.attempts == 2
        assert gate.state is SeedState.DONE

    async def test_in_flight_state_visible(self):
        release = asyncio.Event()

        async def routine():
            await release.wait()

        gate = SeedGate(routine)
        waiter = asyncio.create_task(gate.ensure_seeded())
        await asyncio.sleep(0)
        assert gate.state is SeedState.IN_FLIGHT
        with pytest.raises(RuntimeError):
            gate.reset()

        release.set()
        await waiter
        assert gate.state is SeedState.DONE

    async def test_cancelled_waiter_does_not_cancel_seed(self):
        release = asyncio.Event()
        calls = []

        async def routine():
            await release.wait()
            calls.append(1)

        gate = SeedGate(routine)
        waiter = asyncio.create_task(gate.ensure_seeded())
        await asyncio.sleep(0)
        waiter.cancel()
        await asyncio.gather(waiter, return_exceptions=True)
        assert waiter.cancelled()

        release.set()
        await gate.ensure_seeded()
        assert calls == [1]
        assert gate.attempts == 1

    async def test_reset_allows_another_run(self):
        routine = CountingRoutine()
        gate = SeedGate(routine)
        await gate.ensure_seeded()

        gate.reset()
        assert gate.state is SeedState.NOT_STARTED
        await gate.ensure_seeded()
        assert routine.calls == 2


@pytest.mark.asyncio
class TestBootstrapState:
    async def test_setup_in_progress_tracks_lock(self):
        state = BootstrapState(seed_gate=SeedGate(CountingRoutine()))
        assert not state.setup_in_progress
        async with state.first_admin_lock:
            assert state.setup_in_progress
        assert not state.setup_in_progress

    async def test_app_builds_fresh_state_at_startup(self, monkeypatch):
        monkeypatch.setattr(main, "run_migrations", lambda: None)
        monkeypatch.setattr(main, "is_dev_mode", lambda: False)

        async with main.lifespan(main.app):
            first = main.app.state.bootstrap
        async with main.lifespan(main.app):
            second = main.app.state.bootstrap

        assert isinstance(first, BootstrapState)
        assert first is not second
        assert first.seed_gate.state is SeedState.NOT_STARTED
        assert not second.setup_in_progress


@pytest.mark.asyncio
class TestDevSeed:
    async def test_seeds_admin_on_empty_system(self, db_session):
        assert await seed_dev_data(db_session) is True

        admin = await UserStore(db_session).get_user_by_email(DEV_ADMIN["email"])
        assert admin.role == Role.ADMIN.value
        settings = SettingsStore(db_session)
        assert await settings.is_signup_enabled() is False
        assert await settings.default_user_role() is Role.USER

    async def test_skips_when_users_exist(self, db_session, regular_user):
        assert await seed_dev_data(db_session) is False
        assert await UserStore(db_session).get_user_by_email(DEV_ADMIN["email"]) is None

    async def test_gate_runs_dev_seed_once(self, session_factory):
        gate = SeedGate(make_dev_seed(session_factory), name="dev-seed")

        await asyncio.gather(*(gate.ensure_seeded() for _ in range(20)))

        async with session_factory() as session:
            users = await UserStore(session).list_users()
        assert [u.email for u in users] == [DEV_ADMIN["email"]]
        assert gate.state is SeedState.DONE
