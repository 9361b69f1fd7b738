"""
Bootstrap Seeding Gate: run a setup routine at most once per process.

Many requests can race to trigger seeding at startup. The gate is a
single-flight state machine:

    NOT_STARTED ──first caller──▶ IN_FLIGHT ──success──▶ DONE
         ▲                            │
         └──────────failure───────────┘

The first caller starts one task running the routine. Every caller, the
first included, awaits that same task, so all of them observe the same
outcome: success, or the very same SeedFailure. Waiters await through
``asyncio.shield`` so a cancelled request never cancels the seed itself.

After a failure the gate returns to NOT_STARTED and the next new call makes
a fresh attempt. Once DONE, calls return immediately.

A gate belongs to one event loop. The app builds its ``BootstrapState`` in
the lifespan handler (``main.build_bootstrap_state``), never at import time.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable

from practice_authz.errors import SeedFailure

logger = logging.getLogger(__name__)

SeedRoutine = Callable[[], Awaitable[None]]


class SeedState(str, Enum):
    NOT_STARTED = "not_started"
    IN_FLIGHT = "in_flight"
    DONE = "done"


class SeedGate:
    def __init__(self, routine: SeedRoutine, name: str = "seed"):
        self._routine = routine
        self.name = name
        self._state = SeedState.NOT_STARTED
        self._task: asyncio.Task | None = None
        self.attempts = 0

    @property
    def state(self) -> SeedState:
        return self._state

    async def ensure_seeded(self) -> None:
        """Block until the routine has succeeded once. Raises SeedFailure."""
        if self._state is SeedState.DONE:
            return
        if self._task is None:
            # No await between the check and the assignment: only one caller
            # on this loop can get here while NOT_STARTED.
            self._state = SeedState.IN_FLIGHT
            self.attempts += 1
            self._task = asyncio.get_running_loop().create_task(self._run())
        await asyncio.shield(self._task)

    async def _run(self) -> None:
        logger.info("[%s] Seeding started (attempt %d)", self.name, self.attempts)
        try:
            await self._routine()
        except Exception as exc:
            logger.exception("[%s] Seeding failed", self.name)
            raise SeedFailure(exc) from exc
        else:
            self._state = SeedState.DONE
            logger.info("[%s] Seeding complete", self.name)
        finally:
            if self._state is not SeedState.DONE:
                self._state = SeedState.NOT_STARTED
            self._task = None

    def reset(self) -> None:
        """Forget a completed seed so the next call runs the routine again."""
        if self._state is SeedState.IN_FLIGHT:
            raise RuntimeError("Cannot reset a seed gate while seeding is in flight")
        self._state = SeedState.NOT_STARTED


@dataclass
class BootstrapState:
    """Process-scoped bootstrap state, held on ``app.state.bootstrap``."""

    seed_gate: SeedGate
    first_admin_lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    @property
    def setup_in_progress(self) -> bool:
        return self.first_admin_lock.locked()
