"""Per-escalation ownership tokens: one posting run per id at a time."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from escalate.errors import AlreadyInProgress


class RunToken:
    __slots__ = ("escalation_id",)

    def __init__(self, escalation_id: int):
        self.escalation_id = escalation_id


class RunGuard:
    """In-process registry of escalations with a run in flight.

    Check-and-claim happens without an await in between, so it is atomic on
    the event loop.
    """

    def __init__(self):
        self._active: dict[int, RunToken] = {}

    def is_running(self, escalation_id: int) -> bool:
        return escalation_id in self._active

    @asynccontextmanager
    async def hold(self, escalation_id: int) -> AsyncIterator[RunToken]:
        if escalation_id in self._active:
            raise AlreadyInProgress(escalation_id)
        token = RunToken(escalation_id)
        self._active[escalation_id] = token
        try:
            yield token
        finally:
            if self._active.get(escalation_id) is token:
                del self._active[escalation_id]
