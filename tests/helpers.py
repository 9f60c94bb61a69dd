"""Test doubles and builders shared across test modules."""

from __future__ import annotations

import asyncio
from pathlib import Path

from keyring.backend import KeyringBackend
from keyring.errors import PasswordDeleteError

from escalate.publisher import RemoteError
from src.entities.escalation import Escalation


class FakePublisher:
    """In-memory publisher recording every call.

    ``attach_errors`` maps a file name to the RemoteError its upload raises.
    ``comment_gate`` holds ``post_comment`` until the event is set.
    """

    def __init__(
        self,
        comment_id: str = "10042",
        comment_error: RemoteError | None = None,
        attach_errors: dict[str, RemoteError] | None = None,
        comment_gate: asyncio.Event | None = None,
        on_comment=None,
    ):
        self.comment_id = comment_id
        self.comment_error = comment_error
        self.attach_errors = attach_errors or {}
        self.comment_gate = comment_gate
        self.on_comment = on_comment
        self.comments: list[tuple[str, str]] = []
        self.attached: list[str] = []
        self.closed = 0

    async def post_comment(self, ticket_ref: str, markdown: str) -> str:
        self.comments.append((ticket_ref, markdown))
        if self.comment_gate is not None:
            await self.comment_gate.wait()
        if self.on_comment is not None:
            await self.on_comment()
        if self.comment_error is not None:
            raise self.comment_error
        return self.comment_id

    async def attach_file(self, ticket_ref: str, file_path: str) -> None:
        self.attached.append(file_path)
        error = self.attach_errors.get(Path(file_path).name)
        if error is not None:
            raise error

    async def aclose(self) -> None:
        self.closed += 1


async def create_escalation(session_factory, **fields) -> int:
    values = {
        "ticket_id": "SUP-101",
        "problem_summary": "VPN drops every 10 minutes",
        "checklist": [
            {"text": "Restarted VPN client", "checked": True},
            {"text": "Collected client logs", "checked": False},
        ],
        "current_status": "User on hotspot workaround",
        "next_steps": "Network team to check concentrator",
        "status": "draft",
    }
    values.update(fields)
    async with session_factory() as db:
        escalation = Escalation(**values)
        db.add(escalation)
        await db.commit()
        return escalation.id


async def audit_trail(audit, escalation_id: int) -> list[tuple[str, str | None]]:
    return [(e.action.value, e.details) for e in await audit.history(escalation_id)]


class MemoryKeyring(KeyringBackend):
    """Keychain held in a dict, installed for every test."""

    priority = 1

    def __init__(self):
        super().__init__()
        self.passwords: dict[tuple[str, str], str] = {}

    def get_password(self, service, username):
        return self.passwords.get((service, username))

    def set_password(self, service, username, password):
        self.passwords[(service, username)] = password

    def delete_password(self, service, username):
        try:
            del self.passwords[(service, username)]
        except KeyError:
            raise PasswordDeleteError(username)
