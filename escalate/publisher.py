"""Remote publisher interface: the two side effects a posting run performs."""

from __future__ import annotations

import enum
from typing import Protocol


class ErrorKind(str, enum.Enum):
    AUTH = "auth"
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    NETWORK = "network"
    SERVER_ERROR = "server_error"
    FILE_UNREADABLE = "file_unreadable"
    CREDENTIAL_MISSING = "credential_missing"

    @property
    def retryable(self) -> bool:
        """Whether calling again without user action can succeed."""
        return self in _RETRYABLE_KINDS


# SERVER_ERROR is ambiguous (the request may have been applied) but is retried
_RETRYABLE_KINDS = {ErrorKind.RATE_LIMITED, ErrorKind.NETWORK, ErrorKind.SERVER_ERROR}


class RemoteError(Exception):
    """A classified failure of a single remote call."""

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(f"{kind.value}: {message}")
        self.kind = kind
        self.message = message

    def describe(self) -> str:
        return f"{self.kind.value}: {self.message}"


class RemotePublisher(Protocol):
    """Send-once operations; the caller decides whether to call again.

    Both methods raise ``RemoteError`` on failure.
    """

    async def post_comment(self, ticket_ref: str, markdown: str) -> str:
        """Post a comment and return the remote comment id."""
        ...

    async def attach_file(self, ticket_ref: str, file_path: str) -> None:
        ...

    async def aclose(self) -> None:
        ...
