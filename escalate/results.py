"""Structured outcome of one posting run."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

from escalate.publisher import ErrorKind, RemoteError
from src.entities.escalation import EscalationStatus


class OutcomeStatus(str, enum.Enum):
    SUCCESS = "success"
    SKIPPED = "skipped"  # already confirmed by an earlier run
    FAILURE = "failure"


@dataclass(frozen=True)
class CommentOutcome:
    status: OutcomeStatus
    remote_id: str | None = None
    error_kind: ErrorKind | None = None
    message: str | None = None

    @classmethod
    def success(cls, remote_id: str) -> CommentOutcome:
        return cls(OutcomeStatus.SUCCESS, remote_id=remote_id)

    @classmethod
    def skipped(cls, remote_id: str | None = None) -> CommentOutcome:
        return cls(OutcomeStatus.SKIPPED, remote_id=remote_id)

    @classmethod
    def failure(cls, error: RemoteError) -> CommentOutcome:
        return cls(OutcomeStatus.FAILURE, error_kind=error.kind, message=error.message)

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "remote_id": self.remote_id,
            "error_kind": self.error_kind.value if self.error_kind else None,
            "message": self.message,
        }


@dataclass(frozen=True)
class AttachmentOutcome:
    file: str
    status: OutcomeStatus
    error_kind: ErrorKind | None = None
    message: str | None = None

    @classmethod
    def failure(cls, file: str, error: RemoteError) -> AttachmentOutcome:
        return cls(file, OutcomeStatus.FAILURE, error_kind=error.kind, message=error.message)

    @property
    def failed(self) -> bool:
        return self.status is OutcomeStatus.FAILURE

    def to_dict(self) -> dict:
        return {
            "file": self.file,
            "status": self.status.value,
            "error_kind": self.error_kind.value if self.error_kind else None,
            "message": self.message,
        }


@dataclass
class PostResult:
    escalation_id: int
    comment: CommentOutcome
    attachments: list[AttachmentOutcome] = field(default_factory=list)
    final_status: EscalationStatus = EscalationStatus.POST_FAILED

    @property
    def succeeded(self) -> bool:
        return self.final_status is EscalationStatus.POSTED

    @property
    def failed_attachments(self) -> list[AttachmentOutcome]:
        return [a for a in self.attachments if a.failed]

    @property
    def partial_failure(self) -> bool:
        """Comment is on the ticket but at least one attachment is not."""
        return self.comment.status is not OutcomeStatus.FAILURE and bool(self.failed_attachments)

    @property
    def retryable(self) -> bool:
        if self.succeeded:
            return False
        if self.comment.status is OutcomeStatus.FAILURE:
            return bool(self.comment.error_kind and self.comment.error_kind.retryable)
        return all(a.error_kind and a.error_kind.retryable for a in self.failed_attachments)

    def summary(self) -> str:
        """One-line, user-facing description of the outcome."""
        if self.comment.status is OutcomeStatus.FAILURE:
            kind = self.comment.error_kind.value if self.comment.error_kind else "unknown"
            text = f"Comment not posted: {kind}"
            if self.comment.message:
                text += f" ({self.comment.message})"
        elif self.failed_attachments:
            kinds = sorted({a.error_kind.value for a in self.failed_attachments if a.error_kind})
            text = (
                f"{len(self.failed_attachments)} of {len(self.attachments)} attachments failed: "
                f"{', '.join(kinds)}"
            )
        else:
            return f"Posted with {len(self.attachments)} attachment(s)"
        return text + (", retry" if self.retryable else ", fix and retry")

    def to_dict(self) -> dict:
        return {
            "escalation_id": self.escalation_id,
            "comment_outcome": self.comment.to_dict(),
            "attachments": [a.to_dict() for a in self.attachments],
            "final_status": self.final_status.value,
            "summary": self.summary(),
        }
