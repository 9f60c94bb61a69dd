"""Posting pipeline — publishes an escalation to Jira as comment + attachments.

Every externally observable action is bracketed by audit rows, status moves
only at the end of a run, and remote failures are turned into a ``PostResult``
instead of being raised. Retries consult the audit log so a comment that Jira
already accepted is never sent twice.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import TypeVar

from escalate.audit import AuditRecorder, CompletedSteps
from escalate.errors import AlreadyPosted, NotInFailedState, PipelineError
from escalate.guard import RunGuard
from escalate.publisher import ErrorKind, RemoteError, RemotePublisher
from escalate.remote_config import JiraPublisherFactory
from escalate.render import render_escalation
from escalate.results import AttachmentOutcome, CommentOutcome, OutcomeStatus, PostResult
from escalate.status import PostFailed, Posted
from escalate.store import EscalationRecord, EscalationStore
from src.config import settings
from src.entities.audit_log import AuditAction
from src.entities.escalation import EscalationStatus

logger = logging.getLogger(__name__)

T = TypeVar("T")

PublisherFactory = Callable[[], Awaitable[RemotePublisher]]


class PostingPipeline:
    """Coordinator for posting runs. Keep one instance per process."""

    def __init__(
        self,
        store: EscalationStore | None = None,
        audit: AuditRecorder | None = None,
        publisher_factory: PublisherFactory | None = None,
        renderer: Callable[[EscalationRecord], str] = render_escalation,
        comment_timeout: float | None = None,
        attachment_timeout: float | None = None,
    ):
        self.store = store or EscalationStore()
        self.audit = audit or AuditRecorder()
        self._publisher_factory = publisher_factory or JiraPublisherFactory()
        self._render = renderer
        self.comment_timeout = (
            settings.comment_call_timeout if comment_timeout is None else comment_timeout
        )
        self.attachment_timeout = (
            settings.attachment_call_timeout if attachment_timeout is None else attachment_timeout
        )
        self.runs = RunGuard()

    async def post_escalation(self, escalation_id: int, file_paths: list[str]) -> PostResult:
        """Publish a ``draft`` or ``post_failed`` escalation.

        Raises EscalationNotFound, AlreadyPosted or AlreadyInProgress before
        any side effect; ConcurrentModification if the row is edited mid-run.
        """
        async with self.runs.hold(escalation_id):
            escalation = await self.store.load(escalation_id)
            if isinstance(escalation.status, Posted):
                raise AlreadyPosted(escalation_id)
            return await self._run(escalation, file_paths)

    async def retry_post_escalation(self, escalation_id: int, file_paths: list[str]) -> PostResult:
        """Re-run a ``post_failed`` escalation, skipping confirmed sub-steps."""
        async with self.runs.hold(escalation_id):
            escalation = await self.store.load(escalation_id)
            if not isinstance(escalation.status, PostFailed):
                raise NotInFailedState(escalation_id, escalation.status.name.value)
            return await self._run(escalation, file_paths)

    async def _run(self, escalation: EscalationRecord, file_paths: list[str]) -> PostResult:
        eid = escalation.id
        prior = await self.audit.completed_steps(eid)
        publisher = await self._publisher_factory()
        try:
            markdown = await self._prepare_markdown(escalation, prior)
            logger.info(
                "Posting escalation %d to %s (%d file(s), comment %s)",
                eid, escalation.ticket_id, len(file_paths),
                "already posted" if prior.comment_posted else "pending",
            )

            if prior.comment_posted:
                comment = CommentOutcome.skipped(prior.comment_id)
            else:
                comment = await self._post_comment(publisher, escalation, markdown)
                if comment.status is OutcomeStatus.FAILURE:
                    await self.store.update_status(eid, PostFailed(), escalation.updated_at)
                    return PostResult(
                        escalation_id=eid,
                        comment=comment,
                        attachments=[],
                        final_status=EscalationStatus.POST_FAILED,
                    )

            names = [Path(p).name for p in file_paths]
            for name in sorted({n for n in names if names.count(n) > 1}):
                logger.warning(
                    "Escalation %d: %d files named %s; a retry treats them as one attachment",
                    eid, names.count(name), name,
                )

            attachments = []
            for file_path in file_paths:
                attachments.append(
                    await self._attach(publisher, escalation, file_path, prior)
                )

            failed = [a for a in attachments if a.failed]
            new_state = PostFailed() if failed else Posted(posted_at=datetime.now(timezone.utc))
            await self.store.update_status(eid, new_state, escalation.updated_at)
            await self.audit.append(
                eid,
                AuditAction.STATUS_CHANGED,
                f"{escalation.status.name.value} -> {new_state.name.value}",
            )
            result = PostResult(
                escalation_id=eid,
                comment=comment,
                attachments=attachments,
                final_status=new_state.name,
            )
            if failed:
                logger.warning("Escalation %d partially posted: %s", eid, result.summary())
            else:
                logger.info("Escalation %d posted", eid)
            return result
        except PipelineError:
            raise
        except Exception:
            logger.exception("Escalation %d: posting run aborted", eid)
            raise
        finally:
            await publisher.aclose()

    async def _prepare_markdown(self, escalation: EscalationRecord, prior: CompletedSteps) -> str:
        """Return the comment body, refreshing the cached copy when stale.

        Once the comment is on the ticket the cache is what was sent, so it is
        kept even if the fields have been edited since.
        """
        if prior.comment_posted and escalation.markdown_output is not None:
            return escalation.markdown_output
        markdown = self._render(escalation)
        if markdown != escalation.markdown_output:
            await self.store.update_markdown(escalation.id, markdown)
        return markdown

    async def _post_comment(
        self,
        publisher: RemotePublisher,
        escalation: EscalationRecord,
        markdown: str,
    ) -> CommentOutcome:
        eid = escalation.id
        await self.audit.append(eid, AuditAction.POST_ATTEMPTED, escalation.ticket_id)
        try:
            remote_id = await self._call(
                publisher.post_comment(escalation.ticket_id, markdown),
                self.comment_timeout,
            )
        except RemoteError as exc:
            self._log_remote_failure(eid, "comment", exc)
            await self.audit.append(eid, AuditAction.POST_FAILED, exc.describe())
            return CommentOutcome.failure(exc)
        await self.audit.append(eid, AuditAction.POST_SUCCEEDED, remote_id)
        return CommentOutcome.success(remote_id)

    async def _attach(
        self,
        publisher: RemotePublisher,
        escalation: EscalationRecord,
        file_path: str,
        prior: CompletedSteps,
    ) -> AttachmentOutcome:
        """Upload one file unless an earlier run already attached it.

        Earlier uploads are matched by base name, the value recorded in the
        audit log, so on retry ``a/app.log`` and ``b/app.log`` are the same file.
        """
        eid = escalation.id
        file_name = Path(file_path).name
        if file_name in prior.attached_files:
            logger.info("Escalation %d: %s already attached, skipping", eid, file_name)
            return AttachmentOutcome(file_path, OutcomeStatus.SKIPPED)

        await self.audit.append(eid, AuditAction.ATTACHMENT_ATTEMPTED, file_name)
        try:
            await self._call(
                publisher.attach_file(escalation.ticket_id, file_path),
                self.attachment_timeout,
            )
        except RemoteError as exc:
            self._log_remote_failure(eid, file_name, exc)
            await self.audit.append(eid, AuditAction.ATTACHMENT_FAILED, f"{file_name}: {exc.describe()}")
            return AttachmentOutcome.failure(file_path, exc)
        await self.audit.append(eid, AuditAction.ATTACHMENT_SUCCEEDED, file_name)
        return AttachmentOutcome(file_path, OutcomeStatus.SUCCESS)

    @staticmethod
    async def _call(call: Awaitable[T], timeout: float) -> T:
        try:
            return await asyncio.wait_for(call, timeout=timeout)
        except asyncio.TimeoutError as exc:
            raise RemoteError(ErrorKind.NETWORK, f"No response within {timeout:.0f}s") from exc

    @staticmethod
    def _log_remote_failure(escalation_id: int, step: str, exc: RemoteError) -> None:
        if exc.kind is ErrorKind.SERVER_ERROR:
            logger.warning(
                "Escalation %d: ambiguous server error on %s, the request may have been applied: %s",
                escalation_id, step, exc.message,
            )
        else:
            logger.warning("Escalation %d: %s failed (%s): %s", escalation_id, step, exc.kind.value, exc.message)
