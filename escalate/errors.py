"""Errors raised by the posting pipeline before or instead of touching Jira.

Remote-call failures are not here: they are ``publisher.RemoteError`` and never
escape the pipeline.
"""

from __future__ import annotations


class PipelineError(Exception):
    """Base class. ``code`` is the machine-readable name surfaced to callers."""

    code = "pipeline_error"

    def __init__(self, escalation_id: int | None, message: str):
        super().__init__(message)
        self.escalation_id = escalation_id


class EscalationNotFound(PipelineError):
    code = "not_found"

    def __init__(self, escalation_id: int):
        super().__init__(escalation_id, f"Escalation {escalation_id} not found")


class AlreadyPosted(PipelineError):
    code = "already_posted"

    def __init__(self, escalation_id: int):
        super().__init__(escalation_id, f"Escalation {escalation_id} has already been posted")


class NotInFailedState(PipelineError):
    code = "not_in_failed_state"

    def __init__(self, escalation_id: int, status: str):
        super().__init__(
            escalation_id,
            f"Escalation {escalation_id} is '{status}'; only 'post_failed' escalations can be retried",
        )
        self.status = status


class AlreadyInProgress(PipelineError):
    code = "already_in_progress"

    def __init__(self, escalation_id: int):
        super().__init__(escalation_id, f"A posting run for escalation {escalation_id} is already in progress")


class ConcurrentModification(PipelineError):
    """The escalation changed underneath the run; reload and retry."""

    code = "conflict"

    def __init__(self, escalation_id: int):
        super().__init__(
            escalation_id,
            f"Escalation {escalation_id} was modified while posting; reload and retry",
        )


class PublisherNotConfigured(PipelineError):
    code = "publisher_not_configured"

    def __init__(self, missing: str, escalation_id: int | None = None):
        super().__init__(
            escalation_id,
            f"Jira is not configured ({missing} missing). Configure it in Settings.",
        )
        self.missing = missing


class CredentialNotFound(Exception):
    """No API token is stored for the configured account email."""

    def __init__(self, email: str):
        super().__init__(f"No Jira API token stored for {email or '<no email configured>'}")
        self.email = email
