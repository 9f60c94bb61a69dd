"""Escalation status as a closed set of variants.

Each variant carries only the data valid in that state, so a ``Posted``
without a timestamp cannot be constructed.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import ClassVar, Union

from src.entities.escalation import EscalationStatus


@dataclass(frozen=True)
class Draft:
    name: ClassVar[EscalationStatus] = EscalationStatus.DRAFT


@dataclass(frozen=True)
class Posted:
    posted_at: datetime
    name: ClassVar[EscalationStatus] = EscalationStatus.POSTED


@dataclass(frozen=True)
class PostFailed:
    name: ClassVar[EscalationStatus] = EscalationStatus.POST_FAILED


StatusState = Union[Draft, Posted, PostFailed]


def status_from_columns(status: str, posted_at: datetime | None) -> StatusState:
    """Build the variant from the stored ``status``/``posted_at`` pair.

    Raises ValueError for unknown labels or a broken posted_at invariant.
    """
    value = EscalationStatus(status)
    if value is EscalationStatus.POSTED:
        if posted_at is None:
            raise ValueError("status 'posted' requires posted_at")
        return Posted(posted_at=posted_at)
    if posted_at is not None:
        raise ValueError(f"status '{value.value}' must not carry posted_at")
    if value is EscalationStatus.POST_FAILED:
        return PostFailed()
    return Draft()


def status_to_columns(state: StatusState) -> tuple[str, datetime | None]:
    if isinstance(state, Posted):
        return state.name.value, state.posted_at
    return state.name.value, None
