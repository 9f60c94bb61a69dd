"""Escalation endpoints: the editing flow plus the post and retry entry points."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from escalate.errors import EscalationNotFound, PipelineError, PublisherNotConfigured
from escalate.pipeline import PostingPipeline
from escalate.render import render_markdown
from src.database import get_db
from src.entities.escalation import Escalation, EscalationStatus
from src.entities.template import Template
from src.schemas.escalations import (
    AuditLogResponse,
    EscalationCreate,
    EscalationResponse,
    EscalationSummary,
    EscalationUpdate,
    MarkdownPreview,
    PostRequest,
    PostResultResponse,
)

router = APIRouter(prefix="/escalations", tags=["escalations"])

_pipeline: PostingPipeline | None = None


def get_posting_pipeline() -> PostingPipeline:
    """Process-wide pipeline so the one-run-per-escalation guard is shared."""
    global _pipeline
    if _pipeline is None:
        _pipeline = PostingPipeline()
    return _pipeline


def _http_error(exc: PipelineError) -> HTTPException:
    if isinstance(exc, EscalationNotFound):
        status_code = 404
    elif isinstance(exc, PublisherNotConfigured):
        status_code = 422
    else:
        status_code = 409
    return HTTPException(status_code=status_code, detail={"error": exc.code, "message": str(exc)})


async def _get_or_404(db: AsyncSession, escalation_id: int) -> Escalation:
    escalation = await db.get(Escalation, escalation_id)
    if escalation is None:
        raise HTTPException(status_code=404, detail=f"Escalation {escalation_id} not found")
    return escalation


async def _check_template(db: AsyncSession, template_id: int | None) -> Template | None:
    if template_id is None:
        return None
    template = await db.get(Template, template_id)
    if template is None:
        raise HTTPException(status_code=404, detail=f"Template {template_id} not found")
    return template


@router.post("", response_model=EscalationResponse, status_code=201)
async def create_escalation(body: EscalationCreate, db: AsyncSession = Depends(get_db)):
    """Save a new escalation as a draft."""
    await _check_template(db, body.template_id)
    escalation = Escalation(
        ticket_id=body.ticket_id.strip(),
        template_id=body.template_id,
        problem_summary=body.problem_summary,
        checklist=[item.model_dump() for item in body.checklist],
        current_status=body.current_status,
        next_steps=body.next_steps,
        llm_summary=body.llm_summary,
        llm_confidence=body.llm_confidence.value if body.llm_confidence else None,
        status=EscalationStatus.DRAFT.value,
    )
    db.add(escalation)
    await db.commit()
    await db.refresh(escalation)
    return escalation


@router.get("", response_model=list[EscalationSummary])
async def list_escalations(
    status: EscalationStatus | None = None,
    limit: int = Query(default=50, le=200),
    offset: int = 0,
    db: AsyncSession = Depends(get_db),
):
    """List escalations, newest first."""
    query = select(Escalation).order_by(Escalation.created_at.desc(), Escalation.id.desc())
    if status:
        query = query.where(Escalation.status == status.value)
    query = query.limit(limit).offset(offset)
    result = await db.execute(query)
    return result.scalars().all()


@router.post("/preview", response_model=MarkdownPreview)
async def preview_markdown(body: EscalationCreate, db: AsyncSession = Depends(get_db)):
    """Render the comment body for unsaved input."""
    template = await _check_template(db, body.template_id)
    markdown = render_markdown(
        ticket_id=body.ticket_id,
        problem_summary=body.problem_summary,
        checklist=[item.model_dump() for item in body.checklist],
        current_status=body.current_status,
        next_steps=body.next_steps,
        llm_summary=body.llm_summary,
        llm_confidence=body.llm_confidence.value if body.llm_confidence else None,
        template_name=template.name if template else None,
        l2_team=template.l2_team if template else None,
    )
    return MarkdownPreview(markdown=markdown)


@router.get("/{escalation_id}", response_model=EscalationResponse)
async def get_escalation(escalation_id: int, db: AsyncSession = Depends(get_db)):
    return await _get_or_404(db, escalation_id)


@router.patch("/{escalation_id}", response_model=EscalationResponse)
async def update_escalation(
    escalation_id: int,
    body: EscalationUpdate,
    db: AsyncSession = Depends(get_db),
    pipeline: PostingPipeline = Depends(get_posting_pipeline),
):
    """Edit fields of a draft or failed escalation. Status is never changed here."""
    escalation = await _get_or_404(db, escalation_id)
    if escalation.status == EscalationStatus.POSTED.value:
        raise HTTPException(status_code=409, detail="Posted escalations cannot be edited")
    if pipeline.runs.is_running(escalation_id):
        raise HTTPException(status_code=409, detail="Escalation is being posted")

    changes = body.model_dump(exclude_unset=True)
    if "template_id" in changes:
        await _check_template(db, changes["template_id"])
    for required in ("ticket_id", "problem_summary", "checklist", "current_status", "next_steps"):
        if required in changes and changes[required] is None:
            del changes[required]
    if changes.get("llm_confidence") is not None:
        changes["llm_confidence"] = body.llm_confidence.value
    for field, value in changes.items():
        setattr(escalation, field, value)

    await db.commit()
    await db.refresh(escalation)
    return escalation


@router.delete("/{escalation_id}", status_code=204)
async def delete_escalation(
    escalation_id: int,
    pipeline: PostingPipeline = Depends(get_posting_pipeline),
):
    """Delete an escalation and, by cascade, its audit trail."""
    if pipeline.runs.is_running(escalation_id):
        raise HTTPException(status_code=409, detail="Escalation is being posted")
    try:
        await pipeline.store.delete(escalation_id)
    except PipelineError as exc:
        raise _http_error(exc)


@router.get("/{escalation_id}/audit", response_model=list[AuditLogResponse])
async def get_audit_trail(
    escalation_id: int,
    db: AsyncSession = Depends(get_db),
    pipeline: PostingPipeline = Depends(get_posting_pipeline),
):
    await _get_or_404(db, escalation_id)
    entries = await pipeline.audit.history(escalation_id)
    return [
        AuditLogResponse(
            id=e.id,
            escalation_id=e.escalation_id,
            action=e.action.value,
            details=e.details,
            created_at=e.created_at,
        )
        for e in entries
    ]


@router.post("/{escalation_id}/post", response_model=PostResultResponse)
async def post_escalation(
    escalation_id: int,
    body: PostRequest,
    pipeline: PostingPipeline = Depends(get_posting_pipeline),
):
    """Publish the escalation as a Jira comment plus attachments."""
    try:
        result = await pipeline.post_escalation(escalation_id, body.file_paths)
    except PipelineError as exc:
        raise _http_error(exc)
    return result.to_dict()


@router.post("/{escalation_id}/retry", response_model=PostResultResponse)
async def retry_post_escalation(
    escalation_id: int,
    body: PostRequest,
    pipeline: PostingPipeline = Depends(get_posting_pipeline),
):
    """Retry a failed publish without re-sending what Jira already has."""
    try:
        result = await pipeline.retry_post_escalation(escalation_id, body.file_paths)
    except PipelineError as exc:
        raise _http_error(exc)
    return result.to_dict()
