"""Pydantic schemas for escalation endpoints."""

from __future__ import annotations

import enum
from datetime import datetime

from pydantic import BaseModel, Field


class ConfidenceEnum(str, enum.Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ChecklistItem(BaseModel):
    text: str
    checked: bool = False


class EscalationCreate(BaseModel):
    ticket_id: str = Field(min_length=1, max_length=50)
    template_id: int | None = None
    problem_summary: str = ""
    checklist: list[ChecklistItem] = []
    current_status: str = ""
    next_steps: str = ""
    llm_summary: str | None = None
    llm_confidence: ConfidenceEnum | None = None


class EscalationUpdate(BaseModel):
    """Field edits only; status is owned by the posting pipeline."""

    ticket_id: str | None = Field(default=None, min_length=1, max_length=50)
    template_id: int | None = None
    problem_summary: str | None = None
    checklist: list[ChecklistItem] | None = None
    current_status: str | None = None
    next_steps: str | None = None
    llm_summary: str | None = None
    llm_confidence: ConfidenceEnum | None = None


class EscalationResponse(BaseModel):
    id: int
    ticket_id: str
    template_id: int | None
    problem_summary: str
    checklist: list[ChecklistItem]
    current_status: str
    next_steps: str
    llm_summary: str | None
    llm_confidence: str | None
    markdown_output: str | None
    status: str
    posted_at: datetime | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class EscalationSummary(BaseModel):
    id: int
    ticket_id: str
    problem_summary: str
    status: str
    created_at: datetime

    model_config = {"from_attributes": True}


class AuditLogResponse(BaseModel):
    id: int
    escalation_id: int
    action: str
    details: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class PostRequest(BaseModel):
    file_paths: list[str] = []


class CommentOutcomeResponse(BaseModel):
    status: str
    remote_id: str | None = None
    error_kind: str | None = None
    message: str | None = None


class AttachmentOutcomeResponse(BaseModel):
    file: str
    status: str
    error_kind: str | None = None
    message: str | None = None


class PostResultResponse(BaseModel):
    escalation_id: int
    comment_outcome: CommentOutcomeResponse
    attachments: list[AttachmentOutcomeResponse]
    final_status: str
    summary: str


class MarkdownPreview(BaseModel):
    markdown: str


class TemplateResponse(BaseModel):
    id: int
    name: str
    description: str
    category: str
    checklist_items: list[ChecklistItem]
    l2_team: str | None

    model_config = {"from_attributes": True}


class ApiConfigBase(BaseModel):
    jira_base_url: str = ""
    jira_email: str = ""
    ollama_endpoint: str = "http://localhost:11434"
    ollama_model: str = "llama3"


class ApiConfigPayload(ApiConfigBase):
    """Connection settings. A non-empty ``api_token`` goes to the keychain only."""

    api_token: str | None = None


class ApiConfigResponse(ApiConfigBase):
    has_credentials: bool = False
