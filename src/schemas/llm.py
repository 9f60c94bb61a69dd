"""Pydantic schemas for the AI summary endpoints."""

from __future__ import annotations

from pydantic import BaseModel

from src.schemas.escalations import ChecklistItem, ConfidenceEnum


class SummarizeRequest(BaseModel):
    checklist: list[ChecklistItem] = []
    problem_summary: str = ""


class SummaryResponse(BaseModel):
    summary: str
    confidence: ConfidenceEnum
    confidence_reason: str


class LlmStatus(BaseModel):
    available: bool
    endpoint: str
    model: str
