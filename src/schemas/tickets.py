"""Pydantic schemas for Jira ticket data."""

from __future__ import annotations

from pydantic import BaseModel


class JiraUser(BaseModel):
    display_name: str
    email: str | None = None


class JiraComment(BaseModel):
    author: str
    body: str
    created: str


class JiraTicket(BaseModel):
    key: str
    summary: str
    description: str | None = None
    status: str
    reporter: JiraUser | None = None
    assignee: JiraUser | None = None
    comments: list[JiraComment] = []


class ConnectionCheck(BaseModel):
    connected: bool
    display_name: str | None = None
    message: str
