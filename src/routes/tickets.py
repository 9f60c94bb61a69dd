"""Ticket lookup endpoints — read-only proxy to Jira."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from escalate.errors import PublisherNotConfigured
from escalate.jira_client import JiraClient
from escalate.publisher import ErrorKind, RemoteError
from escalate.remote_config import JiraPublisherFactory
from src.schemas.tickets import ConnectionCheck, JiraTicket

router = APIRouter(prefix="/tickets", tags=["tickets"])

_STATUS_BY_KIND = {
    ErrorKind.AUTH: 401,
    ErrorKind.CREDENTIAL_MISSING: 401,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.RATE_LIMITED: 429,
}


def get_jira_factory() -> JiraPublisherFactory:
    return JiraPublisherFactory()


async def _client(factory: JiraPublisherFactory) -> JiraClient:
    try:
        return await factory()
    except PublisherNotConfigured as exc:
        raise HTTPException(status_code=422, detail=str(exc))


@router.get("/connection", response_model=ConnectionCheck)
async def check_connection(factory: JiraPublisherFactory = Depends(get_jira_factory)):
    """Verify the configured credentials against Jira."""
    client = await _client(factory)
    try:
        display_name = await client.test_connection()
    except RemoteError as exc:
        return ConnectionCheck(connected=False, message=exc.describe())
    finally:
        await client.aclose()
    return ConnectionCheck(connected=True, display_name=display_name, message=f"Connected as {display_name}")


@router.get("/{key}", response_model=JiraTicket)
async def fetch_ticket(key: str, factory: JiraPublisherFactory = Depends(get_jira_factory)):
    client = await _client(factory)
    try:
        return await client.fetch_issue(key)
    except RemoteError as exc:
        raise HTTPException(
            status_code=_STATUS_BY_KIND.get(exc.kind, 502),
            detail={"error": exc.kind.value, "message": exc.message},
        )
    finally:
        await client.aclose()
