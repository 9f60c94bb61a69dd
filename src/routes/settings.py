"""Connection settings endpoints (Jira/Ollama config plus the keychain token)."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from keyring.errors import KeyringError
from sqlalchemy.ext.asyncio import AsyncSession

from escalate.credentials import CredentialStore
from src.config import settings
from src.database import get_db
from src.entities.api_config import ApiConfig
from src.schemas.escalations import ApiConfigPayload, ApiConfigResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/settings", tags=["settings"])


def get_credential_store() -> CredentialStore:
    return CredentialStore()


def _to_response(config: ApiConfig | None, credentials: CredentialStore) -> ApiConfigResponse:
    email = (config.jira_email if config else "") or settings.jira_email
    return ApiConfigResponse(
        jira_base_url=(config.jira_base_url if config else "") or settings.jira_base_url,
        jira_email=email,
        ollama_endpoint=config.ollama_endpoint if config else settings.ollama_endpoint,
        ollama_model=config.ollama_model if config else settings.ollama_model,
        has_credentials=credentials.has_token(email),
    )


@router.get("", response_model=ApiConfigResponse)
async def get_settings(
    db: AsyncSession = Depends(get_db),
    credentials: CredentialStore = Depends(get_credential_store),
):
    return _to_response(await db.get(ApiConfig, 1), credentials)


@router.put("", response_model=ApiConfigResponse)
async def save_settings(
    body: ApiConfigPayload,
    db: AsyncSession = Depends(get_db),
    credentials: CredentialStore = Depends(get_credential_store),
):
    """Save connection settings. The token, if given, is written to the keychain."""
    email = body.jira_email.strip()
    if body.api_token:
        if not email:
            raise HTTPException(status_code=422, detail="An account email is required to store an API token")
        try:
            credentials.save_token(email, body.api_token)
        except KeyringError as exc:
            logger.error("Could not store API token for %s: %s", email, exc)
            raise HTTPException(status_code=503, detail=f"Keychain unavailable: {exc}")

    config = await db.get(ApiConfig, 1)
    if config is None:
        config = ApiConfig(id=1)
        db.add(config)
    config.jira_base_url = body.jira_base_url.strip().rstrip("/")
    config.jira_email = email
    config.ollama_endpoint = body.ollama_endpoint
    config.ollama_model = body.ollama_model
    await db.commit()
    await db.refresh(config)
    return _to_response(config, credentials)


@router.delete("/token", status_code=204)
async def delete_token(
    db: AsyncSession = Depends(get_db),
    credentials: CredentialStore = Depends(get_credential_store),
):
    """Remove the stored API token for the configured account."""
    config = await db.get(ApiConfig, 1)
    email = (config.jira_email if config else "") or settings.jira_email
    if not email:
        raise HTTPException(status_code=404, detail="No Jira account configured")
    try:
        credentials.delete_token(email)
    except KeyringError as exc:
        raise HTTPException(status_code=503, detail=f"Keychain unavailable: {exc}")
