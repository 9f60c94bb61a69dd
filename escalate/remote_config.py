"""Resolve the Jira and Ollama connection settings and build clients from them."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from escalate.credentials import CredentialStore
from escalate.errors import PublisherNotConfigured
from escalate.jira_client import JiraClient
from escalate.ollama_client import OllamaClient
from src.config import settings
from src.database import async_session
from src.entities.api_config import ApiConfig


@dataclass(frozen=True)
class RemoteConfig:
    base_url: str
    email: str


async def load_remote_config(
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> RemoteConfig:
    """Saved api_config row wins; environment settings fill the gaps."""
    factory = session_factory or async_session
    async with factory() as db:
        row = await db.get(ApiConfig, 1)
    base_url = (row.jira_base_url if row else "") or settings.jira_base_url
    email = (row.jira_email if row else "") or settings.jira_email
    return RemoteConfig(base_url=base_url, email=email)


class JiraPublisherFactory:
    """Callable building a fresh ``JiraClient`` for each posting run."""

    def __init__(
        self,
        credentials: CredentialStore | None = None,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
    ):
        self.credentials = credentials or CredentialStore()
        self._session_factory = session_factory

    async def __call__(self) -> JiraClient:
        config = await load_remote_config(self._session_factory)
        if not config.base_url:
            raise PublisherNotConfigured("base URL")
        if not config.email:
            raise PublisherNotConfigured("account email")
        return JiraClient(config.base_url, config.email, self.credentials.get_token)


@dataclass(frozen=True)
class LlmConfig:
    endpoint: str
    model: str


async def load_llm_config(
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> LlmConfig:
    factory = session_factory or async_session
    async with factory() as db:
        row = await db.get(ApiConfig, 1)
    endpoint = (row.ollama_endpoint if row else "") or settings.ollama_endpoint
    model = (row.ollama_model if row else "") or settings.ollama_model
    return LlmConfig(endpoint=endpoint, model=model)


class OllamaClientFactory:
    """Callable building an ``OllamaClient`` from the saved settings."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None):
        self._session_factory = session_factory

    async def __call__(self) -> OllamaClient:
        config = await load_llm_config(self._session_factory)
        return OllamaClient(config.endpoint, config.model)
