"""Lookup of Jira API tokens by account email.

Tokens live in the OS keychain via ``keyring``. The ``HANDOFF_JIRA_TOKENS``
setting takes precedence, for headless deployments without a keychain.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from escalate.errors import CredentialNotFound
from src.config import settings

logger = logging.getLogger(__name__)


class CredentialStore:
    """Token lookup and storage. Tokens never touch the database."""

    def __init__(
        self,
        tokens: Mapping[str, str] | None = None,
        service: str | None = None,
    ):
        self._tokens = dict(tokens if tokens is not None else settings.jira_tokens)
        self.service = service or settings.keyring_service

    def _from_keyring(self, email: str) -> str:
        try:
            return keyring.get_password(self.service, email) or ""
        except KeyringError as exc:
            logger.warning("Keychain unavailable, cannot look up token for %s: %s", email, exc)
            return ""

    def get_token(self, email: str) -> str:
        if not email:
            raise CredentialNotFound(email)
        token = self._tokens.get(email) or self._from_keyring(email)
        if not token:
            raise CredentialNotFound(email)
        return token

    def has_token(self, email: str) -> bool:
        return bool(email) and bool(self._tokens.get(email) or self._from_keyring(email))

    def save_token(self, email: str, token: str) -> None:
        """Store ``token`` in the keychain. Raises KeyringError if there is none."""
        keyring.set_password(self.service, email, token)
        logger.info("Stored Jira API token for %s", email)

    def delete_token(self, email: str) -> None:
        try:
            keyring.delete_password(self.service, email)
        except PasswordDeleteError:
            logger.debug("No stored token for %s", email)
