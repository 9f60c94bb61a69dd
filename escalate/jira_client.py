"""Jira Cloud REST client — posts comments, uploads attachments, reads tickets.

Writes (comment, attachment) are sent exactly once per call and every failure
is raised as a classified ``RemoteError``. Reads are idempotent and retry with
exponential backoff on transient errors.
"""

from __future__ import annotations

import asyncio
import logging
import stat
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx

from escalate.errors import CredentialNotFound
from escalate.publisher import ErrorKind, RemoteError
from src.config import settings
from src.schemas.tickets import JiraComment, JiraTicket, JiraUser

logger = logging.getLogger(__name__)

_MAX_RETRIES = 3
_BASE_DELAY = 1.0  # seconds
_ISSUE_FIELDS = "summary,description,status,reporter,assignee,comment"


def classify_response(resp: httpx.Response, ticket_ref: str, action: str) -> RemoteError:
    """Map a non-2xx Jira response onto an ``ErrorKind``."""
    status = resp.status_code
    if status == 401:
        return RemoteError(ErrorKind.AUTH, "Invalid credentials")
    if status == 403:
        return RemoteError(
            ErrorKind.AUTH,
            f"No permission to {action} on {ticket_ref}. Check your API token permissions.",
        )
    if status == 404:
        return RemoteError(ErrorKind.NOT_FOUND, f"Ticket {ticket_ref} not found")
    if status == 413:
        return RemoteError(ErrorKind.FILE_UNREADABLE, "File rejected by Jira (too large). Try compressing it.")
    if status == 429:
        retry_after = resp.headers.get("Retry-After", "60")
        return RemoteError(ErrorKind.RATE_LIMITED, f"Rate limited, retry in {retry_after} seconds")
    if status >= 500:
        return RemoteError(ErrorKind.SERVER_ERROR, f"Jira server error: {status}")
    return RemoteError(ErrorKind.SERVER_ERROR, f"Failed to {action}: unexpected response {status}")


def markdown_to_adf(markdown: str) -> dict:
    """Wrap plain text in a minimal Atlassian Document Format body.

    Blank lines separate paragraphs; single newlines become hard breaks.
    """
    paragraphs = []
    for block in markdown.split("\n\n"):
        lines = block.strip("\n").split("\n")
        content: list[dict] = []
        for i, line in enumerate(lines):
            if i:
                content.append({"type": "hardBreak"})
            if line:
                content.append({"type": "text", "text": line})
        paragraphs.append({"type": "paragraph", "content": content})
    return {"type": "doc", "version": 1, "content": paragraphs}


def adf_to_text(node: Any) -> str:
    """Flatten an ADF node (or a plain string) to text."""
    if node is None:
        return ""
    if isinstance(node, str):
        return node
    if isinstance(node, list):
        return "".join(adf_to_text(child) for child in node)
    node_type = node.get("type")
    if node_type == "text":
        return node.get("text", "")
    if node_type == "hardBreak":
        return "\n"
    text = adf_to_text(node.get("content", []))
    if node_type in {"paragraph", "heading", "listItem"}:
        return text + "\n"
    return text


class JiraClient:
    """Remote publisher backed by the Jira Cloud REST API (v3)."""

    def __init__(
        self,
        base_url: str,
        email: str,
        token_provider: Callable[[str], str],
        *,
        timeout: float | None = None,
        upload_timeout: float | None = None,
        max_attachment_mb: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not base_url:
            raise ValueError("Jira base URL is required.")
        self.base_url = base_url.rstrip("/")
        self.email = email
        self._token_provider = token_provider
        self.upload_timeout = upload_timeout or settings.upload_timeout
        self.max_attachment_mb = max_attachment_mb or settings.max_attachment_mb
        self._client = httpx.AsyncClient(
            timeout=timeout or settings.request_timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    def _auth(self) -> tuple[str, str]:
        # Looked up per call so a token fixed mid-session is picked up on retry
        try:
            token = self._token_provider(self.email)
        except CredentialNotFound as exc:
            raise RemoteError(ErrorKind.CREDENTIAL_MISSING, str(exc)) from exc
        return self.email, token

    async def _send(
        self,
        method: str,
        url: str,
        ticket_ref: str,
        action: str,
        **kwargs,
    ) -> httpx.Response:
        """Issue one request; classify transport failures and non-2xx responses."""
        auth = self._auth()
        try:
            resp = await self._client.request(method, url, auth=auth, **kwargs)
        except httpx.TimeoutException as exc:
            raise RemoteError(ErrorKind.NETWORK, f"Timed out on {method} {url}") from exc
        except httpx.TransportError as exc:
            raise RemoteError(ErrorKind.NETWORK, f"{type(exc).__name__} on {method} {url}: {exc}") from exc
        if resp.is_success:
            return resp
        raise classify_response(resp, ticket_ref, action)

    async def _get_with_retry(self, url: str, ticket_ref: str, action: str, **kwargs) -> httpx.Response:
        """GET with exponential backoff on rate limits, network and 5xx errors."""
        for attempt in range(_MAX_RETRIES + 1):
            try:
                return await self._send("GET", url, ticket_ref, action, **kwargs)
            except RemoteError as exc:
                if not exc.kind.retryable or attempt >= _MAX_RETRIES:
                    raise
                delay = _BASE_DELAY * (2 ** attempt)
                logger.warning(
                    "%s on GET %s, retrying in %.1fs (attempt %d/%d)",
                    exc.kind.value, url, delay, attempt + 1, _MAX_RETRIES,
                )
                await asyncio.sleep(delay)
        raise AssertionError("unreachable")

    async def post_comment(self, ticket_ref: str, markdown: str) -> str:
        """Post ``markdown`` as a comment on ``ticket_ref``.

        Returns the Jira comment id.
        """
        resp = await self._send(
            "POST",
            f"{self.base_url}/rest/api/3/issue/{ticket_ref}/comment",
            ticket_ref,
            "comment",
            json={"body": markdown_to_adf(markdown)},
        )
        try:
            comment_id = str(resp.json().get("id", ""))
        except ValueError:
            # The comment exists; only the id is unknown
            logger.warning("Comment posted on %s but response was not JSON", ticket_ref)
            comment_id = ""
        logger.info("Comment %s posted on %s", comment_id or "<unknown>", ticket_ref)
        return comment_id

    async def attach_file(self, ticket_ref: str, file_path: str) -> None:
        """Upload one local file as an attachment on ``ticket_ref``.

        Disk access runs in a worker thread, off the event loop.
        """
        path = Path(file_path)
        try:
            st = await asyncio.to_thread(path.stat)
        except OSError as exc:
            raise RemoteError(ErrorKind.FILE_UNREADABLE, f"File not found: {path}") from exc
        if not stat.S_ISREG(st.st_mode):
            raise RemoteError(ErrorKind.FILE_UNREADABLE, f"Not a regular file: {path}")

        size = st.st_size
        size_mb = size / (1024 * 1024)
        if size_mb > self.max_attachment_mb:
            raise RemoteError(
                ErrorKind.FILE_UNREADABLE,
                f"File too large ({size_mb:.0f}MB). Jira limit is {self.max_attachment_mb}MB.",
            )
        try:
            content = await asyncio.to_thread(path.read_bytes)
        except OSError as exc:
            raise RemoteError(ErrorKind.FILE_UNREADABLE, f"Cannot read {path}: {exc}") from exc

        await self._send(
            "POST",
            f"{self.base_url}/rest/api/3/issue/{ticket_ref}/attachments",
            ticket_ref,
            "attach files",
            files={"file": (path.name, content, "application/octet-stream")},
            headers={"X-Atlassian-Token": "no-check"},  # required by Jira
            timeout=self.upload_timeout,
        )
        logger.info("Attached %s (%d bytes) to %s", path.name, size, ticket_ref)

    async def fetch_issue(self, key: str) -> JiraTicket:
        """Fetch a ticket with its comments."""
        resp = await self._get_with_retry(
            f"{self.base_url}/rest/api/3/issue/{key}",
            key,
            "read",
            params={"fields": _ISSUE_FIELDS},
        )
        data = resp.json()
        fields = data.get("fields", {})

        def user(raw: dict | None) -> JiraUser | None:
            if not raw:
                return None
            return JiraUser(display_name=raw.get("displayName", ""), email=raw.get("emailAddress"))

        description = fields.get("description")
        return JiraTicket(
            key=data.get("key", key),
            summary=fields.get("summary", ""),
            description=adf_to_text(description).strip() if description else None,
            status=(fields.get("status") or {}).get("name", ""),
            reporter=user(fields.get("reporter")),
            assignee=user(fields.get("assignee")),
            comments=[
                JiraComment(
                    author=(c.get("author") or {}).get("displayName", ""),
                    body=adf_to_text(c.get("body")).strip(),
                    created=c.get("created", ""),
                )
                for c in (fields.get("comment") or {}).get("comments", [])
            ],
        )

    async def test_connection(self) -> str:
        """Return the display name of the authenticated account."""
        resp = await self._get_with_retry(f"{self.base_url}/rest/api/3/myself", "", "read your profile")
        return resp.json().get("displayName", "")
