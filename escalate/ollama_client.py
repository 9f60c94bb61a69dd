"""Ollama client: drafts the AI summary section of an escalation.

The summary text comes from a local model. The confidence level is computed
here from the checklist alone, so it is the same whatever the model says.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

import httpx

from src.config import settings

logger = logging.getLogger(__name__)

_PROMPT = """\
You are summarizing troubleshooting steps for an L2 support engineer.

Given the following problem and checklist of troubleshooting steps, generate a structured summary.

Problem: {problem}

Troubleshooting checklist:
{checklist}
Generate output in exactly this format:

✓ Completed steps:
- [step description]

✗ Steps not attempted:
- [step description]

? Recommendations for L2:
- [what L2 should investigate next]

Keep it concise. Only include steps from the checklist above. Do not invent steps."""


class OllamaError(Exception):
    """The model could not produce a summary."""


@dataclass(frozen=True)
class SummaryResult:
    summary: str
    confidence: str  # high, medium, low
    confidence_reason: str


def _items(checklist: Iterable[Any]) -> list[tuple[str, bool]]:
    items = []
    for entry in checklist:
        if isinstance(entry, dict):
            items.append((entry.get("text", ""), bool(entry.get("checked", False))))
        else:
            items.append((entry.text, bool(entry.checked)))
    return items


def build_prompt(checklist: Iterable[Any], problem: str) -> str:
    lines = "".join(
        f"- {'[x]' if checked else '[ ]'} {text}\n" for text, checked in _items(checklist)
    )
    return _PROMPT.format(problem=problem, checklist=lines)


def estimate_confidence(checklist: Iterable[Any]) -> tuple[str, str]:
    """Confidence in the handoff from how much of the checklist was worked.

    high: 5+ items with at least 60% done. medium: 3-4 items, or 5+ with
    less than 60% done. low: fewer than 3 items.
    """
    items = _items(checklist)
    total = len(items)
    done = sum(1 for _, checked in items if checked)
    if total == 0:
        return "low", "No troubleshooting steps provided"

    percent = done / total * 100
    if total >= 5 and percent >= 60:
        return "high", f"Based on {total} checklist items, {done} completed ({percent:.0f}%)"
    if 3 <= total <= 4:
        return "medium", f"Based on {total} checklist items, {done} completed ({percent:.0f}%)"
    if total >= 5:
        return "medium", f"Based on {total} checklist items, only {done} completed ({percent:.0f}%)"
    return "low", f"Only {total} checklist items provided"


class OllamaClient:
    """Thin async wrapper over the Ollama HTTP API."""

    def __init__(
        self,
        endpoint: str,
        model: str,
        *,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.endpoint = endpoint.rstrip("/")
        self.model = model
        self._client = httpx.AsyncClient(
            timeout=timeout or settings.ollama_timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def is_available(self) -> bool:
        """True when the Ollama server answers on ``/api/tags``."""
        try:
            resp = await self._client.get(f"{self.endpoint}/api/tags")
        except httpx.HTTPError as exc:
            logger.info("Ollama not reachable at %s: %s", self.endpoint, exc)
            return False
        return resp.is_success

    async def summarize(self, checklist: Iterable[Any], problem: str) -> SummaryResult:
        checklist = list(checklist)
        try:
            resp = await self._client.post(
                f"{self.endpoint}/api/generate",
                json={"model": self.model, "prompt": build_prompt(checklist, problem), "stream": False},
            )
        except httpx.TimeoutException as exc:
            raise OllamaError(f"Ollama did not answer in time ({self.model})") from exc
        except httpx.TransportError as exc:
            raise OllamaError(f"Cannot reach Ollama at {self.endpoint}: {exc}") from exc
        if not resp.is_success:
            raise OllamaError(f"Ollama API error: {resp.status_code}")

        try:
            summary = resp.json()["response"]
        except (ValueError, KeyError, TypeError) as exc:
            raise OllamaError("Unexpected response from Ollama") from exc

        confidence, reason = estimate_confidence(checklist)
        logger.info("Summary generated by %s (%d chars, confidence %s)", self.model, len(summary), confidence)
        return SummaryResult(summary=summary.strip(), confidence=confidence, confidence_reason=reason)
