"""Tests for the Ollama summary client against a mocked transport."""

import json

import httpx
import pytest

from escalate.ollama_client import OllamaClient, OllamaError, build_prompt, estimate_confidence

ENDPOINT = "http://ollama.test:11434"


def checklist(total: int, done: int) -> list[dict]:
    return [{"text": f"Step {i + 1}", "checked": i < done} for i in range(total)]


class TestConfidence:
    def test_high(self):
        level, reason = estimate_confidence(checklist(6, 4))
        assert level == "high"
        assert reason == "Based on 6 checklist items, 4 completed (67%)"

    def test_medium_for_short_checklist(self):
        assert estimate_confidence(checklist(3, 1))[0] == "medium"

    def test_medium_when_mostly_undone(self):
        level, reason = estimate_confidence(checklist(5, 2))
        assert level == "medium"
        assert "only 2 completed" in reason

    def test_low(self):
        assert estimate_confidence(checklist(1, 1)) == ("low", "Only 1 checklist items provided")
        assert estimate_confidence([]) == ("low", "No troubleshooting steps provided")


def test_prompt_lists_checklist():
    prompt = build_prompt(
        [{"text": "Restarted VPN", "checked": True}, {"text": "Checked logs", "checked": False}],
        "VPN connection fails",
    )
    assert "Problem: VPN connection fails" in prompt
    assert "- [x] Restarted VPN\n" in prompt
    assert "- [ ] Checked logs\n" in prompt


class TestOllamaClient:
    @pytest.mark.asyncio
    async def test_summarize(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"response": "  ✓ Completed steps:\n- Step 1\n"})

        client = OllamaClient(ENDPOINT + "/", "llama3", transport=httpx.MockTransport(handler))
        result = await client.summarize(checklist(3, 1), "VPN drops")
        await client.aclose()

        assert seen["url"] == f"{ENDPOINT}/api/generate"
        assert seen["body"]["model"] == "llama3"
        assert seen["body"]["stream"] is False
        assert "VPN drops" in seen["body"]["prompt"]
        assert result.summary == "✓ Completed steps:\n- Step 1"
        assert result.confidence == "medium"

    @pytest.mark.asyncio
    async def test_api_error(self):
        client = OllamaClient(ENDPOINT, "llama3", transport=httpx.MockTransport(lambda r: httpx.Response(500)))
        with pytest.raises(OllamaError, match="Ollama API error: 500"):
            await client.summarize([], "x")
        await client.aclose()

    @pytest.mark.asyncio
    async def test_malformed_response(self):
        client = OllamaClient(ENDPOINT, "llama3", transport=httpx.MockTransport(lambda r: httpx.Response(200, json={})))
        with pytest.raises(OllamaError):
            await client.summarize([], "x")
        await client.aclose()

    @pytest.mark.asyncio
    async def test_unreachable(self):
        def handler(request):
            raise httpx.ConnectError("connection refused")

        client = OllamaClient(ENDPOINT, "llama3", transport=httpx.MockTransport(handler))
        assert await client.is_available() is False
        with pytest.raises(OllamaError, match="Cannot reach Ollama"):
            await client.summarize([], "x")
        await client.aclose()

    @pytest.mark.asyncio
    async def test_available(self):
        def handler(request):
            assert request.url.path == "/api/tags"
            return httpx.Response(200, json={"models": []})

        client = OllamaClient(ENDPOINT, "llama3", transport=httpx.MockTransport(handler))
        assert await client.is_available() is True
        await client.aclose()
