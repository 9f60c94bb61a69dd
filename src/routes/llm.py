"""AI summary endpoints backed by a local Ollama model."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from escalate.ollama_client import OllamaError
from escalate.remote_config import OllamaClientFactory
from src.schemas.llm import LlmStatus, SummarizeRequest, SummaryResponse

router = APIRouter(prefix="/llm", tags=["llm"])


def get_ollama_factory() -> OllamaClientFactory:
    return OllamaClientFactory()


@router.get("/status", response_model=LlmStatus)
async def llm_status(factory: OllamaClientFactory = Depends(get_ollama_factory)):
    client = await factory()
    try:
        available = await client.is_available()
    finally:
        await client.aclose()
    return LlmStatus(available=available, endpoint=client.endpoint, model=client.model)


@router.post("/summarize", response_model=SummaryResponse)
async def summarize(body: SummarizeRequest, factory: OllamaClientFactory = Depends(get_ollama_factory)):
    """Draft the AI summary and confidence for a checklist and problem statement."""
    client = await factory()
    try:
        if not await client.is_available():
            raise HTTPException(
                status_code=503,
                detail="Ollama is not running. Start it with `ollama serve` or skip the AI summary.",
            )
        result = await client.summarize(body.checklist, body.problem_summary)
    except OllamaError as exc:
        raise HTTPException(status_code=502, detail=str(exc))
    finally:
        await client.aclose()
    return SummaryResponse(
        summary=result.summary,
        confidence=result.confidence,
        confidence_reason=result.confidence_reason,
    )
