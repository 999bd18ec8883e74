"""Grounded AI answer endpoint."""

from fastapi import APIRouter, Depends

from orchestrator.core import SymptomSearchOrchestrator
from server.dependencies import get_orchestrator
from server.schemas.requests import AiSearchRequest, selection_of
from server.schemas.responses import AiSearchResponseDTO

router = APIRouter(prefix="/api", tags=["AI Search"])


@router.post("/ai-search", response_model=AiSearchResponseDTO)
async def ai_search(
    request: AiSearchRequest,
    orchestrator: SymptomSearchOrchestrator = Depends(get_orchestrator),
):
    """
    Answer the symptom question with Google Search grounding.

    Falls back to an ungrounded answer (usedGrounding=false) when the model
    does not support grounding.
    """
    answer = await orchestrator.ai_search(
        request.query, request.medical_terms, selection_of(request.sources)
    )
    return AiSearchResponseDTO.from_grounded_answer(answer)
