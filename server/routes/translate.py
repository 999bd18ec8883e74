"""Symptom-to-medical-terms translation endpoint."""

from fastapi import APIRouter, Depends

from orchestrator.core import SymptomSearchOrchestrator
from server.dependencies import get_orchestrator
from server.schemas.requests import TranslateRequest
from server.schemas.responses import TranslateResponseDTO

router = APIRouter(prefix="/api", tags=["Translate"])


@router.post("/translate", response_model=TranslateResponseDTO)
async def translate(
    request: TranslateRequest,
    orchestrator: SymptomSearchOrchestrator = Depends(get_orchestrator),
):
    terms = await orchestrator.translate(request.query)
    return TranslateResponseDTO.from_translation(terms)
