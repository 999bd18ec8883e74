"""Multi-source search endpoint."""

from fastapi import APIRouter, Depends

from orchestrator.core import SymptomSearchOrchestrator
from server.dependencies import get_orchestrator
from server.schemas.requests import SearchRequest, selection_of
from server.schemas.responses import SearchResponseDTO

router = APIRouter(prefix="/api", tags=["Search"])


@router.post("/search", response_model=SearchResponseDTO)
async def search(
    request: SearchRequest,
    orchestrator: SymptomSearchOrchestrator = Depends(get_orchestrator),
):
    results = await orchestrator.search(request.query, selection_of(request.sources))
    return SearchResponseDTO.from_results(results)
