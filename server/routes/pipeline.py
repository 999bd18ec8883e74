"""Full pipeline endpoint: translate, then answer and search concurrently."""

from fastapi import APIRouter, Depends

from orchestrator.core import SymptomSearchOrchestrator
from server.dependencies import get_orchestrator
from server.schemas.requests import PipelineRequest, selection_of
from server.schemas.responses import PipelineResponseDTO

router = APIRouter(prefix="/api", tags=["Pipeline"])


@router.post("/pipeline", response_model=PipelineResponseDTO)
async def pipeline(
    request: PipelineRequest,
    orchestrator: SymptomSearchOrchestrator = Depends(get_orchestrator),
):
    result = await orchestrator.run(
        request.query,
        selection_of(request.sources),
        include_answer=request.include_answer,
    )
    return PipelineResponseDTO.from_pipeline_result(result)
