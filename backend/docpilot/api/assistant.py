"""Developer Q&A over recent commits and reviewed documentation."""

from fastapi import APIRouter, Depends

from docpilot.api.deps import get_insights_service
from docpilot.dtos import AskRequest, AskResponse
from docpilot.services.insights_service import InsightsService

router = APIRouter(prefix="/assistant", tags=["Assistant"])


@router.post("/ask", response_model=AskResponse)
async def ask(
    payload: AskRequest,
    insights: InsightsService = Depends(get_insights_service),
):
    return AskResponse(answer=await insights.ask(payload.question))
