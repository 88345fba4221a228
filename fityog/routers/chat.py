"""
AI Assistant API Router

Personalized yoga and exercise recommendations from the AI assistant.
"""
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from fityog.core.auth import get_current_user, get_gateway
from fityog.core.exceptions import RecommendationError
from fityog.schemas import ChatRequest, Recommendation, User
from fityog.services.recommendation_gateway import RecommendationGateway

router = APIRouter(prefix="/api/chat", tags=["AI Assistant"])

FAILURE_MESSAGE = "Failed to get AI recommendations"


@router.post("", response_model=Recommendation)
def get_recommendations(
    request: ChatRequest,
    current_user: User = Depends(get_current_user),
    gateway: RecommendationGateway = Depends(get_gateway),
):
    """
    Ask the assistant for asanas, exercises and resources matching the prompt.

    Failures are logged by the gateway; the caller gets a generic message
    plus a short description.
    """
    try:
        return gateway.recommend(request.prompt, current_user)
    except RecommendationError as e:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": FAILURE_MESSAGE, "error": e.detail},
        )
