"""AI recommendation API routes.

These endpoints proxy requests to the AI gateway. The stream endpoint
relays the upstream event stream byte for byte; the recommendation
endpoint waits for the full text.
"""
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from ..models.assistant import AssistantRequest, RecommendationResponse
from ..database import DatabaseManager, get_db
from ..services.assistant_gateway import AssistantGateway, AssistantGatewayError, get_assistant_gateway
from ..services.food_catalog import fetch_active_foods, food_for_prompt
from ..services.session import SessionContext, get_session_context

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/assistant", tags=["AI Assistant"])


def _with_catalog(body: AssistantRequest, db: DatabaseManager, limit: int) -> AssistantRequest:
    """Fill in the food list from the database when the caller sent none."""
    if body.available_foods:
        return body
    with db.get_conn() as conn:
        foods = [food_for_prompt(row) for row in fetch_active_foods(conn, limit=limit)]
    return body.model_copy(update={"available_foods": foods})


@router.post("/stream")
async def stream_recommendation(
    body: AssistantRequest,
    session: SessionContext = Depends(get_session_context),
    gateway: AssistantGateway = Depends(get_assistant_gateway),
    db: DatabaseManager = Depends(get_db),
):
    """
    Stream an Ayurvedic recommendation as server-sent events.

    Upstream errors are raised before the response starts, so the caller
    gets a JSON error body with the mapped status. The upstream response
    is closed when the body is exhausted or the client goes away, even
    before the first byte.
    """
    request = _with_catalog(body, db, gateway.settings.ai_max_prompt_foods)
    chunks = await gateway.stream(request)
    return StreamingResponse(
        chunks,
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable nginx buffering
        },
        background=BackgroundTask(chunks.aclose),
    )


@router.post("/recommendation", response_model=RecommendationResponse)
async def get_recommendation(
    body: AssistantRequest,
    session: SessionContext = Depends(get_session_context),
    gateway: AssistantGateway = Depends(get_assistant_gateway),
    db: DatabaseManager = Depends(get_db),
):
    """
    Generate a complete recommendation.

    This is an on-demand operation that may take 30-60 seconds.
    """
    request = _with_catalog(body, db, gateway.settings.ai_max_prompt_foods)
    content = await gateway.collect(request)
    if not content.strip():
        raise AssistantGatewayError(502, "No content received from AI assistant")

    logger.info(f"[ASSISTANT] Recommendation of {len(content)} chars for {session.user_id}")
    return RecommendationResponse(
        content=content,
        generated_at=datetime.now(timezone.utc).isoformat(),
    )
