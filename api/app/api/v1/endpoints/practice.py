"""
Practice session endpoints.
"""
from fastapi import APIRouter, Depends, status
import logging

from app.schemas.practice import (
    CompletePracticeRequest,
    CompletePracticeResponse,
    PracticeSessionResponse,
    ScoreRepeatAloudRequest,
    ScoreRepeatAloudResponse,
)
from app.services.card_repository import SqlCardRepository
from app.services.practice_service import complete_practice, score_repeat_aloud
from app.api.v1.endpoints.utils import get_card_repository, to_card_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/practice", tags=["practice"])


@router.post("/complete", response_model=CompletePracticeResponse, status_code=status.HTTP_200_OK)
async def complete_practice_session(
    request: CompletePracticeRequest,
    repository: SqlCardRepository = Depends(get_card_repository)
):
    """
    Complete a practice session and schedule its card.

    This endpoint:
    1. Aggregates the exercise results into a session
    2. Updates the card's practice statistics for the practice type
    3. Derives the session quality from the share of correct answers
    4. Schedules the card with that quality

    The session itself is not stored; it is returned for display.
    """
    session, card = complete_practice(
        repository,
        request.card_id,
        request.practice_type,
        request.results
    )
    return CompletePracticeResponse(
        session=PracticeSessionResponse.model_validate(session),
        card=to_card_response(card)
    )


@router.post("/score-repeat-aloud", response_model=ScoreRepeatAloudResponse)
async def score_repeat_aloud_answer(request: ScoreRepeatAloudRequest):
    """Score a spoken repeat-aloud answer against its target sentence."""
    return ScoreRepeatAloudResponse(
        result=score_repeat_aloud(request.transcript, request.target_text)
    )
