"""
Learning card endpoints: listing, review and practice queues, scheduling and provisioning.
"""
from fastapi import APIRouter, Depends, Query, status
from datetime import datetime
from typing import Optional
import logging

from app.models.enums import CEFRLevel, CardKind, PracticeType
from app.schemas.learning_card import (
    LearningCardResponse,
    LearningCardsResponse,
    ScheduleCardRequest,
    ScheduleAutoRequest,
    ScheduleCardResponse,
    ReviewQueueResponse,
    DueSummaryResponse,
    LevelDueData,
    ProvisionCardsRequest,
    ProvisionCardsResponse,
    ImportProgressRequest,
    ImportProgressResponse,
)
from app.services import srs_service
from app.services.card_repository import SqlCardRepository
from app.services.provisioning_service import ensure_cards_for_level, import_progress_records
from app.services.review_queue_service import (
    NEW_CARDS_PER_SESSION,
    get_cards_for_practice,
    get_new_cards,
    get_review_queue,
    list_user_cards,
    summarize_due,
)
from app.api.v1.endpoints.utils import get_card_repository, to_card_response
from app.utils.time_utils import utcnow, to_naive_utc

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cards", tags=["cards"])


@router.get("", response_model=LearningCardsResponse)
async def get_cards(
    user_id: str,
    kind: Optional[CardKind] = None,
    language: Optional[str] = None,
    repository: SqlCardRepository = Depends(get_card_repository)
):
    """
    Get all cards of a user, in creation order.

    Args:
        user_id: Owning user
        kind: Optional filter by card kind ('grammar' or 'vocabulary')
        language: Optional filter by target language code

    Returns:
        All matching cards, due or not
    """
    cards = list_user_cards(repository, user_id, kind=kind, language=language)
    return LearningCardsResponse(
        cards=[to_card_response(card) for card in cards],
        count=len(cards)
    )


@router.get("/review-queue", response_model=ReviewQueueResponse)
async def get_cards_review_queue(
    user_id: str,
    as_of: Optional[datetime] = None,
    kind: Optional[CardKind] = None,
    language: Optional[str] = None,
    repository: SqlCardRepository = Depends(get_card_repository)
):
    """
    Get the cards due for review, earliest due first.

    An empty list means nothing is due right now; use GET /cards to check
    whether the user has any cards at all.
    """
    as_of = to_naive_utc(as_of) if as_of is not None else utcnow()
    cards = get_review_queue(repository, user_id, as_of=as_of, kind=kind, language=language)
    return ReviewQueueResponse(
        user_id=user_id,
        as_of=as_of,
        count=len(cards),
        cards=[to_card_response(card) for card in cards]
    )


@router.get("/new", response_model=LearningCardsResponse)
async def get_cards_new(
    user_id: str,
    kind: Optional[CardKind] = None,
    language: Optional[str] = None,
    limit: int = Query(NEW_CARDS_PER_SESSION, ge=0),
    repository: SqlCardRepository = Depends(get_card_repository)
):
    """Get cards the user has never reviewed, in creation order, capped per session."""
    cards = get_new_cards(repository, user_id, kind=kind, language=language, limit=limit)
    return LearningCardsResponse(
        cards=[to_card_response(card) for card in cards],
        count=len(cards)
    )


@router.get("/practice-queue", response_model=LearningCardsResponse)
async def get_cards_practice_queue(
    user_id: str,
    practice_type: PracticeType = PracticeType.WRITTEN_TRANSLATION,
    kind: Optional[CardKind] = None,
    language: Optional[str] = None,
    repository: SqlCardRepository = Depends(get_card_repository)
):
    """
    Get all cards of a user, least practiced first for the given practice type.

    Args:
        user_id: Owning user
        practice_type: Practice mode whose counters decide the order
        kind: Optional filter by card kind
        language: Optional filter by target language code
    """
    cards = get_cards_for_practice(repository, user_id, practice_type, kind=kind, language=language)
    return LearningCardsResponse(
        cards=[to_card_response(card) for card in cards],
        count=len(cards)
    )


@router.get("/due-summary", response_model=DueSummaryResponse)
async def get_due_summary(
    user_id: str,
    as_of: Optional[datetime] = None,
    repository: SqlCardRepository = Depends(get_card_repository)
):
    """Get due / not-due card counts per CEFR level."""
    as_of = to_naive_utc(as_of) if as_of is not None else utcnow()
    summary = summarize_due(repository, user_id, as_of=as_of)

    levels = [
        LevelDueData(level=level, **counts)
        for level, counts in summary.items()
    ]
    return DueSummaryResponse(
        user_id=user_id,
        as_of=as_of,
        total=sum(data.count for data in levels),
        due=sum(data.count_due for data in levels),
        levels=levels
    )


@router.post("/provision", response_model=ProvisionCardsResponse, status_code=status.HTTP_200_OK)
async def provision_cards(
    request: ProvisionCardsRequest,
    repository: SqlCardRepository = Depends(get_card_repository)
):
    """
    Create any missing cards for the user's level and all levels below it.

    Safe to call repeatedly: topics that already have a card are skipped.
    """
    created = ensure_cards_for_level(
        repository,
        request.user_id,
        CEFRLevel(request.level),
        language=request.language.lower()
    )
    return ProvisionCardsResponse(
        message=f"Created {len(created)} card(s)",
        created_count=len(created),
        cards=[to_card_response(card) for card in created]
    )


@router.post("/import", response_model=ImportProgressResponse, status_code=status.HTTP_200_OK)
async def import_progress(
    request: ImportProgressRequest,
    repository: SqlCardRepository = Depends(get_card_repository)
):
    """
    Import scheduling progress records from older clients.

    Accepts both the legacy camelCase and the current snake_case record shapes.
    A malformed record rejects the whole batch with 400.
    """
    created_count, updated_count = import_progress_records(repository, request.user_id, request.records)
    return ImportProgressResponse(
        message=f"Imported {created_count + updated_count} progress record(s)",
        created_count=created_count,
        updated_count=updated_count
    )


@router.get("/{card_id}", response_model=LearningCardResponse)
async def get_card(
    card_id: int,
    repository: SqlCardRepository = Depends(get_card_repository)
):
    """Get a card by ID."""
    return to_card_response(repository.get_card(card_id))


@router.post("/{card_id}/schedule", response_model=ScheduleCardResponse)
async def schedule_card(
    card_id: int,
    request: ScheduleCardRequest,
    repository: SqlCardRepository = Depends(get_card_repository)
):
    """
    Apply a review outcome (quality 0-5) to a card.

    Returns 400 for a quality outside 0-5, 404 for an unknown card and 409 if the
    card was updated concurrently.
    """
    card = srs_service.schedule_card(repository, card_id, request.quality)
    return ScheduleCardResponse(
        interval=card.interval,
        ease_factor=card.ease_factor,
        next_review_at=card.next_review_at,
        repetitions=card.repetitions,
        interval_label=srs_service.format_interval(card.interval),
        card=to_card_response(card)
    )


@router.post("/{card_id}/schedule-auto", response_model=ScheduleCardResponse)
async def schedule_card_auto(
    card_id: int,
    request: ScheduleAutoRequest,
    repository: SqlCardRepository = Depends(get_card_repository)
):
    """Apply a right/wrong answer to a card: right counts as quality 4, wrong as 0."""
    card = srs_service.schedule_card_auto(repository, card_id, request.correct)
    return ScheduleCardResponse(
        interval=card.interval,
        ease_factor=card.ease_factor,
        next_review_at=card.next_review_at,
        repetitions=card.repetitions,
        interval_label=srs_service.format_interval(card.interval),
        card=to_card_response(card)
    )


@router.post("/{card_id}/reset", response_model=LearningCardResponse)
async def reset_card(
    card_id: int,
    repository: SqlCardRepository = Depends(get_card_repository)
):
    """Reset a card to the fresh state, due immediately."""
    return to_card_response(srs_service.reset_card(repository, card_id))
