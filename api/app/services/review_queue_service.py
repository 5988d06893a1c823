"""
Review queue service: which of a user's cards are due, new or least practiced.
"""
import logging
from datetime import datetime
from typing import Dict, List, Optional

from app.core.exceptions import InvalidArgumentError
from app.models.enums import CEFRLevel, CardKind, PracticeType
from app.models.learning_card import LearningCard
from app.schemas.learning_card import PracticeStats
from app.services.card_repository import CardRepository
from app.utils.time_utils import utcnow, to_naive_utc

logger = logging.getLogger(__name__)

# Cap on never-reviewed cards handed out in one learning session
NEW_CARDS_PER_SESSION = 5


def _review_order_key(card: LearningCard):
    # Earliest due first; equal due dates keep creation order
    return (card.next_review_at, card.created_time, card.id or 0)


def _matches(card: LearningCard, kind: Optional[CardKind], language: Optional[str]) -> bool:
    if kind is not None and card.kind != CardKind(kind):
        return False
    if language is not None and card.language.lower() != language.lower():
        return False
    return True


def list_user_cards(
    repository: CardRepository,
    user_id: str,
    kind: Optional[CardKind] = None,
    language: Optional[str] = None
) -> List[LearningCard]:
    """
    All cards owned by a user, in creation order, optionally filtered by kind and language.

    Lets callers tell "nothing due now" apart from "no cards at all".
    """
    cards = repository.list_cards_for_user(user_id)
    return [card for card in cards if _matches(card, kind, language)]


def get_review_queue(
    repository: CardRepository,
    user_id: str,
    as_of: Optional[datetime] = None,
    kind: Optional[CardKind] = None,
    language: Optional[str] = None
) -> List[LearningCard]:
    """
    Get the cards a user should review now.

    Returns every card owned by the user whose next_review_at is at or before
    as_of, ordered by next_review_at ascending with ties in creation order.
    Always reads the repository; nothing is cached.

    Args:
        repository: Card repository
        user_id: Owning user
        as_of: Reference time (defaults to now; aware values are converted to UTC)
        kind: Optional card kind filter
        language: Optional target language filter

    Returns:
        Due cards, earliest first. Empty when nothing is due.
    """
    as_of = to_naive_utc(as_of) if as_of is not None else utcnow()

    # Repository implementations are only required to pre-filter
    due = [
        card for card in repository.list_due_cards(user_id, as_of)
        if card.next_review_at <= as_of and _matches(card, kind, language)
    ]
    due.sort(key=_review_order_key)

    logger.debug(f"Review queue for user {user_id} as of {as_of}: {len(due)} card(s) due")
    return due


def _never_reviewed(card: LearningCard) -> bool:
    return card.last_review_time is None and card.repetitions == 0


def get_new_cards(
    repository: CardRepository,
    user_id: str,
    kind: Optional[CardKind] = None,
    language: Optional[str] = None,
    limit: int = NEW_CARDS_PER_SESSION
) -> List[LearningCard]:
    """
    Cards the user has never reviewed, in creation order, at most `limit` of them.

    Raises:
        InvalidArgumentError: If limit is negative
    """
    if limit < 0:
        raise InvalidArgumentError(f"New card limit must be non-negative, got {limit}")
    new_cards = [
        card for card in list_user_cards(repository, user_id, kind=kind, language=language)
        if _never_reviewed(card)
    ]
    return new_cards[:limit]


def practice_count(card: LearningCard, practice_type: PracticeType) -> int:
    """How often a card was practiced in a mode: sessions for dialogs, attempts otherwise."""
    stats = PracticeStats.model_validate(card.practice_stats or {})
    practice_type = PracticeType(practice_type)
    if practice_type == PracticeType.GRAMMAR_DIALOG:
        return stats.grammar_dialog.sessions
    if practice_type == PracticeType.REPEAT_ALOUD:
        return stats.repeat_aloud.attempts
    if practice_type == PracticeType.ORAL_TRANSLATION:
        return stats.oral_translation.attempts
    return stats.written_translation.attempts


def get_cards_for_practice(
    repository: CardRepository,
    user_id: str,
    practice_type: PracticeType,
    kind: Optional[CardKind] = None,
    language: Optional[str] = None
) -> List[LearningCard]:
    """
    All of a user's cards, least practiced in the given mode first.

    Equal counts keep creation order. Due dates play no part here.
    """
    cards = list_user_cards(repository, user_id, kind=kind, language=language)
    return sorted(cards, key=lambda card: practice_count(card, practice_type))


def summarize_due(
    repository: CardRepository,
    user_id: str,
    as_of: Optional[datetime] = None
) -> Dict[CEFRLevel, Dict[str, int]]:
    """
    Count due and not-due cards per CEFR level.

    Returns:
        Dict keyed by every CEFR level (in order) with 'count', 'count_due' and
        'count_not_due' entries
    """
    as_of = to_naive_utc(as_of) if as_of is not None else utcnow()

    summary: Dict[CEFRLevel, Dict[str, int]] = {
        level: {"count": 0, "count_due": 0, "count_not_due": 0} for level in CEFRLevel
    }
    for card in repository.list_cards_for_user(user_id):
        bucket = summary[CEFRLevel(card.level)]
        bucket["count"] += 1
        if card.next_review_at <= as_of:
            bucket["count_due"] += 1
        else:
            bucket["count_not_due"] += 1

    return summary
