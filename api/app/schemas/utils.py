"""
Utility functions for schema validation.
"""
from pydantic import BaseModel, ValidationError, field_validator
from typing import Any, Mapping, Optional
from datetime import datetime
from app.core.exceptions import InvalidArgumentError
from app.models.enums import CEFRLevel, CardKind
from app.models.learning_card import DEFAULT_EASE_FACTOR
from app.utils.time_utils import to_naive_utc


class ProgressRecord(BaseModel):
    """Normalized scheduling progress for one card, independent of the wire shape it came from."""
    topic_id: str
    kind: CardKind
    next_review: datetime
    ease_factor: float = DEFAULT_EASE_FACTOR
    interval: int = 0
    repetitions: int = 0
    last_reviewed: Optional[datetime] = None
    created_at: Optional[datetime] = None
    language: str = "fr"
    level: CEFRLevel = CEFRLevel.A1
    title: str = ""

    @field_validator("next_review", "last_reviewed", "created_at")
    @classmethod
    def _to_naive_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v)


# Current snake_case names first, then the legacy camelCase names of the local store
_FIELD_ALIASES = {
    "topic_id": ("topic_id", "topicId"),
    "card_id": ("card_id", "cardId"),
    "next_review": ("next_review", "next_review_at", "nextReview"),
    "ease_factor": ("ease_factor", "easeFactor"),
    "interval": ("interval",),
    "repetitions": ("repetitions",),
    "last_reviewed": ("last_reviewed", "last_review_time", "lastReviewed"),
    "created_at": ("created_at", "createdAt"),
    "language": ("language",),
    "level": ("level",),
    "title": ("topic", "title", "french"),
}


def _pick(record: Mapping[str, Any], field: str) -> Any:
    for name in _FIELD_ALIASES[field]:
        value = record.get(name)
        if value is not None:
            return value
    return None


def normalize_progress_record(record: Mapping[str, Any]) -> ProgressRecord:
    """
    Normalize a raw progress record into a ProgressRecord.

    Accepts both the legacy camelCase shape (topicId/cardId, nextReview, easeFactor,
    lastReviewed, createdAt) and the current snake_case shape (topic_id/card_id,
    next_review, ease_factor, last_reviewed, created_at). Grammar records carry a
    topic id; vocabulary records carry a card id.

    Args:
        record: Raw record mapping

    Returns:
        Normalized ProgressRecord

    Raises:
        InvalidArgumentError: If the record has no identifier, no next review date,
            or a field that cannot be parsed
    """
    topic_id = _pick(record, "topic_id")
    card_id = _pick(record, "card_id")
    if topic_id is not None:
        kind = CardKind.GRAMMAR
    elif card_id is not None:
        kind = CardKind.VOCABULARY
        topic_id = card_id
    else:
        raise InvalidArgumentError("Progress record has neither a topic id nor a card id")

    values = {
        "topic_id": str(topic_id),
        "kind": kind,
    }
    for field in ("next_review", "ease_factor", "interval", "repetitions",
                  "last_reviewed", "created_at", "language", "level", "title"):
        value = _pick(record, field)
        if value is not None:
            values[field] = value

    if "next_review" not in values:
        raise InvalidArgumentError(f"Progress record for {topic_id} has no next review date")

    try:
        return ProgressRecord(**values)
    except ValidationError as e:
        raise InvalidArgumentError(f"Malformed progress record for {topic_id}: {e}") from e
