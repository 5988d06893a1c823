"""
SRS (Spaced Repetition System) service implementing an SM-2 variant.

This service computes the next interval, ease factor and due date of a learning
card from a recall quality rating, and applies the result through the card
repository.

Quality ratings:
0 - Complete blackout
1 - Incorrect, but upon seeing the correct answer, it felt familiar
2 - Incorrect, but the correct answer seemed easy to recall
3 - Correct, but required significant effort
4 - Correct, after some hesitation
5 - Correct, with perfect recall
"""
import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Tuple

from app.core.exceptions import InvalidArgumentError
from app.models.learning_card import LearningCard, DEFAULT_EASE_FACTOR
from app.services.card_repository import CardRepository
from app.utils.time_utils import utcnow, to_naive_utc

logger = logging.getLogger(__name__)


MIN_EASE_FACTOR = 1.3
MIN_QUALITY = 0
MAX_QUALITY = 5
PASSING_QUALITY = 3

# Fixed intervals (days) for the first two successful reviews
FIRST_INTERVAL = 1
SECOND_INTERVAL = 6

# Qualities used when an exercise only reports right or wrong
AUTO_CORRECT_QUALITY = 4
AUTO_INCORRECT_QUALITY = 0


@dataclass(frozen=True)
class ScheduleResult:
    """Scheduling state computed for one review."""
    interval: int
    ease_factor: float
    repetitions: int
    next_review_at: datetime


def validate_quality(quality: int) -> int:
    """
    Check that a quality rating is an integer in [0, 5].

    Raises:
        InvalidArgumentError: If the rating is not an int (bools included) or out of range
    """
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise InvalidArgumentError(f"Quality must be an integer between {MIN_QUALITY} and {MAX_QUALITY}, got {quality!r}")
    if quality < MIN_QUALITY or quality > MAX_QUALITY:
        raise InvalidArgumentError(f"Quality must be between {MIN_QUALITY} and {MAX_QUALITY}, got {quality}")
    return quality


def validate_card_state(interval: int, ease_factor: float, repetitions: int) -> None:
    """
    Check the stored scheduling state of a card before computing on it.

    Raises:
        InvalidArgumentError: If interval or repetitions are negative, the ease factor is
            below the floor, or a zero interval carries repetitions
    """
    if interval < 0:
        raise InvalidArgumentError(f"Card interval must be non-negative, got {interval}")
    if repetitions < 0:
        raise InvalidArgumentError(f"Card repetitions must be non-negative, got {repetitions}")
    if ease_factor < MIN_EASE_FACTOR:
        raise InvalidArgumentError(f"Card ease factor must be at least {MIN_EASE_FACTOR}, got {ease_factor}")
    if interval == 0 and repetitions != 0:
        raise InvalidArgumentError(f"Card with zero interval must have zero repetitions, got {repetitions}")


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calculate_ease_factor(ease_factor: float, quality: int) -> float:
    """
    EF' = max(1.3, EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02)))
    """
    q_factor = 0.1 - (5 - quality) * (0.08 + (5 - quality) * 0.02)
    return max(MIN_EASE_FACTOR, ease_factor + q_factor)


def calculate_next_review(
    interval: int,
    ease_factor: float,
    repetitions: int,
    quality: int,
    now: Optional[datetime] = None
) -> ScheduleResult:
    """
    Compute the next scheduling state for a card.

    A failed review (quality < 3) sends the card back to new. A successful one
    moves it to 1 day, then 6 days, then grows the interval by the ease factor
    held before this review. The ease factor is updated on every review. The due
    date counts from now, not from the previous due date.

    Args:
        interval: Current interval in days
        ease_factor: Current ease factor
        repetitions: Current count of consecutive successful reviews
        quality: Recall quality (0-5)
        now: Time of the review (defaults to now)

    Returns:
        ScheduleResult with the new interval, ease factor, repetitions and due date

    Raises:
        InvalidArgumentError: On an invalid quality or malformed card state
    """
    validate_quality(quality)
    validate_card_state(interval, ease_factor, repetitions)
    now = to_naive_utc(now) if now is not None else utcnow()

    if quality < PASSING_QUALITY:
        new_interval = 0
        new_repetitions = 0
    else:
        if repetitions == 0:
            new_interval = FIRST_INTERVAL
        elif repetitions == 1:
            new_interval = SECOND_INTERVAL
        else:
            new_interval = _round_half_up(interval * ease_factor)
        new_repetitions = repetitions + 1

    new_ease_factor = calculate_ease_factor(ease_factor, quality)

    return ScheduleResult(
        interval=new_interval,
        ease_factor=new_ease_factor,
        repetitions=new_repetitions,
        next_review_at=now + timedelta(days=new_interval),
    )


def schedule_card(
    repository: CardRepository,
    card_id: int,
    quality: int,
    now: Optional[datetime] = None
) -> LearningCard:
    """
    Apply one review outcome to a stored card.

    Reads the card, computes its next state and writes it back with a
    compare-and-set on the version that was read.

    Args:
        repository: Card repository
        card_id: Card to schedule
        quality: Recall quality (0-5)
        now: Time of the review (defaults to now)

    Returns:
        The updated card

    Raises:
        InvalidArgumentError: On an invalid quality or malformed stored state
        NotFoundError: If the card does not exist
        ConflictError: If the card changed between read and write
    """
    validate_quality(quality)
    now = to_naive_utc(now) if now is not None else utcnow()

    card = repository.get_card(card_id)
    result, fields = build_schedule_update(card, quality, now)

    updated = repository.update_card(card_id, fields, expected_version=card.version)
    log_schedule(card_id, quality, result)
    return updated


def build_schedule_update(
    card: LearningCard,
    quality: int,
    now: datetime
) -> Tuple[ScheduleResult, Dict[str, Any]]:
    """
    Compute a card's next state and the column values that store it.

    Nothing is written, so callers can merge the fields into a larger update.

    Raises:
        InvalidArgumentError: On an invalid quality or malformed card state
    """
    result = calculate_next_review(card.interval, card.ease_factor, card.repetitions, quality, now=now)
    fields = {
        "interval": result.interval,
        "ease_factor": result.ease_factor,
        "repetitions": result.repetitions,
        "next_review_at": result.next_review_at,
        "last_review_time": to_naive_utc(now),
    }
    return result, fields


def log_schedule(card_id: int, quality: int, result: ScheduleResult) -> None:
    logger.info(
        f"Scheduled card {card_id} with quality {quality}: interval={result.interval}d, "
        f"ease_factor={result.ease_factor:.2f}, repetitions={result.repetitions}, "
        f"next_review_at={result.next_review_at}"
    )


def quality_from_answer(correct: bool) -> int:
    """Quality for a plain right/wrong answer: good recall (4) or blackout (0)."""
    return AUTO_CORRECT_QUALITY if correct else AUTO_INCORRECT_QUALITY


def schedule_card_auto(
    repository: CardRepository,
    card_id: int,
    correct: bool,
    now: Optional[datetime] = None
) -> LearningCard:
    """Schedule a card from a right/wrong answer, without a manual quality rating."""
    return schedule_card(repository, card_id, quality_from_answer(correct), now=now)


def reset_card(
    repository: CardRepository,
    card_id: int,
    now: Optional[datetime] = None
) -> LearningCard:
    """
    Forget a card: back to the fresh-card state, due immediately.

    Raises:
        NotFoundError: If the card does not exist
    """
    now = to_naive_utc(now) if now is not None else utcnow()
    card = repository.get_card(card_id)

    updated = repository.update_card(
        card_id,
        {
            "interval": 0,
            "ease_factor": DEFAULT_EASE_FACTOR,
            "repetitions": 0,
            "next_review_at": now,
            "last_review_time": now,
        },
        expected_version=card.version,
    )
    logger.info(f"Reset card {card_id}")
    return updated


_QUALITY_LABELS: Dict[int, Dict[str, str]] = {
    0: {"label": "Again", "color": "red", "description": "Complete failure"},
    1: {"label": "Poor", "color": "orange", "description": "Wrong, but familiar"},
    2: {"label": "Hard", "color": "yellow", "description": "Wrong, but easy to recall"},
    3: {"label": "Okay", "color": "lime", "description": "Correct with effort"},
    4: {"label": "Good", "color": "green", "description": "Correct after hesitation"},
    5: {"label": "Easy", "color": "emerald", "description": "Perfect recall"},
}


def get_quality_label(quality: int) -> Dict[str, str]:
    """Display label, color and description for a quality rating."""
    return dict(_QUALITY_LABELS[validate_quality(quality)])


def _count_label(count: int, unit: str) -> str:
    return f"in {count} {unit}" if count == 1 else f"in {count} {unit}s"


def format_interval(days: int) -> str:
    """
    Human readable form of an interval.

    Example: 0 -> 'today', 1 -> 'tomorrow', 6 -> 'in 6 days', 16 -> 'in 2 weeks'
    """
    if days <= 0:
        return "today"
    if days == 1:
        return "tomorrow"
    if days < 7:
        return _count_label(days, "day")
    if days < 30:
        return _count_label(_round_half_up(days / 7), "week")
    if days < 365:
        return _count_label(_round_half_up(days / 30), "month")
    return _count_label(_round_half_up(days / 365), "year")
