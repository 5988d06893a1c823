"""
Practice service: aggregates exercise results of one practice session into a
single SRS quality rating, and keeps per-practice-type statistics on cards.

A PracticeSession is a plain value owned by the flow that started it. It moves
from active to ended (end_session) or discarded (reset_session) and is never
persisted; only its final quality leaves this module, as the SM-2 rating of
the card it was run against.
"""
import logging
import math
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from app.core.exceptions import SessionStateError
from app.models.enums import PracticeType, SessionState
from app.models.learning_card import LearningCard
from app.schemas.learning_card import PracticeStats
from app.schemas.practice import ExerciseResult
from app.services import srs_service
from app.services.card_repository import CardRepository
from app.utils.text_utils import word_similarity
from app.utils.time_utils import utcnow, to_naive_utc

logger = logging.getLogger(__name__)


# (minimum correct share, quality), checked top-down
QUALITY_THRESHOLDS = [
    (0.9, 5),
    (0.8, 4),
    (0.6, 3),
    (0.4, 2),
    (0.2, 1),
]

REPEAT_ALOUD_PASS_SCORE = 70
REPEAT_ALOUD_EXCELLENT_SCORE = 90


@dataclass
class PracticeSession:
    """One run of exercises of a single practice type against one card."""
    user_id: str
    card_id: int
    practice_type: PracticeType
    started_at: datetime
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    state: SessionState = SessionState.ACTIVE
    ended_at: Optional[datetime] = None
    exercises_completed: int = 0
    correct_answers: int = 0
    pronunciation_scores: List[int] = field(default_factory=list)
    results: List[ExerciseResult] = field(default_factory=list)
    correct_percentage: float = 0.0
    avg_pronunciation_score: Optional[float] = None
    final_quality: int = 0


def _require_active(session: PracticeSession, action: str) -> None:
    if session.state != SessionState.ACTIVE:
        raise SessionStateError(
            f"Cannot {action} practice session {session.id}: session is {session.state.value}"
        )


def derive_quality(correct_percentage: float) -> int:
    """Map the share of correct answers (0.0-1.0) to an SRS quality rating (0-5)."""
    for threshold, quality in QUALITY_THRESHOLDS:
        if correct_percentage >= threshold:
            return quality
    return 0


def start_session(
    card: LearningCard,
    practice_type: PracticeType = PracticeType.WRITTEN_TRANSLATION,
    now: Optional[datetime] = None
) -> PracticeSession:
    """Start an active session with all counters at zero."""
    return PracticeSession(
        user_id=card.user_id,
        card_id=card.id,
        practice_type=PracticeType(practice_type),
        started_at=to_naive_utc(now) if now is not None else utcnow(),
    )


def add_result(session: PracticeSession, result: ExerciseResult) -> PracticeSession:
    """
    Record one exercise result.

    Raises:
        SessionStateError: If the session is not active
    """
    _require_active(session, "add a result to")

    session.results.append(result)
    session.exercises_completed += 1
    if result.is_correct:
        session.correct_answers += 1
    if result.pronunciation_score is not None:
        session.pronunciation_scores.append(result.pronunciation_score)
    return session


def end_session(session: PracticeSession, now: Optional[datetime] = None) -> PracticeSession:
    """
    Finalize the session and derive its quality rating.

    Raises:
        SessionStateError: If the session is not active
    """
    _require_active(session, "end")

    if session.pronunciation_scores:
        session.avg_pronunciation_score = sum(session.pronunciation_scores) / len(session.pronunciation_scores)
    else:
        session.avg_pronunciation_score = None

    if session.exercises_completed > 0:
        session.correct_percentage = session.correct_answers / session.exercises_completed
    else:
        session.correct_percentage = 0.0

    session.final_quality = derive_quality(session.correct_percentage)
    session.ended_at = to_naive_utc(now) if now is not None else utcnow()
    session.state = SessionState.ENDED

    logger.info(
        f"Ended practice session {session.id} on card {session.card_id} ({session.practice_type.value}): "
        f"{session.correct_answers}/{session.exercises_completed} correct, quality={session.final_quality}"
    )
    return session


def reset_session(session: PracticeSession) -> None:
    """Discard everything the session accumulated. Valid in any state."""
    session.exercises_completed = 0
    session.correct_answers = 0
    session.pronunciation_scores = []
    session.results = []
    session.correct_percentage = 0.0
    session.avg_pronunciation_score = None
    session.final_quality = 0
    session.ended_at = None
    session.state = SessionState.DISCARDED


def score_repeat_aloud(transcript: str, target_text: str) -> ExerciseResult:
    """
    Score a repeat-aloud answer by word similarity between transcript and target.

    Returns:
        ExerciseResult with a 0-100 pronunciation score, correct from 70 up
    """
    score = int(math.floor(word_similarity(transcript, target_text) * 100 + 0.5))

    if score >= REPEAT_ALOUD_EXCELLENT_SCORE:
        feedback = "Excellent! Your pronunciation is very good."
    elif score >= REPEAT_ALOUD_PASS_SCORE:
        feedback = "Good! Keep practicing."
    else:
        feedback = "Try again. Listen carefully."

    return ExerciseResult(
        is_correct=score >= REPEAT_ALOUD_PASS_SCORE,
        user_answer=transcript,
        pronunciation_score=score,
        feedback=feedback,
        correct_answer=target_text,
    )


def _running_average(current_avg: int, attempts: int, new_score: int) -> int:
    if attempts == 0:
        return new_score
    return int(math.floor((current_avg * attempts + new_score) / (attempts + 1) + 0.5))


def update_practice_stats(
    stats: PracticeStats,
    practice_type: PracticeType,
    result: ExerciseResult,
    now: datetime
) -> PracticeStats:
    """
    Return a copy of the statistics with one exercise result folded in.

    A missing pronunciation score counts as 0 in the running averages.
    """
    stats = stats.model_copy(deep=True)
    practice_type = PracticeType(practice_type)
    score = result.pronunciation_score or 0

    if practice_type == PracticeType.WRITTEN_TRANSLATION:
        written = stats.written_translation
        written.attempts += 1
        written.correct += 1 if result.is_correct else 0
        written.last_attempt = now

    elif practice_type == PracticeType.REPEAT_ALOUD:
        aloud = stats.repeat_aloud
        aloud.avg_pronunciation_score = _running_average(aloud.avg_pronunciation_score, aloud.attempts, score)
        aloud.attempts += 1
        aloud.last_attempt = now

    elif practice_type == PracticeType.ORAL_TRANSLATION:
        oral = stats.oral_translation
        oral.avg_pronunciation_score = _running_average(oral.avg_pronunciation_score, oral.attempts, score)
        oral.attempts += 1
        oral.correct += 1 if result.is_correct else 0
        oral.last_attempt = now

    elif practice_type == PracticeType.GRAMMAR_DIALOG:
        dialog = stats.grammar_dialog
        dialog.total_messages += 1
        if result.is_correct:
            dialog.grammar_usage_rate = min(1.0, dialog.grammar_usage_rate + 0.1)
        else:
            dialog.grammar_usage_rate = max(0.0, dialog.grammar_usage_rate - 0.05)
        dialog.last_session = now

    return stats


def record_practice_result(
    repository: CardRepository,
    card_id: int,
    practice_type: PracticeType,
    result: ExerciseResult,
    now: Optional[datetime] = None
) -> LearningCard:
    """Fold one exercise result into a stored card's practice statistics."""
    now = to_naive_utc(now) if now is not None else utcnow()
    card = repository.get_card(card_id)
    stats = update_practice_stats(PracticeStats.model_validate(card.practice_stats or {}), practice_type, result, now)
    return repository.update_card(
        card_id,
        {"practice_stats": stats.model_dump(mode="json")},
        expected_version=card.version,
    )


def complete_practice(
    repository: CardRepository,
    card_id: int,
    practice_type: PracticeType,
    results: Sequence[ExerciseResult],
    now: Optional[datetime] = None
) -> Tuple[PracticeSession, LearningCard]:
    """
    Run a whole practice session for a card and schedule the card with its outcome.

    Starts a session and adds every result, then writes the updated practice
    statistics together with the SM-2 outcome of the final quality. A failure
    anywhere leaves the stored card untouched.

    Args:
        repository: Card repository
        card_id: Card that was practiced
        practice_type: Practice mode of the session
        results: Exercise results in the order they were produced
        now: Time the session ended (defaults to now)

    Returns:
        Tuple of (ended session, scheduled card)

    Raises:
        NotFoundError: If the card does not exist
        InvalidArgumentError: If the stored scheduling state is malformed
        ConflictError: If the card changed concurrently
    """
    now = to_naive_utc(now) if now is not None else utcnow()
    practice_type = PracticeType(practice_type)

    card = repository.get_card(card_id)
    session = start_session(card, practice_type, now=now)

    stats = PracticeStats.model_validate(card.practice_stats or {})
    for result in results:
        add_result(session, result)
        stats = update_practice_stats(stats, practice_type, result, now)
    if practice_type == PracticeType.GRAMMAR_DIALOG:
        stats.grammar_dialog.sessions += 1

    end_session(session, now=now)

    # Statistics and the review outcome land in one compare-and-set write
    outcome, fields = srs_service.build_schedule_update(card, session.final_quality, now)
    fields["practice_stats"] = stats.model_dump(mode="json")
    scheduled = repository.update_card(card_id, fields, expected_version=card.version)
    srs_service.log_schedule(card_id, session.final_quality, outcome)
    return session, scheduled
