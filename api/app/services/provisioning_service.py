"""
Provisioning service: creates the cards a learner needs for their level, and
imports scheduling progress kept by older clients.
"""
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, List, Mapping, Optional, Sequence, Tuple
from pydantic import BaseModel

from app.core.config import settings
from app.core.exceptions import ConflictError
from app.models.enums import CEFRLevel, CardKind
from app.models.learning_card import LearningCard, DEFAULT_EASE_FACTOR
from app.schemas.utils import normalize_progress_record
from app.services.card_repository import CardRepository
from app.services.srs_service import validate_card_state
from app.utils.time_utils import utcnow, to_naive_utc

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).parent.parent / "data" / "topics.json"


class CatalogTopic(BaseModel):
    """A grammar topic or vocabulary lemma that cards are created from."""
    id: str
    title: str
    level: CEFRLevel
    kind: CardKind = CardKind.GRAMMAR
    language: str = "fr"


def load_topic_catalog(path: Optional[Path] = None) -> List[CatalogTopic]:
    """
    Load the topic catalog from JSON.

    Args:
        path: Catalog file; defaults to settings.topic_catalog_path, then the bundled catalog

    Returns:
        List of catalog topics in file order
    """
    if path is None:
        path = Path(settings.topic_catalog_path) if settings.topic_catalog_path else DEFAULT_CATALOG_PATH

    with open(path, encoding="utf-8") as f:
        data = json.load(f)

    topics = [CatalogTopic.model_validate(entry) for entry in data.get("topics", [])]
    logger.debug(f"Loaded {len(topics)} catalog topic(s) from {path}")
    return topics


def ensure_cards_for_level(
    repository: CardRepository,
    user_id: str,
    level: CEFRLevel,
    language: str = "fr",
    catalog: Optional[Sequence[CatalogTopic]] = None,
    now: Optional[datetime] = None
) -> List[LearningCard]:
    """
    Make sure the user has exactly one card per catalog topic up to their level.

    Covers the given level and every level below it, in the given language.
    Topics that already have a card are skipped, so repeated calls create
    nothing new. A duplicate reported by the store counts as already present.

    Args:
        repository: Card repository
        user_id: Owning user
        level: Learner level; all levels up to and including it are provisioned
        language: Target language code
        catalog: Topics to provision from (defaults to load_topic_catalog())
        now: Creation time, also the first due date (defaults to now)

    Returns:
        Cards created by this call
    """
    now = to_naive_utc(now) if now is not None else utcnow()
    if catalog is None:
        catalog = load_topic_catalog()

    levels = set(CEFRLevel.up_to(level))
    existing = {
        (CardKind(card.kind), card.topic_id)
        for card in repository.list_cards_for_user(user_id)
    }

    created: List[LearningCard] = []
    for topic in catalog:
        if topic.language.lower() != language.lower() or topic.level not in levels:
            continue
        if (topic.kind, topic.id) in existing:
            continue

        card = LearningCard(
            user_id=user_id,
            kind=topic.kind,
            topic_id=topic.id,
            title=topic.title,
            language=topic.language.lower(),
            level=topic.level,
            ease_factor=DEFAULT_EASE_FACTOR,
            interval=0,
            repetitions=0,
            next_review_at=now,
            created_time=now,
        )
        try:
            created.append(repository.add_card(card))
        except ConflictError:
            logger.info(f"Card {topic.kind.value}/{topic.id} already exists for user {user_id}, skipping")
            continue
        existing.add((topic.kind, topic.id))

    logger.info(
        f"Provisioned {len(created)} card(s) for user {user_id} "
        f"(level={CEFRLevel(level).value}, language={language})"
    )
    return created


def import_progress_records(
    repository: CardRepository,
    user_id: str,
    records: Sequence[Mapping[str, Any]],
    now: Optional[datetime] = None
) -> Tuple[int, int]:
    """
    Import scheduling progress in either the legacy or the current record shape.

    Every record is normalized and validated before anything is written, so a
    malformed record rejects the whole batch.

    Args:
        repository: Card repository
        user_id: Owning user
        records: Raw progress records
        now: Creation time for cards without one (defaults to now)

    Returns:
        Tuple of (created_count, updated_count)

    Raises:
        InvalidArgumentError: If any record is malformed
    """
    now = to_naive_utc(now) if now is not None else utcnow()

    normalized = [normalize_progress_record(record) for record in records]
    for progress in normalized:
        validate_card_state(progress.interval, progress.ease_factor, progress.repetitions)

    created_count = 0
    updated_count = 0
    for progress in normalized:
        fields = {
            "ease_factor": progress.ease_factor,
            "interval": progress.interval,
            "repetitions": progress.repetitions,
            "next_review_at": progress.next_review,
            "last_review_time": progress.last_reviewed,
        }
        existing = repository.find_card(user_id, progress.kind, progress.topic_id)
        if existing is not None:
            repository.update_card(existing.id, fields, expected_version=existing.version)
            updated_count += 1
            continue

        repository.add_card(LearningCard(
            user_id=user_id,
            kind=progress.kind,
            topic_id=progress.topic_id,
            title=progress.title,
            language=progress.language.lower(),
            level=progress.level,
            created_time=progress.created_at or now,
            **fields,
        ))
        created_count += 1

    logger.info(
        f"Imported progress for user {user_id}: {created_count} created, {updated_count} updated"
    )
    return created_count, updated_count
