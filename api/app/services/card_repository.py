"""
Card repository: the narrow storage contract the scheduling core depends on,
and its SQLModel implementation.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Protocol
from sqlmodel import Session, select
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.core.exceptions import ConflictError, InvalidArgumentError, NotFoundError, RepositoryError
from app.models.enums import CardKind
from app.models.learning_card import LearningCard

logger = logging.getLogger(__name__)


class CardRepository(Protocol):
    """Storage operations the scheduling core needs."""

    def get_card(self, card_id: int) -> LearningCard: ...

    def update_card(
        self,
        card_id: int,
        fields: Mapping[str, Any],
        expected_version: Optional[int] = None,
    ) -> LearningCard: ...

    def list_cards_for_user(self, user_id: str) -> List[LearningCard]: ...

    def list_due_cards(self, user_id: str, as_of: datetime) -> List[LearningCard]: ...

    def find_card(self, user_id: str, kind: CardKind, topic_id: str) -> Optional[LearningCard]: ...

    def add_card(self, card: LearningCard) -> LearningCard: ...


class SqlCardRepository:
    """
    CardRepository backed by a SQLModel session.

    Updates are compare-and-set on the card's version column, so two writers that
    read the same version cannot both apply a review outcome.
    """

    def __init__(self, session: Session):
        self.session = session

    def get_card(self, card_id: int) -> LearningCard:
        try:
            card = self.session.get(LearningCard, card_id)
        except SQLAlchemyError as e:
            raise RepositoryError(f"Failed to load card {card_id}: {e}") from e
        if card is None:
            raise NotFoundError(f"Learning card with id {card_id} not found")
        return card

    def update_card(
        self,
        card_id: int,
        fields: Mapping[str, Any],
        expected_version: Optional[int] = None,
    ) -> LearningCard:
        """
        Apply a partial update to a card.

        Args:
            card_id: Card to update
            fields: Column values to set
            expected_version: Version the caller read; defaults to the current stored version

        Returns:
            The updated card

        Raises:
            NotFoundError: If the card does not exist
            ConflictError: If the stored version no longer matches expected_version
            InvalidArgumentError: If the new values break a check constraint
            RepositoryError: If the database fails
        """
        card = self.get_card(card_id)
        version = card.version if expected_version is None else expected_version

        values: Dict[str, Any] = dict(fields)
        values.pop("id", None)
        values["version"] = version + 1

        stmt = (
            update(LearningCard)
            .where(LearningCard.id == card_id, LearningCard.version == version)  # type: ignore[arg-type]
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.session.exec(stmt)  # type: ignore[call-overload]
            matched = result.rowcount
            if matched == 0:
                self.session.rollback()
            else:
                self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            if _is_check_violation(e):
                raise InvalidArgumentError(f"Invalid scheduling state for card {card_id}: {e.orig}") from e
            raise RepositoryError(f"Failed to update card {card_id}: {e}") from e
        except SQLAlchemyError as e:
            self.session.rollback()
            raise RepositoryError(f"Failed to update card {card_id}: {e}") from e

        if matched == 0:
            logger.warning(f"Concurrent update detected on card {card_id} (expected version {version})")
            raise ConflictError(f"Learning card {card_id} was modified concurrently (expected version {version})")

        try:
            self.session.refresh(card)
        except SQLAlchemyError as e:
            raise RepositoryError(f"Failed to reload card {card_id}: {e}") from e
        return card

    def list_cards_for_user(self, user_id: str) -> List[LearningCard]:
        query = (
            select(LearningCard)
            .where(LearningCard.user_id == user_id)
            .order_by(LearningCard.created_time, LearningCard.id)  # type: ignore[arg-type]
        )
        try:
            return list(self.session.exec(query).all())
        except SQLAlchemyError as e:
            raise RepositoryError(f"Failed to list cards for user {user_id}: {e}") from e

    def list_due_cards(self, user_id: str, as_of: datetime) -> List[LearningCard]:
        query = (
            select(LearningCard)
            .where(
                LearningCard.user_id == user_id,
                LearningCard.next_review_at <= as_of,  # type: ignore[operator]
            )
            .order_by(LearningCard.next_review_at, LearningCard.created_time, LearningCard.id)  # type: ignore[arg-type]
        )
        try:
            return list(self.session.exec(query).all())
        except SQLAlchemyError as e:
            raise RepositoryError(f"Failed to list due cards for user {user_id}: {e}") from e

    def find_card(self, user_id: str, kind: CardKind, topic_id: str) -> Optional[LearningCard]:
        query = select(LearningCard).where(
            LearningCard.user_id == user_id,
            LearningCard.kind == CardKind(kind).value,
            LearningCard.topic_id == topic_id,
        )
        try:
            return self.session.exec(query).first()
        except SQLAlchemyError as e:
            raise RepositoryError(f"Failed to look up card {kind}/{topic_id} for user {user_id}: {e}") from e

    def add_card(self, card: LearningCard) -> LearningCard:
        try:
            self.session.add(card)
            self.session.commit()
            self.session.refresh(card)
        except IntegrityError as e:
            self.session.rollback()
            if _is_check_violation(e):
                raise InvalidArgumentError(f"Card {card.topic_id} has an invalid scheduling state: {e.orig}") from e
            raise ConflictError(
                f"Card {card.kind}/{card.topic_id} already exists for user {card.user_id}"
            ) from e
        except SQLAlchemyError as e:
            self.session.rollback()
            raise RepositoryError(f"Failed to create card {card.topic_id}: {e}") from e
        return card


def _is_check_violation(error: IntegrityError) -> bool:
    """True when the integrity error comes from one of the learning_card check constraints."""
    return "ck_learning_card_" in str(error.orig)
