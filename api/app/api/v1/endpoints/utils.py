"""
Utility functions for endpoint operations.
"""
from fastapi import Depends
from sqlmodel import Session

from app.core.database import get_session
from app.models.learning_card import LearningCard
from app.schemas.learning_card import LearningCardResponse
from app.services.card_repository import SqlCardRepository


def get_card_repository(session: Session = Depends(get_session)) -> SqlCardRepository:
    """Dependency for a card repository bound to the request's database session."""
    return SqlCardRepository(session)


def to_card_response(card: LearningCard) -> LearningCardResponse:
    """Convert a LearningCard row to its response schema."""
    return LearningCardResponse.model_validate(card)
