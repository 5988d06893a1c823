"""
Models package - imports all models so they register with SQLModel metadata.
"""
# Import enums first
from app.models.enums import CEFRLevel, CardKind, PracticeType, SessionState

# Import all models
from app.models.learning_card import LearningCard, DEFAULT_EASE_FACTOR

__all__ = [
    'CEFRLevel',
    'CardKind',
    'PracticeType',
    'SessionState',
    'LearningCard',
    'DEFAULT_EASE_FACTOR',
]
