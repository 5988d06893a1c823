"""
LearningCard model.
"""
from sqlmodel import SQLModel, Field
from sqlalchemy import CheckConstraint, Column, DateTime, JSON, String as SAString, UniqueConstraint
from typing import Optional, Dict, Any
from datetime import datetime
from app.models.enums import CEFRLevel, CardKind
from app.utils.time_utils import utcnow

DEFAULT_EASE_FACTOR = 2.5


class LearningCard(SQLModel, table=True):
    """LearningCard table - SM-2 scheduling state for one grammar topic or lemma of one user."""
    __tablename__ = "learning_card"
    __table_args__ = (
        UniqueConstraint("user_id", "kind", "topic_id", name="uq_learning_card_user_kind_topic"),
        CheckConstraint("ease_factor >= 1.3", name="ck_learning_card_ease_floor"),
        CheckConstraint("interval >= 0", name="ck_learning_card_interval_non_negative"),
        CheckConstraint("repetitions >= 0", name="ck_learning_card_repetitions_non_negative"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)  # Owned by the external auth provider
    kind: CardKind = Field(
        default=CardKind.GRAMMAR,
        sa_column=Column(SAString, nullable=False, default=CardKind.GRAMMAR.value)
    )
    topic_id: str  # Catalog topic id or lemma id
    title: str = ""
    language: str = Field(default="fr", max_length=2)
    level: CEFRLevel = Field(
        default=CEFRLevel.A1,
        sa_column=Column(SAString, nullable=False, default=CEFRLevel.A1.value)
    )

    # SM-2 state
    ease_factor: float = Field(default=DEFAULT_EASE_FACTOR)
    interval: int = Field(default=0)  # Days
    repetitions: int = Field(default=0)
    # Naive UTC, see app.utils.time_utils
    next_review_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=False), nullable=False, index=True)
    )
    last_review_time: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime(timezone=False), nullable=True)
    )
    created_time: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=False), nullable=False)
    )

    practice_stats: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False, default=dict))

    # Bumped on every write; used for compare-and-set updates
    version: int = Field(default=0)
