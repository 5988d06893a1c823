"""
Learning card schemas.
"""
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import datetime
from app.models.enums import CEFRLevel, CardKind


class WrittenTranslationStats(BaseModel):
    attempts: int = 0
    correct: int = 0
    last_attempt: Optional[datetime] = None


class RepeatAloudStats(BaseModel):
    attempts: int = 0
    avg_pronunciation_score: int = 0
    last_attempt: Optional[datetime] = None


class OralTranslationStats(BaseModel):
    attempts: int = 0
    correct: int = 0
    avg_pronunciation_score: int = 0
    last_attempt: Optional[datetime] = None


class GrammarDialogStats(BaseModel):
    sessions: int = 0
    total_messages: int = 0
    grammar_usage_rate: float = 0.0
    last_session: Optional[datetime] = None


class PracticeStats(BaseModel):
    """Per-practice-type usage statistics stored on a card."""
    written_translation: WrittenTranslationStats = Field(default_factory=WrittenTranslationStats)
    repeat_aloud: RepeatAloudStats = Field(default_factory=RepeatAloudStats)
    oral_translation: OralTranslationStats = Field(default_factory=OralTranslationStats)
    grammar_dialog: GrammarDialogStats = Field(default_factory=GrammarDialogStats)


class LearningCardResponse(BaseModel):
    """Learning card response schema."""
    id: int
    user_id: str
    kind: CardKind
    topic_id: str
    title: str = ""
    language: str
    level: CEFRLevel
    ease_factor: float
    interval: int
    repetitions: int
    next_review_at: datetime
    last_review_time: Optional[datetime] = None
    created_time: datetime
    practice_stats: PracticeStats = Field(default_factory=PracticeStats)
    version: int = 0

    class Config:
        from_attributes = True


class LearningCardsResponse(BaseModel):
    """Response schema for a full card listing."""
    cards: List[LearningCardResponse]
    count: int


class ScheduleCardRequest(BaseModel):
    """Request to schedule a card after a review."""
    quality: int = Field(..., description="Recall quality from 0 (blackout) to 5 (perfect)")

    class Config:
        json_schema_extra = {
            "example": {
                "quality": 4
            }
        }


class ScheduleAutoRequest(BaseModel):
    """Request to schedule a card from a plain right/wrong answer."""
    correct: bool = Field(..., description="Whether the answer was right (quality 4) or wrong (quality 0)")


class ScheduleCardResponse(BaseModel):
    """Scheduling outcome for one review."""
    interval: int
    ease_factor: float
    next_review_at: datetime
    repetitions: int
    interval_label: str = Field(..., description="Human readable interval, e.g. 'in 6 days'")
    card: LearningCardResponse


class ReviewQueueResponse(BaseModel):
    """Cards due for review, earliest first."""
    user_id: str
    as_of: datetime
    count: int
    cards: List[LearningCardResponse]


class LevelDueData(BaseModel):
    """Due counts for one CEFR level."""
    level: CEFRLevel
    count: int
    count_due: int = 0  # Cards with next_review_at at or before as_of
    count_not_due: int = 0  # Cards with next_review_at after as_of


class DueSummaryResponse(BaseModel):
    """Due/not-due distribution of a user's cards."""
    user_id: str
    as_of: datetime
    total: int
    due: int
    levels: List[LevelDueData]


class ProvisionCardsRequest(BaseModel):
    """Request to make sure a user has cards for every catalog topic up to a level."""
    user_id: str = Field(..., description="User ID")
    level: CEFRLevel = Field(..., description="Learner proficiency level")
    language: str = Field("fr", max_length=2, description="Target language code")


class ProvisionCardsResponse(BaseModel):
    """Response from card provisioning."""
    message: str
    created_count: int
    cards: List[LearningCardResponse]


class ImportProgressRequest(BaseModel):
    """Raw progress records, in either the legacy camelCase or the current snake_case shape."""
    user_id: str
    records: List[Dict[str, Any]]

    class Config:
        json_schema_extra = {
            "example": {
                "user_id": "u-1",
                "records": [
                    {
                        "topicId": "fr-a1-present-etre",
                        "nextReview": "2024-01-03T10:00:30Z",
                        "easeFactor": 2.6,
                        "interval": 1,
                        "repetitions": 1,
                        "level": "A1"
                    },
                    {
                        "card_id": "v-fr-0001",
                        "next_review": "2024-01-08T10:00:30Z",
                        "ease_factor": 2.5,
                        "interval": 6,
                        "repetitions": 2
                    }
                ]
            }
        }


class ImportProgressResponse(BaseModel):
    """Response from progress import."""
    message: str
    created_count: int
    updated_count: int
