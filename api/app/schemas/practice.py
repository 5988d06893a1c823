"""
Practice session schemas.
"""
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from app.models.enums import PracticeType, SessionState
from app.schemas.learning_card import LearningCardResponse


class ExerciseResult(BaseModel):
    """Outcome of one exercise inside a practice session."""
    is_correct: bool = Field(..., description="Whether the answer was accepted")
    user_answer: str = ""
    pronunciation_score: Optional[int] = Field(
        None, ge=0, le=100, description="0-100, only emitted by audio-based practice types"
    )
    feedback: str = ""
    grammar_notes: Optional[str] = None
    correct_answer: Optional[str] = None


class CompletePracticeRequest(BaseModel):
    """Request to complete a practice session and schedule its card."""
    card_id: int = Field(..., description="Learning card ID")
    practice_type: PracticeType = Field(PracticeType.WRITTEN_TRANSLATION, description="Practice mode")
    results: List[ExerciseResult] = Field(default_factory=list, description="Exercise results in order")

    class Config:
        json_schema_extra = {
            "example": {
                "card_id": 12,
                "practice_type": "repeat_aloud",
                "results": [
                    {"is_correct": True, "user_answer": "je suis ici", "pronunciation_score": 92},
                    {"is_correct": False, "user_answer": "tu es la", "pronunciation_score": 55}
                ]
            }
        }


class PracticeSessionResponse(BaseModel):
    """A finalized practice session."""
    id: str
    user_id: str
    card_id: int
    practice_type: PracticeType
    state: SessionState
    started_at: datetime
    ended_at: Optional[datetime] = None
    exercises_completed: int
    correct_answers: int
    correct_percentage: float
    avg_pronunciation_score: Optional[float] = None
    final_quality: int

    class Config:
        from_attributes = True


class CompletePracticeResponse(BaseModel):
    """Response from practice completion."""
    session: PracticeSessionResponse
    card: LearningCardResponse


class ScoreRepeatAloudRequest(BaseModel):
    """Transcript of a spoken answer and the sentence it should match."""
    transcript: str
    target_text: str


class ScoreRepeatAloudResponse(BaseModel):
    """Pronunciation score for a repeat-aloud answer."""
    result: ExerciseResult
