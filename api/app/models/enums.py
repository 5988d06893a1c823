"""
Model enums.
"""
from enum import Enum


class CEFRLevel(str, Enum):
    """CEFR language proficiency levels."""
    A1 = "A1"
    A2 = "A2"
    B1 = "B1"
    B2 = "B2"
    C1 = "C1"
    C2 = "C2"

    @classmethod
    def up_to(cls, level: "CEFRLevel") -> list["CEFRLevel"]:
        """Return all levels from A1 up to and including the given level."""
        ordered = list(cls)
        return ordered[:ordered.index(cls(level)) + 1]


class CardKind(str, Enum):
    """What a learning card teaches."""
    GRAMMAR = "grammar"
    VOCABULARY = "vocabulary"


class PracticeType(str, Enum):
    """Practice modes a session can run."""
    WRITTEN_TRANSLATION = "written_translation"
    REPEAT_ALOUD = "repeat_aloud"
    ORAL_TRANSLATION = "oral_translation"
    GRAMMAR_DIALOG = "grammar_dialog"


class SessionState(str, Enum):
    """Lifecycle state of a practice session."""
    ACTIVE = "active"
    ENDED = "ended"
    DISCARDED = "discarded"
