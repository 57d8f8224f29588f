"""
Mastery Pydantic Models

Spaced-repetition state for one vocabulary item of one lesson for one user.

Example document:
{
    "userId": "u-42",
    "lessonId": "lesson-articles",
    "vocabularyId": "v-7",
    "level": 2,
    "correctCount": 3,
    "incorrectCount": 1,
    "lastPracticedAt": "2024-03-01T09:15:00Z",
    "nextReviewAt": "2024-03-08T09:15:00Z"
}
"""

from datetime import datetime

from pydantic import Field

from .base import DocumentModel


def mastery_key(user_id: str, lesson_id: str, vocabulary_id: str) -> str:
    """Document key for a (user, lesson, vocabulary item) triple"""
    return f"{user_id}:{lesson_id}:{vocabulary_id}"


class VocabularyMasteryRecord(DocumentModel):
    user_id: str
    lesson_id: str
    vocabulary_id: str
    level: int = Field(default=0, ge=0, le=5, description="Index into the review interval table")
    correct_count: int = Field(default=0, ge=0)
    incorrect_count: int = Field(default=0, ge=0)
    last_practiced_at: datetime
    next_review_at: datetime

    @property
    def key(self) -> str:
        return mastery_key(self.user_id, self.lesson_id, self.vocabulary_id)
