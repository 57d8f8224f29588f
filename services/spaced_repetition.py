"""Spaced repetition - per-item mastery level and next review date"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional

from services.clock import ensure_utc
from services.document_store import DocumentStore
from services.errors import require_id
from services.progress_models import VocabularyMasteryRecord, mastery_key

logger = logging.getLogger(__name__)

VOCAB_PROGRESS_COLLECTION = 'vocabularyProgress'

# Review interval in days for each mastery level
INTERVALS = [1, 3, 7, 14, 30, 90]
MAX_LEVEL = len(INTERVALS) - 1


def next_level(current_level: Optional[int], is_correct: bool) -> int:
    """
    Mastery level after one attempt.

    A first-ever attempt (current_level None) starts at 1 when correct and
    0 when incorrect, so a first correct answer skips level 0.

    Example:
        >>> next_level(None, True)
        1
        >>> next_level(5, True)
        5
        >>> next_level(0, False)
        0
    """
    if current_level is None:
        return 1 if is_correct else 0
    if is_correct:
        return min(current_level + 1, MAX_LEVEL)
    return max(current_level - 1, 0)


def review_date(level: int, practiced_at: datetime) -> datetime:
    return practiced_at + timedelta(days=INTERVALS[level])


class SpacedRepetitionService:
    """
    Moves a vocabulary item up or down the fixed interval ladder
    (1, 3, 7, 14, 30, 90 days) on every correct or incorrect answer.
    """

    def __init__(self, store: Optional[DocumentStore] = None):
        self.store = store or DocumentStore()

    def record_attempt(
        self,
        user_id: str,
        lesson_id: str,
        vocabulary_id: str,
        is_correct: bool,
        now: datetime
    ) -> VocabularyMasteryRecord:
        """
        Record one answer for a vocabulary item.

        Args:
            user_id: Opaque user identifier
            lesson_id: Lesson the item belongs to
            vocabulary_id: Vocabulary item within the lesson
            is_correct: Whether the user answered correctly
            now: Time of the attempt

        Returns:
            The updated VocabularyMasteryRecord

        Raises:
            InvalidArgument: If an id is missing
            StorageUnavailable: If the record cannot be read or written
        """
        require_id('user_id', user_id)
        require_id('lesson_id', lesson_id)
        require_id('vocabulary_id', vocabulary_id)
        now = ensure_utc(now)
        key = mastery_key(user_id, lesson_id, vocabulary_id)

        def _mutate(data: dict) -> dict:
            if data:
                record = VocabularyMasteryRecord.from_document(data)
                current_level = record.level
            else:
                record = VocabularyMasteryRecord(
                    user_id=user_id,
                    lesson_id=lesson_id,
                    vocabulary_id=vocabulary_id,
                    last_practiced_at=now,
                    next_review_at=now
                )
                current_level = None

            record.level = next_level(current_level, is_correct)
            if is_correct:
                record.correct_count += 1
            else:
                record.incorrect_count += 1
            record.last_practiced_at = now
            record.next_review_at = review_date(record.level, now)
            return record.to_document()

        document = self.store.atomic_update(VOCAB_PROGRESS_COLLECTION, key, _mutate, default=dict)
        record = VocabularyMasteryRecord.from_document(document)

        logger.info(
            f"Recorded attempt: user_id={user_id}, lesson_id={lesson_id}, "
            f"vocabulary_id={vocabulary_id}, correct={is_correct}, level={record.level}, "
            f"next_review_at={record.next_review_at.isoformat()}"
        )
        return record

    def get_record(
        self,
        user_id: str,
        lesson_id: str,
        vocabulary_id: str
    ) -> Optional[VocabularyMasteryRecord]:
        data = self.store.get(VOCAB_PROGRESS_COLLECTION, mastery_key(user_id, lesson_id, vocabulary_id))
        return VocabularyMasteryRecord.from_document(data) if data else None

    def get_vocabulary_progress(self, user_id: str, lesson_id: str) -> List[VocabularyMasteryRecord]:
        """All mastery records of a user for one lesson"""
        require_id('user_id', user_id)
        require_id('lesson_id', lesson_id)
        documents = self.store.query(
            VOCAB_PROGRESS_COLLECTION,
            {'userId': user_id, 'lessonId': lesson_id}
        )
        return [VocabularyMasteryRecord.from_document(document) for document in documents]

    def get_due_items(
        self,
        user_id: str,
        lesson_id: str,
        now: datetime,
        limit: Optional[int] = None
    ) -> List[VocabularyMasteryRecord]:
        """
        Items whose review date has arrived, most overdue first.

        Args:
            user_id: Opaque user identifier
            lesson_id: Lesson to look in
            now: Reference time
            limit: Maximum number of records (default: all)
        """
        now = ensure_utc(now)
        due = [
            record for record in self.get_vocabulary_progress(user_id, lesson_id)
            if record.next_review_at <= now
        ]
        due.sort(key=lambda record: record.next_review_at)
        if limit is not None:
            due = due[:limit]

        logger.debug(f"{len(due)} items due for user_id={user_id}, lesson_id={lesson_id}")
        return due

    def estimate_retention(self, record: VocabularyMasteryRecord) -> float:
        """
        Share of correct answers for an item (0-1).

        Returns 0.0 when the item has no recorded answers.
        """
        total = record.correct_count + record.incorrect_count
        if total == 0:
            return 0.0
        return record.correct_count / total
