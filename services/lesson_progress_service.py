"""Lesson Progress Service - per-lesson completion and lesson lookups"""
import logging
from datetime import datetime
from typing import Dict, Optional

from services.clock import ensure_utc
from services.document_store import DocumentStore
from services.errors import InvalidArgument, NotFound, require_id
from services.progress_models import LessonProgress
from services.quest_service import QuestTracker

logger = logging.getLogger(__name__)

LESSONS_COLLECTION = 'lessons'
LESSON_PROGRESS_COLLECTION = 'lessonProgress'


def lesson_progress_key(user_id: str, lesson_id: str) -> str:
    return f"{user_id}:{lesson_id}"


def ensure_vocabulary_exists(lesson_id: str, vocabulary_id: str, store: Optional[DocumentStore] = None) -> None:
    """
    Check that a lesson exists and lists the vocabulary item.

    Lessons are authored elsewhere and stored as
    {"id": ..., "vocabulary": [{"id": ..., "source": ..., "target": ...}, ...]}.

    Raises:
        NotFound: If the lesson or the item is absent
    """
    store = store or DocumentStore()
    lesson = store.get(LESSONS_COLLECTION, lesson_id)
    if lesson is None:
        raise NotFound(f"Lesson {lesson_id} not found")

    vocabulary_ids = {str(item.get('id')) for item in lesson.get('vocabulary') or []}
    if vocabulary_id not in vocabulary_ids:
        raise NotFound(f"Vocabulary item {vocabulary_id} not found in lesson {lesson_id}")


def update_lesson_progress(
    user_id: str,
    lesson_id: str,
    progress: int,
    now: datetime,
    store: Optional[DocumentStore] = None
) -> LessonProgress:
    """
    Store how far a user got through a lesson.

    `completed` follows the latest value (progress == 100); dropping below
    100 clears completed_at. Moving from incomplete to 100 stamps
    completed_at and advances the 'lessons' daily quest by one.

    Args:
        user_id: Opaque user identifier
        lesson_id: Lesson identifier
        progress: Percent completed (0-100)
        now: Time of the update

    Returns:
        The stored LessonProgress

    Raises:
        InvalidArgument: If progress is outside 0-100
    """
    require_id('user_id', user_id)
    require_id('lesson_id', lesson_id)
    if not isinstance(progress, int) or isinstance(progress, bool) or not 0 <= progress <= 100:
        raise InvalidArgument(f"progress must be an integer between 0 and 100, got: {progress!r}")
    now = ensure_utc(now)
    store = store or DocumentStore()
    outcome = {}

    def _mutate(data: dict) -> dict:
        if data:
            lesson_progress = LessonProgress.from_document(data)
        else:
            lesson_progress = LessonProgress(user_id=user_id, lesson_id=lesson_id, last_accessed_at=now)

        completed = progress == 100
        outcome['newly_completed'] = completed and not lesson_progress.completed
        lesson_progress.progress = progress
        lesson_progress.last_accessed_at = now
        lesson_progress.completed = completed
        if not completed:
            lesson_progress.completed_at = None
        elif outcome['newly_completed']:
            lesson_progress.completed_at = now
        return lesson_progress.to_document()

    document = store.atomic_update(
        LESSON_PROGRESS_COLLECTION,
        lesson_progress_key(user_id, lesson_id),
        _mutate,
        default=dict
    )

    if outcome['newly_completed']:
        logger.info(f"Lesson completed: user_id={user_id}, lesson_id={lesson_id}")
        QuestTracker(store=store).advance_quest(user_id, 'lessons', 1, now)

    return LessonProgress.from_document(document)


def get_all_lesson_progress(user_id: str, store: Optional[DocumentStore] = None) -> Dict[str, LessonProgress]:
    """Lesson progress of a user keyed by lesson id"""
    require_id('user_id', user_id)
    store = store or DocumentStore()
    documents = store.query(LESSON_PROGRESS_COLLECTION, {'userId': user_id})
    return {
        document['lessonId']: LessonProgress.from_document(document)
        for document in documents
    }
