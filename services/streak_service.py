"""Streak Tracker - daily practice streak and per-day practice history"""
import logging
from datetime import datetime
from typing import Optional

from services.clock import days_between, ensure_utc, utc_day
from services.document_store import DocumentStore
from services.errors import InvalidArgument, require_id
from services.progress_models import PracticeHistoryEntry, StreakResult, UserProgress
from services.user_progress_service import USER_PROGRESS_COLLECTION, modify_user_progress

logger = logging.getLogger(__name__)


def _require_count(name: str, value) -> int:
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise InvalidArgument(f"{name} must be a non-negative integer, got: {value!r}")
    return value


def apply_practice(
    progress: UserProgress,
    words_studied: int,
    correct_answers: int,
    time_spent_seconds: int,
    now: datetime
) -> None:
    """
    Fold one practice event into a UserProgress, in place.

    Streak rules (UTC calendar days, relative to last_practice_at):
    - no previous practice: streak starts at 1
    - same day (or an earlier day): streak unchanged
    - the following day: streak + 1
    - any later day: streak restarts at 1
    """
    today = utc_day(now)

    if progress.last_practice_at is None:
        progress.current_streak = 1
        logger.debug(f"First practice for user_id={progress.user_id}")
    else:
        gap = days_between(progress.last_practice_at, now)
        if gap == 1:
            progress.current_streak += 1
        elif gap > 1:
            logger.debug(f"Streak broken for user_id={progress.user_id} after {gap} days")
            progress.current_streak = 1

    progress.longest_streak = max(progress.longest_streak, progress.current_streak)
    progress.last_practice_at = now

    entry = progress.history_entry(today)
    if entry is None:
        progress.practice_history = sorted(
            progress.practice_history + [PracticeHistoryEntry(
                date=today,
                words_studied=words_studied,
                correct_answers=correct_answers,
                time_spent_seconds=time_spent_seconds
            )],
            key=lambda item: item.date
        )
    else:
        entry.words_studied += words_studied
        entry.correct_answers += correct_answers
        entry.time_spent_seconds += time_spent_seconds


class StreakTracker:
    """Keeps the practice streak and the practice history of a user"""

    def __init__(self, store: Optional[DocumentStore] = None):
        self.store = store or DocumentStore()

    def record_practice(
        self,
        user_id: str,
        words_studied: int,
        correct_answers: int,
        time_spent_seconds: int,
        now: datetime
    ) -> StreakResult:
        """
        Record a practice event.

        Args:
            user_id: Opaque user identifier
            words_studied: Words studied in this event
            correct_answers: Correct answers in this event
            time_spent_seconds: Time spent in this event
            now: Time of the event

        Returns:
            StreakResult with the current and longest streak

        Raises:
            InvalidArgument: If a count is negative
            StorageUnavailable: If progress cannot be read or written
        """
        require_id('user_id', user_id)
        _require_count('words_studied', words_studied)
        _require_count('correct_answers', correct_answers)
        _require_count('time_spent_seconds', time_spent_seconds)
        now = ensure_utc(now)

        progress = modify_user_progress(
            user_id,
            lambda progress: apply_practice(
                progress, words_studied, correct_answers, time_spent_seconds, now
            ),
            now,
            store=self.store
        )

        logger.info(
            f"Recorded practice: user_id={user_id}, words={words_studied}, "
            f"correct={correct_answers}, streak={progress.current_streak}, "
            f"longest={progress.longest_streak}"
        )
        return StreakResult(
            current_streak=progress.current_streak,
            longest_streak=progress.longest_streak
        )

    def get_user_streak(self, user_id: str) -> int:
        """Current streak of a user, 0 if they have no progress yet"""
        require_id('user_id', user_id)
        data = self.store.get(USER_PROGRESS_COLLECTION, user_id)
        if not data:
            return 0
        return UserProgress.from_document(data).current_streak
