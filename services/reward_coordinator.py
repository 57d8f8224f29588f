"""
Reward Coordinator - applies one practice attempt to every tracker.

Workflow for submit_attempt:
1. mastery  - SpacedRepetitionService.record_attempt
2. streak   - StreakTracker.record_practice (1 word, 1 correct if correct)
3. quest    - QuestTracker.advance_quest('words', 1)
4. xp       - ExperienceLedger.add_xp (10 if correct, 1 otherwise)
5. gems     - on level-up, new level x 5 gems

The steps are independent writes. If one fails, the ones before it stay
applied and AttemptStepFailed names the failed step. Callers must not
resubmit the attempt automatically: every call counts again.
"""

import logging
from datetime import datetime
from typing import Optional

from flask import current_app

from services.clock import ensure_utc, utcnow
from services.document_store import DocumentStore
from services.errors import AttemptStepFailed, InvalidArgument, require_id
from services.lesson_progress_service import ensure_vocabulary_exists
from services.progress_models import AttemptResult
from services.quest_service import QuestTracker
from services.spaced_repetition import SpacedRepetitionService
from services.streak_service import StreakTracker
from services.user_progress_service import add_gems
from services.xp_service import ExperienceLedger

logger = logging.getLogger(__name__)

XP_CORRECT = 10
XP_INCORRECT = 1
GEMS_PER_LEVEL = 5


class RewardCoordinator:
    """Fans a practice attempt out to the mastery, streak, quest and XP trackers"""

    def __init__(
        self,
        store: Optional[DocumentStore] = None,
        require_known_lessons: Optional[bool] = None
    ):
        self.store = store or DocumentStore()
        self._require_known_lessons = require_known_lessons
        self.spaced_repetition = SpacedRepetitionService(store=self.store)
        self.streaks = StreakTracker(store=self.store)
        self.quests = QuestTracker(store=self.store)
        self.ledger = ExperienceLedger(store=self.store)

    @property
    def require_known_lessons(self) -> bool:
        if self._require_known_lessons is not None:
            return self._require_known_lessons
        return current_app.config.get('REQUIRE_KNOWN_LESSONS', False)

    def submit_attempt(
        self,
        user_id: str,
        lesson_id: str,
        vocabulary_id: str,
        is_correct: bool,
        time_spent_seconds: int,
        now: Optional[datetime] = None
    ) -> AttemptResult:
        """
        Apply one practice attempt.

        Args:
            user_id: Opaque user identifier
            lesson_id: Lesson the item belongs to
            vocabulary_id: Vocabulary item answered
            is_correct: Whether the answer was correct
            time_spent_seconds: Time spent on the item
            now: Time of the attempt (default: current UTC time)

        Returns:
            AttemptResult for the presentation layer

        Raises:
            InvalidArgument: If input is invalid (nothing written)
            NotFound: If lesson checks are enabled and the item is unknown (nothing written)
            AttemptStepFailed: If a step failed; earlier steps remain applied

        Example:
            >>> result = coordinator.submit_attempt('u-1', 'lesson-1', 'v-1', True, 5)
            >>> result.mastery_level
            1
        """
        require_id('user_id', user_id)
        require_id('lesson_id', lesson_id)
        require_id('vocabulary_id', vocabulary_id)
        if not isinstance(is_correct, bool):
            raise InvalidArgument(f"is_correct must be a boolean, got: {is_correct!r}")
        if (not isinstance(time_spent_seconds, int) or isinstance(time_spent_seconds, bool)
                or time_spent_seconds < 0):
            raise InvalidArgument(
                f"time_spent_seconds must be a non-negative integer, got: {time_spent_seconds!r}"
            )
        now = ensure_utc(now) if now is not None else utcnow()

        if self.require_known_lessons:
            ensure_vocabulary_exists(lesson_id, vocabulary_id, store=self.store)

        completed = []

        def _run(step, operation):
            try:
                value = operation()
            except Exception as e:
                logger.error(
                    f"Practice attempt failed at step '{step}': user_id={user_id}, "
                    f"lesson_id={lesson_id}, vocabulary_id={vocabulary_id}, "
                    f"applied={completed}: {str(e)}",
                    exc_info=True
                )
                raise AttemptStepFailed(step, completed) from e
            completed.append(step)
            return value

        record = _run('mastery', lambda: self.spaced_repetition.record_attempt(
            user_id, lesson_id, vocabulary_id, is_correct, now
        ))
        streak = _run('streak', lambda: self.streaks.record_practice(
            user_id, 1, 1 if is_correct else 0, time_spent_seconds, now
        ))
        _run('quest', lambda: self.quests.advance_quest(user_id, 'words', 1, now))
        xp_result = _run('xp', lambda: self.ledger.add_xp(
            user_id, XP_CORRECT if is_correct else XP_INCORRECT, now
        ))

        gems_earned = 0
        if xp_result.leveled_up:
            gems_earned = xp_result.xp.level * GEMS_PER_LEVEL
            _run('gems', lambda: add_gems(user_id, gems_earned, store=self.store))

        logger.info(
            f"Applied practice attempt: user_id={user_id}, lesson_id={lesson_id}, "
            f"vocabulary_id={vocabulary_id}, correct={is_correct}, level={record.level}, "
            f"streak={streak.current_streak}, xp_level={xp_result.xp.level}, gems_earned={gems_earned}"
        )

        return AttemptResult(
            mastery_level=record.level,
            current_streak=streak.current_streak,
            xp_level=xp_result.xp.level,
            leveled_up=xp_result.leveled_up,
            gems_earned=gems_earned
        )
