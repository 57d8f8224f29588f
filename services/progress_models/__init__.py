"""
Progress Pydantic Models

Document shapes stored by the progress core and the results it returns:
- Mastery models (VocabularyMasteryRecord)
- User progress models (UserProgress, XPState, LeagueState, DailyQuests, ...)
- Result models (XPResult, StreakResult, AttemptResult)
"""

from .mastery_models import VocabularyMasteryRecord, mastery_key
from .user_progress_models import (
    DEFAULT_DAILY_GOAL,
    DailyQuests,
    LeagueState,
    LessonProgress,
    PracticeHistoryEntry,
    QuestProgress,
    UserProgress,
    XPState
)
from .result_models import AttemptResult, StreakResult, XPResult

__all__ = [
    'VocabularyMasteryRecord',
    'mastery_key',
    'DEFAULT_DAILY_GOAL',
    'DailyQuests',
    'LeagueState',
    'LessonProgress',
    'PracticeHistoryEntry',
    'QuestProgress',
    'UserProgress',
    'XPState',
    'AttemptResult',
    'StreakResult',
    'XPResult'
]
