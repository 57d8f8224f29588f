"""
User Progress Pydantic Models

One UserProgress document per user. It holds the streak, practice history,
XP, league standing, gems and daily quest counters.
"""

import datetime as dt
from typing import List, Literal, Optional

from pydantic import Field

from .base import DocumentModel

DEFAULT_DAILY_GOAL = 20
INITIAL_GEMS = 0

LeagueName = Literal['bronze', 'silver', 'gold', 'sapphire', 'ruby', 'emerald']


class PracticeHistoryEntry(DocumentModel):
    """Aggregated practice for one UTC calendar day"""
    date: dt.date
    words_studied: int = Field(default=0, ge=0)
    correct_answers: int = Field(default=0, ge=0)
    time_spent_seconds: int = Field(default=0, ge=0)


class XPState(DocumentModel):
    current: int = Field(default=0, ge=0)
    level: int = Field(default=1, ge=1)
    next_level_at: int = 100


class LeagueState(DocumentModel):
    name: LeagueName = 'bronze'
    rank: int = Field(default=1, ge=1)
    division: int = Field(default=1, ge=1)
    xp: int = Field(default=0, ge=0, description="XP earned inside the current league")
    next_rank_at: int = 50


class QuestProgress(DocumentModel):
    words_learned: int = Field(default=0, ge=0)
    time_spent_seconds: int = Field(default=0, ge=0)
    lessons_completed: int = Field(default=0, ge=0)


class DailyQuests(DocumentModel):
    completed_ids: List[str] = Field(default_factory=list)
    last_reset_at: dt.datetime
    progress: QuestProgress = Field(default_factory=QuestProgress)


class UserProgress(DocumentModel):
    user_id: str
    daily_goal: int = Field(default=DEFAULT_DAILY_GOAL, ge=1)
    current_streak: int = Field(default=0, ge=0)
    longest_streak: int = Field(default=0, ge=0)
    # None until the first practice event
    last_practice_at: Optional[dt.datetime] = None
    practice_history: List[PracticeHistoryEntry] = Field(default_factory=list)
    xp: XPState = Field(default_factory=XPState)
    league: LeagueState = Field(default_factory=LeagueState)
    gems: int = Field(default=INITIAL_GEMS, ge=0)
    daily_quests: DailyQuests

    @classmethod
    def initial(cls, user_id: str, now: dt.datetime) -> 'UserProgress':
        return cls(user_id=user_id, daily_quests=DailyQuests(last_reset_at=now))

    def history_entry(self, day: dt.date) -> Optional[PracticeHistoryEntry]:
        for entry in self.practice_history:
            if entry.date == day:
                return entry
        return None


class LessonProgress(DocumentModel):
    user_id: str
    lesson_id: str
    progress: int = Field(default=0, ge=0, le=100, description="Percent of the lesson completed")
    completed: bool = False
    last_accessed_at: dt.datetime
    completed_at: Optional[dt.datetime] = None
