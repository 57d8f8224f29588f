"""
Quest Service - daily quest counters and the daily quest catalog.

QuestTracker only moves counters and resets them when the UTC day changes.
QuestCatalog knows the quest targets and marks quests completed by
comparing the counters against them.
"""

import logging
from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from services.clock import ensure_utc, utc_day
from services.document_store import DocumentStore
from services.errors import InvalidArgument, require_id
from services.progress_models import QuestProgress, UserProgress
from services.user_progress_service import get_user_progress, modify_user_progress

logger = logging.getLogger(__name__)

QuestType = Literal['words', 'time', 'lessons']

# quest type -> QuestProgress attribute
QUEST_COUNTERS = {
    'words': 'words_learned',
    'time': 'time_spent_seconds',
    'lessons': 'lessons_completed',
}


def needs_reset(progress: UserProgress, now: datetime) -> bool:
    return utc_day(now) != utc_day(progress.daily_quests.last_reset_at)


class QuestTracker:
    """Daily quest counters with a reset at UTC midnight"""

    def __init__(self, store: Optional[DocumentStore] = None):
        self.store = store or DocumentStore()

    def advance_quest(
        self,
        user_id: str,
        quest_type: str,
        amount: int,
        now: datetime
    ) -> QuestProgress:
        """
        Advance the counter of one quest type.

        If the last reset happened on an earlier UTC day, this call only
        resets the counters and the completed quests; `amount` is not applied.

        Args:
            user_id: Opaque user identifier
            quest_type: 'words', 'time' or 'lessons'
            amount: Amount to add (>= 0)
            now: Time of the event

        Returns:
            The quest counters after the update

        Raises:
            InvalidArgument: If quest_type is unknown or amount is negative
            StorageUnavailable: If progress cannot be read or written
        """
        require_id('user_id', user_id)
        if quest_type not in QUEST_COUNTERS:
            raise InvalidArgument(
                f"Unknown quest type: '{quest_type}'. Must be one of: {list(QUEST_COUNTERS)}"
            )
        if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
            raise InvalidArgument(f"Quest amount must be a non-negative integer, got: {amount!r}")
        now = ensure_utc(now)
        counter = QUEST_COUNTERS[quest_type]
        outcome = {}

        def _change(progress: UserProgress) -> None:
            quests = progress.daily_quests
            if needs_reset(progress, now):
                quests.completed_ids = []
                quests.progress = QuestProgress()
                quests.last_reset_at = now
                outcome['reset'] = True
                return
            setattr(quests.progress, counter, getattr(quests.progress, counter) + amount)
            outcome['reset'] = False

        progress = modify_user_progress(user_id, _change, now, store=self.store)

        if outcome['reset']:
            logger.info(f"Reset daily quests for user_id={user_id}; {quest_type} +{amount} not applied")
        else:
            logger.debug(f"Advanced quest {quest_type} by {amount} for user_id={user_id}")
        return progress.daily_quests.progress


class QuestDefinition(BaseModel):
    """One entry of the daily quest catalog"""
    id: str
    title: str
    description: str
    quest_type: QuestType
    target: int = Field(gt=0)
    xp: int = Field(default=0, ge=0, description="Reward shown to the user")
    gems: int = Field(default=0, ge=0, description="Reward shown to the user")


DAILY_QUESTS = [
    QuestDefinition(
        id='daily-words',
        title='Word Warrior',
        description='Practice 20 words',
        quest_type='words',
        target=20,
        xp=20,
        gems=5
    ),
    QuestDefinition(
        id='daily-time',
        title='Focused Learner',
        description='Study for 10 minutes',
        quest_type='time',
        target=600,
        xp=15,
        gems=5
    ),
    QuestDefinition(
        id='daily-lesson',
        title='Lesson Finisher',
        description='Complete a lesson',
        quest_type='lessons',
        target=1,
        xp=25,
        gems=10
    ),
]


class QuestCatalog:
    """Compares quest counters against the catalog targets"""

    def __init__(
        self,
        store: Optional[DocumentStore] = None,
        quests: Optional[List[QuestDefinition]] = None
    ):
        self.store = store or DocumentStore()
        self.quests = quests if quests is not None else DAILY_QUESTS

    def _met(self, counters: QuestProgress) -> List[str]:
        return [
            quest.id for quest in self.quests
            if getattr(counters, QUEST_COUNTERS[quest.quest_type]) >= quest.target
        ]

    def complete_quests(self, user_id: str, now: datetime) -> List[str]:
        """
        Mark every quest whose counter reached its target as completed.

        Counters from an earlier UTC day are stale and complete nothing.

        Returns:
            Ids of quests completed by this call
        """
        now = ensure_utc(now)
        newly_completed = []

        def _change(progress: UserProgress) -> None:
            newly_completed.clear()
            if needs_reset(progress, now):
                return
            quests = progress.daily_quests
            for quest_id in self._met(quests.progress):
                if quest_id not in quests.completed_ids:
                    newly_completed.append(quest_id)
            if newly_completed:
                quests.completed_ids = quests.completed_ids + newly_completed

        modify_user_progress(user_id, _change, now, store=self.store)

        if newly_completed:
            logger.info(f"Quests completed for user_id={user_id}: {newly_completed}")
        return list(newly_completed)

    def quest_board(self, user_id: str, now: datetime) -> List[Dict]:
        """
        Current state of every catalog quest for a user.

        Example:
            >>> catalog.quest_board('u-1', now)[0]
            {'id': 'daily-words', 'title': 'Word Warrior', ..., 'current': 3, 'completed': False}
        """
        now = ensure_utc(now)
        progress = get_user_progress(user_id, now=now, store=self.store)
        stale = needs_reset(progress, now)
        counters = QuestProgress() if stale else progress.daily_quests.progress
        completed_ids = [] if stale else progress.daily_quests.completed_ids

        board = []
        for quest in self.quests:
            entry = quest.model_dump()
            entry['current'] = getattr(counters, QUEST_COUNTERS[quest.quest_type])
            entry['completed'] = quest.id in completed_ids
            board.append(entry)
        return board
