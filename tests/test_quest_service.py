"""
Unit tests for daily quests.

Tests:
- QuestTracker counters per quest type
- Reset on a new UTC day consumes the triggering call
- QuestCatalog completion detection and quest board
"""

import sys
import os
import pytest
from datetime import datetime, timedelta, timezone

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app import create_app
from models import db
from services.errors import InvalidArgument
from services.quest_service import DAILY_QUESTS, QuestCatalog, QuestTracker
from services.user_progress_service import get_user_progress

DAY_1 = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)
DAY_2 = DAY_1 + timedelta(days=1)


@pytest.fixture(scope='function')
def app_context():
    """Create a fresh app context and in-memory database for each test"""
    app = create_app('testing')

    with app.app_context():
        db.create_all()

        yield app

        db.session.remove()
        db.drop_all()


@pytest.fixture
def tracker(app_context):
    return QuestTracker()


@pytest.fixture
def catalog(app_context):
    return QuestCatalog()


class TestAdvanceQuest:
    """Test QuestTracker.advance_quest"""

    def test_words_counter(self, tracker):
        tracker.advance_quest('u-1', 'words', 1, DAY_1)
        progress = tracker.advance_quest('u-1', 'words', 2, DAY_1)

        assert progress.words_learned == 3
        assert progress.time_spent_seconds == 0
        assert progress.lessons_completed == 0

    def test_time_and_lessons_counters(self, tracker):
        tracker.advance_quest('u-1', 'time', 45, DAY_1)
        progress = tracker.advance_quest('u-1', 'lessons', 1, DAY_1)

        assert progress.time_spent_seconds == 45
        assert progress.lessons_completed == 1

    def test_counters_are_persisted(self, tracker):
        tracker.advance_quest('u-1', 'words', 4, DAY_1)

        assert get_user_progress('u-1').daily_quests.progress.words_learned == 4

    def test_new_day_resets_without_applying_amount(self, tracker):
        """The call that notices the new day only resets the counters"""
        tracker.advance_quest('u-1', 'words', 5, DAY_1)
        tracker.advance_quest('u-1', 'time', 30, DAY_1)

        progress = tracker.advance_quest('u-1', 'words', 1, DAY_2)

        assert progress.words_learned == 0
        assert progress.time_spent_seconds == 0
        quests = get_user_progress('u-1').daily_quests
        assert quests.last_reset_at == DAY_2
        assert quests.completed_ids == []

    def test_call_after_reset_applies_amount(self, tracker):
        tracker.advance_quest('u-1', 'words', 5, DAY_1)
        tracker.advance_quest('u-1', 'words', 1, DAY_2)

        progress = tracker.advance_quest('u-1', 'words', 1, DAY_2 + timedelta(hours=1))

        assert progress.words_learned == 1

    def test_reset_clears_completed_quests(self, tracker, catalog):
        tracker.advance_quest('u-1', 'words', 20, DAY_1)
        assert catalog.complete_quests('u-1', DAY_1) == ['daily-words']

        tracker.advance_quest('u-1', 'words', 1, DAY_2)

        assert get_user_progress('u-1').daily_quests.completed_ids == []

    def test_unknown_quest_type_is_rejected(self, tracker):
        with pytest.raises(InvalidArgument):
            tracker.advance_quest('u-1', 'streak', 1, DAY_1)

    def test_negative_amount_is_rejected(self, tracker):
        with pytest.raises(InvalidArgument):
            tracker.advance_quest('u-1', 'words', -1, DAY_1)


class TestQuestCatalog:
    """Test QuestCatalog completion and board"""

    def test_completes_quest_when_target_reached(self, tracker, catalog):
        tracker.advance_quest('u-1', 'words', 19, DAY_1)
        assert catalog.complete_quests('u-1', DAY_1) == []

        tracker.advance_quest('u-1', 'words', 1, DAY_1)
        assert catalog.complete_quests('u-1', DAY_1) == ['daily-words']

        assert get_user_progress('u-1').daily_quests.completed_ids == ['daily-words']

    def test_quest_is_completed_only_once(self, tracker, catalog):
        tracker.advance_quest('u-1', 'lessons', 1, DAY_1)
        catalog.complete_quests('u-1', DAY_1)

        assert catalog.complete_quests('u-1', DAY_1) == []
        assert get_user_progress('u-1').daily_quests.completed_ids == ['daily-lesson']

    def test_stale_counters_complete_nothing(self, tracker, catalog):
        tracker.advance_quest('u-1', 'time', 600, DAY_1)

        assert catalog.complete_quests('u-1', DAY_2) == []

    def test_quest_board(self, tracker, catalog):
        tracker.advance_quest('u-1', 'words', 20, DAY_1)
        tracker.advance_quest('u-1', 'time', 120, DAY_1)
        catalog.complete_quests('u-1', DAY_1)

        board = {quest['id']: quest for quest in catalog.quest_board('u-1', DAY_1)}

        assert set(board) == {quest.id for quest in DAILY_QUESTS}
        assert board['daily-words']['current'] == 20
        assert board['daily-words']['completed'] is True
        assert board['daily-time']['current'] == 120
        assert board['daily-time']['completed'] is False
        assert board['daily-time']['target'] == 600

    def test_quest_board_shows_zero_for_stale_day(self, tracker, catalog):
        tracker.advance_quest('u-1', 'words', 20, DAY_1)
        catalog.complete_quests('u-1', DAY_1)

        board = {quest['id']: quest for quest in catalog.quest_board('u-1', DAY_2)}

        assert board['daily-words']['current'] == 0
        assert board['daily-words']['completed'] is False
