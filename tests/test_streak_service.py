"""
Unit tests for StreakTracker.

Tests the streak rules on UTC calendar days:
- First practice starts a streak of 1
- Same-day practice only accumulates history
- Next-day practice extends the streak, longer gaps reset it
- longest_streak never drops below current_streak
"""

import sys
import os
import pytest
from datetime import date, datetime, timedelta, timezone

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app import create_app
from models import db
from models.progress_document import ProgressDocument
from services.errors import InvalidArgument
from services.streak_service import StreakTracker
from services.user_progress_service import get_user_progress

DAY_1 = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


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
    return StreakTracker()


class TestRecordPractice:
    """Test record_practice"""

    def test_first_practice_starts_streak(self, tracker):
        result = tracker.record_practice('u-1', 1, 1, 5, DAY_1)

        assert result.current_streak == 1
        assert result.longest_streak == 1

        progress = get_user_progress('u-1')
        assert len(progress.practice_history) == 1
        entry = progress.practice_history[0]
        assert entry.date == date(2024, 3, 1)
        assert (entry.words_studied, entry.correct_answers, entry.time_spent_seconds) == (1, 1, 5)
        assert progress.last_practice_at == DAY_1

    def test_same_day_accumulates_history(self, tracker):
        """Two events on one day: streak unchanged, one summed history entry"""
        tracker.record_practice('u-1', 1, 1, 5, DAY_1)
        result = tracker.record_practice('u-1', 2, 0, 7, DAY_1 + timedelta(hours=8))

        assert result.current_streak == 1

        progress = get_user_progress('u-1')
        assert len(progress.practice_history) == 1
        entry = progress.practice_history[0]
        assert (entry.words_studied, entry.correct_answers, entry.time_spent_seconds) == (3, 1, 12)
        assert progress.last_practice_at == DAY_1 + timedelta(hours=8)

    def test_next_day_extends_streak(self, tracker):
        tracker.record_practice('u-1', 1, 1, 5, DAY_1)
        result = tracker.record_practice('u-1', 1, 1, 5, DAY_1 + timedelta(days=1))

        assert result.current_streak == 2
        assert result.longest_streak == 2
        assert len(get_user_progress('u-1').practice_history) == 2

    def test_gap_resets_streak_but_keeps_longest(self, tracker):
        for day in range(3):
            tracker.record_practice('u-1', 1, 1, 5, DAY_1 + timedelta(days=day))

        result = tracker.record_practice('u-1', 1, 1, 5, DAY_1 + timedelta(days=5))

        assert result.current_streak == 1
        assert result.longest_streak == 3

    def test_day_boundary_is_utc_midnight(self, tracker):
        tracker.record_practice('u-1', 1, 1, 5, datetime(2024, 3, 1, 23, 59, tzinfo=timezone.utc))
        result = tracker.record_practice('u-1', 1, 1, 5, datetime(2024, 3, 2, 0, 1, tzinfo=timezone.utc))

        assert result.current_streak == 2

    def test_offset_timestamps_are_compared_in_utc(self, tracker):
        """01:00 at UTC+2 on March 2nd is still March 1st in UTC"""
        plus_two = timezone(timedelta(hours=2))
        tracker.record_practice('u-1', 1, 1, 5, datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc))
        result = tracker.record_practice('u-1', 1, 1, 5, datetime(2024, 3, 2, 1, 0, tzinfo=plus_two))

        assert result.current_streak == 1
        assert len(get_user_progress('u-1').practice_history) == 1

    def test_longest_streak_never_below_current(self, tracker):
        day_offsets = [0, 1, 2, 2, 4, 5, 6, 7, 7, 9, 20, 21]

        for offset in day_offsets:
            result = tracker.record_practice('u-1', 1, 0, 3, DAY_1 + timedelta(days=offset))
            assert result.longest_streak >= result.current_streak

        assert result.longest_streak == 4
        assert result.current_streak == 2

    def test_history_has_one_entry_per_day_in_order(self, tracker):
        for offset in [0, 0, 1, 3, 3, 3]:
            tracker.record_practice('u-1', 1, 1, 1, DAY_1 + timedelta(days=offset))

        history = get_user_progress('u-1').practice_history
        assert [entry.date for entry in history] == [date(2024, 3, 1), date(2024, 3, 2), date(2024, 3, 4)]
        assert [entry.words_studied for entry in history] == [2, 1, 3]

    def test_earlier_day_does_not_change_streak(self, tracker):
        tracker.record_practice('u-1', 1, 1, 5, DAY_1)
        tracker.record_practice('u-1', 1, 1, 5, DAY_1 + timedelta(days=1))
        result = tracker.record_practice('u-1', 4, 2, 9, DAY_1 - timedelta(days=3))

        assert result.current_streak == 2
        history = get_user_progress('u-1').practice_history
        assert history[0].date == date(2024, 2, 27)
        assert history[0].words_studied == 4

    def test_lazily_created_progress_counts_first_practice(self, tracker):
        """A progress document created by a read has no practice yet"""
        get_user_progress('u-1', now=DAY_1)

        result = tracker.record_practice('u-1', 1, 1, 5, DAY_1 + timedelta(hours=1))

        assert result.current_streak == 1
        assert result.longest_streak == 1

    @pytest.mark.parametrize('words, correct, seconds', [
        (-1, 0, 0),
        (1, -1, 0),
        (1, 1, -5),
        (1, 1, 2.5),
    ])
    def test_invalid_counts_are_rejected_before_writing(self, tracker, words, correct, seconds):
        with pytest.raises(InvalidArgument):
            tracker.record_practice('u-1', words, correct, seconds, DAY_1)

        assert ProgressDocument.query.count() == 0

    @pytest.mark.parametrize('now', [None, 'not a date', 1709283600])
    def test_invalid_now_is_rejected_before_writing(self, tracker, now):
        with pytest.raises(InvalidArgument):
            tracker.record_practice('u-1', 1, 1, 5, now)

        assert ProgressDocument.query.count() == 0


class TestGetUserStreak:
    """Test get_user_streak"""

    def test_zero_without_progress(self, tracker):
        assert tracker.get_user_streak('nobody') == 0

    def test_returns_current_streak(self, tracker):
        tracker.record_practice('u-1', 1, 1, 5, DAY_1)
        tracker.record_practice('u-1', 1, 1, 5, DAY_1 + timedelta(days=1))

        assert tracker.get_user_streak('u-1') == 2
