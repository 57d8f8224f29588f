"""
Unit tests for the UTC time helpers.
"""

import sys
import os
import pytest
from datetime import date, datetime, timedelta, timezone

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from services.clock import days_between, ensure_utc, utc_day
from services.errors import InvalidArgument


class TestEnsureUtc:
    """Test ensure_utc"""

    def test_naive_datetime_is_taken_as_utc(self):
        assert ensure_utc(datetime(2024, 3, 1, 9, 0)) == datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)

    def test_offset_datetime_is_converted(self):
        value = datetime(2024, 3, 2, 1, 0, tzinfo=timezone(timedelta(hours=2)))

        assert ensure_utc(value) == datetime(2024, 3, 1, 23, 0, tzinfo=timezone.utc)
        assert ensure_utc(value).tzinfo == timezone.utc

    def test_iso_string_is_parsed(self):
        assert ensure_utc('2024-03-01T23:30:00-02:00') == datetime(2024, 3, 2, 1, 30, tzinfo=timezone.utc)

    @pytest.mark.parametrize('value', [None, 1709283600, date(2024, 3, 1), 'yesterday', ''])
    def test_bad_timestamp_raises_invalid_argument(self, value):
        with pytest.raises(InvalidArgument):
            ensure_utc(value)


class TestUtcDays:
    """Test utc_day and days_between"""

    def test_utc_day(self):
        assert utc_day('2024-03-01T23:30:00-02:00') == date(2024, 3, 2)

    def test_days_between_counts_calendar_days(self):
        earlier = datetime(2024, 3, 1, 23, 59, tzinfo=timezone.utc)
        later = datetime(2024, 3, 2, 0, 1, tzinfo=timezone.utc)

        assert days_between(earlier, later) == 1
        assert days_between(later, earlier) == -1
