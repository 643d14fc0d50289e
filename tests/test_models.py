"""Unit tests for data models and the cancellation token."""
import dataclasses
from datetime import date, timedelta

import pytest

from fetcher.cancellation import CancellationToken
from processor.errors import RangeTooLarge
from processor.models import (
    MAX_RANGE_DAYS,
    AttemptOutcome,
    ChatMessage,
    EventRecord,
    FetchJob,
    ProviderAttempt,
    SynthesisResult,
)


class TestEventRecord:
    """Test cases for EventRecord parsing."""

    def test_from_dict_round_trips_source_shape(self):
        data = {
            'eventId': '7',
            'title': 'Smith Circle',
            'date': '2024-01-15',
            'link': 'https://ccb.example.com/7',
            'notes': 'Notes',
            'prayerRequests': 'Prayers',
            'topic': 'Topic',
            'headCount': 4,
            'didNotMeet': False,
            'attendees': [{'id': '1', 'name': 'Ann', 'status': 'Absent'}]
        }

        assert EventRecord.from_dict(data).to_dict() == data

    @pytest.mark.parametrize('raw, expected', [
        (None, None),
        (0, 0),
        (12, 12),
        ('9', 9),
        (-3, None),
        (2.5, None),
        (True, None),
        ('many', None),
    ])
    def test_head_count_normalization(self, raw, expected):
        record = EventRecord.from_dict({'eventId': '1', 'title': 't', 'date': 'd', 'headCount': raw})

        assert record.head_count == expected

    def test_missing_optional_fields(self):
        record = EventRecord.from_dict({'eventId': 3, 'title': 'T', 'date': 'garbage'})

        assert record.event_id == '3'
        assert record.date == 'garbage'
        assert record.notes is None
        assert record.attendees == ()
        assert record.did_not_meet is False

    def test_records_are_immutable(self):
        record = EventRecord(event_id='1', title='T', date='2024-01-15')

        with pytest.raises(dataclasses.FrozenInstanceError):
            record.title = 'changed'


class TestChatMessage:
    def test_unknown_role_becomes_user(self):
        assert ChatMessage.from_dict({'role': 'system', 'content': 'x'}).role == 'user'
        assert ChatMessage.from_dict({'role': 'assistant', 'content': 'x'}).role == 'assistant'


class TestSynthesisResult:
    def test_rate_limited_reflects_last_attempt(self):
        attempts = [
            ProviderAttempt('a', AttemptOutcome.HARD_ERROR, 500, error_message='x'),
            ProviderAttempt('b', AttemptOutcome.RATE_LIMITED, 429),
        ]
        result = SynthesisResult(error='wait', status_code=429, attempts=attempts)

        assert result.rate_limited is True
        assert result.ok is False

    def test_success_is_never_rate_limited(self):
        result = SynthesisResult(text='ok', attempts=[
            ProviderAttempt('a', AttemptOutcome.SUCCESS, 200, payload='ok')
        ])

        assert result.rate_limited is False


class TestCancellationToken:
    """Test cases for CancellationToken."""

    def test_callbacks_run_once(self):
        token = CancellationToken()
        calls = []
        token.on_cancel(lambda: calls.append('closed'))

        token.cancel()
        token.cancel()

        assert token.cancelled is True
        assert calls == ['closed']

    def test_callback_after_cancel_runs_immediately(self):
        token = CancellationToken()
        token.cancel()
        calls = []

        token.on_cancel(lambda: calls.append('closed'))

        assert calls == ['closed']

    def test_failing_callback_does_not_block_others(self):
        token = CancellationToken()
        calls = []

        def broken():
            raise RuntimeError('already closed')

        token.on_cancel(broken)
        token.on_cancel(lambda: calls.append('closed'))
        token.cancel()

        assert calls == ['closed']

    def test_remove_callback_unregisters(self):
        token = CancellationToken()
        calls = []

        def close():
            calls.append('closed')

        token.on_cancel(close)
        token.remove_callback(close)
        token.cancel()

        assert calls == []
        assert token.callback_count == 0


class TestFetchJob:
    """Test cases for FetchJob."""

    def test_max_range_accepted(self):
        start = date(2024, 1, 1)
        dates = [start + timedelta(days=i) for i in range(MAX_RANGE_DAYS)]

        job = FetchJob(dates=dates, group_filter='Circle')

        assert len(job.dates) == MAX_RANGE_DAYS

    def test_over_max_range_rejected(self):
        start = date(2024, 1, 1)
        dates = [start + timedelta(days=i) for i in range(MAX_RANGE_DAYS + 1)]

        with pytest.raises(RangeTooLarge):
            FetchJob(dates=dates, group_filter='Circle')
