"""Unit tests for model column types."""

from datetime import UTC, datetime, timedelta, timezone

import pytest
from sqlalchemy.dialects import sqlite

from models import UTCDateTime

pytestmark = pytest.mark.unit


class TestUTCDateTime:
    """UTCDateTime stores UTC and always loads timezone-aware values."""

    def test_naive_result_is_marked_utc(self):
        value = UTCDateTime().process_result_value(
            datetime(2026, 1, 2, 3, 4, 5), sqlite.dialect()
        )
        assert value == datetime(2026, 1, 2, 3, 4, 5, tzinfo=UTC)

    def test_aware_result_is_unchanged(self):
        aware = datetime(2026, 1, 2, 3, 4, 5, tzinfo=UTC)
        assert UTCDateTime().process_result_value(aware, sqlite.dialect()) is aware

    def test_bind_converts_offsets_to_utc(self):
        seoul = timezone(timedelta(hours=9))
        value = UTCDateTime().process_bind_param(
            datetime(2026, 1, 2, 12, 0, tzinfo=seoul), sqlite.dialect()
        )
        assert value == datetime(2026, 1, 2, 3, 0, tzinfo=UTC)
        assert value.utcoffset() == timedelta(0)

    def test_none_passes_through(self):
        assert UTCDateTime().process_result_value(None, sqlite.dialect()) is None
        assert UTCDateTime().process_bind_param(None, sqlite.dialect()) is None
