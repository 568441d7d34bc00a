"""
Tests for DashboardService - period stats, calendar buckets, next day,
today block, recent activity.
"""
from datetime import date, datetime, time, timedelta, timezone

import pytest

from keepalive.application.dashboard import DashboardService
from keepalive.domain.errors import ValidationError


TODAY = date(2026, 3, 4)  # Wednesday
_tz = timezone.utc


@pytest.fixture
def pair(make_account):
    return make_account("A"), make_account("B")


class TestDashboardStats:
    def test_week_counts(self, db_session, sample_user_id, pair, make_task, make_strategy):
        make_strategy()
        make_task(*pair, date(2026, 3, 2))                      # Monday
        make_task(*pair, date(2026, 3, 8), status="completed",  # Sunday
                  completed_at=datetime(2026, 3, 8, 10, 0, tzinfo=_tz))
        make_task(*pair, date(2026, 3, 5), status="skipped")
        make_task(*pair, date(2026, 3, 9))                      # next week

        stats = DashboardService(db_session).dashboard_stats(sample_user_id, "week", TODAY)

        assert stats["start"] == date(2026, 3, 2)
        assert stats["end"] == date(2026, 3, 8)
        assert stats["total_tasks"] == 3
        assert stats["pending_tasks"] == 1
        assert stats["completed_tasks"] == 1
        assert stats["skipped_tasks"] == 1
        assert stats["completion_rate"] == 0.5
        assert stats["total_accounts"] == 2
        assert stats["active_accounts"] == 2
        assert stats["total_strategies"] == 1
        assert stats["last_completed_at"] is not None

    def test_all_period(self, db_session, sample_user_id, pair, make_task):
        make_task(*pair, date(2020, 1, 1))
        make_task(*pair, date(2030, 1, 1))
        stats = DashboardService(db_session).dashboard_stats(sample_user_id, "all", TODAY)
        assert stats["total_tasks"] == 2
        assert stats["completion_rate"] == 0.0

    def test_inactive_account_counted_once(self, db_session, sample_user_id, make_account):
        make_account()
        make_account(is_active=False)
        stats = DashboardService(db_session).dashboard_stats(sample_user_id, "month", TODAY)
        assert (stats["total_accounts"], stats["active_accounts"]) == (2, 1)

    def test_unknown_period(self, db_session, sample_user_id):
        with pytest.raises(ValidationError):
            DashboardService(db_session).dashboard_stats(sample_user_id, "quarter", TODAY)


class TestCalendar:
    def test_one_bucket_per_day(self, db_session, sample_user_id, pair, make_task):
        start, end = date(2026, 3, 1), date(2026, 3, 10)
        make_task(*pair, date(2026, 3, 3))
        make_task(*pair, date(2026, 3, 3), status="completed")
        make_task(*pair, date(2026, 3, 7), status="skipped")
        make_task(*pair, date(2026, 3, 11))  # outside

        buckets = DashboardService(db_session).calendar(sample_user_id, start, end)

        assert len(buckets) == (end - start).days + 1
        assert [b["date"] for b in buckets] == [start + timedelta(days=i) for i in range(10)]
        assert sum(b["task_count"] for b in buckets) == 3
        by_date = {b["date"]: b for b in buckets}
        assert by_date[date(2026, 3, 3)] == {"date": date(2026, 3, 3), "task_count": 2, "has_pending": True}
        assert by_date[date(2026, 3, 7)]["has_pending"] is False
        assert by_date[date(2026, 3, 1)]["task_count"] == 0

    def test_single_day(self, db_session, sample_user_id):
        assert len(DashboardService(db_session).calendar(sample_user_id, TODAY, TODAY)) == 1

    def test_reversed_range(self, db_session, sample_user_id):
        with pytest.raises(ValidationError):
            DashboardService(db_session).calendar(sample_user_id, TODAY, TODAY - timedelta(days=1))

    def test_range_too_long(self, db_session, sample_user_id):
        with pytest.raises(ValidationError):
            DashboardService(db_session).calendar(sample_user_id, TODAY, TODAY + timedelta(days=400))


class TestNextDay:
    def test_earliest_future_pending_day(self, db_session, sample_user_id, pair, make_task):
        make_task(*pair, TODAY)                                         # today does not count
        make_task(*pair, TODAY + timedelta(days=2), status="completed")  # no pending on that day
        late = make_task(*pair, TODAY + timedelta(days=5), exec_time=time(15, 0))
        early = make_task(*pair, TODAY + timedelta(days=5), exec_time=time(9, 0), status="skipped")

        result = DashboardService(db_session).next_day(sample_user_id, TODAY)

        assert result["date"] == TODAY + timedelta(days=5)
        assert result["days_until"] == 5
        assert [t["id"] for t in result["tasks"]] == [early.id, late.id]
        assert result["tasks"][0]["from_account_name"] == "A"

    def test_none(self, db_session, sample_user_id, pair, make_task):
        make_task(*pair, TODAY - timedelta(days=1))
        assert DashboardService(db_session).next_day(sample_user_id, TODAY) is None


class TestToday:
    def test_counts(self, db_session, sample_user_id, pair, make_task):
        make_task(*pair, TODAY)
        make_task(*pair, TODAY, status="completed")
        make_task(*pair, TODAY, status="skipped")
        make_task(*pair, TODAY + timedelta(days=1))

        block = DashboardService(db_session).today(sample_user_id, TODAY)

        assert block["date"] == TODAY
        assert len(block["tasks"]) == 3
        assert (block["pending_count"], block["completed_count"], block["skipped_count"]) == (1, 1, 1)
        assert block["tasks"][0]["amount"] == "15.00"


class TestRecentActivity:
    def test_ordering_with_missing_completed_at(self, db_session, sample_user_id, pair, make_task):
        newest = make_task(*pair, date(2026, 3, 1), status="completed",
                           completed_at=datetime(2026, 3, 3, 12, 0, tzinfo=_tz))
        older = make_task(*pair, date(2026, 3, 1), status="completed",
                          completed_at=datetime(2026, 3, 2, 12, 0, tzinfo=_tz))
        no_stamp = make_task(*pair, date(2026, 3, 3), status="completed")
        make_task(*pair, date(2026, 3, 3))  # pending, excluded

        items = DashboardService(db_session).recent_activity(sample_user_id, limit=10)

        assert [t["id"] for t in items] == [newest.id, no_stamp.id, older.id]
        assert items[0]["to_account_name"] == "B"

    def test_limit(self, db_session, sample_user_id, pair, make_task):
        for i in range(5):
            make_task(*pair, date(2026, 3, 1) + timedelta(days=i), status="completed")
        assert len(DashboardService(db_session).recent_activity(sample_user_id, limit=2)) == 2

    def test_limit_keeps_most_recent(self, db_session, sample_user_id, pair, make_task):
        make_task(*pair, date(2026, 3, 5), status="completed",
                  completed_at=datetime(2026, 3, 1, 8, 0, tzinfo=_tz))
        latest = make_task(*pair, date(2026, 3, 2), status="completed", exec_time=time(18, 0))
        make_task(*pair, date(2026, 3, 2), status="completed", exec_time=time(9, 0))

        items = DashboardService(db_session).recent_activity(sample_user_id, limit=1)

        assert [t["id"] for t in items] == [latest.id]

    @pytest.mark.parametrize("limit", [0, 101])
    def test_limit_bounds(self, db_session, sample_user_id, limit):
        with pytest.raises(ValidationError):
            DashboardService(db_session).recent_activity(sample_user_id, limit=limit)
