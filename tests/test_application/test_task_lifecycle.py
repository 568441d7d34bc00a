"""Tests for complete / skip / delete / batch delete / complete-today"""
from datetime import date, datetime, timedelta, timezone

import pytest

from keepalive.application.tasks_usecases import (
    CompleteTaskUseCase, SkipTaskUseCase, DeleteTaskUseCase, BatchDeleteTasksUseCase,
    CompleteTodayTasksUseCase, TaskSelector, selector_from_request,
)
from keepalive.domain.errors import IllegalTransitionError, NotFoundError, ValidationError
from keepalive.infrastructure.db.models import TransferTaskModel, EventLog


TODAY = date(2026, 3, 4)
NOW = datetime(2026, 3, 4, 15, 30, tzinfo=timezone.utc)


@pytest.fixture
def pair(make_account):
    return make_account("A"), make_account("B")


def _status(db, task_id):
    return db.query(TransferTaskModel.status).filter(TransferTaskModel.id == task_id).scalar()


class TestCompleteTask:
    def test_complete(self, db_session, sample_user_id, pair, make_task):
        task = make_task(*pair, TODAY)
        done = CompleteTaskUseCase(db_session).execute(task.id, sample_user_id, notes="  готово ", now=NOW)

        assert done.status == "completed"
        assert done.notes == "готово"
        assert done.completed_at is not None
        event = db_session.query(EventLog).filter(EventLog.event_type == "task_completed").one()
        assert event.payload_json["task_id"] == task.id

    @pytest.mark.parametrize("status", ["completed", "skipped"])
    def test_terminal_task_rejected(self, db_session, sample_user_id, pair, make_task, status):
        task = make_task(*pair, TODAY, status=status)
        with pytest.raises(IllegalTransitionError):
            CompleteTaskUseCase(db_session).execute(task.id, sample_user_id)
        assert _status(db_session, task.id) == status

    def test_other_users_task_not_found(self, db_session, pair, make_task):
        task = make_task(*pair, TODAY)
        with pytest.raises(NotFoundError):
            CompleteTaskUseCase(db_session).execute(task.id, user_id=2)

    def test_notes_too_long(self, db_session, sample_user_id, pair, make_task):
        task = make_task(*pair, TODAY)
        with pytest.raises(ValidationError):
            CompleteTaskUseCase(db_session).execute(task.id, sample_user_id, notes="x" * 2001)


class TestSkipTask:
    def test_skip(self, db_session, sample_user_id, pair, make_task):
        task = make_task(*pair, TODAY)
        skipped = SkipTaskUseCase(db_session).execute(task.id, sample_user_id, now=NOW)
        assert skipped.status == "skipped"
        assert skipped.completed_at is None

    def test_skip_after_complete_rejected(self, db_session, sample_user_id, pair, make_task):
        task = make_task(*pair, TODAY)
        CompleteTaskUseCase(db_session).execute(task.id, sample_user_id)
        with pytest.raises(IllegalTransitionError):
            SkipTaskUseCase(db_session).execute(task.id, sample_user_id)


class TestDeleteTask:
    @pytest.mark.parametrize("status", ["pending", "completed", "skipped"])
    def test_delete_any_status(self, db_session, sample_user_id, pair, make_task, status):
        task = make_task(*pair, TODAY, status=status)
        task_id = task.id
        DeleteTaskUseCase(db_session).execute(task_id, sample_user_id)

        assert db_session.query(TransferTaskModel).count() == 0
        event = db_session.query(EventLog).filter(EventLog.event_type == "task_deleted").one()
        assert event.payload_json["status"] == status

    def test_delete_missing(self, db_session, sample_user_id):
        with pytest.raises(NotFoundError):
            DeleteTaskUseCase(db_session).execute("missing", sample_user_id)


class TestBatchDelete:
    def test_by_ids_reports_failures(self, db_session, sample_user_id, pair, make_task):
        t1 = make_task(*pair, TODAY)
        t2 = make_task(*pair, TODAY)
        keep = make_task(*pair, TODAY)

        result = BatchDeleteTasksUseCase(db_session).execute(
            sample_user_id, TaskSelector.by_ids([t1.id, "ghost", t2.id, t1.id]),
        )

        assert result.count == 2
        assert result.failed_ids == ["ghost"]
        assert [t.id for t in db_session.query(TransferTaskModel).all()] == [keep.id]

    def test_ids_of_other_user_fail(self, db_session, pair, make_task):
        task = make_task(*pair, TODAY)
        result = BatchDeleteTasksUseCase(db_session).execute(2, TaskSelector.by_ids([task.id]))
        assert result.count == 0
        assert result.failed_ids == [task.id]

    def test_all(self, db_session, sample_user_id, pair, make_task):
        for i in range(3):
            make_task(*pair, TODAY + timedelta(days=i))
        make_task(*pair, TODAY, user_id=2)

        result = BatchDeleteTasksUseCase(db_session).execute(sample_user_id, TaskSelector.all())

        assert result.count == 3
        assert db_session.query(TransferTaskModel).count() == 1

    def test_completed_only(self, db_session, sample_user_id, pair, make_task):
        make_task(*pair, TODAY, status="completed")
        make_task(*pair, TODAY, status="skipped")
        make_task(*pair, TODAY)

        result = BatchDeleteTasksUseCase(db_session).execute(sample_user_id, TaskSelector.completed())

        assert result.count == 1
        assert {t.status for t in db_session.query(TransferTaskModel).all()} == {"skipped", "pending"}

    def test_completed_when_none(self, db_session, sample_user_id, pair, make_task):
        make_task(*pair, TODAY)
        result = BatchDeleteTasksUseCase(db_session).execute(sample_user_id, TaskSelector.completed())
        assert result.count == 0
        assert result.failed_ids == []
        assert db_session.query(EventLog).count() == 0

    def test_cycle(self, db_session, sample_user_id, pair, make_task):
        make_task(*pair, TODAY, cycle=1)
        make_task(*pair, TODAY, cycle=2)
        make_task(*pair, TODAY, cycle=2)

        result = BatchDeleteTasksUseCase(db_session).execute(sample_user_id, TaskSelector.in_cycle(2))

        assert result.count == 2
        assert [t.cycle for t in db_session.query(TransferTaskModel).all()] == [1]


class TestSelectorFromRequest:
    def test_exactly_one(self):
        assert selector_from_request(delete_all=True) == TaskSelector.all()
        assert selector_from_request(delete_cycle=0) == TaskSelector.in_cycle(0)
        assert selector_from_request(task_ids=["a", "b"]).ids == ("a", "b")

    def test_none_given(self):
        with pytest.raises(ValidationError):
            selector_from_request()

    def test_two_given(self):
        with pytest.raises(ValidationError):
            selector_from_request(delete_all=True, delete_completed=True)


class TestCompleteToday:
    def test_only_todays_pending(self, db_session, sample_user_id, pair, make_task):
        today_pending = make_task(*pair, TODAY)
        today_skipped = make_task(*pair, TODAY, status="skipped")
        tomorrow = make_task(*pair, TODAY + timedelta(days=1))

        result = CompleteTodayTasksUseCase(db_session).execute(sample_user_id, TODAY, now=NOW)

        assert result.count == 1
        assert _status(db_session, today_pending.id) == "completed"
        assert _status(db_session, today_skipped.id) == "skipped"
        assert _status(db_session, tomorrow.id) == "pending"
