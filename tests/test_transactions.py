"""
Tests for app/services/transactions.py
Covers: commit/rollback by result, bounded retry with backoff, give-up conflict
"""
import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from app.core.config import TX_BACKOFF_SECONDS, TX_MAX_ATTEMPTS
from app.core.results import ConflictError, ServiceResult, ValidationError
from app.models.enums import RoomStatus
from app.models.room import Room
from app.services.transactions import run_in_transaction


class SleepSpy:

    def __init__(self):
        self.delays = []

    def __call__(self, seconds):
        self.delays.append(seconds)


def _room_count(db):
    return db.query(Room).count()


def _new_room(hotel, number):
    return Room(room_number=number, floor=1, type_id=hotel.standard.id, status=RoomStatus.AVAILABLE)


class TestCommitAndRollback:

    def test_success_is_committed(self, db_session, hotel):
        before = _room_count(db_session)

        def work():
            db_session.add(_new_room(hotel, "103"))
            db_session.flush()
            return ServiceResult.success("ok")

        result = run_in_transaction(db_session, work, "add room", sleep=SleepSpy())

        assert result.is_success
        db_session.rollback()
        assert _room_count(db_session) == before + 1

    def test_failure_result_is_rolled_back(self, db_session, hotel):
        before = _room_count(db_session)

        def work():
            db_session.add(_new_room(hotel, "103"))
            db_session.flush()
            return ServiceResult.failure(ValidationError("nope"))

        result = run_in_transaction(db_session, work, "add room", sleep=SleepSpy())

        assert isinstance(result.error, ValidationError)
        assert _room_count(db_session) == before

    def test_unexpected_exception_propagates(self, db_session, hotel):
        before = _room_count(db_session)

        def work():
            db_session.add(_new_room(hotel, "103"))
            db_session.flush()
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            run_in_transaction(db_session, work, "add room", sleep=SleepSpy())
        assert _room_count(db_session) == before


class TestRetry:

    def test_lock_timeouts_give_up_as_conflict(self, db_session, hotel):
        before = _room_count(db_session)
        calls = []
        sleep = SleepSpy()

        def work():
            calls.append(1)
            db_session.add(_new_room(hotel, f"9{len(calls)}"))
            db_session.flush()
            raise OperationalError("UPDATE rooms", {}, Exception("database is locked"))

        result = run_in_transaction(
            db_session, work, "create booking", room_ids=[hotel.r101.id], sleep=sleep
        )

        assert len(calls) == TX_MAX_ATTEMPTS
        assert sleep.delays == [TX_BACKOFF_SECONDS * 2 ** (n - 1) for n in range(1, TX_MAX_ATTEMPTS)]
        assert not result.is_success
        assert isinstance(result.error, ConflictError)
        assert result.error.conflicting_room_ids == frozenset({hotel.r101.id})
        assert _room_count(db_session) == before

    def test_custom_attempts_and_backoff(self, db_session, hotel):
        calls = []
        sleep = SleepSpy()

        def work():
            calls.append(1)
            raise OperationalError("SELECT 1", {}, Exception("could not serialize access"))

        result = run_in_transaction(
            db_session, work, "modify booking", max_attempts=4, backoff=0.5, sleep=sleep
        )

        assert len(calls) == 4
        assert sleep.delays == [0.5, 1.0, 2.0]
        assert result.error.conflicting_room_ids == frozenset()

    def test_duplicate_key_is_retried_then_succeeds(self, db_session, hotel):
        numbers = iter(["101", "103"])
        sleep = SleepSpy()
        attempts = []

        def work():
            # First attempt collides with an existing room number
            attempts.append(1)
            db_session.add(_new_room(hotel, next(numbers)))
            db_session.flush()
            return ServiceResult.success("created")

        result = run_in_transaction(db_session, work, "add room", sleep=sleep)

        assert result.is_success
        assert len(attempts) == 2
        assert sleep.delays == [TX_BACKOFF_SECONDS]
        assert db_session.query(Room).filter(Room.room_number == "103").count() == 1
        assert db_session.query(Room).filter(Room.room_number == "101").count() == 1

    def test_integrity_error_class_is_retryable(self, db_session):
        calls = []

        def work():
            calls.append(1)
            if len(calls) == 1:
                raise IntegrityError("INSERT INTO bookings", {}, Exception("UNIQUE constraint failed"))
            return ServiceResult.success(len(calls))

        result = run_in_transaction(db_session, work, "create booking", sleep=SleepSpy())

        assert result.data == 2
