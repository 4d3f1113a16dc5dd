"""Tests for the session lifecycle."""

from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta
from uuid import uuid4

import pytest

from smart_attendance.domain.sessions import SessionMode, SessionStatus
from smart_attendance.errors import (
    SessionConflictError,
    SessionNotFoundError,
    ValidationError,
)
from smart_attendance.services.sessions import SessionService, serialize_session
from tests.conftest import START, FakeClock, InMemorySessionRepository


def test_create_session(session_service) -> None:
    session = session_service.create("g1", "math", "teacher-1", "live", 60)

    assert session.status is SessionStatus.ACTIVE
    assert session.mode is SessionMode.LIVE
    assert session.start_time == START
    assert session.expires_at == START + timedelta(minutes=60)
    assert session.ended_at is None
    assert len(session.join_code) == 4
    assert 1000 <= int(session.join_code) <= 9999


def test_create_rejects_non_positive_duration(session_service) -> None:
    with pytest.raises(ValidationError):
        session_service.create("g1", "math", "teacher-1", "live", 0)


def test_create_rejects_unknown_mode(session_service) -> None:
    with pytest.raises(ValidationError):
        session_service.create("g1", "math", "teacher-1", "remote", 30)


def test_one_active_session_per_group(session_service) -> None:
    first = session_service.create("g1", "math", "teacher-1", SessionMode.DEMO, 60)

    with pytest.raises(SessionConflictError) as excinfo:
        session_service.create("g1", "physics", "teacher-2", SessionMode.LIVE, 60)
    assert excinfo.value.group_id == "g1"

    other_group = session_service.create("g2", "math", "teacher-1", "live", 60)
    assert other_group.id != first.id

    session_service.end(first.id)
    second = session_service.create("g1", "physics", "teacher-2", "live", 60)

    assert second.id != first.id
    assert session_service.get_active("g1") == second


def test_concurrent_creates_yield_single_session(session_repository, clock) -> None:
    service = SessionService(repository=session_repository, clock=clock)

    def attempt(index: int) -> str:
        try:
            service.create("g1", "math", f"teacher-{index}", "live", 60)
        except SessionConflictError:
            return "conflict"
        return "created"

    with ThreadPoolExecutor(max_workers=8) as pool:
        outcomes = list(pool.map(attempt, range(16)))

    assert outcomes.count("created") == 1
    assert outcomes.count("conflict") == 15
    assert len(session_repository.sessions) == 1


def test_end_records_actual_end_time(session_service, clock) -> None:
    session = session_service.create("g1", "math", "teacher-1", "live", 60)
    clock.advance(minutes=10)

    ended = session_service.end(session.id)

    assert ended.status is SessionStatus.ENDED
    assert ended.ended_at == START + timedelta(minutes=10)
    assert session_service.get_active("g1") is None


def test_end_is_idempotent(session_service, clock, recorder) -> None:
    session = session_service.create("g1", "math", "teacher-1", "live", 60)
    first = session_service.end(session.id)
    clock.advance(minutes=5)

    second = session_service.end(session.id)

    assert second == first
    assert recorder.types.count("session_ended") == 1


def test_end_unknown_session(session_service) -> None:
    with pytest.raises(SessionNotFoundError):
        session_service.end(uuid4())


def test_overdue_session_expires_lazily(
    session_service, session_repository, clock, recorder
) -> None:
    session = session_service.create("g1", "math", "teacher-1", "live", 1)
    clock.advance(minutes=2)

    assert session_service.get_active("g1") is None

    stored = session_repository.sessions[session.id]
    assert stored.status is SessionStatus.ENDED
    assert stored.ended_at == session.expires_at
    assert recorder.types == ["session_created", "session_expired"]


def test_session_active_until_expiry(session_service, clock) -> None:
    session = session_service.create("g1", "math", "teacher-1", "live", 1)
    clock.advance(seconds=59)

    assert session_service.get_active("g1") == session
    clock.advance(seconds=1)
    assert session_service.get_active("g1") is None


def test_create_retires_overdue_session(session_service, clock) -> None:
    old = session_service.create("g1", "math", "teacher-1", "live", 5)
    clock.advance(minutes=6)

    new = session_service.create("g1", "math", "teacher-1", "live", 5)

    assert new.id != old.id
    assert session_service.get(old.id).status is SessionStatus.ENDED


def test_list_for_owner_newest_first(session_service, clock) -> None:
    first = session_service.create("g1", "math", "teacher-1", "live", 5)
    session_service.end(first.id)
    clock.advance(minutes=1)
    second = session_service.create("g1", "math", "teacher-1", "live", 5)
    session_service.create("g2", "math", "teacher-2", "live", 5)

    sessions = session_service.list_for_owner("teacher-1")

    assert [s.id for s in sessions] == [second.id, first.id]


def test_find_by_join_code(session_service) -> None:
    session = session_service.create("g1", "math", "teacher-1", "live", 5)

    assert session_service.find_by_join_code("g1", f" {session.join_code} ") == session
    wrong = "0000" if session.join_code != "0000" else "1111"
    assert session_service.find_by_join_code("g1", wrong) is None
    assert session_service.find_by_join_code("g2", session.join_code) is None


def test_serialize_session(session_service) -> None:
    session = session_service.create("g1", "math", "teacher-1", "demo", 5)

    payload = serialize_session(session)

    assert payload["id"] == str(session.id)
    assert payload["mode"] == "demo"
    assert payload["status"] == "active"
    assert payload["ended_at"] is None


def test_session_service_defaults() -> None:
    service = SessionService(repository=InMemorySessionRepository(), clock=FakeClock())

    session = service.create("g1", "math", "teacher-1", "live", 1)

    assert service.get(session.id) == session


def test_end_overdue_session_closes_at_expiry(
    session_service, session_repository, clock, recorder
) -> None:
    session = session_service.create("g1", "math", "teacher-1", "live", 1)
    clock.advance(minutes=5)

    ended = session_service.end(session.id)

    assert ended.status is SessionStatus.ENDED
    assert ended.ended_at == session.expires_at
    assert recorder.types == ["session_created", "session_expired"]
