"""
Unit tests for event_service rules and Event.status_at, run DB-free.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from backend.app.errors import AppError, ErrorCode
from backend.app.models.event import Event, EventStatus
from backend.app.services import event_service

NOW = datetime(2030, 6, 1, 12, 0, tzinfo=timezone.utc)


def _event(**overrides) -> SimpleNamespace:
    values = dict(
        id=7,
        host_id=10,
        club_id=None,
        start_time=NOW + timedelta(hours=1),
        end_time=NOW + timedelta(hours=3),
        max_people=2,
    )
    values.update(overrides)
    return SimpleNamespace(**values)


@pytest.fixture
def repo():
    with patch.object(event_service, "event_repository") as mocked, \
            patch.object(event_service, "_now", return_value=NOW):
        yield mocked


# ── time window ────────────────────────────────────────────────────────────

def test_time_window_accepts_start_equal_to_now():
    event_service._validate_time_window(NOW, NOW + timedelta(minutes=1), NOW)


def test_time_window_rejects_past_start():
    with pytest.raises(AppError) as exc_info:
        event_service._validate_time_window(NOW - timedelta(seconds=1), NOW + timedelta(hours=1), NOW)
    assert exc_info.value.code == ErrorCode.START_TIME_IN_PAST


def test_time_window_rejects_start_equal_to_end():
    start = NOW + timedelta(hours=1)
    with pytest.raises(AppError) as exc_info:
        event_service._validate_time_window(start, start, NOW)
    assert exc_info.value.code == ErrorCode.INVALID_TIME_RANGE


def test_require_not_started_raises_after_start():
    event = _event(start_time=NOW - timedelta(minutes=1))
    with pytest.raises(AppError) as exc_info:
        event_service._require_not_started(event, NOW, "deleted")
    assert exc_info.value.code == ErrorCode.EVENT_STARTED
    assert "deleted" in exc_info.value.message


# ── status ─────────────────────────────────────────────────────────────────

@pytest.mark.parametrize("now, expected", [
    (NOW, EventStatus.PENDING),
    (NOW + timedelta(hours=2), EventStatus.ONGOING),
    (NOW + timedelta(hours=4), EventStatus.COMPLETED),
])
def test_status_at(now, expected):
    event = SimpleNamespace(start_time=NOW + timedelta(hours=1), end_time=NOW + timedelta(hours=3))
    assert Event.status_at(event, now) is expected


# ── join ───────────────────────────────────────────────────────────────────

def test_join_event_full_at_capacity(repo):
    repo.get_event.return_value = _event()
    repo.has_joined.return_value = False
    repo.count_participants.return_value = 2

    with pytest.raises(AppError) as exc_info:
        event_service.join_event(event_id=7, user_id=20, session=MagicMock())

    assert exc_info.value.code == ErrorCode.EVENT_FULL
    repo.add_participant.assert_not_called()


def test_join_event_one_below_capacity_succeeds(repo):
    repo.get_event.return_value = _event()
    repo.has_joined.return_value = False
    repo.count_participants.return_value = 1
    session = MagicMock()

    event_service.join_event(event_id=7, user_id=20, session=session)

    repo.add_participant.assert_called_once_with(7, 20, session)


def test_join_event_already_joined_checked_before_end(repo):
    repo.get_event.return_value = _event(end_time=NOW - timedelta(hours=1))
    repo.has_joined.return_value = True

    with pytest.raises(AppError) as exc_info:
        event_service.join_event(event_id=7, user_id=20, session=MagicMock())
    assert exc_info.value.code == ErrorCode.ALREADY_JOINED


def test_join_ended_event(repo):
    repo.get_event.return_value = _event(end_time=NOW - timedelta(seconds=1))
    repo.has_joined.return_value = False

    with pytest.raises(AppError) as exc_info:
        event_service.join_event(event_id=7, user_id=20, session=MagicMock())
    assert exc_info.value.code == ErrorCode.EVENT_ENDED


def test_join_club_event_requires_membership(repo):
    repo.get_event.return_value = _event(club_id=3)
    repo.has_joined.return_value = False

    with patch.object(event_service, "club_repository") as club_repo:
        club_repo.is_member.return_value = False
        with pytest.raises(AppError) as exc_info:
            event_service.join_event(event_id=7, user_id=20, session=MagicMock())

    assert exc_info.value.http_status == 403


# ── out ────────────────────────────────────────────────────────────────────

def test_host_cannot_leave(repo):
    repo.get_event.return_value = _event()
    repo.has_joined.return_value = True

    with pytest.raises(AppError) as exc_info:
        event_service.out_event(event_id=7, user_id=10, session=MagicMock())
    assert exc_info.value.code == ErrorCode.HOST_CANNOT_LEAVE


def test_get_event_or_404(repo):
    repo.get_event.return_value = None
    with pytest.raises(AppError) as exc_info:
        event_service._get_event_or_404(event_id=404, session=MagicMock())
    assert exc_info.value.code == ErrorCode.EVENT_NOT_FOUND
