"""
Shared pytest fixtures and event helpers.
"""

import logging
from datetime import datetime
from datetime import timedelta

import pytest

from outlook_google_sync.db import MirrorDatabase
from outlook_google_sync.models import CalendarEventRecord
from outlook_google_sync.models import SourceEvent
from outlook_google_sync.sync.engine import ReconciliationEngine
from tests.fake_client import FakeRemoteClient
from tests.fake_client import FakeSourceReader

# Fixed clock: every engine in the tests believes it is 2026-03-02 09:30.
NOW = datetime(2026, 3, 2, 9, 30)
TODAY = datetime(2026, 3, 2)
TIMEZONE = "Europe/Amsterdam"


def make_event(
    uid: str,
    summary: str = "Test Event",
    days_ahead: int = 1,
    hours: int = 1,
    **kwargs,
) -> SourceEvent:
    """Return a one-hour source event starting at 10:00 ``days_ahead`` days after TODAY."""
    start = TODAY + timedelta(days=days_ahead, hours=10)
    return SourceEvent(
        uid=uid,
        summary=summary,
        start=start,
        end=start + timedelta(hours=hours),
        **kwargs,
    )


def make_record(
    calendar_uid: str,
    remote_id: str,
    summary: str = "Test Event",
    days_ahead: int = 1,
    is_recurring: bool = False,
) -> CalendarEventRecord:
    """Return a mirror record matching ``make_event`` with the same arguments."""
    start = TODAY + timedelta(days=days_ahead, hours=10)
    return CalendarEventRecord(
        calendar_uid=calendar_uid,
        remote_id=remote_id,
        summary=summary,
        start=start,
        end=start + timedelta(hours=1),
        is_recurring=is_recurring,
    )


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "test_mirror.db"


@pytest.fixture
def mirror_db(db_path):
    with MirrorDatabase(db_path) as db:
        yield db


@pytest.fixture
def source():
    return FakeSourceReader()


@pytest.fixture
def remote():
    return FakeRemoteClient()


@pytest.fixture
def engine(source, mirror_db, remote):
    return ReconciliationEngine(source, mirror_db, remote, timezone=TIMEZONE, now=lambda: NOW)


@pytest.fixture
def sync_logger():
    return logging.getLogger("test_sync")
