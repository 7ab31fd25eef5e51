"""
Tests for the clear operation.
"""

from outlook_google_sync.sync.clear import perform_clear
from tests.conftest import make_record


def test_clear_deletes_remote_events_and_empties_mirror(mirror_db, remote, sync_logger):
    remote.events = {"remote-1": {}, "remote-2": {}, "foreign": {}}
    mirror_db.add(make_record("A", "remote-1"))
    mirror_db.add(make_record("B", "remote-2", days_ahead=-10))

    report = perform_clear(mirror_db, remote, sync_logger)

    assert report.deleted == 2
    assert sorted(remote.deletes) == ["remote-1", "remote-2"]
    assert mirror_db.all_records() == []
    # Events the tool never created are left alone
    assert "foreign" in remote.events


def test_clear_dry_run_changes_nothing(mirror_db, remote, sync_logger):
    mirror_db.add(make_record("A", "remote-1"))

    report = perform_clear(mirror_db, remote, sync_logger, dry_run=True)

    assert report.deleted == 1
    assert remote.deletes == []
    assert len(mirror_db.all_records()) == 1


def test_failed_remote_delete_keeps_mirror_record(mirror_db, remote, sync_logger):
    mirror_db.add(make_record("A", "remote-1"))
    mirror_db.add(make_record("B", "remote-2", days_ahead=2))
    remote.fail_delete_ids.add("remote-1")

    report = perform_clear(mirror_db, remote, sync_logger)

    assert report.deleted == 1
    assert report.failed == 1
    assert [r.calendar_uid for r in mirror_db.all_records()] == ["A"]


def test_record_without_remote_id_is_only_removed_locally(mirror_db, remote, sync_logger):
    mirror_db.add(make_record("A", ""))

    report = perform_clear(mirror_db, remote, sync_logger)

    assert report.deleted == 1
    assert remote.deletes == []
    assert mirror_db.all_records() == []
