from __future__ import annotations

import json
import os
import time

from adminvault.core.admins.io import fingerprint
from adminvault.core.admins.monitor import CheckOutcome, IntegrityMonitor
from adminvault.core.errors import AdminFileWriteError
from .helpers.admin_builders import record


def _setup(directory, admin_file, ops, interval=15.0):
    directory.save_now()
    return IntegrityMonitor(admin_file=admin_file, snapshot=directory.snapshot, interval_seconds=interval, ops=ops)


def test_unchanged_file_is_ok(directory, admin_file, ops):
    mon = _setup(directory, admin_file, ops)
    assert mon.check_once() == CheckOutcome.OK


def test_tampered_file_is_restored(directory, admin_file, ops, tmp_path):
    mon = _setup(directory, admin_file, ops)
    expected = admin_file.known_fingerprint
    with open(admin_file.path, "w", encoding="utf-8") as f:
        f.write("[]")
    assert mon.check_once() == CheckOutcome.RESTORED
    assert fingerprint(admin_file.load()) == expected
    assert mon.check_once() == CheckOutcome.OK

    with open(tmp_path / "logs" / "ops.jsonl", "r", encoding="utf-8") as f:
        last = json.loads(f.read().splitlines()[-1])
    assert last["event"] == "admins.restored"
    assert last["details"]["cause"] == "modified"


def test_deleted_file_is_restored(directory, admin_file, ops):
    mon = _setup(directory, admin_file, ops)
    expected = admin_file.known_fingerprint
    os.remove(admin_file.path)
    assert mon.check_once() == CheckOutcome.RESTORED
    assert fingerprint(admin_file.load()) == expected


def test_memory_is_source_of_truth(directory, admin_file, ops):
    mon = _setup(directory, admin_file, ops)
    directory.replace_all([record("owner", master=True), record("added", permissions=["players.kick"])])
    # memory changed without a write; the file no longer matches what was last written
    os.remove(admin_file.path)
    assert mon.check_once() == CheckOutcome.RESTORED
    assert "added" in admin_file.load()


def test_restore_failure_is_reported(directory, admin_file, ops, monkeypatch):
    mon = _setup(directory, admin_file, ops)
    os.remove(admin_file.path)

    def _boom(_records):
        raise AdminFileWriteError("disk full", path=admin_file.path)

    monkeypatch.setattr(admin_file, "save", _boom)
    assert mon.check_once() == CheckOutcome.RESTORE_FAILED


def test_unreadable_file_is_check_failure(directory, admin_file, ops):
    mon = _setup(directory, admin_file, ops)
    os.remove(admin_file.path)
    os.mkdir(admin_file.path)
    assert mon.check_once() == CheckOutcome.CHECK_FAILED


def test_background_loop_restores(directory, admin_file, ops):
    mon = _setup(directory, admin_file, ops, interval=0.05)
    expected = admin_file.known_fingerprint
    mon.start()
    try:
        assert mon.running
        os.remove(admin_file.path)
        deadline = time.time() + 5.0
        while time.time() < deadline and not admin_file.exists():
            time.sleep(0.02)
        assert fingerprint(admin_file.load()) == expected
    finally:
        mon.stop()
    assert mon.running is False
