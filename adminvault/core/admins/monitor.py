from __future__ import annotations

import logging
import threading
import uuid
from enum import Enum
from typing import Callable, List, Optional

from adminvault.core.admins.io import AdminFile, fingerprint
from adminvault.core.admins.models import AdminRecord
from adminvault.core.errors import AdminFileError
from adminvault.core.logger import get_logger
from adminvault.core.ops_log import OpsLogger


class CheckOutcome(str, Enum):
    OK = "ok"
    RESTORED = "restored"
    RESTORE_FAILED = "restore_failed"
    CHECK_FAILED = "check_failed"


class IntegrityMonitor:
    """
    Periodically compares the admins file against the fingerprint of the last
    content we wrote, and rewrites it from memory when it was edited or deleted
    behind our back.

    Best-effort: memory is the source of truth, and an external edit racing a
    restore is simply overwritten.
    """

    def __init__(
        self,
        *,
        admin_file: AdminFile,
        snapshot: Callable[[], List[AdminRecord]],
        interval_seconds: float = 15.0,
        logger: Optional[logging.Logger] = None,
        ops: Optional[OpsLogger] = None,
    ):
        self.admin_file = admin_file
        self.snapshot = snapshot
        self.interval_seconds = float(interval_seconds)
        self.logger = logger or get_logger("monitor")
        self.ops = ops
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._poll_loop, name="admins-integrity", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout=2.0)
        self._thread = None

    def check_once(self) -> CheckOutcome:
        try:
            text = self.admin_file.read_if_present()
        except AdminFileError as e:
            self.logger.error(f"Cannot check admins file integrity: {e}")
            return CheckOutcome.CHECK_FAILED

        if text is not None and fingerprint(text) == self.admin_file.known_fingerprint:
            return CheckOutcome.OK

        self.logger.warning("The admins file was modified or deleted by an external source, restoring it.")
        return self._restore("deleted" if text is None else "modified")

    def _restore(self, cause: str) -> CheckOutcome:
        trace_id = uuid.uuid4().hex
        try:
            self.admin_file.save(self.snapshot())
        except AdminFileError as e:
            self.logger.error(f"Failed to restore admins file: {e}")
            if self.ops:
                self.ops.log(trace_id=trace_id, event="admins.restored", outcome="failed", details={"cause": cause, "error": str(e)})
            return CheckOutcome.RESTORE_FAILED
        self.logger.info("Restored admins file.")
        if self.ops:
            self.ops.log(trace_id=trace_id, event="admins.restored", outcome="ok", details={"cause": cause})
        return CheckOutcome.RESTORED

    def _poll_loop(self) -> None:
        while not self._stop.wait(self.interval_seconds):
            try:
                self.check_once()
            except Exception as e:  # noqa: BLE001
                self.logger.warning(f"Admins integrity monitor error: {e}")
