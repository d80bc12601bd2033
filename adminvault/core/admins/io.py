from __future__ import annotations

import hashlib
import json
import os
import threading
from typing import Iterable, Optional

from adminvault.core.admins.models import AdminRecord
from adminvault.core.config.io import atomic_write_text, backup_file, ensure_dirs
from adminvault.core.errors import (
    AdminFileExistsError,
    AdminFileIOError,
    AdminFileNotFoundError,
    AdminFilePermissionError,
    AdminFileWriteError,
)


def fingerprint(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def serialize(records: Iterable[AdminRecord], *, pretty: bool = True) -> str:
    payload = [r.to_disk() for r in records]
    if pretty:
        return json.dumps(payload, indent=2, ensure_ascii=False, sort_keys=True)
    return json.dumps(payload, ensure_ascii=False, sort_keys=True, separators=(",", ":"))


class AdminFile:
    """
    The admins JSON file plus the fingerprint of the last content we wrote or loaded.

    The fingerprint lives only in memory; the integrity monitor treats it as
    ground truth until the next save.
    """

    def __init__(self, path: str, *, backups_dir: Optional[str] = None, backup_keep: int = 10):
        self.path = path
        self.backups_dir = backups_dir
        self.backup_keep = int(backup_keep)
        self._lock = threading.Lock()
        self._known_fingerprint: Optional[str] = None

    @property
    def known_fingerprint(self) -> Optional[str]:
        return self._known_fingerprint

    def remember(self, digest: Optional[str]) -> None:
        self._known_fingerprint = digest

    def exists(self) -> bool:
        try:
            os.stat(self.path)
            return True
        except FileNotFoundError:
            return False

    def load(self) -> str:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                return f.read()
        except FileNotFoundError as e:
            raise AdminFileNotFoundError(path=self.path) from e
        except PermissionError as e:
            raise AdminFilePermissionError(path=self.path) from e
        except (OSError, UnicodeDecodeError) as e:
            raise AdminFileIOError(f"Failed to read admins file: {e}", path=self.path) from e

    def read_if_present(self) -> Optional[str]:
        """
        Current content, or None when the file is gone. Other read errors propagate.
        """
        try:
            return self.load()
        except AdminFileNotFoundError:
            return None

    def save(self, records: Iterable[AdminRecord]) -> str:
        text = serialize(records, pretty=True)
        digest = fingerprint(text)
        with self._lock:
            # remembered before the write: if the write fails the next
            # integrity check sees a mismatch and retries it
            self._known_fingerprint = digest
            try:
                ensure_dirs(os.path.dirname(self.path))
                if self.backups_dir:
                    backup_file(self.path, self.backups_dir, reason="prewrite", max_backups=self.backup_keep)
                atomic_write_text(self.path, text)
            except OSError as e:
                raise AdminFileWriteError(f"Failed to save admins file: {e}", path=self.path) from e
        return digest

    def create(self, records: Iterable[AdminRecord]) -> str:
        """
        First write of a brand new file: compact JSON, never overwrites.
        """
        text = serialize(records, pretty=False)
        digest = fingerprint(text)
        with self._lock:
            try:
                ensure_dirs(os.path.dirname(self.path))
                with open(self.path, "x", encoding="utf-8") as f:
                    f.write(text)
            except FileExistsError as e:
                raise AdminFileExistsError(f"Failed to create '{self.path}': file already exists.", path=self.path) from e
            except OSError as e:
                raise AdminFileWriteError(f"Failed to create '{self.path}' with error: {e}", path=self.path) from e
            self._known_fingerprint = digest
        return digest
