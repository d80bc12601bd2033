"""
File primitives shared by the config manager and the admins file.

Writes go through a temp file in the target directory followed by
`os.replace`, so readers see either the old or the new content. Backups are
timestamped copies kept next to each other and pruned per source file.
"""

from __future__ import annotations

import json
import os
import shutil
import tempfile
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class ReadResult:
    ok: bool
    data: Dict[str, Any]
    error: Optional[str] = None


def ensure_dirs(*dirs: str) -> None:
    for d in dirs:
        if d:
            os.makedirs(d, exist_ok=True)


def _backup_name(path: str, tag: str) -> str:
    # ns suffix keeps names unique when several writes land in the same second
    stamp = time.strftime("%Y%m%d_%H%M%S", time.gmtime())
    return f"{os.path.basename(path)}.{stamp}.{time.time_ns() % 1_000_000:06d}.{tag}.json"


def list_backups(backups_dir: str, source_name: str) -> List[str]:
    """
    Backups of `source_name`, newest first.
    """
    if not os.path.isdir(backups_dir):
        return []
    prefix = f"{source_name}."
    items = [os.path.join(backups_dir, f) for f in os.listdir(backups_dir) if f.startswith(prefix)]
    return sorted(items, key=os.path.getmtime, reverse=True)


def prune_backups(backups_dir: str, source_name: str, keep: int) -> None:
    for p in list_backups(backups_dir, source_name)[max(keep, 0):]:
        try:
            os.remove(p)
        except OSError:
            pass


def read_json_file(path: str) -> ReadResult:
    try:
        with open(path, "r", encoding="utf-8") as f:
            obj = json.load(f)
    except FileNotFoundError:
        return ReadResult(ok=False, data={}, error="missing")
    except json.JSONDecodeError as e:
        return ReadResult(ok=False, data={}, error=f"corrupt_json:{e}")
    except (OSError, UnicodeDecodeError) as e:
        return ReadResult(ok=False, data={}, error=str(e))
    if not isinstance(obj, dict):
        return ReadResult(ok=False, data={}, error="not_object")
    return ReadResult(ok=True, data=obj)


def backup_file(path: str, backups_dir: str, *, reason: str, max_backups: int = 10) -> Optional[str]:
    """
    Copy `path` into `backups_dir` before it gets replaced. Returns the copy's
    path, or None when there was nothing to copy or the copy failed.
    """
    if not os.path.isfile(path):
        return None
    ensure_dirs(backups_dir)
    out = os.path.join(backups_dir, _backup_name(path, reason))
    try:
        shutil.copy2(path, out)
    except OSError:
        return None
    prune_backups(backups_dir, os.path.basename(path), max_backups)
    return out


def atomic_write_text(path: str, text: str) -> None:
    directory = os.path.dirname(path) or "."
    ensure_dirs(directory)
    fd, tmp = tempfile.mkstemp(prefix=".tmp_", suffix=".json", dir=directory)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            try:
                os.fsync(f.fileno())
            except OSError:
                pass
        os.replace(tmp, path)
    finally:
        if os.path.exists(tmp):
            try:
                os.remove(tmp)
            except OSError:
                pass


def atomic_write_json(path: str, data: Dict[str, Any], backups_dir: str, *, max_backups: int = 10) -> None:
    backup_file(path, backups_dir, reason="prewrite", max_backups=max_backups)
    atomic_write_text(path, json.dumps(data, indent=2, ensure_ascii=False, sort_keys=True) + "\n")


def recover_from_corrupt(path: str, backups_dir: str, last_known_good_dir: str, *, max_backups: int = 10) -> Tuple[Dict[str, Any], bool]:
    """
    Move an unreadable file aside as `<name>.<ts>.corrupt.json`, then put the
    last-known-good copy back in its place when there is one.

    Returns (data, recovered); data is {} when nothing could be recovered.
    """
    ensure_dirs(backups_dir)
    if os.path.exists(path):
        try:
            shutil.move(path, os.path.join(backups_dir, _backup_name(path, "corrupt")))
        except OSError:
            pass
    rr = read_json_file(os.path.join(last_known_good_dir, os.path.basename(path)))
    if not rr.ok:
        return {}, False
    atomic_write_json(path, rr.data, backups_dir, max_backups=max_backups)
    return rr.data, True


def snapshot_last_known_good(path: str, last_known_good_dir: str) -> None:
    """
    Remember `path` as the copy to fall back to if it is later found corrupt.
    """
    if not os.path.isfile(path):
        return
    ensure_dirs(last_known_good_dir)
    try:
        shutil.copy2(path, os.path.join(last_known_good_dir, os.path.basename(path)))
    except OSError:
        pass
