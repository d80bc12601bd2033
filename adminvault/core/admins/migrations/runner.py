from __future__ import annotations

from typing import Any, Callable, Dict, List, Tuple

from adminvault.core.admins.migrations.migration_0001_initial import migrate as mig_0001


Migration = Callable[[Dict[str, Any]], Tuple[Dict[str, Any], int]]

# (target_version, fn); each fn upgrades a record from target_version - 1
MIGRATIONS: List[Tuple[int, Migration]] = [
    (1, mig_0001),
]


def latest_version() -> int:
    return max(v for v, _ in MIGRATIONS)


def run_record_migrations(record: Dict[str, Any], *, current_version: int) -> Tuple[Dict[str, Any], int, List[str]]:
    """
    Pure-dict migration runner for a single admin record.
    """
    logs: List[str] = []
    out = dict(record)
    ver = int(current_version)
    for target_version, fn in MIGRATIONS:
        if target_version <= ver:
            continue
        out, ver = fn(out)
        logs.append(f"applied migration {target_version:04d}")
    return out, ver, logs
