"""
Read-only check of an admins file.

Runs the same validation and migration the store applies at startup, without
writing anything back, and prints either a summary of the accounts or the
categorized reason the file would be rejected.

Usage:
  python scripts/verify_admins.py [--root .] [--file data/admins.json]
"""

from __future__ import annotations

import argparse
import json
import sys

from adminvault.core.admins.io import AdminFile
from adminvault.core.admins.validator import load_records
from adminvault.core.config import ConfigFsPaths, ConfigManager
from adminvault.core.errors import AdminFileError, AdminStoreLoadError, ConfigError


def main() -> int:
    ap = argparse.ArgumentParser(description="Validate an admins file without modifying it.")
    ap.add_argument("--root", default=".", help="adminvault root directory (default: .)")
    ap.add_argument("--file", default=None, help="Admins file to check (default: from config).")
    ap.add_argument("--json", action="store_true", help="Print the result as JSON.")
    args = ap.parse_args()

    path = args.file
    if not path:
        try:
            cm = ConfigManager(fs=ConfigFsPaths(str(args.root)), logger=None, read_only=True)
            cm.load_all()
        except ConfigError as e:
            print(f"Config error: {e}", file=sys.stderr)
            return 2
        path = cm.admins_path()

    try:
        text = AdminFile(path).load()
        result = load_records(text)
    except (AdminFileError, AdminStoreLoadError) as e:
        if args.json:
            print(json.dumps({"ok": False, "path": path, **e.to_dict()}, indent=2))
        else:
            print(f"{path}: {e}", file=sys.stderr)
        return 2

    summaries = [r.summary().model_dump() for r in result.records]
    if args.json:
        print(json.dumps({"ok": True, "path": path, "migration_pending": result.migrated, "admins": summaries}, indent=2))
        return 0
    print(f"{path}: {len(summaries)} admin(s)")
    for s in summaries:
        flag = " (master)" if s["master"] else ""
        print(f"  - {s['name']}{flag}: providers={','.join(s['providers']) or '-'} permissions={len(s['permissions'])}")
    if result.migrated:
        print("  note: file uses an older schema and will be migrated on next startup")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
