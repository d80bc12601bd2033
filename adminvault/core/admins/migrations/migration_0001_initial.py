from __future__ import annotations

from typing import Any, Dict, Tuple


LEGACY_MESSAGE_PERMISSION = "players.message"


def migrate(record: Dict[str, Any]) -> Tuple[Dict[str, Any], int]:
    """
    Migration 0001: tag untagged records with schema 1.
    - players.message -> players.direct_message + announcement
    - grant server.log.view to anyone holding some (but not all) permissions
    """
    out = dict(record)
    perms = list(out.get("permissions") or [])
    if LEGACY_MESSAGE_PERMISSION in perms:
        perms = [p for p in perms if p != LEGACY_MESSAGE_PERMISSION]
        perms.append("players.direct_message")
        perms.append("announcement")
    if perms and "all_permissions" not in perms:
        perms.append("server.log.view")
    out["permissions"] = perms
    out["$schema"] = 1
    return out, 1
