"""
Third-party identity providers an admin account can be linked to.

Each link stores the provider's stable user id plus a namespaced identifier
(`<namespace>:<value>`) that matches the identifiers a player presents when
connecting to the game server.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Tuple


DISCORD = "discord"
CITIZENFX = "citizenfx"

KNOWN_PROVIDERS: Tuple[str, ...] = (DISCORD, CITIZENFX)

CFX_PLACEHOLDER_IDENTIFIER = "fivem:00000000"

_CFX_NAMEID_RE = re.compile(r"/user/(\d{1,8})")


def is_known_provider(name: str) -> bool:
    return name in KNOWN_PROVIDERS


def derive_identifier(provider: str, link: Dict[str, Any]) -> str:
    """
    Best-effort identifier for links written before identifiers were stored.
    """
    if provider == CITIZENFX:
        # data may be empty, or nameid may be invalid
        data = link.get("data")
        nameid = data.get("nameid") if isinstance(data, dict) else None
        m = _CFX_NAMEID_RE.search(nameid) if isinstance(nameid, str) else None
        if m is None:
            return CFX_PLACEHOLDER_IDENTIFIER
        return f"fivem:{m.group(1)}"
    if provider == DISCORD:
        return f"discord:{link.get('id')}"
    raise ValueError(f"Unknown provider: {provider!r}")


def backfill_identifiers(raw_record: Dict[str, Any]) -> bool:
    """
    Fill missing `identifier` fields in-place. Returns True when anything changed.

    Links for unknown providers, and non-object links, are left for structural
    validation to reject.
    """
    providers = raw_record.get("providers")
    if not isinstance(providers, dict):
        return False
    changed = False
    for name, link in providers.items():
        if not is_known_provider(name) or not isinstance(link, dict):
            continue
        if isinstance(link.get("identifier"), str):
            continue
        link["identifier"] = derive_identifier(name, link)
        changed = True
    return changed
