from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from adminvault.core.admins.models import AdminRecord


HASH = "$2b$10$" + "N" * 53


def cfx_link(num: str = "1234567", *, username: str = "cfxuser") -> Dict[str, Any]:
    return {"id": username, "identifier": f"fivem:{num}", "data": {}}


def discord_link(uid: str = "272800190639898628") -> Dict[str, Any]:
    return {"id": uid, "identifier": f"discord:{uid}", "data": {}}


def raw_admin(
    name: str = "owner",
    *,
    master: bool = False,
    permissions: Optional[List[str]] = None,
    providers: Optional[Dict[str, Any]] = None,
    schema: Optional[int] = 1,
    **extra: Any,
) -> Dict[str, Any]:
    d: Dict[str, Any] = {
        "name": name,
        "master": master,
        "password_hash": HASH,
        "providers": providers if providers is not None else {},
        "permissions": permissions if permissions is not None else [],
    }
    if schema is not None:
        d["$schema"] = schema
    d.update(extra)
    return d


def record(name: str = "owner", **kw: Any) -> AdminRecord:
    return AdminRecord.model_validate(raw_admin(name, **kw))


def admins_json(*raws: Dict[str, Any]) -> str:
    return json.dumps(list(raws), indent=2)
