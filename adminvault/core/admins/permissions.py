from __future__ import annotations

from typing import Dict


ALL_PERMISSIONS = "all_permissions"

# Not alphabetical; this is the order the admin UI renders them in.
_REGISTERED_PERMISSIONS: Dict[str, str] = {
    ALL_PERMISSIONS: "All Permissions",
    "manage.admins": "Manage Admins",
    "settings.view": "Settings: View (no tokens)",
    "settings.write": "Settings: Change",
    "console.view": "Console: View",
    "console.write": "Console: Write",
    "control.server": "Start/Stop Server + Scheduler",
    "announcement": "Send Announcements",
    "commands.resources": "Start/Stop Resources",
    "server.cfg.editor": "Read/Write server.cfg",
    "txadmin.log.view": "View System Logs",
    "server.log.view": "View Server Logs",
    "menu.vehicle": "Spawn / Fix Vehicles",
    "menu.clear_area": "Reset world area",
    "menu.viewids": "View Player IDs in-game",
    "players.direct_message": "Direct Message",
    "players.whitelist": "Whitelist",
    "players.warn": "Warn",
    "players.kick": "Kick",
    "players.ban": "Ban",
    "players.freeze": "Freeze Players",
    "players.heal": "Heal",
    "players.playermode": "NoClip / God Mode",
    "players.spectate": "Spectate",
    "players.teleport": "Teleport",
    "players.troll": "Troll Actions",
}


def list_permissions() -> Dict[str, str]:
    return dict(_REGISTERED_PERMISSIONS)


def is_registered(key: str) -> bool:
    return key in _REGISTERED_PERMISSIONS
