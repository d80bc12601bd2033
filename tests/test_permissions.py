from __future__ import annotations

from adminvault.core.admins.permissions import ALL_PERMISSIONS, is_registered, list_permissions


def test_registry_is_ordered_and_complete():
    perms = list_permissions()
    keys = list(perms.keys())
    assert keys[0] == ALL_PERMISSIONS
    assert len(keys) == len(set(keys))
    for key in ("manage.admins", "players.ban", "players.direct_message", "announcement", "server.log.view", "txadmin.log.view"):
        assert key in perms
        assert perms[key]


def test_registry_returns_a_copy():
    perms = list_permissions()
    perms["bogus.permission"] = "nope"
    perms.pop(ALL_PERMISSIONS)
    fresh = list_permissions()
    assert "bogus.permission" not in fresh
    assert ALL_PERMISSIONS in fresh


def test_is_registered():
    assert is_registered("players.kick")
    assert not is_registered("players.message")
    assert not is_registered("")
