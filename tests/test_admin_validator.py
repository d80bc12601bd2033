from __future__ import annotations

import json

import pytest

from adminvault.core.admins.models import AdminRecord
from adminvault.core.admins.providers import CFX_PLACEHOLDER_IDENTIFIER
from adminvault.core.admins.validator import decode_record, load_records
from adminvault.core.errors import AdminStoreLoadError, LoadFailure
from .helpers.admin_builders import HASH, admins_json, cfx_link, discord_link, raw_admin


def _reason(text):
    with pytest.raises(AdminStoreLoadError) as ei:
        load_records(text)
    return ei.value.reason


@pytest.mark.parametrize(
    "text,reason",
    [
        (None, LoadFailure.UNREADABLE),
        ("", LoadFailure.EMPTY),
        ("{not json", LoadFailure.MALFORMED_JSON),
        ('{"name": "owner"}', LoadFailure.NOT_A_LIST),
        ('"admins"', LoadFailure.NOT_A_LIST),
        ("[]", LoadFailure.EMPTY_LIST),
        ("[1]", LoadFailure.STRUCTURALLY_INVALID),
    ],
)
def test_file_level_failures(text, reason):
    assert _reason(text) == reason


@pytest.mark.parametrize(
    "overrides",
    [
        {"name": "ab"},
        {"name": 123},
        {"master": "true"},
        {"password_hash": "hunter2"},
        {"password_hash": None},
        {"password_temporary": "yes"},
        {"providers": []},
        {"providers": {"steam": {"id": "abc", "identifier": "steam:abc", "data": {}}}},
        {"providers": {"discord": {"id": "12", "identifier": "discord:12", "data": {}}}},
        {"providers": {"discord": {"id": "111111", "identifier": "d1", "data": {}}}},
        {"providers": {"discord": {"id": "111111", "identifier": "discord:111111", "data": "x"}}},
        {"providers": {"discord": {"id": "111111", "identifier": "discord:111111"}}},
        {"permissions": "all_permissions"},
        {"$schema": 2},
    ],
)
def test_invalid_records_are_structural_failures(overrides):
    bad = raw_admin("broken")
    bad.update(overrides)
    text = admins_json(raw_admin("owner", master=True), bad)
    assert _reason(text) == LoadFailure.STRUCTURALLY_INVALID


def test_missing_required_field():
    bad = raw_admin("broken")
    del bad["permissions"]
    assert _reason(admins_json(raw_admin("owner", master=True), bad)) == LoadFailure.STRUCTURALLY_INVALID


@pytest.mark.parametrize("masters", [0, 2])
def test_exactly_one_master_required(masters):
    raws = [raw_admin(f"admin{i}", master=i < masters) for i in range(3)]
    with pytest.raises(AdminStoreLoadError) as ei:
        load_records(admins_json(*raws))
    assert ei.value.reason == LoadFailure.MASTER_COUNT_INVALID
    assert ei.value.context["masters"] == masters


def test_valid_file_loads_without_migration():
    text = admins_json(
        raw_admin("owner", master=True, providers={"discord": discord_link("111111")}),
        raw_admin("helper", permissions=["players.kick"], password_temporary=True),
    )
    result = load_records(text)
    assert result.migrated is False
    assert [r.name for r in result.records] == ["owner", "helper"]
    assert result.records[0].is_master
    assert result.records[0].providers["discord"].identifier == "discord:111111"
    assert result.records[1].is_password_temporary


def test_identifier_backfill_marks_file_migrated():
    link = {"id": "cfxuser", "data": {"nameid": "https://forum.cfx.re/internal/user/271816"}}
    broken = {"id": "other", "data": {"nameid": "garbage"}}
    text = admins_json(
        raw_admin("owner", master=True, providers={"citizenfx": link}),
        raw_admin("helper", providers={"citizenfx": broken}),
    )
    result = load_records(text)
    assert result.migrated is True
    assert result.records[0].providers["citizenfx"].identifier == "fivem:271816"
    assert result.records[1].providers["citizenfx"].identifier == CFX_PLACEHOLDER_IDENTIFIER


def test_unknown_keys_survive():
    text = admins_json(raw_admin("owner", master=True, note="kept", providers={"discord": {**discord_link("111111"), "extra": 1}}))
    rec = load_records(text).records[0]
    disk = rec.to_disk()
    assert disk["note"] == "kept"
    assert disk["providers"]["discord"]["extra"] == 1


def test_decode_record_prefers_current_shape():
    rec, logs = decode_record(raw_admin("owner", master=True, providers={"citizenfx": cfx_link()}))
    assert isinstance(rec, AdminRecord)
    assert logs == []
    assert rec.password_hash == HASH


def test_decode_record_rejects_garbage():
    with pytest.raises(ValueError):
        decode_record({"name": "owner"})


def test_load_failure_error_shape():
    with pytest.raises(AdminStoreLoadError) as ei:
        load_records(json.dumps([]))
    err = ei.value
    assert err.code == "admin_store_load_failed"
    assert err.recoverable is False
    assert "no admins" in str(err)
    assert err.details()


def test_non_string_permission_entries_are_kept():
    text = admins_json(raw_admin("owner", master=True, permissions=["players.kick", 5, {"legacy": True}]))
    result = load_records(text)
    assert result.migrated is False
    assert result.records[0].permissions == ["players.kick", 5, {"legacy": True}]
    assert result.records[0].to_disk()["permissions"] == ["players.kick", 5, {"legacy": True}]
