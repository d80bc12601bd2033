from __future__ import annotations

import importlib.util
import json
import os
import sys

from .helpers.admin_builders import admins_json, raw_admin


_SCRIPT = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "scripts", "verify_admins.py")


def _load_script():
    spec = importlib.util.spec_from_file_location("verify_admins", _SCRIPT)
    mod = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(mod)  # type: ignore[union-attr]
    return mod


def _run(monkeypatch, *argv):
    monkeypatch.setattr(sys, "argv", ["verify_admins.py", *argv])
    return _load_script().main()


def test_reports_valid_file(tmp_path, monkeypatch, capsys):
    path = tmp_path / "admins.json"
    path.write_text(admins_json(raw_admin("owner", master=True), raw_admin("mod", permissions=["players.message"], schema=None)), encoding="utf-8")
    before = path.read_text(encoding="utf-8")
    assert _run(monkeypatch, "--file", str(path), "--json") == 0
    out = json.loads(capsys.readouterr().out)
    assert out["ok"] is True
    assert out["migration_pending"] is True
    assert [a["name"] for a in out["admins"]] == ["owner", "mod"]
    assert path.read_text(encoding="utf-8") == before


def test_reports_rejection_reason(tmp_path, monkeypatch, capsys):
    path = tmp_path / "admins.json"
    path.write_text("[]", encoding="utf-8")
    assert _run(monkeypatch, "--file", str(path), "--json") == 2
    out = json.loads(capsys.readouterr().out)
    assert out["ok"] is False
    assert out["context"]["reason"] == "empty_list"


def test_uses_config_for_default_path(tmp_path, monkeypatch, capsys):
    assert _run(monkeypatch, "--root", str(tmp_path)) == 2
    assert "admins.json" in capsys.readouterr().err
    assert not os.path.exists(tmp_path / "config")
